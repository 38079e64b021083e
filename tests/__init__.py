"""
Venue Directory Test Suite

This package contains tests for the geo cache layer, the enrichment jobs and the HTTP API.

Structure:
- unit/: Unit tests for individual components
- integration/: API tests through FastAPI's TestClient
- conftest.py: sample GeoNames / venue / slug map files written to a temp data dir
"""
