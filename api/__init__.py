"""
Directory HTTP API (FastAPI)

- Map clusters, region pages, venue lookup by id / slug / changeset preview
- Nearest city, autocomplete, Overpass nearby lookup
- SEO slug resolution, category directory, stats
- Admin: cache status and rebuild (bearer token)
"""
