"""
Directory query services used by the API

- region: venues of a country / city / sub-category page
- search: map autocomplete over venues and places
- stats: headline and detailed directory statistics
- osm: OpenStreetMap changeset preview and Overpass nearby lookup
"""
