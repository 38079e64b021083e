"""
Geo cache layer

- Loads GeoNames cities / admin1 / country files and the venue, slug map JSON
  once per process (`FileBackedCache`), reloaded only by `refresh()`
- Nearest-city lookup over a static k-d tree on the unit sphere
- Venue-derived indexes: location centroids, category directory, map tiles
- `registry.get_caches()` owns one instance of each for the configured data dir
"""
