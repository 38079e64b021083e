"""
Batch jobs over the venue file

- geo: nearest city / state / country and category for queued or all venues
- venue_slugs: unique per-venue URL slugs
- slug_map: SEO region slugs (country, city, state, category) -> slug map JSON
"""
