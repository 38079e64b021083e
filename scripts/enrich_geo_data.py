#!/usr/bin/env python3
"""
Geo-enrich the venue file.

With data/EnrichedVenues.json present, applies queued
data/queues/geo-enrichment-<n>.json batches in order (each deleted after it
is processed). Without it, enriches every venue of data/BitcoinVenues.json.
Then optionally assigns missing venue slugs and regenerates the slug map.

Examples:
  python scripts/enrich_geo_data.py
  python scripts/enrich_geo_data.py --config config/params.yaml --slugs
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from enrichment.geo import enrich_geo_data
from enrichment.slug_map import generate_slug_map
from enrichment.venue_slugs import generate_venue_slugs
from geocache.registry import GeoCaches


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default=None, help="YAML params (default: $VENUES_CONFIG or config/params.yaml)")
    ap.add_argument("--data-dir", default=None, help="Override data.dir")
    ap.add_argument("--slugs", action="store_true", help="Also generate venue slugs and the SEO slug map")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args()

    cfg = load_config(args.config)
    if args.data_dir:
        cfg["data"]["dir"] = args.data_dir
    setup_logging(args.log_level or cfg["logging"]["level"])
    log = get_logger("scripts.enrich_geo_data")

    caches = GeoCaches(cfg)
    enriched = enrich_geo_data(caches)
    summary = {"enriched": enriched}
    if args.slugs and caches.path("venues_file").exists():
        summary["venue_slugs"] = generate_venue_slugs(caches)
        summary["slug_map"] = generate_slug_map(caches)
    log.info("enrichment finished", extra={"extra": summary})
    print(summary)


if __name__ == "__main__":
    main()
