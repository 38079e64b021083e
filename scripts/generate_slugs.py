#!/usr/bin/env python3
"""
Assign missing venue slugs and write the SEO slug files:
  data/merchant-slugs.json   one {type, canonical, alternates} per page
  data/venue_slug_map.json   every canonical / alternate slug -> region query

Examples:
  python scripts/generate_slugs.py
  python scripts/generate_slugs.py --skip-venues
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import setup_logging
from enrichment.slug_map import generate_slug_map
from enrichment.venue_slugs import generate_venue_slugs
from geocache.registry import GeoCaches


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default=None)
    ap.add_argument("--data-dir", default=None, help="Override data.dir")
    ap.add_argument("--skip-venues", action="store_true", help="Do not touch per-venue slugs")
    args = ap.parse_args()

    cfg = load_config(args.config)
    if args.data_dir:
        cfg["data"]["dir"] = args.data_dir
    setup_logging(cfg["logging"]["level"])

    caches = GeoCaches(cfg)
    if not caches.path("venues_file").exists():
        print(f"venue file not found: {caches.path('venues_file')}", file=sys.stderr)
        sys.exit(1)
    if not args.skip_venues:
        print(f"venue slugs assigned: {generate_venue_slugs(caches)}")
    counts = generate_slug_map(caches)
    print(f"slug map: {counts['entries']} pages, {counts['slugs']} slugs")


if __name__ == "__main__":
    main()
