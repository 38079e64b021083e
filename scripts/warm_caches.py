#!/usr/bin/env python3
"""
Load every cache once and print what was built, with timings. Useful to
check a data directory before starting the API.

Examples:
  python scripts/warm_caches.py
  python scripts/warm_caches.py --data-dir /srv/venues/data --probe 40.4168 -3.7038
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import time

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_config
from common.logging_setup import setup_logging
from geocache.registry import GeoCaches


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default=None)
    ap.add_argument("--data-dir", default=None, help="Override data.dir")
    ap.add_argument("--probe", nargs=2, type=float, metavar=("LAT", "LON"),
                    help="Also run one nearest-city lookup")
    args = ap.parse_args()

    cfg = load_config(args.config)
    if args.data_dir:
        cfg["data"]["dir"] = args.data_dir
    setup_logging(cfg["logging"]["level"])

    caches = GeoCaches(cfg)
    timings = {}
    for name, cache in (("cities", caches.cities), ("admin1", caches.admin1),
                        ("countries", caches.countries), ("slugs", caches.slugs)):
        t0 = time.perf_counter()
        try:
            cache.load()
        except FileNotFoundError as e:
            timings[name] = f"missing ({e})"
            continue
        timings[name] = f"{(time.perf_counter() - t0) * 1e3:.0f} ms"

    if caches.path("venues_file").exists():
        timings["rebuild"] = caches.rebuild(initiated_by="warm_caches")

    if args.probe:
        lat, lon = args.probe
        t0 = time.perf_counter()
        city = caches.cities.find_nearest_city(lon, lat)
        timings["probe"] = {
            "city": city.to_dict() if city else None,
            "ms": round((time.perf_counter() - t0) * 1e3, 2),
        }

    print(json.dumps({"timings": timings, "status": caches.status()}, indent=2, default=str))


if __name__ == "__main__":
    main()
