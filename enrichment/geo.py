from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from common.categories import match_category
from common.geo import valid_lonlat
from common.logging_setup import append_run_log, get_logger
from common.types import City, Venue
from common.utils import iso_now_ms
from geocache.admin1 import Admin1Cache
from geocache.registry import GeoCaches
from geocache.venues import read_venue_file, write_venue_file


log = get_logger("enrichment.geo")

_BATCH_RE = re.compile(r"^geo-enrichment-(\d+)\.json$")


def way_center(v: Venue, venues: List[Venue], index_map: Dict[int, int]) -> Optional[Tuple[float, float]]:
    """Mean (lat, lon) of the way's member nodes that are known and located."""
    if not v.nodes:
        return None
    members = [venues[index_map[n]] for n in v.nodes if n in index_map]
    members = [m for m in members if m.has_coords]
    if not members:
        return None
    lat = sum(m.lat for m in members) / len(members)  # type: ignore[misc]
    lon = sum(m.lon for m in members) / len(members)  # type: ignore[misc]
    return lat, lon


def enrich_venue(
    v: Venue,
    venues: List[Venue],
    index_map: Dict[int, int],
    find_nearest_city: Callable[[float, float], Optional[City]],
    admin1: Admin1Cache,
    existing: Optional[Venue] = None,
) -> Optional[Venue]:
    """
    Fill location and category on `v` in place.

    Ways without coordinates get the centre of their member nodes. City,
    country and state come from the nearest city unless `existing` already
    has all three; category comes from the tags unless `existing` already has
    one. Returns `v` when anything was filled, None otherwise (including
    venues that still have no valid coordinates or no tags).
    """
    if not v.has_coords and v.type == "way":
        center = way_center(v, venues, index_map)
        if center is None:
            return None
        v.lat, v.lon = center

    if not v.has_coords or not v.tags or not valid_lonlat(v.lon, v.lat):
        return None

    updated = False

    if existing is None or not (existing.country and existing.city and existing.state):
        nearest = find_nearest_city(v.lon, v.lat)  # type: ignore[arg-type]
        if nearest is not None:
            v.city = nearest.name
            v.country = nearest.country_code
            v.state = admin1.get_admin1_name(nearest.country_code, nearest.admin1_code) or (
                existing.state if existing else None
            )
            v.enriched_at = iso_now_ms()
            updated = True

    if existing is None or not (existing.category and existing.subcategory):
        hit = match_category(v.tags)
        if hit:
            v.category, v.subcategory = hit
            v.enriched_category_at = iso_now_ms()
            updated = True

    if v.type == "way":
        v.nodes = None
    return v if updated else None


def batch_files(queue_dir: Path) -> List[Path]:
    """`geo-enrichment-<n>.json` files in numeric order of <n>."""
    if not queue_dir.is_dir():
        return []
    found = []
    for p in queue_dir.iterdir():
        m = _BATCH_RE.match(p.name)
        if m:
            found.append((int(m.group(1)), p))
    return [p for _, p in sorted(found)]


def _save_and_refresh(caches: GeoCaches, venues: List[Venue], lines: List[str]) -> None:
    write_venue_file(caches.path("venues_file"), venues)
    append_run_log(caches.logs_dir, "geo_enrich", lines)
    caches.rebuild(initiated_by="geo_enrich")


def enrich_geo_data(caches: GeoCaches) -> int:
    """
    Run one enrichment pass and return the number of venues enriched.

    When the enriched venue file exists, queued batches are applied to it in
    order; batch files are deleted only after the results are written, and
    batches that are not valid JSON stay queued. When it does not,
    every venue of the fallback file is enriched and only the enriched ones
    are written out.
    """
    enriched_file = caches.path("venues_file")
    fallback_file = caches.path("fallback_venues_file")
    finder = caches.cities.find_nearest_city
    lines: List[str] = []
    count = 0

    from_fallback = not enriched_file.exists()
    if from_fallback:
        log.warning("enriched venue file missing, enriching fallback source",
                    extra={"extra": {"fallback": str(fallback_file)}})
        venues = read_venue_file(fallback_file)
    else:
        venues = read_venue_file(enriched_file)
    index_map = {v.id: i for i, v in enumerate(venues)}

    if from_fallback:
        by_id: Dict[int, Venue] = {}
        for v in venues:
            done = enrich_venue(v, venues, index_map, finder, caches.admin1)
            if done is not None:
                by_id[v.id] = done
                lines.append(f"Enriched {v.id}: {done.city}, {done.state}, {done.country}")
                count += 1
        _save_and_refresh(caches, list(by_id.values()), lines)
        log.info("fallback enrichment done", extra={"extra": {"enriched": count}})
        return count

    by_id = {v.id: v for v in venues}
    files = batch_files(caches.path("queue_dir"))
    if not files:
        log.info("no geo enrichment batches found")
        return 0

    processed: List[Path] = []
    try:
        for path in files:
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except ValueError as e:
                log.warning("unreadable geo enrichment batch left in queue",
                            extra={"extra": {"file": path.name, "err": str(e)}})
                continue
            in_file = 0
            for item in raw if isinstance(raw, list) else []:
                try:
                    queued = Venue.from_dict(item)
                except (ValueError, AttributeError):
                    continue
                done = enrich_venue(queued, venues, index_map, finder, caches.admin1, by_id.get(queued.id))
                if done is not None:
                    by_id[queued.id] = done
                    lines.append(f"Enriched {queued.id}: {done.city}, {done.state}, {done.country}")
                    count += 1
                    in_file += 1
            processed.append(path)
            log.info("processed batch", extra={"extra": {"file": path.name, "enriched": in_file}})
    finally:
        # batches are removed only once their results are on disk
        if count:
            _save_and_refresh(caches, list(by_id.values()), lines)
        for path in processed:
            path.unlink()

    log.info("queue enrichment done", extra={"extra": {"enriched": count, "batches": len(processed)}})
    return count
