from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from common.config import data_path, load_config
from common.logging_setup import append_run_log, get_logger
from geocache.admin1 import Admin1Cache
from geocache.categories import build_category_index
from geocache.cities import CitiesCache
from geocache.countries import CountriesCache
from geocache.locations import LocationIndex, build_location_index
from geocache.slugs import SlugsCache
from geocache.tiles import TileIndex, read_replication_timestamp
from geocache.venues import VenueCache


log = get_logger("geocache.registry")


class GeoCaches:
    """
    Every cache for one data directory.

    File-backed caches load on first use. The venue-derived indexes
    (locations, categories, tiles) are built from the venue cache on first use
    and dropped together by `rebuild()`.
    """

    def __init__(self, cfg: Optional[Dict[str, Any]] = None):
        self.cfg = cfg or load_config()
        self.cities = CitiesCache(data_path(self.cfg, "cities_file"))
        self.admin1 = Admin1Cache(data_path(self.cfg, "admin1_file"))
        self.countries = CountriesCache(data_path(self.cfg, "countries_file"))
        self.slugs = SlugsCache(data_path(self.cfg, "slug_map_file"), countries=self.countries)
        self.venues = VenueCache(data_path(self.cfg, "venues_file"))

        self._lock = threading.RLock()
        self._locations: Optional[LocationIndex] = None
        self._categories: Optional[Dict[str, Dict[str, Any]]] = None
        self._tiles: Optional[TileIndex] = None

    # -------- paths --------

    @property
    def data_dir(self) -> Path:
        return Path(self.cfg["data"]["dir"])

    def path(self, key: str) -> Path:
        return data_path(self.cfg, key)

    @property
    def logs_dir(self) -> Path:
        return self.path("logs_dir")

    # -------- derived indexes --------

    def locations(self) -> LocationIndex:
        with self._lock:
            if self._locations is None:
                self._locations = build_location_index(self.venues.venues)
            return self._locations

    def categories(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            if self._categories is None:
                self._categories = build_category_index(self.venues.venues, self.countries.get_country_name)
            return self._categories

    def tiles(self) -> TileIndex:
        with self._lock:
            if self._tiles is None:
                tcfg = self.cfg["tiles"]
                self._tiles = TileIndex(self.venues.venues, tcfg["min_zoom"], tcfg["max_zoom"])
            return self._tiles

    def updated_at(self) -> Optional[str]:
        return read_replication_timestamp(self.path("replication_state_file"))

    def clear_derived(self) -> None:
        with self._lock:
            self._locations = None
            self._categories = None
            self._tiles = None

    # -------- admin --------

    def status(self) -> Dict[str, Any]:
        """What is in memory right now; never triggers a load."""
        with self._lock:
            venues = self.venues.peek()
            loc = self._locations
            tiles = self._tiles
            return {
                "venue": {"loaded": venues is not None, "count": len(venues) if venues is not None else 0},
                "location": {
                    "loaded": loc is not None,
                    "countries": len(loc.countries) if loc else 0,
                    "states": len(loc.states) if loc else 0,
                    "cities": len(loc.cities) if loc else 0,
                },
                "category": {"loaded": self._categories is not None,
                             "subcategories": len(self._categories or {})},
                "tile": {"loaded": tiles is not None,
                         "tilesAtMinZoom": tiles.stats()["tilesAtMinZoom"] if tiles else 0},
                "cities": {"loaded": self.cities.loaded},
                "admin1": {"loaded": self.admin1.loaded},
                "countries": {"loaded": self.countries.loaded},
                "slugs": {"loaded": self.slugs.loaded},
            }

    def rebuild(self, initiated_by: Optional[str] = None) -> Dict[str, Any]:
        """
        Clear and rebuild the venue cache and everything derived from it.
        Appends a summary to logs/YYYY/MM/cache_rebuild_DD.log.
        """
        lines = [f"Cache rebuild initiated by: {initiated_by or 'system'}"]
        t_all = time.perf_counter()
        with self._lock:
            self.clear_derived()

            t0 = time.perf_counter()
            store = self.venues.refresh()
            venue_ms = _ms_since(t0)
            lines.append(f"VenueCache rebuilt: {len(store)} venues ({venue_ms}ms)")

            t0 = time.perf_counter()
            loc = self.locations()
            location_ms = _ms_since(t0)
            lines.append(f"LocationCache rebuilt: {len(loc.countries)} countries ({location_ms}ms)")

            t0 = time.perf_counter()
            cats = self.categories()
            category_ms = _ms_since(t0)
            lines.append(f"CategoryCache rebuilt: {len(cats)} subcategories ({category_ms}ms)")

            t0 = time.perf_counter()
            tile_stats = self.tiles().stats()
            tile_ms = _ms_since(t0)
            lines.append(f"TileCache rebuilt: {tile_stats['tilesAtMinZoom']} tiles at zoom "
                         f"{self.cfg['tiles']['min_zoom']} ({tile_ms}ms)")

        total_ms = _ms_since(t_all)
        lines.append(f"Total rebuild time: {total_ms}ms")
        append_run_log(self.logs_dir, "cache_rebuild", lines)
        log.info("caches rebuilt", extra={"extra": {"venues": len(store), "total_ms": total_ms}})

        return {
            "venue": {"count": len(store), "duration": venue_ms},
            "location": {
                "countries": len(loc.countries),
                "states": len(loc.states),
                "cities": len(loc.cities),
                "duration": location_ms,
            },
            "category": {"subcategories": len(cats), "duration": category_ms},
            "tile": {"tilesAtMinZoom": tile_stats["tilesAtMinZoom"], "duration": tile_ms},
            "totalDuration": total_ms,
        }


def _ms_since(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


_CACHES: Optional[GeoCaches] = None
_CACHES_LOCK = threading.Lock()


def get_caches() -> GeoCaches:
    """Process-wide GeoCaches built from the default config."""
    global _CACHES
    with _CACHES_LOCK:
        if _CACHES is None:
            _CACHES = GeoCaches()
        return _CACHES


def set_caches(caches: Optional[GeoCaches]) -> None:
    """Replace (or with None, drop) the process-wide instance."""
    global _CACHES
    with _CACHES_LOCK:
        _CACHES = caches
