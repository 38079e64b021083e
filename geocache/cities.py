from __future__ import annotations

import math
from pathlib import Path
from typing import List, Optional, Tuple

from common.geo import chord_to_m, lonlat_to_unit, valid_lonlat
from common.logging_setup import get_logger
from common.types import City
from geocache.base import FileBackedCache
from geocache.kdindex import StaticKDIndex


log = get_logger("geocache.cities")

# GeoNames cities dump columns
_COL_NAME, _COL_LAT, _COL_LON, _COL_COUNTRY, _COL_ADMIN1, _COL_POP = 1, 4, 5, 8, 10, 14


def parse_city_line(line: str) -> Optional[City]:
    """One tab-separated GeoNames row -> City, or None when the row is unusable."""
    parts = line.rstrip("\r\n").split("\t")
    if len(parts) <= _COL_ADMIN1:
        return None
    name = parts[_COL_NAME].strip()
    country = parts[_COL_COUNTRY].strip()
    admin1 = parts[_COL_ADMIN1].strip()
    try:
        lat = float(parts[_COL_LAT])
        lon = float(parts[_COL_LON])
    except ValueError:
        return None
    if not name or not country or not admin1 or not valid_lonlat(lon, lat):
        return None
    try:
        population = int(parts[_COL_POP]) if len(parts) > _COL_POP else 0
    except ValueError:
        population = 0
    return City(name=name, lat=lat, lon=lon, country_code=country, admin1_code=admin1, population=population)


class CitiesCache(FileBackedCache[List[City]]):
    """
    All cities from `cities1000.txt`, loaded once. The nearest-city index is
    built on the first lookup and reused until `refresh()`.
    """

    name = "cities"

    def __init__(self, path: Path):
        super().__init__(path)
        self._indexed: Optional[Tuple[List[City], StaticKDIndex]] = None

    def _parse(self, path: Path) -> List[City]:
        cities: List[City] = []
        skipped = 0
        with path.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                city = parse_city_line(line)
                if city is None:
                    skipped += 1
                    continue
                cities.append(city)
        if skipped:
            log.debug("skipped malformed city rows", extra={"extra": {"skipped": skipped}})
        return cities

    def _on_clear(self) -> None:
        self._indexed = None

    def _cities_and_index(self) -> Tuple[List[City], StaticKDIndex]:
        """The city list together with the index built from that same list."""
        pair = self._indexed
        if pair is not None:
            return pair
        with self._lock:
            if self._indexed is None:
                cities = self.load()
                pts = lonlat_to_unit([c.lon for c in cities], [c.lat for c in cities]).reshape(-1, 3)
                self._indexed = (cities, StaticKDIndex(pts))
            return self._indexed

    def index(self) -> StaticKDIndex:
        return self._cities_and_index()[1]

    def find_nearest_city(self, longitude: float, latitude: float) -> Optional[City]:
        """
        Closest city by great-circle distance; None when no cities are loaded.
        Raises ValueError for non-finite or out-of-range coordinates.
        """
        found = self.find_nearest_cities(longitude, latitude, limit=1)
        return found[0][0] if found else None

    def find_nearest_cities(self, longitude: float, latitude: float, limit: int = 5) -> List[tuple]:
        """[(City, distance_m), ...] closest first."""
        if not valid_lonlat(longitude, latitude):
            raise ValueError(f"invalid coordinates: lon={longitude}, lat={latitude}")
        cities, idx = self._cities_and_index()
        hits = idx.nearest_k(lonlat_to_unit(longitude, latitude), limit)
        return [(cities[row], chord_to_m(math.sqrt(d2))) for row, d2 in hits]
