from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from common.geo import tile_of
from common.types import Venue


BBox = Tuple[float, float, float, float]  # west, south, east, north


@dataclass
class TileCluster:
    """All venues of one country inside one slippy-map tile at one zoom."""
    x: int
    y: int
    z: int
    country: str
    count: int = 0
    latitude: float = 0.0
    longitude: float = 0.0
    ids: List[int] = field(default_factory=list)
    categories: Dict[str, int] = field(default_factory=dict)
    subcategories: Dict[str, int] = field(default_factory=dict)
    venues: List[Venue] = field(default_factory=list, repr=False)

    @property
    def key(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"

    def add(self, v: Venue) -> None:
        self.venues.append(v)
        self.ids.append(v.id)
        self.count += 1
        # running sums until finalize()
        self.latitude += v.lat  # type: ignore[operator]
        self.longitude += v.lon  # type: ignore[operator]
        cat = (v.category or "other").lower()
        sub = (v.subcategory or "other").lower()
        self.categories[cat] = self.categories.get(cat, 0) + 1
        self.subcategories[sub] = self.subcategories.get(sub, 0) + 1

    def finalize(self) -> None:
        self.latitude /= self.count
        self.longitude /= self.count

    def inside(self, bbox: Optional[BBox]) -> bool:
        if bbox is None:
            return True
        west, south, east, north = bbox
        return west <= self.longitude <= east and south <= self.latitude <= north


class TileIndex:
    """
    Venue clusters for every zoom in [min_zoom, max_zoom], grouped by
    (x, y, zoom, country). Venues without coordinates or country are left out.
    """

    def __init__(self, venues: List[Venue], min_zoom: int = 1, max_zoom: int = 16):
        self.min_zoom = int(min_zoom)
        self.max_zoom = int(max_zoom)
        self._by_zoom: Dict[int, List[TileCluster]] = {}
        self._build(venues)

    def _build(self, venues: List[Venue]) -> None:
        usable = [v for v in venues if v.has_coords and v.country]
        for z in range(self.min_zoom, self.max_zoom + 1):
            grouped: Dict[Tuple[int, int, str], TileCluster] = {}
            for v in usable:
                x, y = tile_of(v.lon, v.lat, z)  # type: ignore[arg-type]
                key = (x, y, v.country)  # type: ignore[assignment]
                cluster = grouped.get(key)
                if cluster is None:
                    cluster = grouped[key] = TileCluster(x=x, y=y, z=z, country=v.country)  # type: ignore[arg-type]
                cluster.add(v)
            for cluster in grouped.values():
                cluster.finalize()
            self._by_zoom[z] = list(grouped.values())

    def tiles(self, zoom: int) -> List[TileCluster]:
        return self._by_zoom.get(int(zoom), [])

    def stats(self) -> Dict[str, int]:
        return {
            "zooms": len(self._by_zoom),
            "tiles": sum(len(v) for v in self._by_zoom.values()),
            "tilesAtMinZoom": len(self.tiles(self.min_zoom)),
        }

    def query(self, zoom: int, bbox: Optional[BBox] = None) -> Dict[str, Any]:
        """
        Map payload for one zoom: clusters whose centroid is inside `bbox`,
        grouped under "z/x/y", with the category counts of everything returned.
        At the deepest zoom, multi-venue clusters are split into one entry per
        venue. Single-venue entries carry the full venue record.
        """
        tiles: Dict[str, List[Dict[str, Any]]] = {}
        cat_counts: Dict[str, int] = {}
        sub_counts: Dict[str, int] = {}

        for t in self.tiles(zoom):
            if not t.inside(bbox):
                continue
            for k, n in t.categories.items():
                cat_counts[k] = cat_counts.get(k, 0) + n
            for k, n in t.subcategories.items():
                sub_counts[k] = sub_counts.get(k, 0) + n

            entries = tiles.setdefault(t.key, [])
            if t.z == self.max_zoom and t.count > 1:
                for v in t.venues:
                    entries.append({
                        "id": f"z{t.z}-{t.x}-{t.y}-{t.country}-{v.id}",
                        "x": t.x,
                        "y": t.y,
                        "country": t.country,
                        "latitude": v.lat,
                        "longitude": v.lon,
                        "count": 1,
                        "ids": [v.id],
                        "categories": {(v.category or "other").lower(): 1},
                        "subcategories": {(v.subcategory or "other").lower(): 1},
                        "venues": [v.to_dict()],
                    })
            else:
                entries.append({
                    "id": f"z{t.z}-{t.x}-{t.y}-{t.country}",
                    "x": t.x,
                    "y": t.y,
                    "country": t.country,
                    "latitude": t.latitude,
                    "longitude": t.longitude,
                    "count": t.count,
                    "ids": list(t.ids),
                    "categories": dict(t.categories),
                    "subcategories": dict(t.subcategories),
                    "venues": [t.venues[0].to_dict()] if t.count == 1 else [],
                })

        return {
            "tiles": tiles,
            "relevantCategories": cat_counts,
            "relevantSubcategories": sub_counts,
        }


def read_replication_timestamp(path: Path) -> Optional[str]:
    """`timestamp` from the OSM replication state JSON; None when absent or unreadable."""
    try:
        parsed = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(parsed, dict):
        return None
    ts = parsed.get("timestamp")
    return str(ts) if ts is not None else None
