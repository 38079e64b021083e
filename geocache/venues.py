from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from common.logging_setup import get_logger
from common.types import Venue
from common.utils import tokenize_and_normalize
from geocache.base import FileBackedCache


log = get_logger("geocache.venues")


@dataclass
class VenueStore:
    """
    Venues in file order plus the maps derived from them in the same pass:
      index_map:  venue id -> position
      slug_map:   venue slug -> position
      search_map: position -> normalised tokens of "name city state"
                  (only venues with a non-empty name)
    """
    venues: List[Venue] = field(default_factory=list)
    index_map: Dict[int, int] = field(default_factory=dict)
    slug_map: Dict[str, int] = field(default_factory=dict)
    search_map: Dict[int, List[str]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.venues)


def read_venue_file(path: Path) -> List[Venue]:
    """Parse a venue JSON array; records without an integer id are skipped."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"expected a JSON array of venues in {path}")
    venues: List[Venue] = []
    skipped = 0
    for item in raw:
        if not isinstance(item, dict):
            skipped += 1
            continue
        try:
            venues.append(Venue.from_dict(item))
        except ValueError:
            skipped += 1
    if skipped:
        log.debug("skipped malformed venue records", extra={"extra": {"skipped": skipped, "path": str(path)}})
    return venues


def write_venue_file(path: Path, venues: Iterable[Venue]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps([v.to_dict() for v in venues], indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)


def build_store(venues: List[Venue]) -> VenueStore:
    store = VenueStore(venues=venues)
    for i, v in enumerate(venues):
        store.index_map[v.id] = i
        if v.slug:
            store.slug_map.setdefault(v.slug, i)
        name = v.name
        if not name:
            continue
        store.search_map[i] = tokenize_and_normalize(f"{name} {v.city or ''} {v.state or ''}")
    return store


class VenueCache(FileBackedCache[VenueStore]):
    """`EnrichedVenues.json` with O(1) id and slug lookup."""

    name = "venues"

    def _parse(self, path: Path) -> VenueStore:
        return build_store(read_venue_file(path))

    # -------- public API --------

    @property
    def venues(self) -> List[Venue]:
        return self.load().venues

    @property
    def index_map(self) -> Dict[int, int]:
        return self.load().index_map

    @property
    def search_map(self) -> Dict[int, List[str]]:
        return self.load().search_map

    def get_by_id(self, venue_id: int) -> Optional[Venue]:
        store = self.load()
        i = store.index_map.get(int(venue_id))
        return store.venues[i] if i is not None else None

    def get_by_slug(self, slug: str) -> Optional[Venue]:
        store = self.load()
        i = store.slug_map.get(slug)
        return store.venues[i] if i is not None else None

    def get_many(self, ids: Sequence[int], subcategories: Optional[Sequence[str]] = None) -> List[Venue]:
        """
        Venues for `ids` in request order, unknown ids dropped.
        With a subcategory filter only matching venues are kept; the value
        "other" also keeps venues that have no subcategory.
        """
        store = self.load()
        wanted = set(subcategories or [])
        include_other = "other" in wanted
        out: List[Venue] = []
        for vid in ids:
            try:
                i = store.index_map.get(int(vid))
            except (TypeError, ValueError):
                continue
            if i is None:
                continue
            v = store.venues[i]
            if not wanted or (v.subcategory and v.subcategory in wanted) or (not v.subcategory and include_other):
                out.append(v)
        return out
