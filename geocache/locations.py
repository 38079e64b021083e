from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from common.types import Place, Venue


@dataclass
class _Acc:
    label: str
    country: Optional[str] = None
    lat_sum: float = 0.0
    lon_sum: float = 0.0
    count: int = 0

    def add(self, v: Venue) -> None:
        self.lat_sum += v.lat  # type: ignore[operator]
        self.lon_sum += v.lon  # type: ignore[operator]
        self.count += 1

    def place(self) -> Place:
        return Place(
            label=self.label,
            country=self.country,
            latitude=self.lat_sum / self.count,
            longitude=self.lon_sum / self.count,
            count=self.count,
        )


@dataclass
class LocationIndex:
    """Venue centroids per city, state and country; keys are lower-cased labels."""
    cities: Dict[str, Place] = field(default_factory=dict)
    states: Dict[str, Place] = field(default_factory=dict)
    countries: Dict[str, Place] = field(default_factory=dict)


def build_location_index(venues: List[Venue]) -> LocationIndex:
    groups: Dict[str, Dict[str, _Acc]] = {"cities": {}, "states": {}, "countries": {}}
    for v in venues:
        if not v.has_coords:
            continue
        for group, label, country in (
            ("cities", v.city, v.country),
            ("states", v.state, v.country),
            ("countries", v.country, None),
        ):
            if not label:
                continue
            key = label.lower()
            acc = groups[group].get(key)
            if acc is None:
                acc = groups[group][key] = _Acc(label=label, country=country)
            acc.add(v)
    return LocationIndex(**{g: {k: a.place() for k, a in accs.items()} for g, accs in groups.items()})
