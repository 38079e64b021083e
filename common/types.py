from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True, frozen=True)
class City:
    """
    One populated place from the GeoNames cities dump.

    Attributes:
        name: place name (UTF-8).
        lat, lon: WGS84 degrees.
        country_code: ISO-3166 alpha-2.
        admin1_code: first-level subdivision code (state/province), GeoNames flavour.
        population: 0 when unknown.
    """
    name: str
    lat: float
    lon: float
    country_code: str
    admin1_code: str
    population: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "lat": self.lat,
            "lon": self.lon,
            "countryCode": self.country_code,
            "admin1Code": self.admin1_code,
            "population": self.population,
        }


# Venue JSON key -> attribute, for the keys the app reads or writes.
_VENUE_KEYS = {
    "country": "country",
    "state": "state",
    "city": "city",
    "category": "category",
    "subcategory": "subcategory",
    "slug": "slug",
    "enrichedAt": "enriched_at",
    "enrichedCategoryAt": "enriched_category_at",
}
_VENUE_CORE = {"id", "type", "lat", "lon", "tags", "nodes"}


def _opt_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass(slots=True)
class Venue:
    """
    A point of interest (business location) from the enriched OSM extract.

    Keys this class does not model (opening hours, Google data, ...) are kept
    in `extra` and written back unchanged by `to_dict()`.
    """
    id: int
    lat: Optional[float] = None
    lon: Optional[float] = None
    tags: Dict[str, str] = field(default_factory=dict)
    type: str = "node"
    nodes: Optional[List[int]] = None
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    slug: Optional[str] = None
    enriched_at: Optional[str] = None
    enriched_category_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def name(self) -> Optional[str]:
        return self.tags.get("name") or None

    @property
    def has_coords(self) -> bool:
        return self.lat is not None and self.lon is not None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Venue":
        """Raises ValueError when `id` is missing or not an integer."""
        raw_id = d.get("id")
        if isinstance(raw_id, bool) or raw_id is None:
            raise ValueError("venue id missing")
        try:
            vid = int(raw_id)
        except (TypeError, ValueError) as e:
            raise ValueError(f"venue id not an integer: {raw_id!r}") from e
        tags = d.get("tags")
        nodes = d.get("nodes")
        v = cls(
            id=vid,
            lat=_opt_float(d.get("lat")),
            lon=_opt_float(d.get("lon")),
            tags={str(k): str(val) for k, val in tags.items()} if isinstance(tags, dict) else {},
            type=str(d.get("type") or "node"),
            nodes=[int(n) for n in nodes] if isinstance(nodes, list) else None,
        )
        for key, attr in _VENUE_KEYS.items():
            val = d.get(key)
            setattr(v, attr, val if val not in ("", None) else None)
        v.extra = {k: val for k, val in d.items() if k not in _VENUE_CORE and k not in _VENUE_KEYS}
        return v

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "type": self.type}
        if self.lat is not None:
            out["lat"] = self.lat
        if self.lon is not None:
            out["lon"] = self.lon
        out["tags"] = dict(self.tags)
        if self.nodes is not None:
            out["nodes"] = list(self.nodes)
        for key, attr in _VENUE_KEYS.items():
            val = getattr(self, attr)
            if val is not None:
                out[key] = val
        out.update(self.extra)
        return out

    def summary(self) -> Dict[str, Any]:
        """Fields carried inside map clusters."""
        return {
            "id": self.id,
            "lat": self.lat,
            "lon": self.lon,
            "category": self.category,
            "subcategory": self.subcategory,
            "country": self.country,
        }


@dataclass(slots=True)
class SlugEntry:
    """
    SEO slug -> region query (country, optional city/state, optional category).
    Serialised with the camelCase keys of venue_slug_map.json.
    """
    canonical: str
    country: str
    type: str = "country"  # country | city | category
    locale: str = "en"
    location: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    alternates: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SlugEntry":
        cs = d.get("categoryAndSubcategory") or {}
        return cls(
            canonical=str(d.get("canonical") or ""),
            country=str(d.get("country") or ""),
            type=str(d.get("type") or "country"),
            locale=str(d.get("locale") or "en"),
            location=d.get("location") or None,
            category=cs.get("category") or None,
            subcategory=cs.get("subcategory") or None,
            alternates=dict(d.get("alternates") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "locale": self.locale,
            "type": self.type,
            "country": self.country,
            "canonical": self.canonical,
            "alternates": dict(self.alternates),
        }
        if self.location:
            out["location"] = self.location
        if self.subcategory:
            out["categoryAndSubcategory"] = {"category": self.category or "other", "subcategory": self.subcategory}
        return out


@dataclass(slots=True)
class Place:
    """Centroid of all venues sharing a city, state or country label."""
    label: str
    latitude: float
    longitude: float
    count: int
    country: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "count": self.count,
        }
