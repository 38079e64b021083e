from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Optional, Sequence

from common.geo import haversine_km
from common.types import Place
from common.utils import tokenize_and_normalize
from enrichment.venue_slugs import venue_slug
from geocache.locations import LocationIndex
from geocache.venues import VenueStore


def matches_query(label_tokens: Sequence[str], query: str) -> bool:
    """Every query token is a substring of some label token."""
    q_tokens = tokenize_and_normalize(query)
    return all(any(q in t for t in label_tokens) for q in q_tokens)


def _distance(lat: Optional[float], lon: Optional[float], plat: Optional[float], plon: Optional[float]) -> Optional[float]:
    if lat is None or lon is None or plat is None or plon is None:
        return None
    return haversine_km(lat, lon, plat, plon)


def autocomplete(
    store: VenueStore,
    locations: LocationIndex,
    country_name: Callable[[str], str],
    q: str,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    min_length: int = 2,
    max_venues: int = 10,
    max_locations: int = 5,
) -> List[Dict[str, Any]]:
    """
    Map search box results: up to `max_venues` venues followed by up to
    `max_locations` cities / states / countries.

    Venues are matched against their "name city state" tokens, places
    against their label (the country name for countries). With a reference
    point both lists are ordered by distance, otherwise alphabetically.
    Queries shorter than `min_length` return nothing.
    """
    if len(q or "") < min_length:
        return []
    has_point = lat is not None and lon is not None and math.isfinite(lat) and math.isfinite(lon)
    if not has_point:
        lat = lon = None

    venue_results: List[Dict[str, Any]] = []
    for i, tokens in store.search_map.items():
        if not matches_query(tokens, q):
            continue
        v = store.venues[i]
        d = v.to_dict()
        d["slug"] = venue_slug(v)
        venue_results.append({
            "resultType": "venue",
            "label": v.name,
            "latitude": v.lat,
            "longitude": v.lon,
            "venue": d,
            "city": v.city,
            "country": country_name(v.country) if v.country else None,
            "distance": _distance(lat, lon, v.lat, v.lon),
        })

    place_results: List[Dict[str, Any]] = []
    groups = (("city", locations.cities), ("state", locations.states), ("country", locations.countries))
    for result_type, group in groups:
        for place in group.values():
            place_results.extend(_place_result(result_type, place, country_name, q, lat, lon))

    if has_point:
        venue_results.sort(key=lambda r: r["distance"] if r["distance"] is not None else math.inf)
        place_results.sort(key=lambda r: r["distance"] if r["distance"] is not None else math.inf)
    else:
        venue_results.sort(key=lambda r: f"{r['label']} {r['city'] or ''} {r['country'] or ''}".casefold())
        place_results.sort(key=lambda r: r["label"].casefold())

    return venue_results[:max_venues] + place_results[:max_locations]


def _place_result(result_type: str, place: Place, country_name: Callable[[str], str], q: str,
                  lat: Optional[float], lon: Optional[float]) -> List[Dict[str, Any]]:
    if result_type == "country":
        country_label = country_name(place.label)
        full_label = search_label = country_label
    else:
        country_label = country_name(place.country or "")
        full_label = f"{place.label}, {country_label}"
        search_label = place.label
    if not matches_query(tokenize_and_normalize(search_label), q):
        return []
    return [{
        "resultType": result_type,
        "label": full_label,
        "latitude": place.latitude,
        "longitude": place.longitude,
        "city": place.label if result_type == "city" else None,
        "country": country_label,
        "distance": _distance(lat, lon, place.latitude, place.longitude),
    }]
