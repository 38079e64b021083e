from __future__ import annotations

from typing import Any, Dict, List, Optional

from common.types import Venue
from common.utils import slugify


def fetch_venues_by_region(venues: List[Venue], country: str, location: Optional[str] = None,
                           subcategory: Optional[str] = None) -> Dict[str, Any]:
    """
    Venues of one country, optionally narrowed to a city/state (slug
    containment on either) and a sub-category.

    Also returns every other city and state of the country with its venue
    count (descending) and every other sub-category present (alphabetical),
    for the page's filter sidebars.
    """
    country = country.lower()
    location = location.lower() if location else None
    subcategory = subcategory.lower() if subcategory else None
    loc_slug = slugify(location) if location else None

    in_country = [v for v in venues if v.country and v.country.lower() == country]

    def keep(v: Venue) -> bool:
        if loc_slug is not None:
            city_hit = bool(v.city) and loc_slug in slugify(v.city)
            state_hit = bool(v.state) and loc_slug in slugify(v.state)
            if not city_hit and not state_hit:
                return False
        return not (subcategory and (v.subcategory or "").lower() != subcategory)

    filtered = [v for v in in_country if keep(v)]

    counts: Dict[str, int] = {}
    for v in in_country:
        city = (v.city or "").strip()
        state = (v.state or "").strip()
        if city and city.lower() != location:
            counts[city] = counts.get(city, 0) + 1
        if state and state.lower() != city.lower() and state.lower() != location:
            counts[state] = counts.get(state, 0) + 1
    available_cities = [{"name": n, "count": c} for n, c in sorted(counts.items(), key=lambda kv: -kv[1])]

    subs = {(v.subcategory or "").strip() for v in in_country}
    available_categories = sorted((s for s in subs if s and s.lower() != subcategory), key=str.casefold)

    return {
        "venues": [v.to_dict() for v in filtered],
        "availableCities": available_cities,
        "availableCategories": available_categories,
    }
