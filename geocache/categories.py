from __future__ import annotations

from typing import Any, Callable, Dict, List

from common.seo import region_slug, subcategory_plural_slug
from common.types import Venue


def build_category_index(venues: List[Venue], country_name: Callable[[str], str]) -> Dict[str, Dict[str, Any]]:
    """
    subcategory -> {
        subcategory, category, pluralSlug, totalCount,
        countries: [{name, code, count, slug, cities: [{name, count, slug}]}]
    }
    Countries are ordered by name, cities by descending count. Venues
    without a subcategory or country are not counted.
    """
    agg: Dict[str, Dict[str, Any]] = {}
    for v in venues:
        if not v.subcategory or not v.country:
            continue
        code = v.country.upper()
        sub = agg.setdefault(v.subcategory, {"category": v.category or "other", "countries": {}})
        country = sub["countries"].setdefault(code, {"code": code, "name": country_name(code), "count": 0, "cities": {}})
        country["count"] += 1
        if v.city:
            city = country["cities"].setdefault(v.city.lower(), {"name": v.city, "count": 0})
            city["count"] += 1

    out: Dict[str, Dict[str, Any]] = {}
    for subcategory, data in agg.items():
        countries = []
        for c in data["countries"].values():
            cities = sorted(c["cities"].values(), key=lambda x: -x["count"])
            countries.append({
                "name": c["name"],
                "code": c["code"],
                "count": c["count"],
                "slug": region_slug("en", c["name"], subcategory=subcategory),
                "cities": [
                    {
                        "name": city["name"],
                        "count": city["count"],
                        "slug": region_slug("en", c["name"], place=city["name"], subcategory=subcategory),
                    }
                    for city in cities
                ],
            })
        countries.sort(key=lambda x: x["name"].casefold())
        out[subcategory] = {
            "subcategory": subcategory,
            "category": data["category"],
            "pluralSlug": subcategory_plural_slug(subcategory, "en"),
            "totalCount": sum(c["count"] for c in countries),
            "countries": countries,
        }
    return out
