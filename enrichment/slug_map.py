from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from common.logging_setup import get_logger
from common.seo import region_slug
from common.types import SlugEntry, Venue
from common.utils import slugify
from geocache.registry import GeoCaches
from geocache.venues import read_venue_file


log = get_logger("enrichment.slug_map")


def _entry(canonical: str, spanish: str, country: str, location: Optional[str] = None,
           category: Optional[str] = None, subcategory: Optional[str] = None) -> SlugEntry:
    if subcategory:
        kind = "category"
    elif location:
        kind = "city"
    else:
        kind = "country"
    return SlugEntry(
        canonical=canonical,
        country=country,
        type=kind,
        locale="en",
        location=location,
        category=category if subcategory else None,
        subcategory=subcategory,
        alternates={"en": canonical, "es": f"es/{spanish}"},
    )


def build_slug_entries(venues: List[Venue], country_name) -> List[SlugEntry]:
    """
    One entry per distinct region page, in first-seen order:
      country, country + category, city + category, state + category, city, state.
    States equal to the venue's city are skipped. Venues without a country
    (field or addr:country tag), or with a code that has no known name,
    contribute nothing.
    """
    combos: Dict[str, SlugEntry] = {}

    def add(key: str, build) -> None:
        if key not in combos:
            combos[key] = build()

    for v in venues:
        code = (v.country or v.tags.get("addr:country") or "").upper()
        if not code:
            continue
        name = country_name(code)
        if not name or name == code:
            continue
        state = v.state or v.tags.get("addr:state")
        city = v.city or v.tags.get("addr:city")
        city_slug = slugify(city) if city else None
        state_slug = slugify(state) if state else None
        state_is_city = bool(city and state and city.lower() == state.lower())
        if state_is_city:
            state_slug = None

        add(f"c:{code}", lambda: _entry(region_slug("en", name), region_slug("es", name), code))

        if v.category and v.subcategory:
            sub, cat = v.subcategory, v.category
            add(f"c:{code}|cat:{sub}", lambda: _entry(
                region_slug("en", name, subcategory=sub), region_slug("es", name, subcategory=sub),
                code, category=cat, subcategory=sub))
            for loc in (city_slug, state_slug):
                if loc:
                    add(f"c:{code}|loc:{loc}|cat:{sub}", lambda: _entry(
                        region_slug("en", name, loc, sub), region_slug("es", name, loc, sub),
                        code, location=loc, category=cat, subcategory=sub))

        for loc in (city_slug, state_slug):
            if loc:
                add(f"c:{code}|loc:{loc}", lambda: _entry(
                    region_slug("en", name, loc), region_slug("es", name, loc), code, location=loc))

    return list(combos.values())


def slug_map_from_entries(entries: List[SlugEntry]) -> Dict[str, Dict[str, Any]]:
    """Canonical and every alternate slug -> entry dict (alternates carry their locale)."""
    out: Dict[str, Dict[str, Any]] = {}
    for e in entries:
        out[e.canonical] = e.to_dict()
        for locale, alt in e.alternates.items():
            if locale == "en":
                continue
            slug = alt.split("/", 1)[1] if alt.startswith(f"{locale}/") else alt
            out[slug] = {**e.to_dict(), "locale": locale}
    return out


def generate_slug_map(caches: GeoCaches, refresh: bool = True) -> Dict[str, int]:
    """
    Write `merchant-slugs.json` (type, canonical, alternates per page) and
    `venue_slug_map.json` (slug -> region query) from the enriched venues.
    """
    venues = read_venue_file(caches.path("venues_file"))
    entries = build_slug_entries(venues, caches.countries.get_country_name)

    merchant_path: Path = caches.path("merchant_slugs_file")
    merchant_path.parent.mkdir(parents=True, exist_ok=True)
    merchant_path.write_text(json.dumps(
        [{"type": e.type, "canonical": e.canonical, "alternates": e.alternates} for e in entries],
        indent=2, ensure_ascii=False,
    ), encoding="utf-8")

    slug_map = slug_map_from_entries(entries)
    caches.path("slug_map_file").write_text(json.dumps(slug_map, indent=2, ensure_ascii=False), encoding="utf-8")
    log.info("slug map written", extra={"extra": {"entries": len(entries), "slugs": len(slug_map)}})

    if refresh:
        caches.slugs.refresh()
    return {"entries": len(entries), "slugs": len(slug_map)}
