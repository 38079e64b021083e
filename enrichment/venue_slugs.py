from __future__ import annotations

from typing import Set

from common.logging_setup import get_logger
from common.types import Venue
from common.utils import slugify
from geocache.registry import GeoCaches
from geocache.venues import read_venue_file, write_venue_file


log = get_logger("enrichment.venue_slugs")


def generate_venue_slug(v: Venue, existing: Set[str]) -> str:
    """
    First free slug among: name, name + city, name + street + city.
    Falls back to name + id, which is not checked against `existing`. Names
    with nothing to transliterate (emoji only) count as missing.
    """
    name = v.tags.get("name") or v.tags.get("name:en")
    if not slugify(name):
        name = f"venue-{v.id}"
    city = v.city or v.tags.get("addr:city")
    address = v.tags.get("addr:street") or v.tags.get("addr:housenumber")

    candidates = [name]
    if city:
        candidates.append(f"{name} {city}")
    if address and city:
        candidates.append(f"{name} {address} {city}")
    for text in candidates:
        slug = slugify(text)
        if slug not in existing:
            return slug
    return slugify(f"{name} {v.id}")


def assign_slug_to_venue(v: Venue, existing: Set[str]) -> str:
    """Keep the venue's slug when it is still free, otherwise generate one; records it in `existing`."""
    if v.slug and v.slug not in existing:
        existing.add(v.slug)
        return v.slug
    slug = generate_venue_slug(v, existing)
    v.slug = slug
    existing.add(slug)
    return slug


def generate_venue_slugs(caches: GeoCaches, refresh: bool = True) -> int:
    """Give every slug-less venue in the enriched file a unique slug. Returns how many changed."""
    path = caches.path("venues_file")
    if not path.exists():
        log.warning("venue file not found, skipping slug generation", extra={"extra": {"path": str(path)}})
        return 0

    venues = read_venue_file(path)
    existing: Set[str] = {v.slug for v in venues if v.slug}
    updated = 0
    for v in venues:
        if not v.slug:
            assign_slug_to_venue(v, existing)
            updated += 1

    if updated:
        write_venue_file(path, venues)
        if refresh:
            caches.venues.refresh()
            caches.clear_derived()
        log.info("generated venue slugs", extra={"extra": {"updated": updated}})
    else:
        log.info("all venues already have slugs")
    return updated


def venue_slug(v: Venue) -> str:
    """The stored slug, or one derived from the name when the venue has none."""
    if v.slug:
        return v.slug
    return slugify(v.tags.get("name") or v.tags.get("name:en")) or f"venue-{v.id}"
