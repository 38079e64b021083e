"""
SEO slug vocabulary shared by the slug map generator, the category cache and
slug resolution.

English:  bitcoin-<category>-in-[<place>-]<country>   (category "shops" = all)
Spanish:  <category>-bitcoin-en-[<place>-]<country>   (category "lugares" = all)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

from common.categories import KNOWN_SUBCATEGORIES
from common.utils import slugify


LOCALES = ("en", "es")
ALL_PLACES_SLUG = {"en": "shops", "es": "lugares"}

# Plural display slugs; anything missing falls back to "<sub-category>s".
SUBCATEGORY_SLUGS_BY_LOCALE: Dict[str, Dict[str, str]] = {
    "en": {
        "cafe": "cafes",
        "coffee_shop": "coffee-shops",
        "restaurant": "restaurants",
        "bar": "bars",
        "pub": "pubs",
        "bakery": "bakeries",
        "fast_food_restaurant": "fast-food-restaurants",
        "ice_cream_shop": "ice-cream-shops",
        "hotel": "hotels",
        "hostel": "hostels",
        "guest_house": "guest-houses",
        "atm": "atms",
        "bank": "banks",
        "currency_exchange": "currency-exchanges",
        "supermarket": "supermarkets",
        "convenience_store": "convenience-stores",
        "clothing_store": "clothing-stores",
        "electronics_store": "electronics-stores",
        "book_store": "book-stores",
        "pharmacy": "pharmacies",
        "dentist": "dentists",
        "doctor": "doctors",
        "hair_salon": "hair-salons",
        "beauty_salon": "beauty-salons",
        "lawyer": "lawyers",
        "coworking_space": "coworking-spaces",
        "car_repair": "car-repair-shops",
        "museum": "museums",
    },
    "es": {
        "cafe": "cafeterias",
        "coffee_shop": "cafeterias-de-especialidad",
        "restaurant": "restaurantes",
        "bar": "bares",
        "pub": "pubs",
        "bakery": "panaderias",
        "fast_food_restaurant": "comida-rapida",
        "ice_cream_shop": "heladerias",
        "hotel": "hoteles",
        "hostel": "hostales",
        "guest_house": "casas-de-huespedes",
        "atm": "cajeros",
        "bank": "bancos",
        "currency_exchange": "casas-de-cambio",
        "supermarket": "supermercados",
        "convenience_store": "tiendas-de-conveniencia",
        "clothing_store": "tiendas-de-ropa",
        "electronics_store": "tiendas-de-electronica",
        "book_store": "librerias",
        "pharmacy": "farmacias",
        "dentist": "dentistas",
        "doctor": "medicos",
        "hair_salon": "peluquerias",
        "beauty_salon": "salones-de-belleza",
        "lawyer": "abogados",
        "coworking_space": "coworkings",
        "car_repair": "talleres-mecanicos",
        "museum": "museos",
    },
}


def subcategory_plural_slug(subcategory: str, locale: str = "en") -> str:
    table = SUBCATEGORY_SLUGS_BY_LOCALE.get(locale, {})
    return table.get(subcategory) or f"{subcategory.replace('_', '-')}s"


def subcategory_from_plural_slug(slug: str, locale: str = "en") -> Optional[str]:
    """Reverse of subcategory_plural_slug; None unless it names a known sub-category."""
    for sub, plural in SUBCATEGORY_SLUGS_BY_LOCALE.get(locale, {}).items():
        if plural == slug:
            return sub
    if slug.endswith("s"):
        sub = slug[:-1].replace("-", "_")
        if sub in KNOWN_SUBCATEGORIES:
            return sub
    return None


def country_slug(country_name: str) -> str:
    return slugify(country_name)


def region_slug(locale: str, country_name: str, place: Optional[str] = None,
                subcategory: Optional[str] = None) -> str:
    """Canonical page slug for a country / place / category combination."""
    cat = subcategory_plural_slug(subcategory, locale) if subcategory else ALL_PLACES_SLUG[locale]
    where = country_slug(country_name)
    if place:
        where = f"{slugify(place)}-{where}"
    if locale == "es":
        return f"{cat}-bitcoin-en-{where}"
    return f"bitcoin-{cat}-in-{where}"


@dataclass(frozen=True)
class SlugPattern:
    category: str
    country: str
    lang: str
    city: Optional[str] = None


_PATTERNS = (
    (re.compile(r"^bitcoin-(.+)-in-(.+)-([a-z]{2,})$"), "en", True),
    (re.compile(r"^bitcoin-(.+)-in-([a-z-]+)$"), "en", False),
    (re.compile(r"^(.+)-bitcoin-en-(.+)-([a-z]{2,})$"), "es", True),
    (re.compile(r"^(.+)-bitcoin-en-([a-z-]+)$"), "es", False),
)


def parse_slug_pattern(slug: str) -> Optional[SlugPattern]:
    """
    Split a region slug into category / city / country parts. Regex
    backtracking puts only the last dash-separated word in `country` when a
    city part is present.
    """
    for rx, lang, with_city in _PATTERNS:
        m = rx.match(slug)
        if not m:
            continue
        if with_city:
            category, city, country = m.groups()
            return SlugPattern(category=category, city=city, country=country, lang=lang)
        category, country = m.groups()
        return SlugPattern(category=category, country=country, lang=lang)
    return None
