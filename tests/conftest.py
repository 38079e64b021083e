"""
Shared fixtures: a small data directory with GeoNames-style city, admin1 and
country files, an enriched venue file and an SEO slug map.
"""

import copy
import json
import os
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from common.config import DEFAULTS
from geocache.registry import GeoCaches, set_caches


def city_row(name, lat, lon, cc, admin1, population=0, geonameid=1):
    """One cities1000.txt row (19 tab-separated columns)."""
    cols = [str(geonameid), name, name, "", str(lat), str(lon), "P", "PPL", cc, "", admin1,
            "", "", "", str(population), "", "600", "Europe/Madrid", "2024-01-01"]
    return "\t".join(cols)


GOOD_CITIES = [
    city_row("Madrid", 40.4168, -3.7038, "ES", "29", 3255944, 3117735),
    city_row("Barcelona", 41.3888, 2.159, "ES", "56", 1620343, 3128760),
    city_row("Lisbon", 38.7167, -9.1333, "PT", "14", 517802, 2267057),
    city_row("San Salvador", 13.6894, -89.1872, "SV", "10", 525990, 3583361),
    city_row("New York City", 40.7143, -74.006, "US", "NY", 8804190, 5128581),
    city_row("Tokyo", 35.6895, 139.6917, "JP", "40", 8336599, 1850147),
]

BAD_CITIES = [
    city_row("Nowhere", "abc", -3.0, "ES", "29"),        # non-numeric latitude
    "123\tTruncated\tTruncated\t\t40.0",                  # too few columns
    city_row("Pole Plus", 95.0, 10.0, "NO", "01"),        # latitude out of range
    city_row("No Admin", 10.0, 10.0, "NG", ""),           # missing admin1
    city_row("", 10.0, 10.0, "NG", "05"),                 # missing name
    city_row("Inf Town", "inf", 10.0, "NG", "05"),        # non-finite latitude
]

ADMIN1_LINES = [
    "ES.29\tMadrid\tMadrid\t3117732",
    "ES.56\tCatalonia\tCatalonia\t3336901",
    "PT.14\tLisbon\tLisbon\t2267056",
    "SV.10\tSan Salvador\tSan Salvador\t3583360",
    "US.NY\tNew York\tNew York\t5128638",
    "JP.40\tTokyo\tTokyo\t1850144",
    "",
    "XX.99",
]

COUNTRY_LINES = [
    "# GeoNames countryInfo",
    "#ISO\tISO3\tISO-Numeric\tfips\tCountry\tCapital",
    "ES\tESP\t724\tSP\tSpain\tMadrid",
    "PT\tPRT\t620\tPO\tPortugal\tLisbon",
    "SV\tSLV\t222\tES\tEl Salvador\tSan Salvador",
    "US\tUSA\t840\tUS\tUnited States\tWashington",
    "JP\tJPN\t392\tJA\tJapan\tTokyo",
]

VENUES = [
    {
        "id": 1, "type": "node", "lat": 40.4170, "lon": -3.7040,
        "tags": {"name": "Café Bitcoin", "amenity": "cafe", "addr:street": "Gran Via"},
        "country": "ES", "state": "Madrid", "city": "Madrid",
        "category": "food-and-drink", "subcategory": "cafe", "slug": "cafe-bitcoin",
        "enrichedAt": "2026-10-02T10:00:00.000Z", "google": {"rating": 4.5},
    },
    {
        "id": 2, "type": "node", "lat": 40.4200, "lon": -3.7000,
        "tags": {"name": "Sats Bar", "amenity": "bar"},
        "country": "ES", "state": "Madrid", "city": "Madrid",
        "category": "food-and-drink", "subcategory": "bar", "slug": "sats-bar",
        "enrichedAt": "2026-10-05T18:30:00.000Z",
    },
    {
        "id": 3, "type": "node", "lat": 41.3900, "lon": 2.1600,
        "tags": {"name": "Hotel Satoshi", "tourism": "hotel"},
        "country": "ES", "state": "Catalonia", "city": "Barcelona",
        "category": "lodging", "subcategory": "hotel", "slug": "hotel-satoshi",
        "enrichedAt": "2026-09-20T09:00:00.000Z",
    },
    {
        "id": 4, "type": "node", "lat": 38.7170, "lon": -9.1340,
        "tags": {"name": "Lisboa Coffee", "shop": "coffee"},
        "country": "PT", "state": "Lisbon", "city": "Lisbon",
        "category": "food-and-drink", "subcategory": "coffee_shop",
        "enrichedAt": "2026-09-01T00:00:00.000Z",
    },
    {
        "id": 5, "type": "node", "lat": 13.6900, "lon": -89.1900,
        "tags": {"name": "Pupusería Bitcoin"},
        "country": "SV", "state": "San Salvador", "city": "San Salvador",
        "enrichedAt": "2025-01-10T12:00:00.000Z",
    },
    {
        "id": 6, "type": "node",
        "tags": {"name": "Ghost Shop"},
        "country": "US",
        "enrichedAt": "2026-08-15T12:00:00.000Z",
    },
    {
        "id": 7, "type": "node", "lat": 40.4170, "lon": -3.7040,
        "tags": {"shop": "supermarket"},
        "country": "ES", "state": "Madrid", "city": "Madrid",
        "category": "shopping", "subcategory": "supermarket",
    },
    {"id": "abc", "type": "node", "tags": {"name": "Bad id"}},
    {"type": "node", "tags": {"name": "No id"}},
]


def slug_entry(canonical, country, kind, location=None, sub=None, cat="food-and-drink", locale="en"):
    e = {"locale": locale, "type": kind, "country": country, "canonical": canonical,
         "alternates": {"en": canonical}}
    if location:
        e["location"] = location
    if sub:
        e["categoryAndSubcategory"] = {"category": cat, "subcategory": sub}
    return e


SLUG_MAP = {
    "bitcoin-shops-in-spain": slug_entry("bitcoin-shops-in-spain", "ES", "country"),
    "lugares-bitcoin-en-spain": slug_entry("bitcoin-shops-in-spain", "ES", "country", locale="es"),
    "bitcoin-cafes-in-spain": slug_entry("bitcoin-cafes-in-spain", "ES", "category", sub="cafe"),
    "bitcoin-shops-in-madrid-spain": slug_entry("bitcoin-shops-in-madrid-spain", "ES", "city", "madrid"),
    "bitcoin-shops-in-barcelona-spain": slug_entry("bitcoin-shops-in-barcelona-spain", "ES", "city", "barcelona"),
    "bitcoin-cafes-in-madrid-spain": slug_entry("bitcoin-cafes-in-madrid-spain", "ES", "category", "madrid", "cafe"),
    "bitcoin-shops-in-panama-panama": slug_entry("bitcoin-shops-in-panama-panama", "PA", "city", "panama"),
}


def make_cfg(data_dir: Path) -> dict:
    cfg = copy.deepcopy(DEFAULTS)
    cfg["data"]["dir"] = str(data_dir)
    cfg["auth"] = {"tokens": {"admin-token": "npub-admin", "user-token": "npub-user"}, "admins": ["npub-admin"]}
    return cfg


def write_lines(path: Path, lines) -> None:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path):
    d = tmp_path / "data"
    d.mkdir()
    write_lines(d / "cities1000.txt", GOOD_CITIES[:3] + BAD_CITIES + GOOD_CITIES[3:] + [""])
    write_lines(d / "admin1CodesASCII.txt", ADMIN1_LINES)
    write_lines(d / "countryInfo.txt", COUNTRY_LINES)
    (d / "EnrichedVenues.json").write_text(json.dumps(VENUES, ensure_ascii=False), encoding="utf-8")
    (d / "venue_slug_map.json").write_text(json.dumps(SLUG_MAP), encoding="utf-8")
    (d / "osm-replication.state").write_text(json.dumps({"sequence": 42, "timestamp": "2026-10-14T06:00:00Z"}))
    return d


@pytest.fixture
def caches(data_dir):
    return GeoCaches(make_cfg(data_dir))


@pytest.fixture
def installed_caches(caches):
    """`caches` installed as the process-wide instance for the API."""
    set_caches(caches)
    yield caches
    set_caches(None)
