"""
Unit tests for the directory queries (region, autocomplete, stats) and the
OSM adapters
"""

import pytest
import os
import sys
from datetime import datetime, timezone
from unittest.mock import Mock

import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import Venue
from directory import stats
from directory.osm import OsmError, OsmService, parse_changeset_node
from directory.region import fetch_venues_by_region
from directory.search import autocomplete, matches_query


NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)

CHANGESET_XML = """<?xml version="1.0" encoding="UTF-8"?>
<osmChange version="0.6" generator="openstreetmap-cgimap">
  <modify>
    <node id="900" lat="40.0" lon="-3.0"><tag k="name" v="Old Name"/></node>
  </modify>
  <create>
    <node id="111" lat="40.4170" lon="-3.7040"><tag k="amenity" v="bench"/></node>
    <node id="222" lat="41.3890" lon="2.1590">
      <tag k="name" v="Nuevo Bar"/>
      <tag k="amenity" v="bar"/>
    </node>
  </create>
</osmChange>
"""


def _response(status=200, text="", payload=None):
    r = Mock(status_code=status, text=text)
    r.json.return_value = payload
    return r


def _service(session):
    return OsmService("https://osm.example/api/0.6/", "https://overpass.example/api/interpreter", session=session)


class TestRegion:
    """Test cases for fetch_venues_by_region"""

    def test_country_page(self, caches):
        out = fetch_venues_by_region(caches.venues.venues, "es")
        assert sorted(v["id"] for v in out["venues"]) == [1, 2, 3, 7]
        assert out["availableCities"] == [
            {"name": "Madrid", "count": 3},
            {"name": "Barcelona", "count": 1},
            {"name": "Catalonia", "count": 1},
        ]
        assert out["availableCategories"] == ["bar", "cafe", "hotel", "supermarket"]

    def test_location_filter(self, caches):
        out = fetch_venues_by_region(caches.venues.venues, "ES", location="Madrid")
        assert sorted(v["id"] for v in out["venues"]) == [1, 2, 7]
        assert [c["name"] for c in out["availableCities"]] == ["Barcelona", "Catalonia"]

    def test_state_slug_matches(self, caches):
        out = fetch_venues_by_region(caches.venues.venues, "es", location="catalonia")
        assert [v["id"] for v in out["venues"]] == [3]

    def test_subcategory_filter(self, caches):
        out = fetch_venues_by_region(caches.venues.venues, "es", subcategory="cafe")
        assert [v["id"] for v in out["venues"]] == [1]
        assert "cafe" not in out["availableCategories"]
        assert out["venues"][0]["google"] == {"rating": 4.5}

    def test_unknown_country(self, caches):
        out = fetch_venues_by_region(caches.venues.venues, "zz")
        assert out == {"venues": [], "availableCities": [], "availableCategories": []}


class TestAutocomplete:
    """Test cases for map search"""

    def _search(self, caches, q, lat=None, lon=None):
        return autocomplete(caches.venues.load(), caches.locations(), caches.countries.get_country_name,
                            q, lat=lat, lon=lon)

    def test_matches_query(self):
        assert matches_query(["cafe", "bitcoin", "madrid"], "Caf madr")
        assert not matches_query(["cafe", "bitcoin"], "cafe lisbon")

    def test_too_short(self, caches):
        assert self._search(caches, "s") == []
        assert self._search(caches, "") == []

    def test_venue_substring(self, caches):
        results = self._search(caches, "sats")
        assert [r["resultType"] for r in results] == ["venue"]
        r = results[0]
        assert r["label"] == "Sats Bar"
        assert r["country"] == "Spain"
        assert r["venue"]["slug"] == "sats-bar"
        assert r["distance"] is None

    def test_venues_then_places(self, caches):
        results = self._search(caches, "madrid")
        assert [r["resultType"] for r in results] == ["venue", "venue", "city", "state"]
        assert [r["label"] for r in results[:2]] == ["Café Bitcoin", "Sats Bar"]
        assert results[2]["label"] == "Madrid, Spain"
        assert results[2]["city"] == "Madrid"

    def test_country_result(self, caches):
        results = self._search(caches, "spain")
        assert len(results) == 1
        assert results[0]["resultType"] == "country"
        assert results[0]["label"] == "Spain"

    def test_accent_insensitive(self, caches):
        results = self._search(caches, "pupuseria")
        assert [r["venue"]["id"] for r in results] == [5]
        assert results[0]["venue"]["slug"] == "pupuseria-bitcoin"

    def test_distance_order(self, caches):
        results = self._search(caches, "bitcoin", lat=38.72, lon=-9.13)
        assert [r["venue"]["id"] for r in results] == [1, 5]
        assert results[0]["distance"] < results[1]["distance"]


class TestStats:
    """Test cases for the stats summaries"""

    def test_summary(self, caches):
        out = stats.summary(caches.venues.venues, now=NOW)
        assert out == {"totalVenues": 7, "newThisMonth": 2, "countries": 4, "growthPercent": 0}

    @pytest.mark.parametrize("this_month,last_month,expected", [(3, 2, 50), (1, 2, 0), (2, 0, 0)])
    def test_growth_percent(self, this_month, last_month, expected):
        venues = [Venue(id=i, enriched_at="2026-10-03T00:00:00Z") for i in range(this_month)]
        venues += [Venue(id=100 + i, enriched_at="2026-09-30T23:59:59Z") for i in range(last_month)]
        assert stats.summary(venues, now=NOW)["growthPercent"] == expected

    def test_month_rollover(self):
        venues = [Venue(id=1, enriched_at="2025-12-10T00:00:00Z"), Venue(id=2, enriched_at="2026-01-02T00:00:00Z")]
        out = stats.summary(venues, now=datetime(2026, 1, 5, tzinfo=timezone.utc))
        assert out["newThisMonth"] == 1
        assert out["growthPercent"] == 0

    def test_detailed(self, caches):
        out = stats.detailed(caches.venues.venues, now=NOW)
        assert out["totalMerchants"] == 7
        assert out["totalCountries"] == 4
        assert out["totalCategories"] == 4
        assert out["topCountries"][0] == {"name": "ES", "count": 4}
        assert out["topCategories"][0] == {"name": "food-and-drink", "count": 3}
        assert {"name": "Other", "count": 2} in out["topCategories"]

        growth = out["monthlyGrowth"]
        assert len(growth) == 12
        assert growth[0]["month"] == "Nov 25"
        assert growth[0]["cumulative"] == 1
        assert growth[-1] == {"month": "Oct 26", "count": 2, "cumulative": 6}
        assert [g["count"] for g in growth[-3:]] == [1, 2, 2]


class TestOsmService:
    """Test cases for the OSM changeset and Overpass adapters"""

    def test_parse_changeset_node(self):
        node = parse_changeset_node(CHANGESET_XML)
        assert node == {"id": 222, "lat": 41.389, "lon": 2.159, "tags": {"name": "Nuevo Bar", "amenity": "bar"}}
        assert parse_changeset_node("<osmChange><create/></osmChange>") is None
        with pytest.raises(OsmError):
            parse_changeset_node("<osmChange>")

    def test_changeset_preview(self, caches):
        session = Mock()
        session.get.return_value = _response(text=CHANGESET_XML)
        venue = _service(session).fetch_venue_from_changeset(7, caches.cities.find_nearest_city, caches.admin1)
        session.get.assert_called_once_with("https://osm.example/api/0.6/changeset/7/download", timeout=25.0)
        assert venue["id"] == 222
        assert (venue["city"], venue["state"], venue["country"]) == ("Barcelona", "Catalonia", "ES")
        assert (venue["category"], venue["subcategory"]) == ("food-and-drink", "bar")

    def test_changeset_without_named_node(self, caches):
        session = Mock()
        session.get.return_value = _response(text="<osmChange><create><node id='1' lat='0' lon='0'/></create></osmChange>")
        assert _service(session).fetch_venue_from_changeset(1, caches.cities.find_nearest_city, caches.admin1) is None

    def test_changeset_errors(self, caches):
        session = Mock()
        session.get.return_value = _response(status=404, text="not found")
        with pytest.raises(OsmError):
            _service(session).fetch_venue_from_changeset(1, caches.cities.find_nearest_city, caches.admin1)
        session.get.side_effect = requests.ConnectionError("boom")
        with pytest.raises(OsmError):
            _service(session).fetch_venue_from_changeset(1, caches.cities.find_nearest_city, caches.admin1)

    def test_nearby_query(self):
        q = OsmService.build_nearby_query(40.0, -3.0, 50)
        assert q.startswith("[out:json][timeout:25];")
        assert "node(around:50, 40.0, -3.0);" in q
        assert "relation(around:50, 40.0, -3.0);" in q

    def test_nearby_by_name(self):
        elements = [
            {"id": 1, "tags": {"name": "Cafe Bitcoin"}},
            {"id": 2, "tags": {"name": "Bitcoin Cafe"}},
            {"id": 3, "type": "node"},
            {"id": 4, "tags": {"name": "cafe bitcoin!"}},
        ]
        session = Mock()
        session.post.return_value = _response(payload={"elements": elements})
        svc = _service(session)

        out = svc.fetch_nearby_places(40.0, -3.0, radius=50, name="cafe bitcoin")
        assert [e["id"] for e in out] == [1, 4, 2]
        assert out[0]["distance"] == 0
        assert out[1]["distance"] == 1
        kwargs = session.post.call_args.kwargs
        assert "around:50, 40.0, -3.0" in kwargs["data"].decode("utf-8")
        assert kwargs["headers"] == {"Content-Type": "text/plain"}

        assert svc.fetch_nearby_places(40.0, -3.0) == elements

    def test_nearby_errors(self):
        session = Mock()
        session.post.return_value = _response(status=429, text="slow down")
        with pytest.raises(OsmError):
            _service(session).fetch_nearby_places(40.0, -3.0)
        bad_json = _response()
        bad_json.json.side_effect = ValueError("no json")
        session.post.return_value = bad_json
        with pytest.raises(OsmError):
            _service(session).fetch_nearby_places(40.0, -3.0)
