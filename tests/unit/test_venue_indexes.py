"""
Unit tests for the venue cache and the indexes derived from it
(locations, categories, map tiles)
"""

import json
import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import Venue
from geocache.categories import build_category_index
from geocache.locations import build_location_index
from geocache.tiles import TileIndex, read_replication_timestamp
from geocache.venues import VenueCache, read_venue_file, write_venue_file


class TestVenueCache:
    """Test cases for VenueCache"""

    def test_bad_ids_skipped(self, data_dir):
        """Records without an integer id are dropped"""
        cache = VenueCache(data_dir / "EnrichedVenues.json")
        assert [v.id for v in cache.venues] == [1, 2, 3, 4, 5, 6, 7]

    def test_lookup_maps(self, data_dir):
        cache = VenueCache(data_dir / "EnrichedVenues.json")
        assert cache.index_map[3] == 2
        assert cache.get_by_id(4).name == "Lisboa Coffee"
        assert cache.get_by_slug("sats-bar").id == 2
        assert cache.get_by_id(999) is None
        assert cache.get_by_slug("nope") is None

    def test_search_map_only_named(self, data_dir):
        """Search tokens are built for named venues only, accent-free"""
        cache = VenueCache(data_dir / "EnrichedVenues.json")
        search = cache.search_map
        assert 6 not in search  # venue id 7 at position 6 has no name
        assert search[0] == ["cafe", "bitcoin", "madrid", "madrid"]

    def test_get_many_filters(self, data_dir):
        """by-ids keeps request order; 'other' selects venues without subcategory"""
        cache = VenueCache(data_dir / "EnrichedVenues.json")
        assert [v.id for v in cache.get_many([2, 1, 999])] == [2, 1]
        assert [v.id for v in cache.get_many([5, 6, 1], ["other"])] == [5, 6]
        assert [v.id for v in cache.get_many([1, 5, 2], ["cafe", "other"])] == [1, 5]
        assert [v.id for v in cache.get_many([1, 2], ["hotel"])] == []

    def test_refresh_clears_all_maps(self, data_dir):
        path = data_dir / "EnrichedVenues.json"
        cache = VenueCache(path)
        assert cache.get_by_slug("sats-bar") is not None
        path.write_text(json.dumps([{"id": 9, "tags": {"name": "New"}, "slug": "new"}]), encoding="utf-8")
        cache.refresh()
        assert cache.get_by_slug("sats-bar") is None
        assert cache.get_by_id(2) is None
        assert cache.get_by_slug("new").id == 9

    def test_peek_never_loads(self, data_dir):
        """peek() reports the parsed value without reading the file"""
        cache = VenueCache(data_dir / "EnrichedVenues.json")
        assert cache.peek() is None
        assert not cache.loaded
        venues = cache.load()
        assert cache.peek() is venues
        cache.clear()
        assert cache.peek() is None

    def test_status_does_not_load(self, caches):
        """Registry status reflects memory only"""
        before = caches.status()
        assert before["venue"] == {"loaded": False, "count": 0}
        assert not caches.venues.loaded
        caches.venues.load()
        assert caches.status()["venue"] == {"loaded": True, "count": 7}

    def test_extra_keys_round_trip(self, data_dir, tmp_path):
        """Keys the app does not model are written back unchanged"""
        venues = read_venue_file(data_dir / "EnrichedVenues.json")
        out = tmp_path / "out.json"
        write_venue_file(out, venues)
        first = json.loads(out.read_text(encoding="utf-8"))[0]
        assert first["google"] == {"rating": 4.5}
        assert first["enrichedAt"] == "2026-10-02T10:00:00.000Z"
        assert not (tmp_path / "out.json.tmp").exists()

    def test_venue_from_dict_requires_id(self):
        with pytest.raises(ValueError):
            Venue.from_dict({"tags": {}})
        with pytest.raises(ValueError):
            Venue.from_dict({"id": "x1"})
        assert Venue.from_dict({"id": "12"}).id == 12


class TestLocationIndex:
    """Test cases for location centroids"""

    def test_groups_and_counts(self, caches):
        loc = build_location_index(caches.venues.venues)
        assert set(loc.cities) == {"madrid", "barcelona", "lisbon", "san salvador"}
        assert set(loc.states) == {"madrid", "catalonia", "lisbon", "san salvador"}
        assert set(loc.countries) == {"es", "pt", "sv"}  # US venue has no coordinates
        assert loc.countries["es"].count == 4
        assert loc.cities["madrid"].count == 3
        assert loc.cities["madrid"].country == "ES"

    def test_centroid(self, caches):
        loc = build_location_index(caches.venues.venues)
        madrid = loc.cities["madrid"]
        assert madrid.latitude == pytest.approx((40.4170 + 40.4200 + 40.4170) / 3)
        assert madrid.longitude == pytest.approx((-3.7040 - 3.7000 - 3.7040) / 3)

    def test_zero_coordinates_kept(self):
        """A venue on the equator / prime meridian is still placed"""
        v = Venue(id=1, lat=0.0, lon=0.0, city="Null Island", country="XX")
        loc = build_location_index([v])
        assert loc.cities["null island"].latitude == 0.0


class TestCategoryIndex:
    """Test cases for the sub-category directory"""

    def test_structure(self, caches):
        index = build_category_index(caches.venues.venues, caches.countries.get_country_name)
        assert set(index) == {"cafe", "bar", "hotel", "coffee_shop", "supermarket"}
        cafe = index["cafe"]
        assert cafe["category"] == "food-and-drink"
        assert cafe["pluralSlug"] == "cafes"
        assert cafe["totalCount"] == 1
        spain = cafe["countries"][0]
        assert spain["name"] == "Spain"
        assert spain["code"] == "ES"
        assert spain["slug"] == "bitcoin-cafes-in-spain"
        assert spain["cities"] == [{"name": "Madrid", "count": 1, "slug": "bitcoin-cafes-in-madrid-spain"}]

    def test_countries_alphabetical_cities_by_count(self):
        venues = [
            Venue(id=1, country="PT", city="Porto", category="lodging", subcategory="hotel"),
            Venue(id=2, country="ES", city="Sevilla", category="lodging", subcategory="hotel"),
            Venue(id=3, country="ES", city="Madrid", category="lodging", subcategory="hotel"),
            Venue(id=4, country="ES", city="Madrid", category="lodging", subcategory="hotel"),
        ]
        names = {"PT": "Portugal", "ES": "Spain"}
        hotel = build_category_index(venues, lambda c: names.get(c, c))["hotel"]
        assert [c["name"] for c in hotel["countries"]] == ["Portugal", "Spain"]
        assert [c["name"] for c in hotel["countries"][1]["cities"]] == ["Madrid", "Sevilla"]
        assert hotel["totalCount"] == 4


class TestTileIndex:
    """Test cases for map tile clusters"""

    def test_zoom_one_clusters(self, caches):
        tiles = TileIndex(caches.venues.venues)
        out = tiles.query(1)
        assert sorted(out["tiles"]) == ["1/0/0", "1/1/0"]
        countries = sorted(e["country"] for e in out["tiles"]["1/0/0"])
        assert countries == ["ES", "PT", "SV"]
        es = next(e for e in out["tiles"]["1/0/0"] if e["country"] == "ES")
        assert es["count"] == 3
        assert sorted(es["ids"]) == [1, 2, 7]
        assert es["venues"] == []
        assert out["relevantSubcategories"] == {
            "cafe": 1, "bar": 1, "hotel": 1, "coffee_shop": 1, "other": 1, "supermarket": 1,
        }
        assert out["relevantCategories"]["food-and-drink"] == 3

    def test_single_venue_cluster_embeds_venue(self, caches):
        out = TileIndex(caches.venues.venues).query(1)
        pt = next(e for e in out["tiles"]["1/0/0"] if e["country"] == "PT")
        assert pt["count"] == 1
        assert pt["venues"][0]["tags"]["name"] == "Lisboa Coffee"
        assert pt["id"].startswith("z1-0-0-PT")

    def test_bbox_filters_on_centroid(self, caches):
        out = TileIndex(caches.venues.venues).query(1, (-10.0, 35.0, 0.0, 45.0))
        found = sorted(e["country"] for entries in out["tiles"].values() for e in entries)
        assert found == ["ES", "PT"]
        assert "hotel" not in out["relevantSubcategories"]

    def test_max_zoom_splits_clusters(self, caches):
        """Venues sharing a tile at the deepest zoom are returned one by one"""
        tiles = TileIndex(caches.venues.venues, min_zoom=1, max_zoom=16)
        out = tiles.query(16)
        shared = [entries for entries in out["tiles"].values() if len(entries) > 1]
        assert len(shared) == 1
        ids = sorted(e["ids"][0] for e in shared[0])
        assert ids == [1, 7]
        assert all(e["count"] == 1 and len(e["venues"]) == 1 for e in shared[0])

    def test_stats_and_empty_zoom(self, caches):
        tiles = TileIndex(caches.venues.venues, min_zoom=1, max_zoom=4)
        assert tiles.stats()["zooms"] == 4
        assert tiles.stats()["tilesAtMinZoom"] == 4
        assert tiles.query(9)["tiles"] == {}

    def test_replication_timestamp(self, data_dir, tmp_path):
        assert read_replication_timestamp(data_dir / "osm-replication.state") == "2026-10-14T06:00:00Z"
        assert read_replication_timestamp(tmp_path / "missing.state") is None
        bad = tmp_path / "bad.state"
        bad.write_text("not json")
        assert read_replication_timestamp(bad) is None
