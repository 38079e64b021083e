from __future__ import annotations

"""
OpenStreetMap adapters.

- Changeset preview: a venue added on OSM shows up in the directory only
  after the next sync; until then its page is rendered from the changeset
  download (`/changeset/<id>/download`, osmChange XML).
- Nearby lookup: Overpass `around:` query for elements near a point, used by
  the "add venue" form to find the OSM element a user means.

Usage:
    osm = OsmService(api_url, overpass_url, timeout=25.0)
    venue = osm.fetch_venue_from_changeset(123, caches.cities.find_nearest_city, caches.admin1)
    places = osm.fetch_nearby_places(lat, lon, radius=100, name="cafe")
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Callable, Dict, List, Optional

import requests
from rapidfuzz.distance import Levenshtein

from common.categories import match_category
from common.types import City
from geocache.admin1 import Admin1Cache


log = logging.getLogger(__name__)


class OsmError(RuntimeError):
    """Upstream OSM / Overpass request failed or returned something unusable."""


class OsmService:
    def __init__(self, api_url: str, overpass_url: str, timeout: float = 25.0,
                 session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip("/")
        self.overpass_url = overpass_url
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    # ----------------------------
    # Changeset preview
    # ----------------------------
    def fetch_venue_from_changeset(
        self,
        changeset_id: int,
        find_nearest_city: Callable[[float, float], Optional[City]],
        admin1: Admin1Cache,
    ) -> Optional[Dict[str, Any]]:
        """
        Venue dict for the first created node with a `name` tag, with city,
        state, country and category filled in. None when the changeset
        creates no named node. Raises OsmError on request or XML failure.
        """
        url = f"{self.api_url}/changeset/{int(changeset_id)}/download"
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise OsmError(f"changeset {changeset_id}: {e}") from e
        if r.status_code != 200:
            log.warning("OSM changeset download failed: %s %s", r.status_code, r.text[:200])
            raise OsmError(f"changeset {changeset_id}: HTTP {r.status_code}")

        node = parse_changeset_node(r.text)
        if node is None:
            return None

        lat, lon = node["lat"], node["lon"]
        city = find_nearest_city(lon, lat)
        hit = match_category(node["tags"])
        return {
            "id": node["id"],
            "lon": lon,
            "lat": lat,
            "tags": node["tags"],
            "type": "node",
            "city": city.name if city else None,
            "state": admin1.get_admin1_name(city.country_code, city.admin1_code) if city else None,
            "country": city.country_code if city else None,
            "category": hit[0] if hit else None,
            "subcategory": hit[1] if hit else None,
        }

    # ----------------------------
    # Overpass
    # ----------------------------
    @staticmethod
    def build_nearby_query(lat: float, lon: float, radius: int) -> str:
        return (
            "[out:json][timeout:25];\n"
            "(\n"
            f"  node(around:{radius}, {lat}, {lon});\n"
            f"  way(around:{radius}, {lat}, {lon});\n"
            f"  relation(around:{radius}, {lat}, {lon});\n"
            ");\n"
            "out body;\n"
            ">;\n"
            "out skel qt;\n"
        )

    def fetch_nearby_places(self, lat: float, lon: float, radius: int = 100,
                            name: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        OSM elements within `radius` metres. With `name`, only named elements
        are kept, each with a `distance` (edit distance to `name`, case
        insensitive), closest first. Raises OsmError on upstream failure.
        """
        query = self.build_nearby_query(lat, lon, int(radius))
        try:
            r = self.session.post(self.overpass_url, data=query.encode("utf-8"),
                                  headers={"Content-Type": "text/plain"}, timeout=self.timeout)
        except requests.RequestException as e:
            raise OsmError(f"overpass: {e}") from e
        if r.status_code != 200:
            log.warning("Overpass request failed: %s %s", r.status_code, r.text[:200])
            raise OsmError(f"overpass: HTTP {r.status_code}")
        try:
            elements = r.json().get("elements") or []
        except ValueError as e:
            raise OsmError("overpass: invalid JSON") from e

        if not name:
            return elements
        target = name.lower()
        named = [dict(el, distance=Levenshtein.distance(el["tags"]["name"].lower(), target))
                 for el in elements if (el.get("tags") or {}).get("name")]
        named.sort(key=lambda el: el["distance"])
        return named


def parse_changeset_node(xml_text: str) -> Optional[Dict[str, Any]]:
    """First `<create><node>` with a name tag -> {id, lat, lon, tags}; None when there is none."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise OsmError("changeset: invalid XML") from e
    for create in root.findall("create"):
        for node in create.findall("node"):
            tags = {t.get("k"): t.get("v") for t in node.findall("tag") if t.get("k") is not None}
            if "name" not in tags:
                continue
            try:
                return {
                    "id": int(node.get("id")),
                    "lat": float(node.get("lat")),
                    "lon": float(node.get("lon")),
                    "tags": tags,
                }
            except (TypeError, ValueError):
                continue
    return None
