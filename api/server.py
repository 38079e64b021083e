from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import uvicorn
from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.admin_auth import require_admin
from common.config import load_config
from common.geo import valid_lonlat
from common.logging_setup import get_logger, setup_logging
from directory.osm import OsmError, OsmService
from directory.region import fetch_venues_by_region
from directory.search import autocomplete as search_autocomplete
from directory import stats as venue_stats
from geocache.registry import get_caches


P = load_config()
setup_logging(P["logging"]["level"])
log = get_logger("api.server")

app = FastAPI(title="Venue Directory API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=P["server"].get("cors_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------- error bodies --------

@app.exception_handler(StarletteHTTPException)
def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
def _validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "invalid_parameters", "detail": jsonable_errors(exc)}, status_code=400)


@app.exception_handler(FileNotFoundError)
def _data_missing(request: Request, exc: FileNotFoundError):
    log.error("data file missing", extra={"extra": {"path": request.url.path, "detail": str(exc)}})
    return JSONResponse({"error": "data_unavailable", "detail": str(exc)}, status_code=503)


def jsonable_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]


def osm_service() -> OsmService:
    ocfg = get_caches().cfg["osm"]
    return OsmService(ocfg["api_url"], ocfg["overpass_url"], timeout=ocfg.get("timeout_s", 25.0))


def _parse_bbox(raw: Optional[str]) -> Optional[Tuple[float, float, float, float]]:
    """'west,south,east,north' -> tuple; None when absent or not four numbers."""
    if not raw:
        return None
    parts = raw.split(",")
    if len(parts) != 4:
        return None
    try:
        west, south, east, north = (float(p) for p in parts)
    except ValueError:
        return None
    return west, south, east, north


# -------- health --------

@app.get("/health")
def health():
    return {"status": "ok", "caches": get_caches().status()}


# -------- geo --------

@app.get("/api/nearest-city")
def nearest_city(lat: float = Query(...), lon: float = Query(...)):
    if not valid_lonlat(lon, lat):
        raise HTTPException(status_code=400, detail="Invalid coordinates")
    city = get_caches().cities.find_nearest_city(lon, lat)
    if city is None:
        raise HTTPException(status_code=404, detail="No nearby city found")
    return city.to_dict()


# -------- places --------

@app.get("/api/places")
def places(zoom: Optional[int] = Query(None), bbox: Optional[str] = Query(None)):
    """
    Venue clusters for one zoom level, optionally limited to a bbox
    ("west,south,east,north"); see TileIndex.query for the payload.
    """
    caches = get_caches()
    tcfg = caches.cfg["tiles"]
    if zoom is None:
        raise HTTPException(status_code=400, detail="zoom parameter is required")
    if not tcfg["min_zoom"] <= zoom <= tcfg["max_zoom"]:
        raise HTTPException(status_code=400, detail="invalid zoom")
    out = caches.tiles().query(zoom, _parse_bbox(bbox))
    out["updatedAt"] = caches.updated_at()
    return out


@app.get("/api/places/region")
def places_region(
    country: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
):
    if not country:
        raise HTTPException(status_code=400, detail="Missing required parameter: country")
    return fetch_venues_by_region(get_caches().venues.venues, country, city, subcategory)


@app.post("/api/places/by-ids")
def places_by_ids(payload: Dict[str, Any] = Body(...)):
    ids = payload.get("ids")
    if not isinstance(ids, list) or not ids:
        raise HTTPException(status_code=400, detail="Missing or invalid ids")
    subs = payload.get("subcategories")
    venues = get_caches().venues.get_many(ids, subs if isinstance(subs, list) else None)
    return {"venues": [v.to_dict() for v in venues]}


@app.get("/api/places/{slug_or_id}")
def place(slug_or_id: str, preview: bool = Query(False)):
    """
    One venue by slug (or numeric id). With preview=true the path holds an
    OSM changeset id and the venue is read from that changeset instead.
    """
    caches = get_caches()
    if preview:
        try:
            changeset_id = int(slug_or_id)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid changeset ID for preview")
        try:
            venue = osm_service().fetch_venue_from_changeset(
                changeset_id, caches.cities.find_nearest_city, caches.admin1
            )
        except OsmError as e:
            log.warning("changeset preview failed", extra={"extra": {"changeset": changeset_id, "err": str(e)}})
            raise HTTPException(status_code=502, detail="Error getting preview of venue")
        if venue is None:
            raise HTTPException(status_code=404, detail="Preview venue not found")
        return venue

    v = caches.venues.get_by_slug(slug_or_id)
    if v is None and slug_or_id.isdigit():
        v = caches.venues.get_by_id(int(slug_or_id))
    if v is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    return v.to_dict()


# -------- map search --------

@app.get("/api/map/autocomplete")
def map_autocomplete(
    q: str = Query(""),
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
):
    caches = get_caches()
    scfg = caches.cfg["search"]
    if len(q) < scfg["min_query_length"]:
        return []
    return search_autocomplete(
        caches.venues.load(),
        caches.locations(),
        caches.countries.get_country_name,
        q,
        lat=lat,
        lon=lon,
        min_length=scfg["min_query_length"],
        max_venues=scfg["max_venues"],
        max_locations=scfg["max_locations"],
    )


@app.get("/api/map/nearby-places")
def map_nearby_places(
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    radius: Optional[int] = Query(None),
    name: Optional[str] = Query(None),
):
    if lat is None or lon is None:
        raise HTTPException(status_code=400, detail="Missing latitude or longitude")
    if radius is None:
        radius = get_caches().cfg["osm"]["nearby_radius_m"]
    try:
        results = osm_service().fetch_nearby_places(lat, lon, radius=radius, name=name)
    except OsmError as e:
        log.warning("overpass lookup failed", extra={"extra": {"err": str(e)}})
        raise HTTPException(status_code=502, detail="Failed to fetch from Overpass API")
    return {"results": results}


# -------- SEO --------

@app.get("/api/slugs/{slug}")
def slug_lookup(slug: str):
    resolved = get_caches().slugs.resolve(slug)
    if resolved is None:
        raise HTTPException(status_code=404, detail="Slug not found")
    return resolved.to_dict()


@app.get("/api/categories")
def categories():
    index = get_caches().categories()
    return [
        {k: data[k] for k in ("subcategory", "category", "pluralSlug", "totalCount")}
        for data in sorted(index.values(), key=lambda d: -d["totalCount"])
    ]


@app.get("/api/categories/{subcategory}")
def category(subcategory: str):
    data = get_caches().categories().get(subcategory)
    if data is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return data


# -------- stats --------

@app.get("/api/stats")
def stats():
    return venue_stats.summary(get_caches().venues.venues)


@app.get("/api/stats/detailed")
def stats_detailed():
    return venue_stats.detailed(get_caches().venues.venues)


# -------- admin --------

@app.get("/api/admin/map-sync/rebuild-caches")
def cache_status(pubkey: str = Depends(require_admin)):
    return {
        "caches": get_caches().status(),
        "actions": [
            "Clear and rebuild VenueCache from EnrichedVenues.json",
            "Clear and rebuild LocationCache (country/state/city hierarchy)",
            "Clear and rebuild CategoryCache (sub-category directory)",
            "Clear and rebuild TileCache (tiles for map rendering)",
        ],
    }


@app.post("/api/admin/map-sync/rebuild-caches")
def rebuild_caches(pubkey: str = Depends(require_admin)):
    result = get_caches().rebuild(initiated_by=pubkey)
    return {"message": "All caches rebuilt successfully", "stats": result}


# -------- local dev entrypoint --------
if __name__ == "__main__":
    uvicorn.run(app, host=P["server"]["host"], port=int(P["server"]["port"]))
