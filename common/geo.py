from __future__ import annotations

from typing import Tuple, Union
import math
import numpy as np


# --- Sphere constants ---
EARTH_RADIUS_M = 6371008.8        # mean Earth radius (m)
MAX_MERCATOR_LAT = 85.05112878    # web mercator latitude limit (deg)

ArrayLike = Union[float, np.ndarray]


# -------------------------
# Great-circle distances
# -------------------------
def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance on the mean-radius sphere."""
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dphi = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return haversine_m(lat1, lon1, lat2, lon2) / 1000.0


def valid_lonlat(lon: float, lat: float) -> bool:
    """True for finite lon in [-180, 180] and lat in [-90, 90]."""
    try:
        lon = float(lon)
        lat = float(lat)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return False
    return -180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0


# -------------------------
# Unit sphere
# -------------------------
def lonlat_to_unit(lon: ArrayLike, lat: ArrayLike) -> np.ndarray:
    """
    Lon/lat (deg) to unit-sphere xyz. Accepts scalars or 1-D arrays and
    returns shape (3,) or (n, 3).

    Chord length between two unit vectors is monotonic in great-circle
    distance, so a Euclidean nearest-neighbour search over these points is
    a great-circle nearest-neighbour search.
    """
    lam = np.radians(np.asarray(lon, dtype=float))
    phi = np.radians(np.asarray(lat, dtype=float))
    cosp = np.cos(phi)
    return np.stack([cosp * np.cos(lam), cosp * np.sin(lam), np.sin(phi)], axis=-1)


def chord_to_m(chord: float) -> float:
    """Unit-sphere chord length to great-circle metres."""
    c = max(0.0, min(2.0, float(chord)))
    return 2.0 * EARTH_RADIUS_M * math.asin(c / 2.0)


# -------------------------
# Slippy-map tiles
# -------------------------
def lon2tile(lon: float, z: int) -> int:
    n = 1 << int(z)
    x = int(math.floor((lon + 180.0) / 360.0 * n))
    return max(0, min(n - 1, x))


def lat2tile(lat: float, z: int) -> int:
    n = 1 << int(z)
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
    rad = math.radians(lat)
    y = int(math.floor((1.0 - math.log(math.tan(rad) + 1.0 / math.cos(rad)) / math.pi) / 2.0 * n))
    return max(0, min(n - 1, y))


def tile_of(lon: float, lat: float, z: int) -> Tuple[int, int]:
    return lon2tile(lon, z), lat2tile(lat, z)
