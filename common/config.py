from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

DEFAULTS: Dict[str, Any] = {
    "data": {
        "dir": "data",
        "cities_file": "cities1000.txt",
        "admin1_file": "admin1CodesASCII.txt",
        "countries_file": "countryInfo.txt",
        "venues_file": "EnrichedVenues.json",
        "fallback_venues_file": "BitcoinVenues.json",
        "slug_map_file": "venue_slug_map.json",
        "merchant_slugs_file": "merchant-slugs.json",
        "replication_state_file": "osm-replication.state",
        "queue_dir": "queues",
        "logs_dir": "logs",
    },
    "tiles": {"min_zoom": 1, "max_zoom": 16},
    "search": {"min_query_length": 2, "max_venues": 10, "max_locations": 5},
    "osm": {
        "api_url": "https://api.openstreetmap.org/api/0.6",
        "overpass_url": "https://overpass-api.de/api/interpreter",
        "timeout_s": 25.0,
        "nearby_radius_m": 100,
    },
    "auth": {"tokens": {}, "admins": []},
    "server": {"host": "0.0.0.0", "port": 8000, "cors_origins": ["*"]},
    "logging": {"level": "INFO"},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _parse_token_pairs(raw: str) -> Dict[str, str]:
    """'tok1:pub1,tok2:pub2' -> {'tok1': 'pub1', 'tok2': 'pub2'}"""
    pairs: Dict[str, str] = {}
    for item in raw.split(","):
        token, sep, pubkey = item.strip().partition(":")
        if sep and token and pubkey:
            pairs[token] = pubkey
    return pairs


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load YAML params deep-merged over DEFAULTS.
    Path precedence: explicit `path`, env VENUES_CONFIG, config/params.yaml.
    A missing file is not an error; the defaults are returned.
    Env overrides: DATA_DIR, LOG_LEVEL, ADMIN_TOKENS, ADMIN_PUBKEYS.
    """
    p = Path(path or os.environ.get("VENUES_CONFIG") or DEFAULT_CONFIG_PATH)
    user: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            user = yaml.safe_load(f) or {}
        if not isinstance(user, dict):
            raise ValueError(f"config root must be a mapping: {p}")
    cfg = _deep_merge(DEFAULTS, user)

    if os.environ.get("DATA_DIR"):
        cfg["data"]["dir"] = os.environ["DATA_DIR"]
    if os.environ.get("LOG_LEVEL"):
        cfg["logging"]["level"] = os.environ["LOG_LEVEL"]
    if os.environ.get("ADMIN_TOKENS"):
        cfg["auth"]["tokens"] = {**cfg["auth"]["tokens"], **_parse_token_pairs(os.environ["ADMIN_TOKENS"])}
    if os.environ.get("ADMIN_PUBKEYS"):
        extra = [k.strip() for k in os.environ["ADMIN_PUBKEYS"].split(",") if k.strip()]
        cfg["auth"]["admins"] = list(cfg["auth"]["admins"]) + extra
    return cfg


def data_path(cfg: Dict[str, Any], key: str) -> Path:
    """Resolve a `data.<key>` file name against `data.dir`."""
    data = cfg["data"]
    return Path(data["dir"]) / data[key]
