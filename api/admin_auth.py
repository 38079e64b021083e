from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from geocache.registry import get_caches


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


def pubkey_for_token(auth_cfg: Dict[str, Any], token: str) -> Optional[str]:
    return (auth_cfg.get("tokens") or {}).get(token)


def require_admin(request: Request) -> str:
    """
    FastAPI dependency: the admin's pubkey, or
      401 without a bearer token or with an unknown one,
      403 when the token belongs to a non-admin.
    Tokens map to pubkeys via `auth.tokens`; admins are listed in `auth.admins`.
    """
    auth_cfg = get_caches().cfg.get("auth", {})
    token = bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    pubkey = pubkey_for_token(auth_cfg, token)
    if not pubkey:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if pubkey not in set(auth_cfg.get("admins") or []):
        raise HTTPException(status_code=403, detail="Admin access required")
    return pubkey
