from __future__ import annotations

from typing import List, Optional
from datetime import datetime, timezone
import unicodedata

from slugify import slugify as _slugify


def iso_now_ms() -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso8601(ts: str) -> datetime:
    """Parse an ISO-8601 timestamp with optional 'Z'; naive values are taken as UTC."""
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    dt = datetime.fromisoformat(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def try_parse_iso8601(ts: Optional[str]) -> Optional[datetime]:
    if not ts or not isinstance(ts, str):
        return None
    try:
        return parse_iso8601(ts)
    except ValueError:
        return None


# -------------------------
# Text normalisation
# -------------------------
# Apostrophes are dropped rather than split on ("McDonald's" -> "mcdonalds").
_SLUG_REPLACEMENTS = [["'", ""], ["\u2019", ""], ["&", " and "]]


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(text: Optional[str]) -> str:
    """
    Lower-case ASCII slug via python-slugify: non-Latin scripts are
    transliterated ("Кафе" -> "kafe", "Straße" -> "strasse"), everything other
    than letters and digits becomes a single dash.
    """
    if not text:
        return ""
    return _slugify(str(text), replacements=_SLUG_REPLACEMENTS)


def tokenize_and_normalize(text: str) -> List[str]:
    """Accent-free lower-case whitespace tokens."""
    return strip_accents(text).lower().split()
