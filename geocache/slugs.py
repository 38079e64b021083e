from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from common.seo import ALL_PLACES_SLUG, SlugPattern, parse_slug_pattern, subcategory_from_plural_slug
from common.types import SlugEntry
from geocache.base import FileBackedCache
from geocache.countries import CountriesCache


@dataclass
class SlugResolution:
    entry: SlugEntry
    exact_match: bool
    no_venues: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {**self.entry.to_dict(), "exactMatch": self.exact_match, "noVenues": self.no_venues}


class SlugsCache(FileBackedCache[Dict[str, SlugEntry]]):
    """`venue_slug_map.json`: page slug -> region query."""

    name = "slugs"

    def __init__(self, path: Path, countries: Optional[CountriesCache] = None):
        super().__init__(path)
        self.countries = countries
        self._patterns: Optional[List[Tuple[str, SlugPattern]]] = None

    def _parse(self, path: Path) -> Dict[str, SlugEntry]:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"expected a JSON object in {path}")
        return {str(k).lower(): SlugEntry.from_dict(v) for k, v in raw.items() if isinstance(v, dict)}

    def _on_clear(self) -> None:
        self._patterns = None

    def get(self, slug: str) -> Optional[SlugEntry]:
        return self.load().get(slug.lower())

    def _parsed_keys(self) -> List[Tuple[str, SlugPattern]]:
        parsed = self._patterns
        if parsed is None:
            parsed = []
            for key in self.load():
                p = parse_slug_pattern(key)
                if p is not None:
                    parsed.append((key, p))
            self._patterns = parsed
        return parsed

    def resolve(self, slug: str) -> Optional[SlugResolution]:
        """
        Region query for a page slug:
          1. exact match (case-insensitive)
          2. the same slug with "-city" removed ("ho-chi-minh-city" style names)
          3. closest known slug with the same category, country and language,
             by edit distance of the city part
          4. an empty-state entry when the country (and category) can still
             be recognised
        None when nothing applies.
        """
        cache = self.load()
        lower = slug.lower()
        if lower in cache:
            return SlugResolution(cache[lower], exact_match=True)
        fallback = lower.replace("-city", "")
        if fallback in cache:
            return SlugResolution(cache[fallback], exact_match=True)

        parsed = parse_slug_pattern(lower)
        if parsed is None:
            return None

        candidates = [
            (key, p) for key, p in self._parsed_keys()
            if p.category == parsed.category and p.country == parsed.country and p.lang == parsed.lang
        ]
        if candidates:
            target = parsed.city or ""
            key, _ = min(candidates, key=lambda kp: Levenshtein.distance(kp[1].city or "", target))
            return SlugResolution(cache[key], exact_match=False)

        return self._empty_state(lower, parsed)

    def _empty_state(self, slug: str, parsed: SlugPattern) -> Optional[SlugResolution]:
        cache = self.load()
        country_code: Optional[str] = None
        for key, p in self._parsed_keys():
            if p.country == parsed.country and cache[key].country:
                country_code = cache[key].country
                break
        if country_code is None and self.countries is not None:
            country_code = self.countries.code_from_slug(parsed.country)
        if not country_code:
            return None

        if parsed.category == ALL_PLACES_SLUG.get(parsed.lang):
            entry = SlugEntry(canonical=slug, country=country_code, type="country",
                              locale=parsed.lang, location=parsed.city)
            return SlugResolution(entry, exact_match=False, no_venues=True)

        subcategory = subcategory_from_plural_slug(parsed.category, parsed.lang)
        if subcategory:
            entry = SlugEntry(canonical=slug, country=country_code, type="category", locale=parsed.lang,
                              location=parsed.city, category="other", subcategory=subcategory)
            return SlugResolution(entry, exact_match=False, no_venues=True)
        return None
