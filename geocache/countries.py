from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from common.seo import country_slug
from geocache.base import FileBackedCache


class CountriesCache(FileBackedCache[Dict[str, str]]):
    """
    ISO alpha-2 -> English country name from GeoNames `countryInfo.txt`
    (comment lines start with '#'; column 0 is ISO, column 4 the name).
    """

    name = "countries"

    def __init__(self, path: Path):
        super().__init__(path)
        self._by_slug: Optional[Dict[str, str]] = None
        self._missing = False

    def _names(self) -> Optional[Dict[str, str]]:
        """The parsed file, or None when it is absent. Absence is remembered until `clear()`."""
        if self._missing:
            return None
        try:
            return self.load()
        except FileNotFoundError:
            self._missing = True
            return None

    def _parse(self, path: Path) -> Dict[str, str]:
        out: Dict[str, str] = {}
        with path.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip() or line.startswith("#"):
                    continue
                parts = line.rstrip("\r\n").split("\t")
                if len(parts) < 5:
                    continue
                code, name = parts[0].strip().upper(), parts[4].strip()
                if len(code) == 2 and name:
                    out[code] = name
        return out

    def _on_clear(self) -> None:
        self._by_slug = None
        self._missing = False

    def get_country_name(self, code: Optional[str]) -> str:
        """Name for `code`; the code itself when unknown or when no file is present."""
        if not code:
            return ""
        names = self._names()
        if names is None:
            return code
        return names.get(code.upper(), code)

    def code_from_slug(self, slug: str) -> Optional[str]:
        by_slug = self._by_slug
        if by_slug is None:
            names = self._names()
            if names is None:
                return None
            by_slug = {country_slug(name): code for code, name in names.items()}
            self._by_slug = by_slug
        return by_slug.get(slug)
