from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from geocache.base import FileBackedCache


class Admin1Cache(FileBackedCache[Dict[str, str]]):
    """`admin1CodesASCII.txt`: "US.CA<TAB>California<TAB>..." -> {"US.CA": "California"}."""

    name = "admin1"

    def _parse(self, path: Path) -> Dict[str, str]:
        out: Dict[str, str] = {}
        with path.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                parts = line.rstrip("\r\n").split("\t")
                if len(parts) < 2:
                    continue
                code, name = parts[0].strip(), parts[1].strip()
                if code and name:
                    out[code] = name
        return out

    def get_admin1_name(self, country_code: str, admin1_code: str) -> Optional[str]:
        return self.load().get(f"{country_code}.{admin1_code}")
