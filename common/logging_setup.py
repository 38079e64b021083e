from __future__ import annotations

import logging
import os
import sys
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON log formatter:
      { "t": 169, "lvl": "INFO", "name": "mod", "msg": "text", "extra": {...} }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        # Include extra dict if present
        if hasattr(record, "extra") and isinstance(record.extra, dict):  # type: ignore[attr-defined]
            payload["extra"] = record.extra  # type: ignore[attr-defined]
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logger once with JSON formatting.
    Level precedence:
      - explicit `level` arg
      - env LOG_LEVEL (e.g., DEBUG/INFO/WARN/ERROR)
      - default INFO
    """
    root = logging.getLogger()
    if getattr(root, "_venues_configured", False):  # idempotent
        if level:
            root.setLevel(_level_from_name(level))
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level_from_name(level or os.environ.get("LOG_LEVEL") or "INFO"))
    root._venues_configured = True  # type: ignore[attr-defined]


def _level_from_name(name: str) -> int:
    lvl = logging.getLevelName(name.upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; ensures root is configured."""
    setup_logging()
    return logging.getLogger(name)


def append_run_log(logs_dir: Path, kind: str, entries: Iterable[str], now: Optional[datetime] = None) -> Path:
    """
    Append a block of human-readable lines to a dated job log:
      logs_dir/YYYY/MM/<kind>_DD.log
    Each block starts with a `=== <iso timestamp> ===` header.
    """
    now = now or datetime.now(timezone.utc)
    folder = Path(logs_dir) / f"{now.year:04d}" / f"{now.month:02d}"
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / f"{kind}_{now.day:02d}.log"
    header = f"=== {now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')} ==="
    with path.open("a", encoding="utf-8") as f:
        f.write("\n".join([header, *entries, ""]) + "\n")
    return path
