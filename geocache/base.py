from __future__ import annotations

import threading
from pathlib import Path
from typing import Generic, Optional, TypeVar

from common.logging_setup import get_logger


T = TypeVar("T")

log = get_logger("geocache")


class FileBackedCache(Generic[T]):
    """
    Lazily parses one data file into a value of type T and memoizes it.

    Subclasses implement `_parse(path)`. The value is immutable once built;
    `clear()` drops it and `refresh()` drops and reloads it. Loading is
    serialised with a lock so concurrent first requests parse the file once.
    """

    name = "cache"

    def __init__(self, path: Path):
        self.path = Path(path)
        self._value: Optional[T] = None
        self._lock = threading.RLock()

    @property
    def loaded(self) -> bool:
        return self._value is not None

    def peek(self) -> Optional[T]:
        """The value if it is already parsed, else None. Never reads the file."""
        return self._value

    def load(self) -> T:
        value = self._value
        if value is not None:
            return value
        with self._lock:
            if self._value is None:
                if not self.path.exists():
                    raise FileNotFoundError(f"{self.name}: data file not found: {self.path}")
                self._value = self._parse(self.path)
                log.info(f"{self.name} loaded", extra={"extra": {"path": str(self.path), **self._describe(self._value)}})
            return self._value

    def clear(self) -> None:
        with self._lock:
            self._value = None
            self._on_clear()

    def refresh(self) -> T:
        with self._lock:
            self.clear()
            return self.load()

    # -------- hooks --------

    def _parse(self, path: Path) -> T:  # pragma: no cover - abstract
        raise NotImplementedError

    def _describe(self, value: T) -> dict:
        try:
            return {"entries": len(value)}  # type: ignore[arg-type]
        except TypeError:
            return {}

    def _on_clear(self) -> None:
        """Drop state derived from the value (indexes)."""
