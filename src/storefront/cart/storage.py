"""Device-local storage for the guest cart.

The persisted layout is an ordered JSON array of
``{"productSlug": str, "quantity": int}`` records in insertion order. The
storage is shared by every component on the device: writers serialise on
``lock`` and every write notifies all listeners, not only the writer.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

GUEST_CART_KEY = "guest_cart"


class GuestCartStorage(ABC):
    """Abstract persisted record holder with a shared writer lock."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._listeners: list[Callable[[], None]] = []

    @abstractmethod
    def load(self) -> list[dict[str, Any]]:
        """Return the persisted records (empty when nothing is stored)."""
        ...

    @abstractmethod
    def _write(self, records: list[dict[str, Any]]) -> None: ...

    @abstractmethod
    def _erase(self) -> None: ...

    def save(self, records: list[dict[str, Any]]) -> None:
        with self.lock:
            self._write(records)
        self._notify()

    def delete(self) -> None:
        with self.lock:
            self._erase()
        self._notify()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


class MemoryGuestCartStorage(GuestCartStorage):
    """Process-local storage; survives as long as the object does."""

    def __init__(self) -> None:
        super().__init__()
        self._raw: str | None = None

    def load(self) -> list[dict[str, Any]]:
        return _decode(self._raw)

    def _write(self, records):
        self._raw = json.dumps(records)

    def _erase(self):
        self._raw = None


class JsonFileGuestCartStorage(GuestCartStorage):
    """Storage backed by a JSON file, replaced atomically on every write."""

    def __init__(self, path: str | os.PathLike) -> None:
        super().__init__()
        self.path = Path(path)

    def load(self) -> list[dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return _decode(raw)

    def _write(self, records):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(records, handle, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _erase(self):
        self.path.unlink(missing_ok=True)


def _decode(raw: str | None) -> list[dict[str, Any]]:
    if not raw:
        return []
    try:
        payload = json.loads(raw)
    except ValueError:
        logger.warning("Discarding unreadable guest cart payload")
        return []
    if not isinstance(payload, list):
        logger.warning("Discarding guest cart payload with unexpected shape", payload_type=type(payload).__name__)
        return []
    return [record for record in payload if isinstance(record, dict)]


def default_storage() -> GuestCartStorage:
    """Storage selected by GUEST_CART_PATH (in-memory when unset)."""
    path = os.environ.get("GUEST_CART_PATH")
    if path:
        return JsonFileGuestCartStorage(path)
    return MemoryGuestCartStorage()
