"""
Persistent storage for the registry.

Three independent slots are kept: the order list, the deletion history and
the processed file log. Each round-trips as JSON text. A slot that can't be
read back is reset to empty with a warning; it never stops the app loading.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from tracker.models import Order, RegistryState

logger = logging.getLogger(__name__)

ORDERS_SLOT = "orders"
HISTORY_SLOT = "history"
FILES_SLOT = "processed_files"
SLOTS = (ORDERS_SLOT, HISTORY_SLOT, FILES_SLOT)


class SlotFormatError(ValueError):
    """A persisted slot parsed but didn't have the expected shape."""


def _decode_orders(payload: Any) -> list[Order]:
    if not isinstance(payload, list):
        raise SlotFormatError(f"expected a list, got {type(payload).__name__}")
    try:
        return [Order.from_dict(item) for item in payload]
    except (TypeError, ValueError) as e:
        raise SlotFormatError(str(e)) from e


def _decode_file_names(payload: Any) -> list[str]:
    if not isinstance(payload, list) or not all(isinstance(n, str) for n in payload):
        raise SlotFormatError("expected a list of file names")
    return list(dict.fromkeys(payload))


class RegistryStore(ABC):
    """
    Base store: serialization and recovery live here, subclasses only move text.

    Subclasses implement _read, _write and _clear.
    """

    @abstractmethod
    def _read(self, slot: str) -> str | None:
        """Raw text of a slot, or None if it was never written."""

    @abstractmethod
    def _write(self, slot: str, text: str) -> None:
        ...

    @abstractmethod
    def _clear(self) -> None:
        ...

    def load(self) -> RegistryState:
        """Load every slot, resetting any that are unreadable."""
        history = self._load_slot(HISTORY_SLOT, _decode_orders)
        return RegistryState(
            orders=self._load_slot(ORDERS_SLOT, _decode_orders),
            history=history[: RegistryState.HISTORY_LIMIT],
            processed_files=self._load_slot(FILES_SLOT, _decode_file_names),
        )

    def _load_slot(self, slot: str, decode) -> list:
        text = self._read(slot)
        if text is None:
            return []
        try:
            return decode(json.loads(text))
        except (json.JSONDecodeError, SlotFormatError) as e:
            logger.warning("Discarding unreadable %s slot: %s", slot, e)
            return []

    def save(self, state: RegistryState) -> None:
        self._write(ORDERS_SLOT, json.dumps([o.to_dict() for o in state.orders]))
        self._write(
            HISTORY_SLOT,
            json.dumps([o.to_dict() for o in state.history[: RegistryState.HISTORY_LIMIT]]),
        )
        self._write(FILES_SLOT, json.dumps(state.processed_files))

    def clear(self) -> None:
        self._clear()
        logger.info("Registry storage cleared")


class JsonFileStore(RegistryStore):
    """One JSON file per slot inside a data directory."""

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    def _path(self, slot: str) -> Path:
        return self.data_dir / f"{slot}.json"

    def _read(self, slot: str) -> str | None:
        path = self._path(slot)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def _write(self, slot: str, text: str) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(slot)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)

    def _clear(self) -> None:
        for slot in SLOTS:
            self._path(slot).unlink(missing_ok=True)


class InMemoryStore(RegistryStore):
    """Dict-backed store for tests; goes through the same JSON round trip."""

    def __init__(self, slots: dict[str, str] | None = None):
        self.slots: dict[str, str] = dict(slots or {})

    def _read(self, slot: str) -> str | None:
        return self.slots.get(slot)

    def _write(self, slot: str, text: str) -> None:
        self.slots[slot] = text

    def _clear(self) -> None:
        self.slots.clear()
