"""
Pluggable persistence for the memory store.

The store only needs to load one snapshot at startup and save a fresh
snapshot after every mutation. Any key-value or file backend that can do
that satisfies ``MemoryBackend``.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from licence_assistant.config import settings
from licence_assistant.schemas.memory_schema import MemorySnapshot

logger = logging.getLogger(__name__)


class MemoryBackend(ABC):
    """Load/save pair used by the memory store."""

    @abstractmethod
    def load(self) -> Optional[MemorySnapshot]:
        """Return the stored snapshot, or None if nothing was saved yet."""

    @abstractmethod
    def save(self, snapshot: MemorySnapshot) -> None:
        """Replace the stored snapshot."""


class InMemoryBackend(MemoryBackend):
    """Keeps the last snapshot as JSON text in process memory.

    Round-trips through JSON so timestamps behave exactly as they would
    with a file backend.
    """

    def __init__(self, initial: Optional[MemorySnapshot] = None) -> None:
        self._payload: Optional[str] = initial.model_dump_json() if initial else None
        self.save_count = 0

    def load(self) -> Optional[MemorySnapshot]:
        if self._payload is None:
            return None
        return MemorySnapshot.model_validate_json(self._payload)

    def save(self, snapshot: MemorySnapshot) -> None:
        self._payload = snapshot.model_dump_json()
        self.save_count += 1


class JsonFileBackend(MemoryBackend):
    """Stores the snapshot as a single JSON document on disk.

    Writes go to a sibling temp file that is then renamed over the
    target, so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[MemorySnapshot]:
        if not self.path.exists():
            logger.info("No memory snapshot at %s, starting empty", self.path)
            return None
        snapshot = MemorySnapshot.model_validate_json(self.path.read_text(encoding="utf-8"))
        logger.info(
            "Loaded memory snapshot from %s (%d profiles)",
            self.path, len(snapshot.profiles),
        )
        return snapshot

    def save(self, snapshot: MemorySnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.debug("Saved memory snapshot to %s", self.path)


def create_backend(store_path: Optional[str] = None) -> MemoryBackend:
    """Pick a backend from configuration: a JSON file if a path is set."""
    path = settings.memory.store_path if store_path is None else store_path
    if path:
        logger.info("Using JSON file memory backend at %s", path)
        return JsonFileBackend(path)
    logger.info("Using in-memory memory backend")
    return InMemoryBackend()
