from licence_assistant.memory.persistence import (
    InMemoryBackend,
    JsonFileBackend,
    MemoryBackend,
    create_backend,
)
from licence_assistant.memory.store import MemoryStore

__all__ = [
    "MemoryStore",
    "MemoryBackend",
    "InMemoryBackend",
    "JsonFileBackend",
    "create_backend",
]
