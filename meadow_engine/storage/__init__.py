"""
Storage module - synchronous key-value backing stores.

Exports:
- KeyValueStore: Store interface
- MemoryStore: In-process store with optional quota
- JsonFileStore: File-per-key store with atomic writes
- StorageError: Raised on any backing store failure
"""

from meadow_engine.storage.backends import (
    KeyValueStore,
    MemoryStore,
    JsonFileStore,
    StorageError,
)

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "StorageError",
]
