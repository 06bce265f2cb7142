"""
Key-value backing stores.

A backing store holds string values under string keys, the way a browser's
localStorage does. Calls are synchronous. Every failure surfaces as a
StorageError so callers have exactly one exception type to handle.

Provides:
- KeyValueStore: abstract interface
- MemoryStore: in-process dict, with an optional size quota
- JsonFileStore: one file per key under a directory, written atomically
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a backing store cannot read or write a value."""


class KeyValueStore(ABC):
    """Synchronous string key-value store."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is missing

        Raises:
            StorageError: If the store cannot be read
        """

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            StorageError: If the value cannot be stored (e.g. quota exceeded)
        """

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""

    def __contains__(self, key: str) -> bool:
        return self.get_item(key) is not None


class MemoryStore(KeyValueStore):
    """
    Dict-backed store.

    Args:
        quota_bytes: If set, writes that would grow the total UTF-8 size of
            all keys and values past this limit fail with StorageError
    """

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for {key!r} must be a string")

        if self.quota_bytes is not None:
            projected = self.used_bytes - self._entry_size(key, self._data.get(key))
            projected += self._entry_size(key, value)
            if projected > self.quota_bytes:
                raise StorageError(
                    f"Quota exceeded writing {key!r} ({projected} > {self.quota_bytes} bytes)"
                )

        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    @property
    def used_bytes(self) -> int:
        """Total UTF-8 size of stored keys and values."""
        return sum(self._entry_size(k, v) for k, v in self._data.items())

    @staticmethod
    def _entry_size(key: str, value: str | None) -> int:
        if value is None:
            return 0
        return len(key.encode('utf-8')) + len(value.encode('utf-8'))


class JsonFileStore(KeyValueStore):
    """
    Directory-backed store, one file per key.

    Writes go to a temp file in the same directory, are fsynced and then
    moved over the target with os.replace, so a crash mid-write leaves the
    previous value in place.
    """

    _UNSAFE = re.compile(r'[^A-Za-z0-9_.-]')

    def __init__(self, directory: str | Path, suffix: str = ".json"):
        self.directory = Path(directory)
        self.suffix = suffix

    def path_for(self, key: str) -> Path:
        """Get the file path used for a key."""
        return self.directory / f"{self._UNSAFE.sub('_', key)}{self.suffix}"

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=path.name, dir=str(self.directory))
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_name)

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
