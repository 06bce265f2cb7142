"""
Save section base class and field access helpers.

A section is the save capability of one subsystem: it knows where the
subsystem lives in the Registry, how to copy its durable state out, and how
to write a stored copy back. Live subsystems may be plain objects or
mappings, so sections go through read_field/write_field instead of touching
attributes directly.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel

from meadow_save.config import SaveConfig

if TYPE_CHECKING:
    from meadow_engine.core import Registry


_MISSING = object()


class SaveSection(ABC):
    """
    Base class for persisted subsystems.

    Class Attributes:
        name: Key of this section inside the stored snapshot data.

    Example:
        class QuestSection(SaveSection):
            name: ClassVar[str] = "quests"

            def gather(self, registry):
                quests = registry.get_system("quests")
                return None if quests is None else quests.to_dict()

            def apply(self, registry, data):
                quests = registry.get_system("quests")
                if quests is not None:
                    quests.from_dict(data)
    """

    name: ClassVar[str]

    def __init__(self, config: SaveConfig | None = None):
        self.config = config or SaveConfig()

    @abstractmethod
    def gather(self, registry: Registry) -> Any:
        """
        Copy the subsystem's durable state.

        Must not modify the subsystem.

        Returns:
            A SaveModel, JSON-compatible data, or None to leave the
            section out of the snapshot
        """

    @abstractmethod
    def apply(self, registry: Registry, data: Mapping[str, Any]) -> None:
        """Write stored state back into the live subsystem, if it is registered."""

    def fallback(self) -> Any:
        """Value stored when gather() raised. None leaves the section out."""
        return None


# Field access

def read_field(source: Any, name: str, default: Any = None) -> Any:
    """Read an attribute or mapping key. Missing and None both give default."""
    if source is None:
        return default
    if isinstance(source, Mapping):
        value = source.get(name, _MISSING)
    else:
        value = getattr(source, name, _MISSING)
    if value is _MISSING or value is None:
        return default
    return value


def write_field(target: Any, name: str, value: Any) -> None:
    """Set an attribute or mapping key."""
    if isinstance(target, MutableMapping):
        target[name] = value
    else:
        setattr(target, name, value)


def call_hook(target: Any, name: str, *args: Any) -> Any:
    """Call an optional method on a subsystem. Returns None if it has none."""
    if target is None:
        return None
    if isinstance(target, Mapping):
        hook = target.get(name)
    else:
        hook = getattr(target, name, None)
    if callable(hook):
        return hook(*args)
    return None


def is_real_number(value: Any) -> bool:
    """True for finite ints/floats. Bools are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def number_or(value: Any, default: Any) -> Any:
    return value if is_real_number(value) else default


def str_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


_SKIP = object()

# Object graphs deeper than this are cut off; entities are not meant to nest.
MAX_PLAIN_DEPTH = 16


def to_plain(value: Any, exclude: Iterable[Any] = ()) -> Any:
    """
    Copy a value into JSON-compatible data.

    Mappings and sequences are copied, Pydantic models are dumped, plain
    objects become a dict of their public attributes. Values that cannot be
    represented (callables, images, sockets) are dropped, and so are
    references back to a container being copied (or to anything in
    exclude), so parent links never recurse.

    Args:
        value: Value to copy
        exclude: Objects that are dropped wherever they are referenced
    """
    path = {id(obj) for obj in exclude}
    result = _plain(value, path, 0)
    return None if result is _SKIP else result


def _plain(value: Any, path: set[int], depth: int) -> Any:
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else _SKIP
    if isinstance(value, BaseModel):
        return value.model_dump(mode='json', by_alias=True)
    if id(value) in path or depth > MAX_PLAIN_DEPTH:
        return _SKIP

    if isinstance(value, Mapping):
        items = value.items()
    elif isinstance(value, (list, tuple)):
        items = None
    elif callable(value) or not hasattr(value, '__dict__'):
        return _SKIP
    else:
        items = ((k, v) for k, v in vars(value).items() if not k.startswith('_'))

    path.add(id(value))
    try:
        if items is None:
            converted = (_plain(item, path, depth + 1) for item in value)
            return [v for v in converted if v is not _SKIP]
        return _plain_items(items, path, depth + 1)
    finally:
        path.discard(id(value))


def _plain_items(items: Any, path: set[int], depth: int) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, item in items:
        if not isinstance(key, (str, int)) or isinstance(key, bool):
            continue
        converted = _plain(item, path, depth)
        if converted is not _SKIP:
            result[str(key) if not isinstance(key, str) else key] = converted
    return result
