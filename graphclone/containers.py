# graphclone/containers.py
"""
Python container model used by the copier and the cycle resolver.

A *container* is a mutable node whose entries can be enumerated as
``(key, value)`` pairs and rewritten one at a time:

- ``dict``   -> ``(key, value)`` items; keys themselves are never rewritten
- ``list``   -> ``(index, item)``; ``collections.deque`` likewise
- instances  -> ``(attribute_name, value)`` from ``__dict__`` and ``__slots__``

Tuples, sets and frozensets are *shells*: immutable, rebuilt by the copier,
never rewritten in place. ``bytearray`` and ``array.array`` are *buffers*:
mutable, but holding only atomic items, so they are copied by value.
Everything else is atomic and shared as-is.
"""
from __future__ import annotations

import array
import collections
import datetime
import decimal
import enum
import fractions
import pathlib
import re
import types
import uuid
from typing import Any, Iterator, List, Tuple

from .errors import NotAContainerError

__all__ = [
    "is_atomic",
    "is_shell",
    "is_buffer",
    "is_container",
    "iter_slot_names",
    "instance_state",
    "snapshot_entries",
    "set_entry",
]

_ATOMIC_TYPES = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    range,
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.CodeType,
    enum.Enum,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    decimal.Decimal,
    fractions.Fraction,
    pathlib.PurePath,
    uuid.UUID,
    re.Pattern,
)

_SHELL_TYPES = (tuple, set, frozenset)
_BUFFER_TYPES = (bytearray, array.array)
_INDEXED_TYPES = (list, collections.deque)


def is_atomic(x: Any) -> bool:
    return x is Ellipsis or x is NotImplemented or isinstance(x, _ATOMIC_TYPES)


def is_shell(x: Any) -> bool:
    return isinstance(x, _SHELL_TYPES)


def is_buffer(x: Any) -> bool:
    return isinstance(x, _BUFFER_TYPES)


def iter_slot_names(cls: type) -> Iterator[str]:
    """Yield every slot declared along the MRO of `cls` (once each)."""
    seen: set[str] = set()
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__") or name in seen:
                continue
            seen.add(name)
            yield name


def _has_instance_state(x: Any) -> bool:
    return hasattr(x, "__dict__") or any(True for _ in iter_slot_names(type(x)))


def is_container(x: Any) -> bool:
    if isinstance(x, (dict, *_INDEXED_TYPES)):
        return True
    if is_atomic(x) or is_shell(x) or is_buffer(x):
        return False
    return _has_instance_state(x)


def instance_state(obj: Any) -> List[Tuple[str, Any]]:
    """
    Attribute entries of a plain instance: ``__dict__`` first (insertion
    order), then slots that are set and not shadowed by the dict.
    """
    attrs: List[Tuple[str, Any]] = []
    names: set[str] = set()
    d = getattr(obj, "__dict__", None)
    if isinstance(d, dict):
        for k, v in d.items():
            attrs.append((k, v))
            names.add(k)
    for name in iter_slot_names(type(obj)):
        if name in names:
            continue
        try:
            attrs.append((name, object.__getattribute__(obj, name)))
        except AttributeError:
            # unset slot
            pass
    return attrs


def snapshot_entries(container: Any) -> List[Tuple[Any, Any]]:
    """
    Return the entries of `container` as a fixed list.

    The list is materialized before the caller starts rewriting, so in-place
    updates through `set_entry` never change which entries remain pending.

    Raises
    ------
    NotAContainerError
        If `container` is not a dict, a list, a deque or an instance with state.
    """
    if isinstance(container, dict):
        return list(container.items())
    if isinstance(container, _INDEXED_TYPES):
        return list(enumerate(container))
    if not is_container(container):
        raise NotAContainerError(
            f"expected a container, got {type(container).__qualname__}: {container!r}"
        )
    return instance_state(container)


def set_entry(container: Any, key: Any, value: Any) -> None:
    """
    Rewrite (or add) one entry of `container` in place.

    Instance attributes go straight to ``__dict__`` or through
    ``object.__setattr__`` for slots, so frozen dataclasses and custom
    ``__setattr__`` hooks do not interfere.
    """
    if isinstance(container, (dict, *_INDEXED_TYPES)):
        container[key] = value
        return
    if not is_container(container):
        raise NotAContainerError(
            f"cannot set entry {key!r} on non-container {type(container).__qualname__}"
        )
    d = getattr(container, "__dict__", None)
    if isinstance(d, dict) and (key in d or key not in set(iter_slot_names(type(container)))):
        d[key] = value
    else:
        object.__setattr__(container, key, value)
