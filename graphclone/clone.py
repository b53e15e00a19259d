# graphclone/clone.py
from __future__ import annotations

import logging
import sys
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from .config import CloneOptions
from .containers import instance_state, is_atomic, is_buffer, is_container, is_shell, set_entry
from .refmap import ReferenceMap, VisitedSet
from .resolver import resolve

__all__ = ["CloneResult", "clone_with_state", "deep_clone"]

_log = logging.getLogger("graphclone.clone")


@dataclass
class CloneResult:
    """Outcome of one clone operation, kept for inspection and tests."""
    clone: Any
    reference_map: ReferenceMap
    visited: VisitedSet
    containers_cloned: int = 0
    stale_refs_left: int = 0  # back references handed to the resolver


@contextmanager
def _recursion_floor(limit: int) -> Iterator[None]:
    old = sys.getrecursionlimit()
    if limit > old:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(old)


def _empty_builtin(cls: type) -> Any:
    """Empty instance of a dict/list subclass (OrderedDict, Counter, ...)."""
    try:
        return cls()
    except TypeError:
        # constructor wants arguments; skip __init__
        return cls.__new__(cls)


class _Copier:
    """
    Depth-first structural copier.

    Every container clone is registered in the reference map *before* its
    children are copied. A child that turns out to be an already registered
    original is left in place (a stale reference) when
    `leave_back_references` is on; the resolver redirects it afterwards.

    Under an immutable shell (tuple/set/frozenset) the copier always stores
    clones directly, because the resolver never descends into shells.
    """

    def __init__(self, options: CloneOptions, reference_map: ReferenceMap) -> None:
        self.options = options
        self.refs = reference_map
        self.containers_cloned = 0
        self.stale_refs_left = 0

    def copy(self, obj: Any, *, direct: bool = False) -> Any:
        if is_atomic(obj):
            return obj

        if obj in self.refs:
            clone = self.refs[obj]
            if not direct and self.options.leave_back_references and is_container(obj) and clone is not obj:
                self.stale_refs_left += 1
                return obj
            return clone

        if is_buffer(obj):
            return self._copy_buffer(obj)
        if is_shell(obj):
            return self._copy_shell(obj)
        if isinstance(obj, dict):
            return self._copy_dict(obj, direct)
        if isinstance(obj, list):
            return self._copy_list(obj, direct)
        if isinstance(obj, deque):
            return self._copy_deque(obj, direct)
        if is_container(obj):
            return self._copy_instance(obj, direct)

        _log.debug("sharing %s: no copyable state", type(obj).__qualname__)
        return obj

    def _register(self, obj: Any, clone: Any) -> None:
        self.refs.register(obj, clone)
        self.containers_cloned += 1

    def _copy_dict(self, obj: dict, direct: bool) -> dict:
        cls = type(obj)
        clone = {} if cls is dict else _empty_builtin(cls)
        self._register(obj, clone)
        for k, v in obj.items():
            clone[k] = self.copy(v, direct=direct)
        return clone

    def _copy_list(self, obj: list, direct: bool) -> list:
        cls = type(obj)
        clone = [] if cls is list else _empty_builtin(cls)
        self._register(obj, clone)
        for item in obj:
            clone.append(self.copy(item, direct=direct))
        return clone

    def _copy_deque(self, obj: deque, direct: bool) -> deque:
        cls = type(obj)
        clone = cls.__new__(cls)
        deque.__init__(clone, (), obj.maxlen)
        self._register(obj, clone)
        for item in obj:
            clone.append(self.copy(item, direct=direct))
        return clone

    def _copy_instance(self, obj: Any, direct: bool) -> Any:
        cls = type(obj)
        try:
            clone = cls.__new__(cls)
        except TypeError as exc:
            _log.warning("sharing %s: cannot allocate a bare instance (%s)", cls.__qualname__, exc)
            # maps to itself: the resolver redirects to it and never descends
            self.refs.register(obj, obj)
            return obj
        self._register(obj, clone)
        for name, value in instance_state(obj):
            set_entry(clone, name, self.copy(value, direct=direct))
        return clone

    def _copy_buffer(self, obj: Any) -> Any:
        cls = type(obj)
        clone = cls(obj.typecode, obj) if hasattr(obj, "typecode") else cls(obj)
        self.refs.register(obj, clone)
        return clone

    def _copy_shell(self, obj: Any) -> Any:
        items = [self.copy(x, direct=True) for x in obj]
        # a cycle through a mutable child may have produced the clone already
        if obj in self.refs:
            return self.refs[obj]

        cls = type(obj)
        if cls in (tuple, frozenset) and all(a is b for a, b in zip(items, obj)):
            clone = obj
        elif hasattr(cls, "_make"):
            clone = cls._make(items)
        else:
            clone = cls(items)
        self.refs.register(obj, clone)
        return clone


def clone_with_state(obj: Any, *, options: Optional[CloneOptions] = None) -> CloneResult:
    """
    Deep-clone `obj` and return the clone with the bookkeeping that produced it.

    Pipeline
    --------
    1) Structural copy: every container is duplicated and registered in a
       fresh `ReferenceMap` before its children are copied.
    2) Repair: the root clone is marked visited and `resolve` redirects every
       back reference the copier left behind.

    Both the map and the visited set belong to this call only.
    """
    opts = options or CloneOptions()
    refs = ReferenceMap()
    visited = VisitedSet()
    copier = _Copier(opts, refs)

    with _recursion_floor(opts.recursion_limit):
        root = copier.copy(obj)
        if is_container(root) and root is not obj:
            visited.add(root)
            resolve(root, refs, visited)

    _log.debug(
        "cloned %s: %d container(s), %d back reference(s) redirected, %d visited",
        type(obj).__qualname__, copier.containers_cloned, copier.stale_refs_left, len(visited),
    )
    return CloneResult(
        clone=root,
        reference_map=refs,
        visited=visited,
        containers_cloned=copier.containers_cloned,
        stale_refs_left=copier.stale_refs_left,
    )


def deep_clone(obj: Any, *, options: Optional[CloneOptions] = None) -> Any:
    """
    Return an independent copy of `obj` that reproduces its cycles and its
    aliasing: a node reachable through several paths is cloned once, and
    self-references point at the clone, never at the original.

    Atomic values (numbers, strings, functions, classes, enum members...) are
    shared. The original graph is never mutated.
    """
    return clone_with_state(obj, options=options).clone
