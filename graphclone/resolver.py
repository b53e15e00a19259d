# graphclone/resolver.py
from __future__ import annotations

import logging
from typing import Any

from .containers import is_container, set_entry, snapshot_entries
from .refmap import ReferenceMap, VisitedSet

__all__ = ["resolve"]

_log = logging.getLogger("graphclone.resolver")


def resolve(container: Any, reference_map: ReferenceMap, visited: VisitedSet) -> None:
    """
    Repair a freshly produced clone in place.

    Any entry of `container` that still points at an *original* node (a key of
    `reference_map`) is rewritten to that node's clone. Entries holding clone
    containers are descended into, each at most once: `visited` records which
    clones have already been (or are being) repaired.

    Preconditions
    -------------
    - `container` is a clone already registered in `reference_map` by the caller.
    - Nodes that are keys of `reference_map` are repaired by the copier itself;
      they are redirected here but never descended into.

    Notes
    -----
    - Entries are snapshotted before any rewrite.
    - Never mutates `reference_map` or any original node.
    - Raises `NotAContainerError` if `container` is not a container.
    """
    for key, value in snapshot_entries(container):
        if not is_container(value):
            continue

        if value in reference_map:
            replacement = reference_map[value]
            set_entry(container, key, replacement)
            _log.debug(
                "redirected %s[%r] from original 0x%x to clone 0x%x",
                type(container).__qualname__, key, id(value), id(replacement),
            )
            continue

        if value in visited:
            continue
        visited.add(value)
        resolve(value, reference_map, visited)
