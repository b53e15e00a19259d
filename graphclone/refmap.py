# graphclone/refmap.py
from __future__ import annotations

from typing import Any, Dict, Iterator, List

from .errors import DuplicateRegistrationError

__all__ = ["ReferenceMap", "VisitedSet"]


class ReferenceMap:
    """
    Identity-keyed mapping from an original node to its clone.

    Populated by the copier as each clone shell is created, before the copier
    descends into that node's children. Over one clone operation the mapping
    is a partial injective function: one clone per original, never shared.

    Both the originals and the clones are held strongly so that no ``id()``
    can be recycled while the operation is running.
    """

    __slots__ = ("_clones", "_originals", "_clone_ids")

    def __init__(self) -> None:
        self._clones: Dict[int, Any] = {}
        self._originals: Dict[int, Any] = {}
        self._clone_ids: set[int] = set()

    def register(self, original: Any, clone: Any) -> None:
        oid = id(original)
        if oid in self._clones:
            raise DuplicateRegistrationError(
                f"original {type(original).__qualname__} at 0x{oid:x} is already registered"
            )
        if id(clone) in self._clone_ids:
            raise DuplicateRegistrationError(
                f"clone {type(clone).__qualname__} at 0x{id(clone):x} already stands for another original"
            )
        self._clones[oid] = clone
        self._originals[oid] = original
        self._clone_ids.add(id(clone))

    def has(self, node: Any) -> bool:
        return id(node) in self._clones

    __contains__ = has

    def get(self, node: Any, default: Any = None) -> Any:
        return self._clones.get(id(node), default)

    def __getitem__(self, node: Any) -> Any:
        try:
            return self._clones[id(node)]
        except KeyError:
            raise KeyError(f"{type(node).__qualname__} at 0x{id(node):x} has no clone") from None

    def is_clone(self, node: Any) -> bool:
        return id(node) in self._clone_ids

    def clones(self) -> List[Any]:
        return list(self._clones.values())

    def originals(self) -> List[Any]:
        return list(self._originals.values())

    def __len__(self) -> int:
        return len(self._clones)

    def __repr__(self) -> str:
        return f"ReferenceMap(<{len(self)} node(s)>)"


class VisitedSet:
    """Identity-keyed set of clone containers already repaired by the resolver."""

    __slots__ = ("_nodes",)

    def __init__(self) -> None:
        self._nodes: Dict[int, Any] = {}

    def add(self, node: Any) -> None:
        self._nodes[id(node)] = node

    def __contains__(self, node: Any) -> bool:
        return id(node) in self._nodes

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"VisitedSet(<{len(self)} node(s)>)"
