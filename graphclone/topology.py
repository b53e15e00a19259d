# graphclone/topology.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .containers import is_container, is_shell, snapshot_entries
from .errors import TopologyMismatch

__all__ = ["TopologyReport", "compare_topology", "assert_isomorphic"]


@dataclass
class TopologyReport:
    """
    Result of walking an (original, clone) pair in lockstep.

    - `stale`: JSONPaths where the clone still holds an original container.
    - `alias_breaks`: JSONPaths where one original maps to two clones, or two
      originals collapse onto the same clone.
    - `shape`: JSONPaths (with a short reason) where types, keys, lengths or
      atomic values differ.
    """
    stale: List[str] = field(default_factory=list)
    alias_breaks: List[str] = field(default_factory=list)
    shape: List[str] = field(default_factory=list)
    nodes: int = 0

    @property
    def ok(self) -> bool:
        return not (self.stale or self.alias_breaks or self.shape)

    def problems(self) -> List[Tuple[str, str]]:
        return (
            [("stale", p) for p in self.stale]
            + [("alias", p) for p in self.alias_breaks]
            + [("shape", p) for p in self.shape]
        )

    def render(self) -> str:
        lines = [f"nodes compared : {self.nodes}"]
        lines.append(f"stale refs     : {len(self.stale)}")
        lines.append(f"alias breaks   : {len(self.alias_breaks)}")
        lines.append(f"shape problems : {len(self.shape)}")
        for kind, path in self.problems():
            lines.append(f"  - {kind}: {path}")
        lines.append("OK" if self.ok else "MISMATCH")
        return "\n".join(lines)


def _child_path(path: str, parent: Any, key: Any) -> str:
    if isinstance(parent, (list, tuple, deque)):
        return f"{path}[{key}]"
    if isinstance(key, str) and key.isidentifier():
        return f"{path}.{key}"
    return f"{path}[{key!r}]"


def _same_atom(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    try:
        return bool(a == b)
    except Exception:
        # e.g. element-wise __eq__ returning an array
        return False


def _children(o: Any, c: Any, path: str, report: TopologyReport) -> List[Tuple[Any, Any, str]]:
    """Pair up the entries of `o` and `c`; records a shape problem on mismatch."""
    if isinstance(o, (set, frozenset)):
        # unordered: only sizes can be paired without a canonical order
        if len(o) != len(c):
            report.shape.append(f"{path}: {len(o)} element(s) vs {len(c)}")
        return []
    if isinstance(o, tuple):
        if len(o) != len(c):
            report.shape.append(f"{path}: length {len(o)} vs {len(c)}")
            return []
        return [(a, b, f"{path}[{i}]") for i, (a, b) in enumerate(zip(o, c))]

    o_entries = snapshot_entries(o)
    c_entries = dict(snapshot_entries(c))
    o_keys = [k for k, _ in o_entries]
    if isinstance(o, list):
        if len(o) != len(c):
            report.shape.append(f"{path}: length {len(o)} vs {len(c)}")
            return []
    elif set(o_keys) != set(c_entries):
        missing = sorted(map(repr, set(o_keys) - set(c_entries)))
        extra = sorted(map(repr, set(c_entries) - set(o_keys)))
        report.shape.append(f"{path}: keys differ (missing={missing}, extra={extra})")
        return []
    return [(v, c_entries[k], _child_path(path, o, k)) for k, v in o_entries]


def compare_topology(original: Any, clone: Any) -> TopologyReport:
    """
    Walk `original` and `clone` side by side and report where the clone fails
    to reproduce the original's shape, cycles or aliasing.

    The walk is iterative and visits every original node once, so it
    terminates on cyclic graphs. Atomic values must be equal (shared objects
    pass trivially); set elements are compared by count only.
    """
    report = TopologyReport()
    forward: Dict[int, Any] = {}    # id(original node) -> clone node
    backward: Dict[int, Any] = {}   # id(clone node) -> original node
    clone_paths: Dict[int, str] = {}
    originals: Dict[int, Any] = {}

    stack: List[Tuple[Any, Any, str]] = [(original, clone, "$")]
    while stack:
        o, c, path = stack.pop()

        if not (is_container(o) or is_shell(o)):
            if not _same_atom(o, c):
                report.shape.append(f"{path}: {o!r} != {c!r}")
            continue
        if type(o) is not type(c):
            report.shape.append(f"{path}: {type(o).__qualname__} vs {type(c).__qualname__}")
            continue

        if is_container(c) and (c is o or originals.get(id(c)) is c):
            report.stale.append(path)
            continue
        if id(o) in forward:
            if forward[id(o)] is not c:
                report.alias_breaks.append(path)
            continue
        if id(c) in backward and backward[id(c)] is not o:
            report.alias_breaks.append(path)
            continue

        forward[id(o)] = c
        backward[id(c)] = o
        originals[id(o)] = o
        clone_paths[id(c)] = path
        report.nodes += 1
        stack.extend(reversed(_children(o, c, path, report)))

    # clones that turned out to be original containers met later in the walk
    for cid, path in clone_paths.items():
        node = originals.get(cid)
        if node is not None and is_container(node) and path not in report.stale:
            report.stale.append(path)

    return report


def assert_isomorphic(original: Any, clone: Any) -> TopologyReport:
    """
    Like `compare_topology`, but raise `TopologyMismatch` when the report is
    not ok. Returns the report otherwise.
    """
    report = compare_topology(original, clone)
    if not report.ok:
        raise TopologyMismatch(problems=report.problems())
    return report
