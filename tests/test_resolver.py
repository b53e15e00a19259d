# tests/test_resolver.py
from __future__ import annotations

from collections import Counter as _Counter

import pytest

import graphclone.resolver as resolver_mod
from graphclone.containers import snapshot_entries
from graphclone.errors import NotAContainerError
from graphclone.refmap import ReferenceMap, VisitedSet
from graphclone.resolver import resolve


# --- Helpers ------------------------------------------------------------------

class CountingVisitedSet(VisitedSet):
    """VisitedSet that records how many times each node was marked."""

    def __init__(self) -> None:
        super().__init__()
        self.marks: _Counter = _Counter()

    def add(self, node) -> None:
        self.marks[id(node)] += 1
        super().add(node)


class Node:
    def __init__(self, name: str) -> None:
        self.name = name
        self.next = None
        self.prev = None


class Pair:
    __slots__ = ("left", "right")


# --- Cycle fidelity -----------------------------------------------------------

def test_self_loop_is_redirected_to_clone():
    a = {"x": 1}
    a["loop"] = a

    # what a copier leaves behind: the back edge still targets the original
    a2 = {"x": 1, "loop": a}
    refs = ReferenceMap()
    refs.register(a, a2)

    resolve(a2, refs, VisitedSet())

    assert a2["loop"] is a2
    assert a2 is not a
    assert a2["x"] == 1
    # original untouched
    assert a["loop"] is a


def test_mutual_references_are_repaired():
    a = {"name": "a"}
    b = {"name": "b"}
    a["next"] = b
    b["prev"] = a

    a2 = {"name": "a"}
    b2 = {"name": "b", "prev": a}  # stale
    a2["next"] = b2
    refs = ReferenceMap()
    refs.register(a, a2)
    refs.register(b, b2)

    visited = VisitedSet()
    visited.add(a2)
    resolve(a2, refs, visited)

    assert a2["next"] is b2
    assert b2["prev"] is a2
    assert b2 in visited
    assert b["prev"] is a and a["next"] is b


def test_object_attributes_and_slots_are_repaired():
    n = Node("n")
    n.next = n
    p = Pair()
    p.left = n
    p.right = n

    n2 = Node("n")
    n2.next = n  # stale
    p2 = Pair()
    p2.left = n2
    p2.right = n  # stale
    refs = ReferenceMap()
    refs.register(p, p2)
    refs.register(n, n2)

    resolve(p2, refs, VisitedSet())

    assert p2.left is n2 and p2.right is n2
    assert n2.next is n2
    assert n.next is n


# --- Shared references --------------------------------------------------------

def test_shared_reference_points_to_single_clone():
    shared = {"v": 9}
    root = {"p": shared, "q": shared}

    shared2 = {"v": 9}
    root2 = {"p": shared2, "q": shared}  # second edge left stale
    refs = ReferenceMap()
    refs.register(root, root2)
    refs.register(shared, shared2)

    resolve(root2, refs, VisitedSet())

    assert root2["p"] is root2["q"]
    assert root2["p"] is not shared
    assert root["p"] is root["q"] is shared


def test_list_with_repeated_stale_entries():
    a = [1]
    a2 = [1]
    holder2 = [a, "s", a, 3.5, a]
    refs = ReferenceMap()
    refs.register(a, a2)
    refs.register(object(), holder2)

    resolve(holder2, refs, VisitedSet())

    assert holder2 == [a2, "s", a2, 3.5, a2]
    assert all(holder2[i] is a2 for i in (0, 2, 4))


# --- Primitives ---------------------------------------------------------------

def test_non_container_values_are_left_untouched():
    tup = (1, 2)
    fn = len
    c = {"n": 42, "s": "text", "none": None, "t": tup, "f": 1.5, "fn": fn, "b": b"raw"}
    before = dict(c)

    resolve(c, ReferenceMap(), VisitedSet())

    assert c == before
    assert c["t"] is tup and c["fn"] is fn


def test_non_container_argument_is_a_contract_violation():
    with pytest.raises(NotAContainerError):
        resolve(42, ReferenceMap(), VisitedSet())
    with pytest.raises(TypeError):
        resolve("abc", ReferenceMap(), VisitedSet())


# --- Visit-once ---------------------------------------------------------------

def test_container_with_many_incoming_edges_is_visited_once():
    hub2 = {"v": 1}
    inner2 = {"hub": hub2}
    root2 = {"a": hub2, "b": hub2, "c": [hub2, hub2], "d": inner2, "e": inner2}

    visited = CountingVisitedSet()
    resolve(root2, ReferenceMap(), visited)

    assert visited.marks[id(hub2)] == 1
    assert visited.marks[id(inner2)] == 1
    assert visited.marks[id(root2["c"])] == 1
    assert len(visited) == 3


def test_each_container_is_enumerated_once(monkeypatch):
    calls: _Counter = _Counter()
    real = resolver_mod.snapshot_entries

    def counting(container):
        calls[id(container)] += 1
        return real(container)

    monkeypatch.setattr(resolver_mod, "snapshot_entries", counting)

    a2 = {"name": "a"}
    b2 = {"name": "b"}
    a2["b"] = b2
    b2["a"] = a2
    b2["self"] = b2
    root2 = [a2, b2, a2, b2]

    resolve(root2, ReferenceMap(), VisitedSet())

    assert calls[id(root2)] == 1
    assert calls[id(a2)] == 1
    assert calls[id(b2)] == 1


def test_redirected_nodes_are_not_descended_into():
    child = {"deep": None}
    child2 = {"deep": None}
    parent2 = {"c": child}  # stale
    refs = ReferenceMap()
    refs.register(child, child2)

    visited = CountingVisitedSet()
    resolve(parent2, refs, visited)

    assert parent2["c"] is child2
    assert child2 not in visited
    assert len(visited) == 0


def test_mid_iteration_rewrites_do_not_affect_pending_entries():
    a = {"k": 0}
    a2 = {"k": 0}
    container = {"first": a, "second": a, "third": a}
    refs = ReferenceMap()
    refs.register(a, a2)

    entries_before = [k for k, _ in snapshot_entries(container)]
    resolve(container, refs, VisitedSet())

    assert list(container) == entries_before
    assert all(v is a2 for v in container.values())


# --- Map / originals are read-only --------------------------------------------

def test_reference_map_and_originals_are_not_mutated():
    a = {"x": 1}
    a["loop"] = a
    a2 = {"x": 1, "loop": a}
    refs = ReferenceMap()
    refs.register(a, a2)
    snapshot = {"x": 1, "loop": a}

    resolve(a2, refs, VisitedSet())

    assert len(refs) == 1
    assert refs[a] is a2
    assert a.keys() == snapshot.keys() and a["loop"] is a


# --- Idempotence --------------------------------------------------------------

def test_second_pass_with_fresh_visited_set_is_a_noop():
    a = {"name": "a"}
    b = {"name": "b"}
    a["next"] = b
    b["prev"] = a
    a["self"] = a

    a2 = {"name": "a", "self": a}
    b2 = {"name": "b", "prev": a}
    a2["next"] = b2
    refs = ReferenceMap()
    refs.register(a, a2)
    refs.register(b, b2)

    resolve(a2, refs, VisitedSet())
    first = {id(n): [(k, v) for k, v in snapshot_entries(n)] for n in (a2, b2)}

    resolve(a2, refs, VisitedSet())
    second = {id(n): [(k, v) for k, v in snapshot_entries(n)] for n in (a2, b2)}

    for nid, entries in first.items():
        assert [k for k, _ in entries] == [k for k, _ in second[nid]]
        assert all(v1 is v2 for (_, v1), (_, v2) in zip(entries, second[nid]))
