"""Partition fixes into classes of mutually reachable, compatible fixes."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from wifiverify.fix import Fix

# Assumed maximum physical range of a wifi signal, meters.
MAX_WIFI_RADIUS = 500.0

FixClass = tuple[Fix, ...]


def compatible(a: Fix, b: Fix, radius: float = MAX_WIFI_RADIUS) -> bool:
    """True when the uncertainty disks of a and b, inflated by radius, overlap."""
    return a.distance_to(b) - a.accuracy - b.accuracy - radius < 0


class _DisjointSet:
    """Union-find over fix indices with path compression and union by size."""

    def __init__(self, n: int) -> None:
        self._parent = list(range(n))
        self._size = [1] * n

    def find(self, i: int) -> int:
        root = i
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[i] != root:
            self._parent[i], i = root, self._parent[i]
        return root

    def union(self, i: int, j: int) -> None:
        ri, rj = self.find(i), self.find(j)
        if ri == rj:
            return
        if self._size[ri] < self._size[rj]:
            ri, rj = rj, ri
        self._parent[rj] = ri
        self._size[ri] += self._size[rj]


def cluster(fixes: Iterable[Fix], radius: float = MAX_WIFI_RADIUS) -> list[FixClass]:
    """Connected components of the compatibility graph, largest first.

    Fixes are tracked by position, so repeated samples with equal values stay
    distinct members. Ties in size keep the order in which each class's first
    member appeared in the input.
    """
    items = list(fixes)
    n = len(items)
    components = _DisjointSet(n)
    for i in range(n):
        for j in range(i + 1, n):
            if components.find(i) == components.find(j):
                continue
            if compatible(items[i], items[j], radius):
                components.union(i, j)

    members: dict[int, list[int]] = {}
    for i in range(n):
        members.setdefault(components.find(i), []).append(i)

    groups = sorted(members.values(), key=lambda idx: (-len(idx), idx[0]))
    return [tuple(items[i] for i in idx) for idx in groups]


def class_sizes(classes: Sequence[FixClass]) -> list[int]:
    return [len(cls) for cls in classes]
