"""Dependency graph and installation ordering.

Edges point from a package to what it depends on. Cycles are legal input: the
ordering condenses each strongly connected component into one unit, orders the
units so that dependencies come first, and lays out the members of a cyclic
unit in insertion order. Every edge that is not part of a cycle is therefore
respected; edges inside a cycle cannot all be, and the run proceeds anyway.
"""

import heapq
import logging
from typing import Iterable

from .models import InstallationOrder, Package

_logging = logging.getLogger(__name__)


class DependencyGraph:
    """Directed graph keyed by package name, remembering insertion order."""

    def __init__(self):
        self._index: dict[str, int] = {}
        self._deps: dict[str, list[str]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._index)

    @property
    def nodes(self) -> list[str]:
        return list(self._index)

    def add_node(self, name: str) -> None:
        if name not in self._index:
            self._index[name] = len(self._index)
            self._deps[name] = []

    def add_edge(self, dependent: str, dependency: str) -> None:
        """Record that dependent depends on dependency. Self-edges are dropped."""
        self.add_node(dependent)
        self.add_node(dependency)
        if dependent == dependency:
            return
        if dependency not in self._deps[dependent]:
            self._deps[dependent].append(dependency)

    def add_package(self, package: Package) -> None:
        self.add_node(package.name)
        for dep in package.depends:
            self.add_edge(package.name, dep)

    def dependencies_of(self, name: str) -> list[str]:
        return list(self._deps.get(name, []))

    def edges(self) -> list[tuple[str, str]]:
        return [(a, b) for a in self._index for b in self._deps[a]]

    @classmethod
    def from_packages(cls, packages: Iterable[Package]) -> "DependencyGraph":
        graph = cls()
        for package in packages:
            graph.add_package(package)
        return graph

    def strongly_connected_components(self) -> list[list[str]]:
        """Tarjan's algorithm, iterative so deep chains cannot hit the recursion limit.

        Members of each component are returned in insertion order.
        """
        index_of: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        on_stack: set[str] = set()
        stack: list[str] = []
        components: list[list[str]] = []
        counter = 0

        for start in self._index:
            if start in index_of:
                continue
            work = [(start, iter(self._deps[start]))]
            index_of[start] = lowlink[start] = counter
            counter += 1
            stack.append(start)
            on_stack.add(start)

            while work:
                node, children = work[-1]
                advanced = False
                for child in children:
                    if child not in index_of:
                        index_of[child] = lowlink[child] = counter
                        counter += 1
                        stack.append(child)
                        on_stack.add(child)
                        work.append((child, iter(self._deps[child])))
                        advanced = True
                        break
                    if child in on_stack:
                        lowlink[node] = min(lowlink[node], index_of[child])
                if advanced:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])

                if lowlink[node] == index_of[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    component.sort(key=self._index.__getitem__)
                    components.append(component)

        return components

    def topological_order(self) -> InstallationOrder:
        """Order nodes so that every dependency precedes its dependents.

        Ties are broken by insertion order (the smallest first-seen index of a
        component wins), so the result is deterministic for a given input.
        """
        components = self.strongly_connected_components()
        component_of: dict[str, int] = {}
        for cid, members in enumerate(components):
            for member in members:
                component_of[member] = cid

        # pending[c] = number of distinct components c still waits on
        waits_on: dict[int, set[int]] = {cid: set() for cid in range(len(components))}
        dependents: dict[int, set[int]] = {cid: set() for cid in range(len(components))}
        for a, b in self.edges():
            ca, cb = component_of[a], component_of[b]
            if ca != cb:
                waits_on[ca].add(cb)
                dependents[cb].add(ca)

        def rank(cid: int) -> int:
            return self._index[components[cid][0]]

        pending = {cid: len(deps) for cid, deps in waits_on.items()}
        ready = [(rank(cid), cid) for cid, count in pending.items() if count == 0]
        heapq.heapify(ready)

        ordered: list[str] = []
        cycles: list[list[str]] = []
        while ready:
            _, cid = heapq.heappop(ready)
            members = components[cid]
            if len(members) > 1:
                cycles.append(list(members))
                _logging.warning(
                    f"Dependency cycle among {', '.join(members)}; "
                    "installing in discovery order"
                )
            ordered.extend(members)
            for dependent in dependents[cid]:
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    heapq.heappush(ready, (rank(dependent), dependent))

        return InstallationOrder(packages=ordered, cycles=cycles)


__all__ = [
    "DependencyGraph",
]
