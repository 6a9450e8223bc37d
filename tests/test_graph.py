"""Tests for the dependency graph and installation ordering."""

from pkgporter.graph import DependencyGraph
from pkgporter.models import Package


def assert_dependencies_first(graph: DependencyGraph, order: list[str], cyclic: set[str] = frozenset()):
    position = {name: i for i, name in enumerate(order)}
    for dependent, dependency in graph.edges():
        if dependent in cyclic and dependency in cyclic:
            continue
        assert position[dependency] < position[dependent], (dependent, dependency)


class TestDependencyGraph:
    def test_self_edges_are_dropped(self):
        graph = DependencyGraph()
        graph.add_edge("foo", "foo")
        assert graph.nodes == ["foo"]
        assert graph.edges() == []

    def test_duplicate_edges_are_deduplicated(self):
        graph = DependencyGraph.from_packages([Package("foo", "1", depends=("bar", "bar"))])
        assert graph.dependencies_of("foo") == ["bar"]

    def test_unknown_dependency_becomes_node(self):
        graph = DependencyGraph.from_packages([Package("foo", "1", depends=("ghost",))])
        assert "ghost" in graph
        assert len(graph) == 2


class TestTopologicalOrder:
    def test_chain(self):
        graph = DependencyGraph.from_packages(
            [
                Package("foo", "1", depends=("bar",)),
                Package("bar", "1", depends=("baz",)),
                Package("baz", "1"),
            ]
        )
        order = graph.topological_order()
        assert order.packages == ["baz", "bar", "foo"]
        assert order.cycles == []

    def test_diamond_respects_every_edge(self):
        graph = DependencyGraph.from_packages(
            [
                Package("app", "1", depends=("left", "right")),
                Package("left", "1", depends=("base",)),
                Package("right", "1", depends=("base",)),
                Package("base", "1"),
            ]
        )
        order = graph.topological_order().packages
        assert order[0] == "base"
        assert order[-1] == "app"
        assert_dependencies_first(graph, order)

    def test_ties_follow_insertion_order(self):
        graph = DependencyGraph()
        for name in ("zeta", "alpha", "mid"):
            graph.add_node(name)
        assert graph.topological_order().packages == ["zeta", "alpha", "mid"]

    def test_cycle_does_not_fail_and_is_reported(self):
        graph = DependencyGraph.from_packages(
            [
                Package("a", "1", depends=("b",)),
                Package("b", "1", depends=("a", "c")),
                Package("c", "1"),
            ]
        )
        order = graph.topological_order()
        assert sorted(order.packages) == ["a", "b", "c"]
        assert order.cycles == [["a", "b"]]
        assert order.position("c") < order.position("a")
        assert_dependencies_first(graph, order.packages, cyclic={"a", "b"})

    def test_dependents_of_a_cycle_come_after_it(self):
        graph = DependencyGraph.from_packages(
            [
                Package("root", "1", depends=("x",)),
                Package("x", "1", depends=("y",)),
                Package("y", "1", depends=("x",)),
            ]
        )
        order = graph.topological_order().packages
        assert order[-1] == "root"

    def test_long_chain_does_not_recurse(self):
        graph = DependencyGraph()
        for i in range(5000):
            graph.add_edge(f"p{i}", f"p{i + 1}")
        order = graph.topological_order().packages
        assert order[0] == "p5000"
        assert order[-1] == "p0"


class TestStronglyConnectedComponents:
    def test_components_in_insertion_order(self):
        graph = DependencyGraph()
        graph.add_edge("c", "a")
        graph.add_edge("a", "b")
        graph.add_edge("b", "c")
        graph.add_node("lonely")
        components = graph.strongly_connected_components()
        assert ["c", "a", "b"] in components
        assert ["lonely"] in components
