"""Tests for the Graph class and its layered sort."""

import itertools
import random

import pytest

from src.applyorder.dependency.graph import Edge, Graph
from src.applyorder.dependency.ordering import sorted_layers
from src.applyorder.models.identity import ObjMetadata
from src.applyorder.utils.exceptions import CyclicDependencyError, GraphConsumedError


def meta(name: str, kind: str = "ConfigMap", namespace: str = "default") -> ObjMetadata:
    return ObjMetadata(group="", kind=kind, namespace=namespace, name=name)


A, B, C, D, X, Y, Z = (meta(n) for n in "ABCDXYZ")


class TestGraphConstruction:
    """Test vertex and edge insertion."""

    def test_empty_graph(self):
        """A new graph has no vertices or edges."""
        graph = Graph()

        assert graph.size() == 0
        assert len(graph) == 0
        assert graph.get_vertices() == []
        assert graph.get_edges() == []

    def test_add_vertex(self):
        """Adding a vertex creates it with no dependencies."""
        graph = Graph()
        graph.add_vertex(A)

        assert graph.size() == 1
        assert A in graph
        assert graph.get_edges() == []

    def test_add_vertex_twice_keeps_edges(self):
        """Re-adding a vertex does not reset its dependency list."""
        graph = Graph()
        graph.add_edge(A, B)
        graph.add_vertex(A)

        assert graph.get_edges() == [Edge(A, B)]
        assert graph.size() == 2

    def test_add_edge_adds_both_endpoints(self):
        """Both endpoints of a new edge become vertices."""
        graph = Graph()
        graph.add_edge(A, B)

        assert graph.get_vertices() == [A, B]
        assert graph.get_edges() == [Edge(from_=A, to=B)]

    def test_add_edge_is_idempotent(self):
        """Adding the same edge twice keeps a single edge."""
        graph = Graph()
        graph.add_edge(A, B)
        graph.add_edge(A, B)

        assert graph.get_edges() == [Edge(A, B)]
        assert graph.size() == 2

    def test_reverse_edge_is_distinct(self):
        """A->B and B->A are different edges."""
        graph = Graph()
        graph.add_edge(A, B)
        graph.add_edge(B, A)

        assert graph.get_edges() == [Edge(A, B), Edge(B, A)]

    def test_self_edge_accepted(self):
        """Self-edges are accepted at insertion time."""
        graph = Graph()
        graph.add_edge(Z, Z)

        assert graph.get_vertices() == [Z]
        assert graph.get_edges() == [Edge(Z, Z)]

    def test_is_adjacent(self):
        """_is_adjacent reports direction-sensitive adjacency."""
        graph = Graph()
        graph.add_edge(A, B)

        assert graph._is_adjacent(A, B)
        assert not graph._is_adjacent(B, A)
        assert not graph._is_adjacent(C, A)

    def test_from_edges_accepts_edges_and_tuples(self):
        """from_edges takes Edge instances and (from, to) tuples."""
        graph = Graph.from_edges(vertices=[D], edges=[Edge(A, B), (B, C)])

        assert graph.get_vertices() == [A, B, C, D]
        assert graph.get_edges() == [Edge(A, B), Edge(B, C)]

    def test_edge_str(self):
        """Edges render as namespace/name pairs."""
        assert str(Edge(A, B)) == "default/A -> default/B"


class TestDeterministicEnumeration:
    """Vertices and edges come back sorted regardless of insertion order."""

    FACTS = [(A, B), (A, C), (B, D), (C, D), (X, Y)]

    def test_vertices_sorted_by_total_order(self):
        """Vertices are sorted by group, kind, namespace, then name."""
        deploy = ObjMetadata(group="apps", kind="Deployment", namespace="ns", name="web")
        ns = ObjMetadata(group="", kind="Namespace", namespace="", name="ns")
        cm = ObjMetadata(group="", kind="ConfigMap", namespace="ns", name="cfg")
        graph = Graph()
        for v in (deploy, ns, cm):
            graph.add_vertex(v)

        assert graph.get_vertices() == [cm, ns, deploy]

    def test_repeated_calls_identical(self):
        """Repeated enumeration returns identical sequences."""
        graph = Graph.from_edges(edges=self.FACTS)

        assert graph.get_vertices() == graph.get_vertices()
        assert graph.get_edges() == graph.get_edges()

    def test_insertion_order_does_not_matter(self):
        """Every permutation of the same facts enumerates identically."""
        reference = Graph.from_edges(edges=self.FACTS)
        for permutation in itertools.permutations(self.FACTS):
            graph = Graph.from_edges(edges=permutation)
            assert graph.get_vertices() == reference.get_vertices()
            assert graph.get_edges() == reference.get_edges()

    def test_edges_sorted_by_from_then_to(self):
        """Edges sort by From, then To."""
        graph = Graph.from_edges(edges=[(B, A), (A, C), (A, B)])

        assert graph.get_edges() == [Edge(A, B), Edge(A, C), Edge(B, A)]


class TestSort:
    """Test the destructive layered sort."""

    def test_empty_graph_sorts_to_no_layers(self):
        """An empty graph yields no layers."""
        assert Graph().sort() == []

    def test_simple_chain(self, ns1, pod_b):
        """A pod depending on its namespace comes one layer later."""
        graph = Graph()
        graph.add_vertex(ns1)
        graph.add_vertex(pod_b)
        graph.add_edge(pod_b, ns1)

        layers = graph.sort()

        assert layers == [frozenset({ns1}), frozenset({pod_b})]
        assert list(reversed(layers)) == [frozenset({pod_b}), frozenset({ns1})]

    def test_diamond(self, diamond_graph, abcd):
        """B and C share a layer between D and A."""
        layers = diamond_graph.sort()

        assert layers == [
            frozenset({abcd["D"]}),
            frozenset({abcd["B"], abcd["C"]}),
            frozenset({abcd["A"]}),
        ]

    def test_independent_vertices_share_first_layer(self):
        """Vertices without edges all land in layer 0."""
        graph = Graph.from_edges(vertices=[C, A, B])

        assert graph.sort() == [frozenset({A, B, C})]

    def test_leaves_removed_as_one_batch(self):
        """A vertex freed by a leaf in this pass waits for the next pass."""
        # C -> B -> A: B only becomes a leaf after A is removed.
        graph = Graph.from_edges(edges=[(C, B), (B, A)])

        assert sorted_layers(graph.sort()) == [[A], [B], [C]]

    def test_sort_empties_graph(self, diamond_graph):
        """A successful sort leaves an empty graph behind."""
        diamond_graph.sort()

        assert diamond_graph.size() == 0

    def test_completeness_and_ordering(self):
        """Every vertex appears once and every dependency is in an earlier layer."""
        rng = random.Random(1234)
        vertices = [meta(f"r{i:02d}") for i in range(40)]
        # Edges only point to lower indices, so the graph is acyclic.
        facts = [
            (vertices[i], vertices[j])
            for i in range(len(vertices))
            for j in range(i)
            if rng.random() < 0.1
        ]
        graph = Graph.from_edges(vertices=vertices, edges=facts)

        layers = graph.sort()

        flattened = [v for layer in layers for v in layer]
        assert sorted(flattened) == sorted(vertices)
        assert len(flattened) == len(set(flattened))
        index = {v: i for i, layer in enumerate(layers) for v in layer}
        for from_, to in facts:
            assert index[to] < index[from_]

    def test_layers_independent_of_insertion_order(self):
        """Layer membership depends only on the edge set."""
        facts = [(A, B), (A, C), (B, D), (C, D), (X, D)]
        expected = Graph.from_edges(edges=facts).sort()

        for permutation in itertools.permutations(facts):
            assert Graph.from_edges(edges=permutation).sort() == expected


class TestCyclicDependency:
    """Test cycle detection and diagnostics."""

    def test_disjoint_plus_cycle(self, disjoint_cycle_graph, abcd):
        """The independent vertex resolves, then the cycle is reported."""
        a, b, c, d = abcd["A"], abcd["B"], abcd["C"], abcd["D"]

        with pytest.raises(CyclicDependencyError) as exc_info:
            disjoint_cycle_graph.sort()

        error = exc_info.value
        assert error.layers == [frozenset({d})]
        assert error.edges == [Edge(a, b), Edge(b, c), Edge(c, a)]
        assert error.vertices == [a, b, c]

    def test_pure_two_cycle(self):
        """No leaf ever exists, so no layers are returned."""
        graph = Graph.from_edges(edges=[(X, Y), (Y, X)])

        with pytest.raises(CyclicDependencyError) as exc_info:
            graph.sort()

        error = exc_info.value
        assert error.layers == []
        assert error.edges == [Edge(X, Y), Edge(Y, X)]
        assert error.vertices == [X, Y]

    def test_self_edge_reported_as_cycle(self):
        """A self-edge never resolves and names the single vertex."""
        graph = Graph()
        graph.add_edge(Z, Z)

        with pytest.raises(CyclicDependencyError) as exc_info:
            graph.sort()

        assert exc_info.value.edges == [Edge(Z, Z)]
        assert exc_info.value.vertices == [Z]

    def test_cycle_blocks_dependents(self):
        """Vertices depending on a cycle stay in the residual graph."""
        graph = Graph.from_edges(edges=[(X, Y), (Y, X), (A, X), (B, C)])

        with pytest.raises(CyclicDependencyError) as exc_info:
            graph.sort()

        error = exc_info.value
        assert sorted_layers(error.layers) == [[C], [B]]
        assert error.vertices == [A, X, Y]
        assert error.edges == [Edge(A, X), Edge(X, Y), Edge(Y, X)]

    def test_residual_graph_left_in_place(self):
        """A failed sort leaves the residual cycle readable on the graph."""
        graph = Graph.from_edges(vertices=[D], edges=[(X, Y), (Y, X)])

        with pytest.raises(CyclicDependencyError):
            graph.sort()

        assert graph.get_vertices() == [X, Y]
        assert graph.get_edges() == [Edge(X, Y), Edge(Y, X)]

    def test_error_message_lists_every_edge(self, disjoint_cycle_graph):
        """The message prints one prefixed line per residual edge."""
        with pytest.raises(CyclicDependencyError) as exc_info:
            disjoint_cycle_graph.sort()

        assert str(exc_info.value) == (
            "cyclic dependency:\n"
            "- default/A -> default/B\n"
            "- default/B -> default/C\n"
            "- default/C -> default/A\n"
        )

    def test_same_edges_same_diagnostic(self):
        """Cycle diagnostics are deterministic across insertion orders."""
        facts = [(A, B), (B, C), (C, A), (D, A)]
        messages = set()
        for permutation in itertools.permutations(facts):
            with pytest.raises(CyclicDependencyError) as exc_info:
                Graph.from_edges(edges=permutation).sort()
            messages.add(str(exc_info.value))

        assert len(messages) == 1


class TestConsumedGraph:
    """A graph cannot be reused after sort()."""

    def test_second_sort_raises(self, diamond_graph):
        """Sorting twice is an error."""
        diamond_graph.sort()

        with pytest.raises(GraphConsumedError):
            diamond_graph.sort()

    def test_mutation_after_sort_raises(self):
        """Adding vertices or edges after sort is an error."""
        graph = Graph.from_edges(edges=[(A, B)])
        graph.sort()

        with pytest.raises(GraphConsumedError):
            graph.add_vertex(C)
        with pytest.raises(GraphConsumedError):
            graph.add_edge(C, A)

    def test_mutation_after_failed_sort_raises(self):
        """The residual graph of a failed sort is read-only."""
        graph = Graph.from_edges(edges=[(X, Y), (Y, X)])
        with pytest.raises(CyclicDependencyError):
            graph.sort()

        with pytest.raises(GraphConsumedError):
            graph.add_edge(X, A)
        with pytest.raises(GraphConsumedError):
            graph.sort()


class TestToDot:
    """Test DOT export."""

    def test_to_dot_structure(self, ns1, pod_b):
        """Arrows run from dependency to dependent."""
        graph = Graph.from_edges(edges=[(pod_b, ns1)])

        dot = graph.to_dot()

        assert dot.startswith("digraph DependencyGraph {")
        assert dot.endswith("}")
        assert '"_ns1__Namespace" -> "ns1_pod-b__Pod";' in dot
        assert 'label="Pod\\nns1/pod-b"' in dot

    def test_to_dot_deterministic(self):
        """Output does not depend on insertion order."""
        first = Graph.from_edges(edges=[(A, B), (C, D)]).to_dot()
        second = Graph.from_edges(edges=[(C, D), (A, B)]).to_dot()

        assert first == second

    def test_to_dot_marks_self_edge(self):
        """Self-dependencies are highlighted."""
        dot = Graph.from_edges(edges=[(Z, Z)]).to_dot()

        assert '"default_Z__ConfigMap" -> "default_Z__ConfigMap" [color="#dc3545"];' in dot
