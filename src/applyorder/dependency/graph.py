"""Dependency Graph - adjacency list over resource identities with layered sort.

Edges point from a dependent resource to the resource it depends on:
an edge "from" -> "to" means "to" must be resolved before "from".

Sort Strategy:
-------------
The sort repeatedly strips every leaf (vertex with no remaining
dependencies) from the graph. Each pass yields one layer:

    Layer 0: resources with no dependencies
    Layer 1: resources whose dependencies are all in layer 0
    ...

Creation walks the layers forward; deletion walks the same layers in
reverse (children before parents). Members of one layer are mutually
order-independent and may be processed concurrently, but every member of
layer N must finish before layer N+1 starts.

If a pass finds no leaf while vertices remain, the residual graph contains
at least one cycle and the sort fails with CyclicDependencyError.
"""

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from ..models.identity import ObjMetadata
from ..utils.exceptions import CyclicDependencyError, GraphConsumedError
from .ordering import sort_edges, sort_metas

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Edge:
    """
    Directed edge between two vertices.

    Attributes:
        from_: The dependent resource
        to: The resource it depends on
    """

    from_: ObjMetadata
    to: ObjMetadata

    def __str__(self) -> str:
        return f"{self.from_.short_name} -> {self.to.short_name}"


class Graph:
    """
    Directed graph of "depends-on" edges between resource identities.

    Implemented as an adjacency list: the dict key is the "from" vertex and
    the list holds its "to" vertices. Lists are kept duplicate-free, so they
    behave as sets.

    A graph is built once, sorted once, and then discarded. sort() empties
    the graph (or reduces it to the residual cycle) and marks it consumed;
    further mutation or sorting raises GraphConsumedError.
    """

    def __init__(self) -> None:
        """Initialize an empty graph."""
        # map "from" vertex -> list of "to" vertices
        self._edges: dict[ObjMetadata, list[ObjMetadata]] = {}
        self._consumed = False

    @classmethod
    def from_edges(
        cls,
        vertices: Iterable[ObjMetadata] = (),
        edges: Iterable[tuple[ObjMetadata, ObjMetadata] | Edge] = (),
    ) -> "Graph":
        """
        Build a graph from vertices and (from, to) pairs.

        Args:
            vertices: Vertices to add (isolated vertices included)
            edges: Edges as Edge instances or (from, to) tuples

        Returns:
            New Graph
        """
        graph = cls()
        for vertex in vertices:
            graph.add_vertex(vertex)
        for edge in edges:
            if isinstance(edge, Edge):
                graph.add_edge(edge.from_, edge.to)
            else:
                from_, to = edge
                graph.add_edge(from_, to)
        return graph

    def _check_usable(self) -> None:
        if self._consumed:
            raise GraphConsumedError()

    def add_vertex(self, v: ObjMetadata) -> None:
        """
        Add a vertex with an empty dependency list.

        Adding a vertex that is already present is a no-op; its edges are kept.
        """
        self._check_usable()
        if v not in self._edges:
            self._edges[v] = []

    def add_edge(self, from_: ObjMetadata, to: ObjMetadata) -> None:
        """
        Add the edge from_ -> to ("from_ depends on to").

        Missing endpoints are added first. Adding an existing edge is a
        no-op. Self-edges are accepted; the sort reports them as a cycle.
        """
        self._check_usable()
        if from_ not in self._edges:
            self._edges[from_] = []
        if to not in self._edges:
            self._edges[to] = []
        if not self._is_adjacent(from_, to):
            self._edges[from_].append(to)
            logger.debug("Added dependency edge", dependent=str(from_), dependency=str(to))

    def _is_adjacent(self, from_: ObjMetadata, to: ObjMetadata) -> bool:
        """Return True if the edge from_ -> to exists."""
        return to in self._edges.get(from_, ())

    def get_vertices(self) -> list[ObjMetadata]:
        """Return every vertex, sorted."""
        return sort_metas(self._edges)

    def get_edges(self) -> list[Edge]:
        """Return every edge, sorted by From then To."""
        return sort_edges(
            Edge(from_=from_, to=to) for from_, to_list in self._edges.items() for to in to_list
        )

    def size(self) -> int:
        """Return the number of vertices."""
        return len(self._edges)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, v: object) -> bool:
        return v in self._edges

    def _remove_vertices(self, removed: set[ObjMetadata]) -> None:
        """Remove vertices together with every edge into them."""
        for v, adj in self._edges.items():
            if any(to in removed for to in adj):
                self._edges[v] = [to for to in adj if to not in removed]
        for v in removed:
            del self._edges[v]

    def sort(self) -> list[frozenset[ObjMetadata]]:
        """
        Consume the graph and return its vertices grouped in dependency layers.

        Each pass collects all current leaves first and only then removes
        them, so a leaf found in this pass never unlocks another vertex
        within the same pass.

        Returns:
            Layers in creation order. Every dependency of a vertex sits in
            a strictly earlier layer.

        Raises:
            CyclicDependencyError: If no leaf remains while vertices do. The
                error carries the layers computed so far plus the residual
                edges and vertices. The graph keeps its residual content.
            GraphConsumedError: If the graph was already sorted.
        """
        self._check_usable()
        self._consumed = True

        total = self.size()
        layers: list[frozenset[ObjMetadata]] = []
        while self._edges:
            leaves = frozenset(v for v, adj in self._edges.items() if not adj)
            # No leaf vertices means a cycle; the remaining edges define it.
            if not leaves:
                error = CyclicDependencyError(
                    edges=self.get_edges(),
                    vertices=self.get_vertices(),
                    layers=layers,
                )
                logger.debug(
                    "Cyclic dependency blocks sort",
                    resolved_layers=len(layers),
                    residual_vertices=len(error.vertices),
                    residual_edges=len(error.edges),
                )
                raise error
            self._remove_vertices(set(leaves))
            layers.append(leaves)
            logger.debug("Resolved layer", layer=len(layers) - 1, size=len(leaves))

        logger.debug("Graph sorted", vertices=total, layers=len(layers))
        return layers

    def to_dot(self) -> str:
        """
        Generate DOT format representation of the graph.

        Arrows point from a dependency to its dependent, i.e. in creation
        order.

        Returns:
            String containing the Graphviz DOT definition
        """
        lines = ["digraph DependencyGraph {"]
        lines.append("    rankdir=LR;")
        lines.append("    node [shape=box style=filled fillcolor=\"#eeeeee\"];")

        for vertex in self.get_vertices():
            label = f"{vertex.kind}\\n{vertex.short_name}"
            lines.append(f'    "{vertex}" [label="{label}"];')

        for edge in self.get_edges():
            color = ' [color="#dc3545"]' if edge.from_ == edge.to else ""
            lines.append(f'    "{edge.to}" -> "{edge.from_}"{color};')

        lines.append("}")
        return "\n".join(lines)
