"""Dependency Planner - turn raw dependency facts into an apply plan.

Overview:
--------
The planner takes the identities of every resource in an operation and
the "depends-on" facts between them, builds a fresh Graph, and sorts it
into layers. The resulting ApplyPlan is the only thing an orchestrator
needs:

- apply order: layers 0..N, each layer a full barrier
- prune order: the same layers, reversed (never recomputed)

Example:
-------
  Resources: Namespace ns1, Pod ns1/pod-b
  Facts:     pod-b depends on ns1

  Apply order: [ns1], [pod-b]
  Prune order: [pod-b], [ns1]

On a cycle the planner logs every implicated edge and re-raises the
CyclicDependencyError. The layers computed before the blockage travel on
the error for diagnostics; they must not be applied.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog

from ..models.identity import ObjMetadata
from ..models.resource_set import ResourceSet
from ..utils.exceptions import CyclicDependencyError, UnknownResourceError
from .graph import Edge, Graph
from .ordering import sort_metas, sorted_layers

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ApplyPlan:
    """
    Ordered layers for one operation.

    Attributes:
        layers: Layers in creation order
        edges: The dependency edges the plan was computed from, sorted
    """

    layers: tuple[frozenset[ObjMetadata], ...]
    edges: tuple[Edge, ...] = ()
    _layer_index: dict[ObjMetadata, int] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        for index, layer in enumerate(self.layers):
            for vertex in layer:
                self._layer_index[vertex] = index

    def __len__(self) -> int:
        return len(self.layers)

    @property
    def resources(self) -> list[ObjMetadata]:
        """Every planned resource, sorted."""
        return sort_metas(self._layer_index)

    def apply_order(self) -> list[list[ObjMetadata]]:
        """Layers for creation, each sorted for display."""
        return sorted_layers(self.layers)

    def prune_order(self) -> list[list[ObjMetadata]]:
        """The same layers reversed, for deletion."""
        return sorted_layers(reversed(self.layers))

    def layer_of(self, identity: ObjMetadata) -> int:
        """
        Return the creation-order layer index of a resource.

        Raises:
            KeyError: If the resource is not part of the plan
        """
        return self._layer_index[identity]

    def summary(self) -> dict[str, Any]:
        """
        Get a summary of the plan.

        Returns:
            Dictionary with resource, edge and layer counts
        """
        return {
            "resources": len(self._layer_index),
            "edges": len(self.edges),
            "layers": len(self.layers),
            "max_parallelism": max((len(layer) for layer in self.layers), default=0),
        }


class DependencyPlanner:
    """
    Build and sort dependency graphs.

    Each call to plan() builds a new Graph, so a planner can be reused
    across operations even though a Graph cannot.
    """

    def __init__(self, strict: bool = True) -> None:
        """
        Initialize Dependency Planner.

        Args:
            strict: Reject facts that name resources missing from the
                declared set. When False, such resources are added to the
                graph with a warning.
        """
        self.strict = strict

    def build_graph(
        self,
        identities: Iterable[ObjMetadata],
        dependencies: Iterable[tuple[ObjMetadata, ObjMetadata]],
    ) -> Graph:
        """
        Build a graph from declared identities and (from, to) facts.

        Args:
            identities: Every resource in the operation
            dependencies: Pairs meaning "from depends on to"

        Returns:
            Populated Graph

        Raises:
            UnknownResourceError: In strict mode, if a fact names an
                undeclared resource
        """
        graph = Graph()
        declared: set[ObjMetadata] = set()
        edges: set[tuple[ObjMetadata, ObjMetadata]] = set()
        for identity in identities:
            graph.add_vertex(identity)
            declared.add(identity)

        for from_, to in dependencies:
            for endpoint, referenced_by in ((from_, None), (to, from_)):
                if endpoint in declared:
                    continue
                if self.strict:
                    raise UnknownResourceError(endpoint, referenced_by=referenced_by)
                logger.warning(
                    "Dependency references undeclared resource",
                    resource=str(endpoint),
                    required_by=str(referenced_by) if referenced_by else None,
                )
                declared.add(endpoint)
            graph.add_edge(from_, to)
            edges.add((from_, to))

        logger.info(
            "Dependency graph built",
            resources=graph.size(),
            edges=len(edges),
        )
        return graph

    def plan(
        self,
        identities: Iterable[ObjMetadata],
        dependencies: Iterable[tuple[ObjMetadata, ObjMetadata]] = (),
    ) -> ApplyPlan:
        """
        Compute the apply plan for a set of resources.

        Args:
            identities: Every resource in the operation
            dependencies: Pairs meaning "from depends on to"

        Returns:
            ApplyPlan

        Raises:
            CyclicDependencyError: If the facts contain a cycle
            UnknownResourceError: In strict mode, for undeclared endpoints
        """
        graph = self.build_graph(identities, dependencies)
        # get_edges is already sorted
        edges = tuple(graph.get_edges())

        try:
            layers = graph.sort()
        except CyclicDependencyError as e:
            logger.error(
                "Cyclic dependency detected",
                resolved_layers=len(e.layers),
                residual_resources=[str(v) for v in e.vertices],
                edges=[str(edge) for edge in e.edges],
            )
            raise

        plan = ApplyPlan(layers=tuple(layers), edges=edges)
        logger.info("Apply plan created", **plan.summary())
        return plan

    def plan_resource_set(self, resource_set: ResourceSet) -> ApplyPlan:
        """Compute the apply plan for a validated resource-set file."""
        return self.plan(resource_set.identities(), resource_set.edges())
