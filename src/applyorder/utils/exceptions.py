"""Custom exceptions for applyorder.

Exception Hierarchy:
-------------------
ApplyOrderError (base)
├── InvalidIdentityError        # Malformed resource identity
├── GraphConsumedError          # Graph reused after it was sorted
├── CyclicDependencyError       # No leaf left, residual graph holds a cycle
├── UnknownResourceError        # Dependency names an undeclared resource
└── ResourceSetError            # Unreadable or invalid resource-set file

Usage Guidelines:
----------------
1. CyclicDependencyError is the only failure the layering sort produces. It is
   fatal to the whole operation: the partially computed layers it carries are
   for diagnostics only and must not be applied.

2. Use ApplyOrderError as catch-all for applyorder-specific errors.

3. Include context in exceptions:
   - Residual edges and vertices for cycles
   - File path for resource-set errors
   - Original exception when wrapping errors
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..dependency.graph import Edge
    from ..models.identity import ObjMetadata

# Prefix used for every line of an aggregated multi-line error.
MULTI_ERROR_PREFIX = "- "


class ApplyOrderError(Exception):
    """Base exception for all applyorder errors."""

    pass


class InvalidIdentityError(ApplyOrderError, ValueError):
    """Raised when a resource identity is malformed."""

    pass


class GraphConsumedError(ApplyOrderError):
    """Raised when a graph is mutated or sorted again after sort() consumed it."""

    def __init__(self, message: str = "graph has already been sorted and cannot be reused") -> None:
        super().__init__(message)


class CyclicDependencyError(ApplyOrderError):
    """
    Raised when the dependency graph contains a cycle.

    The cycle makes it impossible to finish the topological sort. A self-edge
    (a resource depending on itself) is reported the same way.

    Attributes:
        layers: Layers resolved before no further leaf could be found.
        edges: Every edge left in the residual graph, sorted.
        vertices: Every vertex left in the residual graph, sorted.
    """

    def __init__(
        self,
        edges: "list[Edge]",
        vertices: "list[ObjMetadata]",
        layers: "list[frozenset[ObjMetadata]] | None" = None,
    ) -> None:
        """
        Initialize CyclicDependencyError.

        Args:
            edges: Residual edges (sorted by From, then To).
            vertices: Residual vertices (sorted).
            layers: Layers computed before the blockage.
        """
        self.edges = list(edges)
        self.vertices = list(vertices)
        self.layers = list(layers or [])
        super().__init__(self._render())

    def _render(self) -> str:
        lines = ["cyclic dependency:"]
        for edge in self.edges:
            lines.append(
                f"{MULTI_ERROR_PREFIX}{edge.from_.short_name} -> {edge.to.short_name}"
            )
        return "\n".join(lines) + "\n"

    def vertex_errors(self) -> "dict[ObjMetadata, list[Edge]]":
        """
        Group the residual edges by the residual vertex they touch.

        Lets callers annotate each blocked resource individually instead of
        printing one aggregate message. Every residual vertex gets an entry,
        in sorted order.

        Returns:
            Mapping of vertex -> residual edges where it is From or To.
        """
        return {
            vertex: [edge for edge in self.edges if vertex in (edge.from_, edge.to)]
            for vertex in self.vertices
        }


class UnknownResourceError(ApplyOrderError):
    """Raised when a dependency references a resource not declared in the set."""

    def __init__(self, identity: "ObjMetadata", referenced_by: "ObjMetadata | None" = None) -> None:
        """
        Initialize UnknownResourceError.

        Args:
            identity: The undeclared resource.
            referenced_by: The resource whose dependency named it, if known.
        """
        message = f"dependency references undeclared resource: {identity}"
        if referenced_by is not None:
            message += f" (required by {referenced_by})"
        super().__init__(message)
        self.identity = identity
        self.referenced_by = referenced_by


class ResourceSetError(ApplyOrderError):
    """Raised when a resource-set file cannot be read or validated."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize ResourceSetError.

        Args:
            message: Error message.
            path: Optional path of the offending file.
            original_error: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.path = path
        self.original_error = original_error

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.args[0]}"
        return str(self.args[0]) if self.args else "resource set error"
