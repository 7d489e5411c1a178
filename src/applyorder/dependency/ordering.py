"""Deterministic ordering of identities, edges and layers.

The graph is backed by a dict, so nothing observable may depend on its
iteration order. Every listing that leaves the graph (vertices, edges,
error messages, plans, DOT output) is sorted through these helpers.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

from ..models.identity import ObjMetadata

if TYPE_CHECKING:
    from .graph import Edge


def sort_key(meta: ObjMetadata) -> tuple[str, str, str, str]:
    """Total-order key: (group, kind, namespace, name)."""
    return (meta.group, meta.kind, meta.namespace, meta.name)


def meta_is_less_than(i: ObjMetadata, j: ObjMetadata) -> bool:
    """Compare two identities field by field in priority order."""
    if i.group != j.group:
        return i.group < j.group
    if i.kind != j.kind:
        return i.kind < j.kind
    if i.namespace != j.namespace:
        return i.namespace < j.namespace
    return i.name < j.name


def edge_sort_key(edge: "Edge") -> tuple[tuple[str, str, str, str], tuple[str, str, str, str]]:
    """Sort edges by From, then To."""
    return (sort_key(edge.from_), sort_key(edge.to))


def sort_metas(metas: Iterable[ObjMetadata]) -> list[ObjMetadata]:
    """Return identities as a new sorted list."""
    return sorted(metas, key=sort_key)


def sort_edges(edges: Iterable["Edge"]) -> list["Edge"]:
    """Return edges as a new list sorted by From, then To."""
    return sorted(edges, key=edge_sort_key)


def sorted_layers(layers: Iterable[Iterable[ObjMetadata]]) -> list[list[ObjMetadata]]:
    """
    Render a layer sequence with each layer sorted.

    Layer order is preserved; only membership within a layer is sorted.
    Use for display and for comparing layers in tests.
    """
    return [sort_metas(layer) for layer in layers]
