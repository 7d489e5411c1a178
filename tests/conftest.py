"""Pytest configuration and shared fixtures.

Fixtures are organized by category:
- Identity fixtures: Sample resource identities
- Graph fixtures: Pre-built graphs for the documented ordering scenarios
- File fixtures: Resource-set YAML files in a temp directory
"""

from collections.abc import Callable
from pathlib import Path

import pytest
import structlog
import yaml

from src.applyorder.dependency.graph import Graph
from src.applyorder.models.identity import ObjMetadata


def meta(name: str, kind: str = "ConfigMap", namespace: str = "default", group: str = "") -> ObjMetadata:
    """Shorthand for building identities in tests."""
    return ObjMetadata(group=group, kind=kind, namespace=namespace, name=name)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Keep structlog configuration from leaking between tests."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Identity Fixtures
# =============================================================================


@pytest.fixture
def ns1() -> ObjMetadata:
    """Cluster-scoped namespace."""
    return ObjMetadata(group="", kind="Namespace", namespace="", name="ns1")


@pytest.fixture
def pod_b() -> ObjMetadata:
    """Pod living in ns1."""
    return ObjMetadata(group="", kind="Pod", namespace="ns1", name="pod-b")


@pytest.fixture
def abcd() -> dict[str, ObjMetadata]:
    """Four unrelated identities named A-D."""
    return {name: meta(name) for name in "ABCD"}


# =============================================================================
# Graph Fixtures
# =============================================================================


@pytest.fixture
def diamond_graph(abcd) -> Graph:
    """A->B, A->C, B->D, C->D."""
    a, b, c, d = abcd["A"], abcd["B"], abcd["C"], abcd["D"]
    return Graph.from_edges(edges=[(a, b), (a, c), (b, d), (c, d)])


@pytest.fixture
def disjoint_cycle_graph(abcd) -> Graph:
    """A->B->C->A cycle plus an independent D."""
    a, b, c, d = abcd["A"], abcd["B"], abcd["C"], abcd["D"]
    return Graph.from_edges(vertices=[a, b, c, d], edges=[(a, b), (b, c), (c, a)])


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def write_resource_set(tmp_path: Path) -> Callable[[dict], Path]:
    """Write a resource-set document to a temp YAML file and return its path."""

    def _write(document: dict, name: str = "resources.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(document, sort_keys=False))
        return path

    return _write


@pytest.fixture
def chain_document() -> dict:
    """Namespace ns1 and a pod that depends on it."""
    return {
        "resources": [
            {"kind": "Pod", "namespace": "ns1", "name": "pod-b"},
            {"kind": "Namespace", "name": "ns1"},
        ],
        "dependencies": [
            {
                "from": {"kind": "Pod", "namespace": "ns1", "name": "pod-b"},
                "to": "_ns1__Namespace",
            }
        ],
    }


@pytest.fixture
def cycle_document() -> dict:
    """Two config maps depending on each other."""
    return {
        "resources": [
            {"kind": "ConfigMap", "namespace": "default", "name": "x"},
            {"kind": "ConfigMap", "namespace": "default", "name": "y"},
        ],
        "dependencies": [
            {"from": "default_x__ConfigMap", "to": "default_y__ConfigMap"},
            {"from": "default_y__ConfigMap", "to": "default_x__ConfigMap"},
        ],
    }
