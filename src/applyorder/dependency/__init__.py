"""Dependency management for resource ordering."""

from .graph import Edge, Graph
from .planner import ApplyPlan, DependencyPlanner

__all__ = [
    "ApplyPlan",
    "DependencyPlanner",
    "Edge",
    "Graph",
]
