"""Execution - run resource handlers through an apply plan."""

from .runner import LayerRunner, ResourceHandler

__all__ = [
    "LayerRunner",
    "ResourceHandler",
]
