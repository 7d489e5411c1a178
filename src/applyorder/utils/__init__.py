"""Utility functions and exceptions."""

from .exceptions import (
    MULTI_ERROR_PREFIX,
    ApplyOrderError,
    CyclicDependencyError,
    GraphConsumedError,
    InvalidIdentityError,
    ResourceSetError,
    UnknownResourceError,
)

__all__ = [
    "MULTI_ERROR_PREFIX",
    "ApplyOrderError",
    "CyclicDependencyError",
    "GraphConsumedError",
    "InvalidIdentityError",
    "ResourceSetError",
    "UnknownResourceError",
]
