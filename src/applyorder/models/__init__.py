"""Data models for applyorder."""

from .identity import ObjMetadata
from .resource_set import (
    DependencyEntry,
    IdentityRef,
    ResourceEntry,
    ResourceSet,
    load_resource_set,
)
from .results import Action, ResourceResult, ResourceStatus, RunReport

__all__ = [
    # Identity
    "ObjMetadata",
    # Resource set file
    "IdentityRef",
    "ResourceEntry",
    "DependencyEntry",
    "ResourceSet",
    "load_resource_set",
    # Results
    "Action",
    "ResourceStatus",
    "ResourceResult",
    "RunReport",
]
