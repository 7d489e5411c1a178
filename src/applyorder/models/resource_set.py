"""Resource-set file models with Pydantic v2.

A resource set lists the resources of one apply/prune operation and the
"depends-on" facts between them. How those facts were discovered is not
this tool's concern; the file carries them verbatim.

Example:
    resources:
      - {kind: Namespace, name: ns1}
      - {kind: Pod, namespace: ns1, name: pod-b}
    dependencies:
      - {from: "ns1_pod-b__Pod", to: "_ns1__Namespace"}
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..utils.exceptions import ResourceSetError
from .identity import ObjMetadata


class IdentityRef(BaseModel):
    """Identity written out field by field."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    group: str = ""
    kind: str
    namespace: str = ""
    name: str

    def to_identity(self) -> ObjMetadata:
        return ObjMetadata(group=self.group, kind=self.kind, namespace=self.namespace, name=self.name)


def _resolve_ref(ref: "str | IdentityRef") -> ObjMetadata:
    if isinstance(ref, str):
        return ObjMetadata.parse(ref)
    return ref.to_identity()


class ResourceEntry(BaseModel):
    """
    One resource of the set.

    Either the identity fields are given directly, or a Kubernetes-style
    manifest is embedded and the identity is derived from it.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    group: str = ""
    kind: str | None = None
    namespace: str = ""
    name: str | None = None
    manifest: dict[str, Any] | None = None

    @model_validator(mode="after")
    def check_identity(self) -> "ResourceEntry":
        """Ensure the entry resolves to a valid identity."""
        if self.manifest is None and not (self.kind and self.name):
            raise ValueError("resource needs either kind and name, or a manifest")
        # Raises InvalidIdentityError (a ValueError) for bad manifests
        self.identity()
        return self

    def identity(self) -> ObjMetadata:
        if self.manifest is not None:
            return ObjMetadata.from_manifest(self.manifest)
        return ObjMetadata(
            group=self.group,
            kind=self.kind or "",
            namespace=self.namespace,
            name=self.name or "",
        )


class DependencyEntry(BaseModel):
    """A "from depends on to" fact."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid", populate_by_name=True)

    from_: str | IdentityRef = Field(alias="from")
    to: str | IdentityRef

    @model_validator(mode="after")
    def check_refs(self) -> "DependencyEntry":
        """Ensure both references parse."""
        self.edge()
        return self

    def edge(self) -> tuple[ObjMetadata, ObjMetadata]:
        return _resolve_ref(self.from_), _resolve_ref(self.to)


class ResourceSet(BaseModel):
    """All facts for one operation."""

    model_config = ConfigDict(extra="forbid")

    resources: list[ResourceEntry] = Field(default_factory=list)
    dependencies: list[DependencyEntry] = Field(default_factory=list)

    def identities(self) -> list[ObjMetadata]:
        """Declared identities in file order, duplicates dropped."""
        return list(dict.fromkeys(entry.identity() for entry in self.resources))

    def edges(self) -> list[tuple[ObjMetadata, ObjMetadata]]:
        """Dependency facts as (from, to) pairs in file order."""
        return [dependency.edge() for dependency in self.dependencies]


def load_resource_set(path: Path) -> ResourceSet:
    """
    Load and validate a resource-set YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated ResourceSet

    Raises:
        ResourceSetError: If the file is missing, is not valid YAML, or does
            not match the schema
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ResourceSetError(f"cannot read file: {e}", path=str(path), original_error=e) from e
    except yaml.YAMLError as e:
        raise ResourceSetError(f"invalid YAML: {e}", path=str(path), original_error=e) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ResourceSetError(
            f"expected a mapping at top level, got {type(data).__name__}", path=str(path)
        )

    try:
        return ResourceSet.model_validate(data)
    except ValidationError as e:
        raise ResourceSetError(
            f"invalid resource set: {e.error_count()} error(s)\n{e}",
            path=str(path),
            original_error=e,
        ) from e
