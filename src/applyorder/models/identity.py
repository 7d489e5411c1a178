"""Resource identity - the vertex type of the dependency graph."""

from dataclasses import dataclass
from typing import Any

from ..utils.exceptions import InvalidIdentityError

# Separator for the canonical string form: <namespace>_<name>_<group>_<kind>
FIELD_SEPARATOR = "_"


@dataclass(frozen=True, order=True)
class ObjMetadata:
    """
    Identity of one resource in the target cluster.

    Field order matters: the generated ordering compares (group, kind,
    namespace, name) lexicographically, in that priority.

    Attributes:
        group: API group ("" for the core group)
        kind: Resource kind, e.g. "Deployment"
        namespace: Namespace ("" for cluster-scoped resources)
        name: Resource name
    """

    group: str
    kind: str
    namespace: str
    name: str

    def __post_init__(self) -> None:
        """Reject identities that cannot address a resource."""
        for field_name in ("group", "kind", "namespace", "name"):
            value = getattr(self, field_name)
            if not isinstance(value, str):
                raise InvalidIdentityError(
                    f"{field_name} must be a string, got {type(value).__name__}"
                )
            # The canonical string form could not be parsed back
            if FIELD_SEPARATOR in value:
                raise InvalidIdentityError(
                    f"{field_name} must not contain {FIELD_SEPARATOR!r}: {value!r}"
                )
        if not self.kind:
            raise InvalidIdentityError("resource identity requires a kind")
        if not self.name:
            raise InvalidIdentityError("resource identity requires a name")

    @property
    def short_name(self) -> str:
        """Namespace-qualified name used in diagnostics."""
        return f"{self.namespace}/{self.name}"

    def __str__(self) -> str:
        """Canonical string form: <namespace>_<name>_<group>_<kind>."""
        return FIELD_SEPARATOR.join((self.namespace, self.name, self.group, self.kind))

    @classmethod
    def parse(cls, text: str) -> "ObjMetadata":
        """
        Parse the canonical string form produced by str().

        Args:
            text: String such as "ns1_pod-b__Pod" or "_ns1__Namespace"

        Returns:
            ObjMetadata instance

        Raises:
            InvalidIdentityError: If the string does not have four fields
        """
        fields = text.strip().split(FIELD_SEPARATOR)
        if len(fields) != 4:
            raise InvalidIdentityError(
                f"expected <namespace>_<name>_<group>_<kind>, got {text!r}"
            )
        namespace, name, group, kind = fields
        return cls(group=group, kind=kind, namespace=namespace, name=name)

    @classmethod
    def from_manifest(cls, obj: dict[str, Any]) -> "ObjMetadata":
        """
        Derive the identity of a Kubernetes-style object.

        The group is the part of apiVersion before "/"; core objects
        ("v1") have the empty group.

        Args:
            obj: Mapping with apiVersion, kind and metadata

        Returns:
            ObjMetadata instance

        Raises:
            InvalidIdentityError: If kind or metadata.name is missing, or a
                field has the wrong type
        """
        api_version = obj.get("apiVersion") or ""
        if not isinstance(api_version, str):
            raise InvalidIdentityError(
                f"manifest apiVersion must be a string, got {type(api_version).__name__}"
            )
        group = api_version.rsplit("/", 1)[0] if "/" in api_version else ""
        metadata = obj.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise InvalidIdentityError("manifest metadata must be a mapping")
        return cls(
            group=group,
            kind=obj.get("kind") or "",
            namespace=metadata.get("namespace") or "",
            name=metadata.get("name") or "",
        )
