"""Resource deletion directive model.

A directive is one entry of the ordered resource deletion plan. It names a
resource kind and, optionally, a single object and/or namespace.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResourceKind:
    """Group, version and plural resource name of a Kubernetes kind.

    Attributes:
        group: API group ("" for the core group)
        version: API version (e.g. "v1")
        resource: Plural resource name (e.g. "deployments")
    """

    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        """apiVersion string as used in object manifests."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version

    def __str__(self) -> str:
        return f"{self.api_version}, Resource={self.resource}"


@dataclass(frozen=True)
class DeleteDirective:
    """One entry of the resource deletion plan.

    Attributes:
        kind: Kind of the resource(s) to delete
        name: Resource name; empty means all resources of this kind
        namespace: Namespace of the resource(s); empty together with an empty
            name means all resources of this kind across all namespaces
        must_delete: If True, failing to delete aborts the whole cleanup
    """

    kind: ResourceKind
    name: str = ""
    namespace: str = ""
    must_delete: bool = False

    @property
    def is_bulk(self) -> bool:
        """True when the directive targets every resource of its kind."""
        return not self.name

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeleteDirective:
        """Build a directive from one JSON plan entry.

        Args:
            data: Plan entry with group, version, resource, name, namespace
                and mustDelete keys

        Returns:
            DeleteDirective instance

        Raises:
            ValueError: If the entry is not an object or lacks version/resource
        """
        if not isinstance(data, dict):
            raise ValueError(f"Plan entry must be an object, got {type(data).__name__}")

        version = data.get("version") or ""
        resource = data.get("resource") or ""
        if not version or not resource:
            raise ValueError(f"Plan entry requires version and resource: {data}")

        return cls(
            kind=ResourceKind(group=data.get("group") or "", version=version, resource=resource),
            name=data.get("name") or "",
            namespace=data.get("namespace") or "",
            must_delete=bool(data.get("mustDelete", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the JSON plan entry format."""
        return {
            "group": self.kind.group,
            "version": self.kind.version,
            "resource": self.kind.resource,
            "name": self.name,
            "namespace": self.namespace,
            "mustDelete": self.must_delete,
        }


@dataclass(frozen=True)
class OwnerReference:
    """Back-link from a dependent object to its owner."""

    api_version: str
    kind: str
    name: str
    uid: str

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> OwnerReference:
        metadata = obj.get("metadata") or {}
        return cls(
            api_version=obj.get("apiVersion", ""),
            kind=obj.get("kind", ""),
            name=metadata.get("name", ""),
            uid=metadata.get("uid", ""),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.uid,
        }
