"""Owner references for the cleanup workload's RBAC objects.

Before the agent deletes its own Pod/DaemonSet/Job, its ServiceAccount and
Role/RoleBinding (or ClusterRole/ClusterRoleBinding) are made dependents of
that workload so the garbage collector removes them after self-destruction.
"""

from __future__ import annotations

import logging

from k8s_cleanup.cleanup.errors import OwnerReferenceError
from k8s_cleanup.models.directive import DeleteDirective, OwnerReference, ResourceKind

logger = logging.getLogger(__name__)

RBAC_GROUP = "rbac.authorization.k8s.io"

SERVICE_ACCOUNT_KIND = ResourceKind(group="", version="v1", resource="serviceaccounts")
ROLE_KIND = ResourceKind(group=RBAC_GROUP, version="v1", resource="roles")
ROLE_BINDING_KIND = ResourceKind(group=RBAC_GROUP, version="v1", resource="rolebindings")
CLUSTER_ROLE_KIND = ResourceKind(group=RBAC_GROUP, version="v1", resource="clusterroles")
CLUSTER_ROLE_BINDING_KIND = ResourceKind(group=RBAC_GROUP, version="v1", resource="clusterrolebindings")


class OwnerReferenceChainer:
    """Links the agent's RBAC objects to the agent's own workload.

    Attributes:
        backend: Resource backend
        sa_name: ServiceAccount name
        role_name: Role name (used unless cluster role names are set)
        role_binding_name: RoleBinding name
        cluster_role_name: ClusterRole name (optional)
        cluster_role_binding_name: ClusterRoleBinding name (optional)
    """

    def __init__(
        self,
        backend,
        sa_name: str,
        role_name: str,
        role_binding_name: str,
        cluster_role_name: str = "",
        cluster_role_binding_name: str = "",
    ) -> None:
        self.backend = backend
        self.sa_name = sa_name
        self.role_name = role_name
        self.role_binding_name = role_binding_name
        self.cluster_role_name = cluster_role_name
        self.cluster_role_binding_name = cluster_role_binding_name

    @property
    def use_cluster_role(self) -> bool:
        """True if both the cluster role and cluster role binding are set."""
        return bool(self.cluster_role_name and self.cluster_role_binding_name)

    def supporting_objects(self, namespace: str) -> list[tuple[ResourceKind, str, str]]:
        """RBAC objects to chain, in order, as (kind, name, namespace)."""
        objects = [(SERVICE_ACCOUNT_KIND, self.sa_name, namespace)]
        if self.use_cluster_role:
            objects.append((CLUSTER_ROLE_KIND, self.cluster_role_name, ""))
            objects.append((CLUSTER_ROLE_BINDING_KIND, self.cluster_role_binding_name, ""))
        else:
            objects.append((ROLE_KIND, self.role_name, namespace))
            objects.append((ROLE_BINDING_KIND, self.role_binding_name, namespace))
        return objects

    def set_owner_references(self, directive: DeleteDirective) -> OwnerReference:
        """Make the RBAC objects dependents of the directive's resource.

        Args:
            directive: Directive naming the cleanup workload itself

        Returns:
            The owner reference that was added

        Raises:
            OwnerReferenceError: If the directive has no name, or the owner or any
                RBAC object cannot be read or updated
        """
        if not directive.name:
            logger.error(f"Cannot chain ownership to {directive.kind} without a resource name")
            raise OwnerReferenceError(f"owner directive for {directive.kind} must name a single resource")

        try:
            owner = self.backend.get(directive.kind, directive.name, directive.namespace)
        except Exception as e:
            logger.error(f"Failed to get resource {directive.kind} {directive.namespace}/{directive.name}: {e}")
            raise OwnerReferenceError(f"failed to get resource: {e}") from e

        owner_ref = OwnerReference.from_object(owner)
        for kind, name, namespace in self.supporting_objects(directive.namespace):
            self._set_owner_reference(kind, name, namespace, owner_ref)
        return owner_ref

    def _set_owner_reference(self, kind: ResourceKind, name: str, namespace: str, owner_ref: OwnerReference) -> None:
        try:
            resource = self.backend.get(kind, name, namespace)
        except Exception as e:
            logger.error(f"Failed to get resource {kind} {namespace}/{name}: {e}")
            raise OwnerReferenceError(f"failed to get resource: {e}") from e

        metadata = resource.setdefault("metadata", {})
        owner_references = list(metadata.get("ownerReferences") or [])
        owner_references.append(owner_ref.to_dict())
        metadata["ownerReferences"] = owner_references

        try:
            self.backend.update(kind, resource)
        except Exception as e:
            logger.error(f"Failed to update resource {kind} {namespace}/{name} with owner reference: {e}")
            raise OwnerReferenceError(f"failed to update resource with owner reference: {e}") from e

        logger.info(f"Set cleanup ownerReference on {kind.resource} {name}")
