"""Kubernetes API access for the cleanup pipeline.

Wraps the dynamic client so the rest of the pipeline deals in plain dicts and
distinguishes "not found" from every other failure.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError as KindNotFoundError

from k8s_cleanup.cleanup.errors import ResourceNotFoundError
from k8s_cleanup.models.directive import ResourceKind

logger = logging.getLogger(__name__)

PROPAGATION_POLICY = "Background"

# (connect, read) timeouts in seconds
DEFAULT_REQUEST_TIMEOUT = (15.0, 30.0)

NAMESPACE_KIND = ResourceKind(group="", version="v1", resource="namespaces")

RequestTimeout = Union[float, tuple[float, float]]


def create_dynamic_client(retries: int = 3) -> DynamicClient:
    """Create a dynamic client from in-cluster config, falling back to kubeconfig.

    Args:
        retries: Transport-level retries performed by urllib3 for each request
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes config")
    except config.ConfigException:
        config.load_kube_config()
        logger.debug("Loaded kubeconfig from default location")

    configuration = client.Configuration.get_default_copy()
    configuration.retries = retries
    return DynamicClient(client.ApiClient(configuration))


class KubernetesBackend:
    """Resource operations used by the deleters.

    Attributes:
        dynamic_client: Kubernetes dynamic client
        request_timeout: Timeout passed to every API request
    """

    def __init__(
        self,
        dynamic_client: DynamicClient,
        request_timeout: Optional[RequestTimeout] = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.dynamic_client = dynamic_client
        self.request_timeout = request_timeout
        self._resources: dict[ResourceKind, Any] = {}

    def _resource(self, kind: ResourceKind) -> Any:
        resource = self._resources.get(kind)
        if resource is None:
            resource = self.dynamic_client.resources.get(api_version=kind.api_version, name=kind.resource)
            self._resources[kind] = resource
        return resource

    def _namespace(self, kind: ResourceKind, namespace: str) -> Optional[str]:
        if not namespace or not self.is_namespaced(kind):
            return None
        return namespace

    def is_namespaced(self, kind: ResourceKind) -> bool:
        """Return True if objects of this kind live in a namespace."""
        return bool(self._resource(kind).namespaced)

    def list(self, kind: ResourceKind, namespace: str = "") -> list[dict[str, Any]]:
        """List objects of a kind, within one namespace when given."""
        result = self.dynamic_client.get(
            self._resource(kind),
            namespace=self._namespace(kind, namespace),
            _request_timeout=self.request_timeout,
        )
        return list(result.to_dict().get("items") or [])

    def get(self, kind: ResourceKind, name: str, namespace: str = "") -> dict[str, Any]:
        """Fetch one object.

        Raises:
            ResourceNotFoundError: If the object or its resource type does not exist
        """
        try:
            result = self.dynamic_client.get(
                self._resource(kind),
                name=name,
                namespace=self._namespace(kind, namespace),
                _request_timeout=self.request_timeout,
            )
        except KindNotFoundError as e:
            raise ResourceNotFoundError(kind, name, namespace) from e
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFoundError(kind, name, namespace) from e
            raise
        return result.to_dict()

    def delete(self, kind: ResourceKind, name: str, namespace: str = "") -> None:
        """Delete one object with background cascade propagation.

        Raises:
            ResourceNotFoundError: If the object or its resource type does not exist
        """
        body = {"apiVersion": "v1", "kind": "DeleteOptions", "propagationPolicy": PROPAGATION_POLICY}
        try:
            self.dynamic_client.delete(
                self._resource(kind),
                name=name,
                namespace=self._namespace(kind, namespace),
                body=body,
                _request_timeout=self.request_timeout,
            )
        except KindNotFoundError as e:
            logger.debug(f"Resource type {kind.api_version}/{kind.resource} is not served, nothing to delete")
            raise ResourceNotFoundError(kind, name, namespace) from e
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFoundError(kind, name, namespace) from e
            raise

    def update(self, kind: ResourceKind, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace an object with the given body."""
        metadata = obj.get("metadata") or {}
        result = self.dynamic_client.replace(
            self._resource(kind),
            body=obj,
            name=metadata.get("name"),
            namespace=self._namespace(kind, metadata.get("namespace", "")),
            _request_timeout=self.request_timeout,
        )
        return result.to_dict()
