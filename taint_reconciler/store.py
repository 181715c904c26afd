"""Access to node state in the Kubernetes API server."""

from typing import Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from taint_reconciler.exceptions import ConfigurationError, ConflictError, ListError, UpdateError
from taint_reconciler.logging_config import get_logger
from taint_reconciler.models.node import Node, NodeTaint

logger = get_logger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
MERGE_PATCH = "application/merge-patch+json"


class NodeStore(Protocol):
    """The operations the reconciler needs from the cluster state store."""

    def list_nodes(self, label_selector: str) -> list[Node]: ...

    def get_node(self, name: str) -> Node: ...

    def patch_node_taints(
        self, name: str, resource_version: str | None, taints: list[NodeTaint]
    ) -> Node: ...


class KubernetesNodeStore:
    """NodeStore backed by the CoreV1 API."""

    def __init__(self, api: client.CoreV1Api, request_timeout: float = 30.0):
        """Initialize the store.

        Args:
            api: CoreV1Api client used for all calls
            request_timeout: Timeout in seconds applied to every request
        """
        self.api = api
        self.request_timeout = request_timeout

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig: str | None = None,
        in_cluster: bool = False,
        request_timeout: float = 30.0,
    ) -> "KubernetesNodeStore":
        """Create a store from kubeconfig or the in-cluster service account.

        Raises:
            ConfigurationError: If no usable configuration can be loaded
        """
        try:
            if in_cluster:
                config.load_incluster_config()
            else:
                config.load_kube_config(config_file=kubeconfig)
        except (ConfigException, OSError) as e:
            source = "in-cluster service account" if in_cluster else kubeconfig or "~/.kube/config"
            raise ConfigurationError(
                f"Failed to load Kubernetes configuration from {source}",
                f"{e}\nMake sure the cluster is reachable and the credentials are valid.",
            ) from e
        return cls(client.CoreV1Api(), request_timeout=request_timeout)

    def list_nodes(self, label_selector: str) -> list[Node]:
        """List nodes matching ``label_selector``.

        Raises:
            ListError: If the API server cannot be reached or rejects the call
        """
        try:
            response = self.api.list_node(
                label_selector=label_selector, _request_timeout=self.request_timeout
            )
        except ApiException as e:
            raise ListError(f"Failed to list nodes ({e.status} {e.reason})", e.body) from e
        except HTTPError as e:
            raise ListError("Failed to list nodes", str(e)) from e

        nodes = [Node.from_kubernetes(item) for item in response.items or []]
        logger.debug(f"Listed {len(nodes)} nodes with selector {label_selector!r}")
        return nodes

    def get_node(self, name: str) -> Node:
        """Read the current state of one node.

        Raises:
            UpdateError: If the node cannot be read
        """
        try:
            return Node.from_kubernetes(
                self.api.read_node(name, _request_timeout=self.request_timeout)
            )
        except ApiException as e:
            if e.status == HTTP_NOT_FOUND:
                raise UpdateError(f"Node {name} no longer exists", node=name) from e
            raise UpdateError(
                f"Failed to read node {name} ({e.status} {e.reason})", e.body, node=name
            ) from e
        except HTTPError as e:
            raise UpdateError(f"Failed to read node {name}", str(e), node=name) from e

    def patch_node_taints(
        self, name: str, resource_version: str | None, taints: list[NodeTaint]
    ) -> Node:
        """Replace the node's taints, guarded by ``resource_version``.

        The resourceVersion in the patch body makes the API server reject the
        update with 409 if the node changed since it was read.

        Raises:
            ConflictError: If the node changed since ``resource_version``
            UpdateError: For any other failure
        """
        body = {"spec": {"taints": [t.to_api_dict() for t in taints]}}
        if resource_version is not None:
            body["metadata"] = {"resourceVersion": resource_version}

        try:
            response = self.api.patch_node(
                name, body, _content_type=MERGE_PATCH, _request_timeout=self.request_timeout
            )
        except ApiException as e:
            if e.status == HTTP_CONFLICT:
                raise ConflictError(name, resource_version, e.body) from e
            raise UpdateError(
                f"Failed to patch node {name} ({e.status} {e.reason})", e.body, node=name
            ) from e
        except HTTPError as e:
            raise UpdateError(f"Failed to patch node {name}", str(e), node=name) from e

        return Node.from_kubernetes(response)
