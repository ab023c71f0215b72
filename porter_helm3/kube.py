"""Read-only access to the live cluster used when resolving step outputs."""

import base64
import logging
from pathlib import Path
from typing import Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import (
    ConfigException as KubeConfigException,
)

from .exceptions import ConfigException, OutputException

__all__ = [
    "ClusterClient",
    "KubernetesClusterClient",
]

_LOGGER = logging.getLogger(__name__)


DEFAULT_KUBECONFIG = Path("/root/.kube/config")


class ClusterClient(Protocol):
    """Interface for reading values from the cluster."""

    def get_secret_value(self, namespace: str, name: str, key: str) -> bytes:
        """Return the decoded value of a key in a Secret."""


class KubernetesClusterClient:
    """A ClusterClient backed by the kubernetes API."""

    def __init__(self, api: client.CoreV1Api) -> None:
        """Initialize KubernetesClusterClient."""
        self._api = api

    @classmethod
    def from_kubeconfig(
        cls, path: Path = DEFAULT_KUBECONFIG
    ) -> "KubernetesClusterClient":
        """Create a client from a kubeconfig file."""
        _LOGGER.debug("Loading kubeconfig %s", path)
        try:
            api_client = config.new_client_from_config(config_file=str(path))
        except (KubeConfigException, OSError) as err:
            raise ConfigException(f"couldn't get kubernetes client: {err}") from err
        return cls(client.CoreV1Api(api_client))

    def get_secret_value(self, namespace: str, name: str, key: str) -> bytes:
        try:
            secret = self._api.read_namespaced_secret(name, namespace)
        except ApiException as err:
            raise OutputException(
                f"Unable to read secret {namespace}/{name}: {err.status} {err.reason}"
            ) from err
        data = secret.data or {}
        if key not in data:
            raise OutputException(f"Secret {namespace}/{name} has no key '{key}'")
        return base64.b64decode(data[key])
