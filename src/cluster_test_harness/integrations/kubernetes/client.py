"""Thin client over the official kubernetes package.

Loads credentials once, builds the API groups the harness needs on first
use, resolves ``<verb>_namespaced_<kind>`` methods, and turns ApiException
into the harness exception hierarchy.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from cluster_test_harness.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import AppsV1Api, CoreV1Api, VersionApi

    from cluster_test_harness.integrations.kubernetes.config import HarnessConfig
    from cluster_test_harness.integrations.kubernetes.models.resources import ResourceKind

logger = structlog.get_logger()

# kubernetes.client class backing each API group attribute
API_GROUP_CLASSES = {
    "core_v1": "CoreV1Api",
    "apps_v1": "AppsV1Api",
    "version": "VersionApi",
}


class KubernetesClient:
    """Cluster access shared by every harness service.

    The client itself is namespace-agnostic; services pass the namespace of
    their TestEnvironment on every call.

    Example:
        ```python
        from cluster_test_harness.integrations.kubernetes import HarnessConfig, KubernetesClient

        with KubernetesClient(HarnessConfig.from_env()) as client:
            create = client.api_for(ResourceKind.SECRET, "create")
            create(namespace="test-cases", body=secret)
        ```
    """

    def __init__(self, config: HarnessConfig) -> None:
        """Load cluster credentials.

        Args:
            config: Harness configuration naming the kubeconfig and context.

        Raises:
            KubernetesConnectionError: If neither the kubeconfig nor the
                in-cluster service account can be loaded.
        """
        self._config = config
        self._context: str | None = None
        self._apis: dict[str, Any] = {}

        self._load_credentials()
        logger.info("client_ready", context=self._context, namespace=config.namespace)

    def _load_credentials(self) -> None:
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            config.load_kube_config(
                config_file=self._config.kubeconfig,
                context=self._config.context,
            )
        except ConfigException as kubeconfig_error:
            logger.debug("kubeconfig_unusable", error=str(kubeconfig_error))
            try:
                config.load_incluster_config()
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message=f"no usable kubeconfig at {self._config.kubeconfig} "
                    "and not running inside a cluster",
                    original_error=e,
                ) from e
            self._context = "in-cluster"
        else:
            self._context = self._config.context or "current-context"
        self._apis.clear()
        logger.debug("credentials_loaded", context=self._context)

    # =========================================================================
    # API Groups
    # =========================================================================

    def _api(self, group: str) -> Any:
        """API group instance, built on first access."""
        if group not in self._apis:
            import kubernetes.client

            self._apis[group] = getattr(kubernetes.client, API_GROUP_CLASSES[group])()
        return self._apis[group]

    @property
    def core_v1(self) -> CoreV1Api:
        """Pods, Secrets, Events, Namespaces."""
        api: CoreV1Api = self._api("core_v1")
        return api

    @property
    def apps_v1(self) -> AppsV1Api:
        """Deployments and ReplicaSets."""
        api: AppsV1Api = self._api("apps_v1")
        return api

    @property
    def version_api(self) -> VersionApi:
        """Server version endpoint, used as a reachability probe."""
        api: VersionApi = self._api("version")
        return api

    def api_for(self, kind: ResourceKind, verb: str) -> Callable[..., Any]:
        """Resolve the namespaced API method for a verb on a resource kind.

        Args:
            kind: Resource kind to operate on.
            verb: One of ``create``, ``read``, ``list``, ``delete``.

        Returns:
            The bound ``<verb>_namespaced_<kind>`` method of the kind's API group.
        """
        api = self.apps_v1 if kind.api_group == "apps_v1" else self.core_v1
        method: Callable[..., Any] = getattr(api, f"{verb}_namespaced_{kind.method_suffix}")
        return method

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Map an exception raised by the SDK onto the harness hierarchy.

        Errors that already are KubernetesError are returned unchanged, so
        translating twice is harmless.
        """
        from kubernetes.client import ApiException

        if isinstance(e, KubernetesError):
            return e

        location = {
            "resource_type": resource_type,
            "resource_name": resource_name,
            "namespace": namespace,
        }
        if not isinstance(e, ApiException):
            return KubernetesError(message=str(e), **location)

        status = e.status
        match status:
            case 401 | 403:
                return KubernetesAuthError(
                    message=e.reason or "request not authorized",
                    status_code=status,
                    reason=e.reason,
                )
            case 404:
                return KubernetesNotFoundError(**location)
            case 409:
                return KubernetesConflictError(**location)
            case 400 | 422:
                return KubernetesValidationError(
                    message=e.reason or "object rejected by the API server",
                    status_code=status,
                )
            case _:
                return KubernetesError(
                    message=e.reason or f"API server answered {status}",
                    status_code=status,
                    **location,
                )

    # =========================================================================
    # Status
    # =========================================================================

    def check_connection(self) -> bool:
        """Whether the API server answers a version request."""
        try:
            self.version_api.get_code()
        except Exception as e:
            logger.debug("api_unreachable", error=str(e))
            return False
        return True

    @property
    def current_context(self) -> str:
        """Loaded kubeconfig context, or 'in-cluster' inside a pod."""
        return self._context or "unknown"

    @property
    def config(self) -> HarnessConfig:
        """Harness configuration the client was built from."""
        return self._config

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Drop the cached API groups."""
        self._apis.clear()
        logger.debug("client_closed")

    def __enter__(self) -> KubernetesClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
