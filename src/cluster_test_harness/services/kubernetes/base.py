"""Base manager for the harness services.

Provides shared infrastructure for everything that talks to the cluster:
client access, the test environment's namespace, structured logging, and
error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NoReturn

import structlog

if TYPE_CHECKING:
    from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
    from cluster_test_harness.integrations.kubernetes.exceptions import ResourceOperationError
    from cluster_test_harness.services.kubernetes.environment import TestEnvironment

logger = structlog.get_logger()


class K8sBaseManager:
    """Base class for harness services.

    Provides shared concerns:
    - Client reference and API group access
    - Namespace taken from the test environment
    - Structured logging with entity binding
    - Consistent API error translation

    Subclasses set ``_entity_name`` for structured log context.
    """

    _entity_name: str = ""

    def __init__(self, client: KubernetesClient, environment: TestEnvironment) -> None:
        """Initialize the manager.

        Args:
            client: Kubernetes API client instance.
            environment: Test environment every call is scoped to.
        """
        self._client = client
        self._environment = environment
        self._log = logger.bind(entity=self._entity_name)

    @property
    def namespace(self) -> str:
        """Namespace of the test environment."""
        return self._environment.namespace

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
    ) -> NoReturn:
        """Translate a Kubernetes API exception and re-raise.

        Raises:
            KubernetesError: Always raises an appropriate subclass.
        """
        raise self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=self.namespace,
        ) from e

    def _raise_operation_error(
        self,
        error_cls: type[ResourceOperationError],
        e: Exception,
        resource_type: str,
        resource_name: str | None = None,
    ) -> NoReturn:
        """Wrap a failed lifecycle call in its operation error and raise it."""
        translated = self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=self.namespace,
        )
        raise error_cls(
            resource_type,
            resource_name,
            self.namespace,
            original_error=translated,
        ) from e


def resource_name(resource: Any) -> str | None:
    """Name of a manifest dict, an SDK object, or a payload model."""
    if isinstance(resource, dict):
        metadata = resource.get("metadata") or {}
        name = metadata.get("name")
        return str(name) if name is not None else None
    metadata = getattr(resource, "metadata", None)
    if metadata is not None:
        return getattr(metadata, "name", None)
    return getattr(resource, "name", None)
