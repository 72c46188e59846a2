"""Kubernetes integration - API client, configuration, and payload models."""

from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
from cluster_test_harness.integrations.kubernetes.config import HarnessConfig
from cluster_test_harness.integrations.kubernetes.exceptions import (
    CleanupError,
    ConditionNotMetError,
    ConditionTimeoutError,
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
    ResourceCreateError,
    ResourceDeleteError,
    ResourceListError,
    ResourceOperationError,
    WatchStreamError,
)

__all__ = [
    "CleanupError",
    "ConditionNotMetError",
    "ConditionTimeoutError",
    "HarnessConfig",
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesValidationError",
    "ResourceCreateError",
    "ResourceDeleteError",
    "ResourceListError",
    "ResourceOperationError",
    "WatchStreamError",
]
