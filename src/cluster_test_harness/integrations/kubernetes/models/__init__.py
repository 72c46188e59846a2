"""Payload models, watch scopes, change events, and wait results."""

from cluster_test_harness.integrations.kubernetes.models.base import (
    K8sEntityBase,
    OwnerReference,
)
from cluster_test_harness.integrations.kubernetes.models.cluster import EventSummary
from cluster_test_harness.integrations.kubernetes.models.configuration import SecretSummary
from cluster_test_harness.integrations.kubernetes.models.events import ChangeEvent, EventType
from cluster_test_harness.integrations.kubernetes.models.resources import (
    ResourceKind,
    WatchScope,
)
from cluster_test_harness.integrations.kubernetes.models.results import (
    Matched,
    StreamError,
    TimedOut,
    WaitResult,
)
from cluster_test_harness.integrations.kubernetes.models.workloads import (
    DeploymentSummary,
    PodSummary,
    ReplicaSetSummary,
)

__all__ = [
    "ChangeEvent",
    "DeploymentSummary",
    "EventSummary",
    "EventType",
    "K8sEntityBase",
    "Matched",
    "OwnerReference",
    "PodSummary",
    "ReplicaSetSummary",
    "ResourceKind",
    "SecretSummary",
    "StreamError",
    "TimedOut",
    "WaitResult",
    "WatchScope",
]
