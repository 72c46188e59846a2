"""Kubernetes harness services - lifecycle, condition waits, and cleanup."""

from cluster_test_harness.services.kubernetes.base import K8sBaseManager
from cluster_test_harness.services.kubernetes.cleanup_coordinator import (
    CleanupCoordinator,
    fail_test,
)
from cluster_test_harness.services.kubernetes.condition_watcher import (
    ConditionPredicate,
    ConditionWatcher,
    WatchSession,
    result_error,
)
from cluster_test_harness.services.kubernetes.environment import TestEnvironment
from cluster_test_harness.services.kubernetes.framework import ClusterTestFramework
from cluster_test_harness.services.kubernetes.lifecycle_manager import ResourceLifecycleClient
from cluster_test_harness.services.kubernetes.predicates import (
    any_resource,
    deployment_ready,
    failed_create,
    replica_set_owned_by,
)

__all__ = [
    "CleanupCoordinator",
    "ClusterTestFramework",
    "ConditionPredicate",
    "ConditionWatcher",
    "K8sBaseManager",
    "ResourceLifecycleClient",
    "TestEnvironment",
    "WatchSession",
    "any_resource",
    "deployment_ready",
    "fail_test",
    "failed_create",
    "replica_set_owned_by",
    "result_error",
]
