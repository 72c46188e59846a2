"""Test-facing harness for Kubernetes integration tests.

Every operation is guarded: whatever goes wrong inside it (a rejected
create, a timed-out wait, a closed watch stream) is handed to the cleanup
coordinator, which tears the namespace down and fails the test.

Example:
    ```python
    def test_webhook_allows_signed_image(k8s_framework):
        k8s_framework.create_secret(signing_key_secret)
        k8s_framework.create_deployment(signed_deployment)
        k8s_framework.wait_for_deployment(signed_deployment)
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

import structlog
from kubernetes import watch

from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
from cluster_test_harness.integrations.kubernetes.config import HarnessConfig
from cluster_test_harness.integrations.kubernetes.exceptions import ConditionNotMetError
from cluster_test_harness.integrations.kubernetes.models import (
    DeploymentSummary,
    EventSummary,
    K8sEntityBase,
    Matched,
    PodSummary,
    ReplicaSetSummary,
    ResourceKind,
    SecretSummary,
    WaitResult,
)
from cluster_test_harness.services.kubernetes.base import resource_name
from cluster_test_harness.services.kubernetes.cleanup_coordinator import (
    CleanupCoordinator,
    FatalSink,
    fail_test,
)
from cluster_test_harness.services.kubernetes.condition_watcher import (
    ConditionWatcher,
    WatchFactory,
    result_error,
)
from cluster_test_harness.services.kubernetes.environment import TestEnvironment
from cluster_test_harness.services.kubernetes.lifecycle_manager import ResourceLifecycleClient
from cluster_test_harness.services.kubernetes.predicates import (
    deployment_ready,
    failed_create,
    replica_set_owned_by,
)

T = TypeVar("T")

logger = structlog.get_logger()


class ClusterTestFramework:
    """Create, wait, and assert against one test namespace.

    Attributes:
        environment: The namespace-scoped state shared by all operations.
        lifecycle: Create/list/delete client.
        watcher: Condition watcher for readiness, failure, and deletion.
        coordinator: Cleanup coordinator, the single fatal path.
    """

    def __init__(
        self,
        client: KubernetesClient,
        environment: TestEnvironment,
        *,
        timeout: float | None = None,
        cooldown: float | None = None,
        fail: FatalSink = fail_test,
        watch_factory: WatchFactory = watch.Watch,
    ) -> None:
        """Initialize the framework.

        Args:
            client: Kubernetes API client instance.
            environment: Test environment to operate in.
            timeout: Per-wait budget (client config if None).
            cooldown: Pause after non-matching events (client config if None).
            fail: Fatal sink terminating the test.
            watch_factory: Builds the watches of condition waits.
        """
        config = client.config
        self.environment = environment
        self.lifecycle = ResourceLifecycleClient(client, environment)
        self.watcher = ConditionWatcher(
            client,
            environment,
            timeout=config.timeout if timeout is None else timeout,
            cooldown=config.cooldown if cooldown is None else cooldown,
            watch_factory=watch_factory,
        )
        self.coordinator = CleanupCoordinator(
            client, environment, self.lifecycle, self.watcher, fail=fail
        )
        self._log = logger.bind(entity="framework")

    @classmethod
    def from_config(cls, config: HarnessConfig, **kwargs: Any) -> ClusterTestFramework:
        """Build a framework, and its client, from harness configuration."""
        client = KubernetesClient(config)
        return cls(client, TestEnvironment(namespace=config.namespace), **kwargs)

    # =========================================================================
    # Guard
    # =========================================================================

    def _guarded(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        """Run an operation, funnelling any failure into cleanup."""
        try:
            return func(*args)
        except Exception as e:
            self._log.error("operation_failed", operation=operation, error=str(e))
            self.cleanup(e)
            raise

    @staticmethod
    def _require_match(result: WaitResult, waiting_for: str) -> Matched:
        if error := result_error(result, waiting_for):
            raise error
        return cast(Matched, result)

    # =========================================================================
    # Resources
    # =========================================================================

    def create_deployment(self, deployment: Any) -> DeploymentSummary:
        """Create a Deployment (SDK model or manifest dict)."""
        return self._guarded("create deployment", self.lifecycle.create_deployment, deployment)

    def create_secret(self, secret: Any) -> SecretSummary:
        """Create a Secret (SDK model or manifest dict)."""
        return self._guarded("create secret", self.lifecycle.create_secret, secret)

    def create_from_manifest(self, path: Path | str) -> list[K8sEntityBase]:
        """Create every Deployment and Secret of a YAML manifest file."""
        return self._guarded("create from manifest", self.lifecycle.create_from_manifest, path)

    def list_deployments(self) -> list[DeploymentSummary]:
        """List Deployments in the namespace."""
        items = self._guarded(
            "list deployments", self.lifecycle.list_resources, ResourceKind.DEPLOYMENT
        )
        return cast(list[DeploymentSummary], items)

    def list_secrets(self) -> list[SecretSummary]:
        """List Secrets in the namespace."""
        items = self._guarded("list secrets", self.lifecycle.list_resources, ResourceKind.SECRET)
        return cast(list[SecretSummary], items)

    def list_pods(self) -> list[PodSummary]:
        """List Pods in the namespace."""
        items = self._guarded("list pods", self.lifecycle.list_resources, ResourceKind.POD)
        return cast(list[PodSummary], items)

    def track_artifact(self, path: Path | str) -> Path:
        """Register a local file to be removed during cleanup."""
        return self.environment.track_artifact(path)

    # =========================================================================
    # Waits
    # =========================================================================

    def wait_for_deployment(self, deployment: Any, replicas: int = 1) -> DeploymentSummary:
        """Block until the Deployment reports ``replicas`` ready replicas."""
        return self._guarded("wait for deployment", self._deployment_ready, deployment, replicas)

    def wait_for_replica_set(self, deployment: Any) -> ReplicaSetSummary:
        """Block until the Deployment's controller has created its ReplicaSet."""
        return self._guarded("wait for replicaset", self._replica_set_for, deployment)

    def assert_deployment_failed(self, deployment: Any) -> EventSummary:
        """Block until the Deployment's ReplicaSet reports FailedCreate."""
        return self._guarded("assert deployment failed", self._deployment_failed, deployment)

    def _deployment_ready(self, deployment: Any, replicas: int) -> DeploymentSummary:
        name = self._name_of(deployment)
        self._log.info("waiting_for_deployment", name=name, replicas=replicas)
        result = self.watcher.await_condition(
            self.watcher.scope(ResourceKind.DEPLOYMENT, name=name),
            deployment_ready(replicas),
        )
        matched = self._require_match(result, f"deployment {name} to be ready")
        self._log.info("deployment_ready", name=name)
        return cast(DeploymentSummary, matched.resource)

    def _replica_set_for(self, deployment: Any) -> ReplicaSetSummary:
        name = self._name_of(deployment)
        current = cast(DeploymentSummary, self.lifecycle.get(ResourceKind.DEPLOYMENT, name))
        if current.uid is None:
            raise ConditionNotMetError(f"deployment {name} has no uid to correlate replicasets")

        scope = self.watcher.scope(ResourceKind.REPLICA_SET, labels=current.selector)
        result = self.watcher.await_condition(scope, replica_set_owned_by(current.uid))
        matched = self._require_match(result, f"replicaset of deployment {name} to be created")
        replica_set = cast(ReplicaSetSummary, matched.resource)
        self._log.info("replicaset_created", name=replica_set.name, deployment=name)
        return replica_set

    def _deployment_failed(self, deployment: Any) -> EventSummary:
        name = self._name_of(deployment)
        self._log.info("waiting_for_deployment_failure", name=name)
        replica_set = self._replica_set_for(deployment)

        result = self.watcher.await_condition(
            self.watcher.scope(ResourceKind.EVENT, name=replica_set.name),
            failed_create(replica_set.uid),
        )
        matched = self._require_match(result, f"deployment {name} to fail")
        event = cast(EventSummary, matched.resource)
        self._log.info("deployment_failed", name=name, message=event.message)
        return event

    @staticmethod
    def _name_of(resource: Any) -> str:
        name = resource_name(resource)
        if not name:
            raise ConditionNotMetError("resource has no metadata.name to wait on")
        return name

    # =========================================================================
    # Cleanup
    # =========================================================================

    def cleanup(self, error: BaseException | None = None) -> None:
        """Tear the namespace down; fail the test if ``error`` is set or teardown fails."""
        self.coordinator.cleanup(error)

    def reset(self) -> None:
        """Drain the namespace between test cases."""
        self.cleanup()
