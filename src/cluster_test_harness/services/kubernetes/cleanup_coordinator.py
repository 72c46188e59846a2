"""Namespace teardown and the single fatal path of a test.

Cleanup runs one linear sequence of steps. A failing step does not stop the
later ones; its errors are collected instead. When the test already failed,
or any step failed, everything is reported once through the fatal sink as a
single CleanupError.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, NoReturn

import pytest

from cluster_test_harness.integrations.kubernetes.exceptions import (
    CleanupError,
    ResourceDeleteError,
)
from cluster_test_harness.integrations.kubernetes.models import ResourceKind
from cluster_test_harness.services.kubernetes.base import K8sBaseManager
from cluster_test_harness.services.kubernetes.condition_watcher import result_error

if TYPE_CHECKING:
    from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
    from cluster_test_harness.services.kubernetes.condition_watcher import ConditionWatcher
    from cluster_test_harness.services.kubernetes.environment import TestEnvironment
    from cluster_test_harness.services.kubernetes.lifecycle_manager import (
        ResourceLifecycleClient,
    )

FatalSink = Callable[[str], NoReturn]


def fail_test(message: str) -> NoReturn:
    """Terminate the running pytest test with ``message`` as its failure."""
    pytest.fail(message, pytrace=False)


class CleanupCoordinator(K8sBaseManager):
    """Returns the namespace to an empty state after each test.

    Steps, in order:
    1. remove tracked local artifacts
    2. delete every Secret (no wait)
    3. delete every Deployment, then wait until no Pod remains

    On an already empty namespace this issues no mutating call.
    """

    _entity_name = "cleanup"

    def __init__(
        self,
        client: KubernetesClient,
        environment: TestEnvironment,
        lifecycle: ResourceLifecycleClient,
        watcher: ConditionWatcher,
        *,
        fail: FatalSink = fail_test,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: Kubernetes API client instance.
            environment: Test environment to drain.
            lifecycle: Lifecycle client used to list and delete.
            watcher: Watcher used to confirm pod deletion.
            fail: Fatal sink terminating the test; must not return.
        """
        super().__init__(client, environment)
        self._lifecycle = lifecycle
        self._watcher = watcher
        self._fail = fail

    def cleanup(self, observed_error: BaseException | None = None) -> None:
        """Tear down the namespace, then fail the test if anything went wrong.

        Args:
            observed_error: Error that ended the test, if any.

        Raises:
            CleanupError: Only when a custom fatal sink returns.
        """
        self._log.info(
            "cleaning_up",
            namespace=self.namespace,
            pending_error=str(observed_error) if observed_error is not None else None,
        )

        errors: list[Exception] = []
        errors.extend(self._run_step("artifacts", self._cleanup_artifacts))
        errors.extend(self._run_step("secrets", self._cleanup_secrets))
        errors.extend(self._run_step("deployments", self._cleanup_deployments))

        if observed_error is None and not errors:
            self._log.info("cleanup_complete", namespace=self.namespace)
            return

        failure = CleanupError(observed_error=observed_error, errors=errors)
        self._log.error("test_failed", namespace=self.namespace, cleanup_errors=len(errors))
        self._fail(str(failure))
        raise failure

    def _run_step(self, step: str, func: Callable[[], list[Exception]]) -> list[Exception]:
        try:
            errors = func()
        except Exception as e:
            self._log.warning("cleanup_step_failed", step=step, error=str(e))
            return [e]
        for error in errors:
            self._log.warning("cleanup_step_failed", step=step, error=str(error))
        return errors

    def _cleanup_artifacts(self) -> list[Exception]:
        if self._environment.artifacts:
            self._log.info("cleaning_up_artifacts", count=len(self._environment.artifacts))
        return list(self._environment.remove_artifacts())

    def _cleanup_secrets(self) -> list[Exception]:
        """Delete every Secret, best-effort."""
        secrets = self._lifecycle.list_resources(ResourceKind.SECRET)
        if not secrets:
            return []

        self._log.info("cleaning_up_secrets", count=len(secrets))
        errors: list[Exception] = []
        for secret in secrets:
            try:
                self._lifecycle.delete(ResourceKind.SECRET, secret.name)
            except ResourceDeleteError as e:
                errors.append(e)
        return errors

    def _cleanup_deployments(self) -> list[Exception]:
        """Delete every Deployment and wait for their pods to be gone."""
        deployments = self._lifecycle.list_resources(ResourceKind.DEPLOYMENT)
        errors: list[Exception] = []
        if deployments:
            self._log.info("cleaning_up_deployments", count=len(deployments))
        for deployment in deployments:
            try:
                self._lifecycle.delete(ResourceKind.DEPLOYMENT, deployment.name)
            except ResourceDeleteError as e:
                errors.append(e)

        result = self._watcher.await_deletion(self._watcher.scope(ResourceKind.POD))
        if error := result_error(result, "deployments to be deleted"):
            errors.append(error)
        else:
            self._log.info("all_pods_deleted", namespace=self.namespace)
        return errors
