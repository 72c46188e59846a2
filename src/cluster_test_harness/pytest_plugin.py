"""pytest plugin exposing the harness as fixtures.

Registered through the ``pytest11`` entry point. ``k8s_framework`` hands a
test a framework bound to the configured namespace and drains that namespace
after the test, so the next test starts from an empty namespace.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
from cluster_test_harness.integrations.kubernetes.config import HarnessConfig
from cluster_test_harness.integrations.kubernetes.exceptions import KubernetesConnectionError
from cluster_test_harness.logging import configure_logging
from cluster_test_harness.services.kubernetes import ClusterTestFramework, TestEnvironment


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("cluster-test-harness")
    group.addoption(
        "--harness-log-level",
        choices=("info", "debug"),
        default=None,
        help="Print harness logs at this level.",
    )
    group.addoption(
        "--harness-log-json",
        action="store_true",
        default=False,
        help="Render harness logs as JSON.",
    )
    group.addoption(
        "--harness-log-file",
        default=None,
        help="Also write harness logs as JSON to this file.",
    )


def pytest_configure(config: pytest.Config) -> None:
    level = config.getoption("--harness-log-level")
    log_file = config.getoption("--harness-log-file")
    if level is None and log_file is None:
        return
    configure_logging(
        verbose=level == "info",
        debug=level == "debug",
        json_output=config.getoption("--harness-log-json"),
        log_file=Path(log_file) if log_file else None,
    )


@pytest.fixture(scope="session")
def harness_config() -> HarnessConfig:
    """Harness configuration from the environment (KUBECONFIG, K8S_HARNESS_*)."""
    return HarnessConfig.from_env()


def connect(config: HarnessConfig) -> KubernetesClient:
    """Client for the configured cluster; skips the test when there is none.

    Missing credentials and an API server that does not answer both skip.
    """
    try:
        client = KubernetesClient(config)
    except KubernetesConnectionError as e:
        pytest.skip(f"Kubernetes credentials unavailable: {e}")
    if not client.check_connection():
        client.close()
        pytest.skip(f"Kubernetes API unreachable via {config.kubeconfig}")
    return client


@pytest.fixture(scope="session")
def harness_client(harness_config: HarnessConfig) -> Generator[KubernetesClient]:
    """Session-scoped client; skips the test when the cluster is unreachable."""
    client = connect(harness_config)
    yield client
    client.close()


@pytest.fixture
def k8s_framework(
    harness_client: KubernetesClient, harness_config: HarnessConfig
) -> Generator[ClusterTestFramework]:
    """Framework for one test; the namespace is reset afterwards."""
    framework = ClusterTestFramework(
        harness_client, TestEnvironment(namespace=harness_config.namespace)
    )
    yield framework
    framework.reset()
