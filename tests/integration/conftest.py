"""Integration test fixtures using a testcontainers K3S cluster.

Provides a real K3S (lightweight Kubernetes) cluster in Docker so the
harness runs its waits and cleanup against a live API server.
"""

from __future__ import annotations

import subprocess
import time
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import yaml
from kubernetes.client import ApiException
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs

from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
from cluster_test_harness.integrations.kubernetes.config import HarnessConfig
from cluster_test_harness.services.kubernetes import ClusterTestFramework, TestEnvironment

# ============================================================================
# Docker Availability Check
# ============================================================================


def _docker_available() -> bool:
    """Check if Docker daemon is running."""
    try:
        result = subprocess.run(
            ["docker", "info"],
            capture_output=True,
            timeout=10,
        )
        return result.returncode == 0
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False


DOCKER_AVAILABLE = _docker_available()


# ============================================================================
# K3S Container Class
# ============================================================================

K3S_IMAGE = "rancher/k3s:v1.31.4-k3s1"
TEST_IMAGE = "nginx:alpine"


class K3SContainer(DockerContainer):  # type: ignore[misc]
    """Single-node K3S cluster with the API server on a random host port."""

    K8S_API_PORT = 6443

    def __init__(self, image: str = K3S_IMAGE) -> None:
        super().__init__(image)
        self.with_command(
            "server"
            " --disable=traefik"
            " --disable=metrics-server"
            " --tls-san=0.0.0.0"
            " --write-kubeconfig-mode=644"
        )
        self.with_exposed_ports(self.K8S_API_PORT)
        # containerd inside K3S needs elevated privileges
        self.with_kwargs(
            privileged=True,
            tmpfs={"/run": "", "/var/run": ""},
        )

    def get_kubeconfig(self) -> str:
        """Kubeconfig YAML rewritten to the mapped host:port."""
        exit_code, output = self.exec("cat /etc/rancher/k3s/k3s.yaml")
        if exit_code != 0:
            raise RuntimeError(f"Failed to read kubeconfig: {output}")

        config = yaml.safe_load(output.decode("utf-8"))
        host = self.get_container_host_ip()
        port = self.get_exposed_port(self.K8S_API_PORT)
        for cluster in config.get("clusters", []):
            cluster.get("cluster", {})["server"] = f"https://{host}:{port}"
        return yaml.dump(config)


# ============================================================================
# Cluster Fixtures (Session-Scoped)
# ============================================================================


@pytest.fixture(scope="session")
def k3s_container() -> Generator[K3SContainer]:
    """Session-scoped K3S container shared by every integration test."""
    container = K3SContainer()
    with container:
        wait_for_logs(container, "Node controller sync successful", timeout=120)
        time.sleep(2)
        yield container


@pytest.fixture(scope="session")
def k3s_kubeconfig_path(
    k3s_container: K3SContainer,
    tmp_path_factory: pytest.TempPathFactory,
) -> Path:
    """Write the K3S kubeconfig to a temp file."""
    kubeconfig_path = tmp_path_factory.mktemp("k3s") / "kubeconfig.yaml"
    kubeconfig_path.write_text(k3s_container.get_kubeconfig())
    return kubeconfig_path


@pytest.fixture(scope="session")
def harness_config(k3s_kubeconfig_path: Path) -> HarnessConfig:
    """Harness configuration pointing to the K3S cluster.

    Image pulls on a fresh cluster are slow, so the wait budget is wider
    than the default.
    """
    return HarnessConfig(kubeconfig=str(k3s_kubeconfig_path), timeout=180.0, cooldown=1.0)


@pytest.fixture(scope="session")
def harness_client(harness_config: HarnessConfig) -> Generator[KubernetesClient]:
    """Session-scoped client connected to the K3S cluster."""
    client = KubernetesClient(harness_config)
    yield client
    client.close()


@pytest.fixture(scope="session")
def test_namespace(harness_client: KubernetesClient, harness_config: HarnessConfig) -> str:
    """Create the harness namespace and its default ServiceAccount."""
    namespace = harness_config.namespace
    try:
        harness_client.core_v1.create_namespace(
            body={"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": namespace}}
        )
    except ApiException as e:
        if e.status != 409:
            raise

    # Pods are rejected until the controller has created the default ServiceAccount
    for _ in range(60):
        accounts = harness_client.core_v1.list_namespaced_service_account(namespace)
        if any(account.metadata.name == "default" for account in accounts.items):
            break
        time.sleep(0.5)
    return namespace


@pytest.fixture
def framework(
    harness_client: KubernetesClient, test_namespace: str
) -> Generator[ClusterTestFramework]:
    """Framework for one test; the namespace is drained afterwards."""
    framework = ClusterTestFramework(harness_client, TestEnvironment(namespace=test_namespace))
    yield framework
    framework.reset()


@pytest.fixture
def unique_name() -> str:
    """Generate a unique resource name for test isolation."""
    return f"test-{uuid.uuid4().hex[:8]}"


# ============================================================================
# Manifest Builders
# ============================================================================


def deployment_manifest(name: str, **pod_spec: Any) -> dict[str, Any]:
    """Single-replica Deployment running TEST_IMAGE."""
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "labels": {"app": name}},
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": {"app": name}},
            "template": {
                "metadata": {"labels": {"app": name}},
                "spec": {
                    "containers": [{"name": "app", "image": TEST_IMAGE}],
                    **pod_spec,
                },
            },
        },
    }


def secret_manifest(name: str) -> dict[str, Any]:
    """Opaque Secret with one key."""
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": name},
        "type": "Opaque",
        "stringData": {"cosign.password": "integration"},
    }
