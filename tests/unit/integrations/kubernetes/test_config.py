"""Unit tests for the harness configuration model."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from cluster_test_harness.integrations.kubernetes.config import (
    DEFAULT_COOLDOWN,
    DEFAULT_NAMESPACE,
    DEFAULT_TIMEOUT,
    HarnessConfig,
)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestHarnessConfig:
    """Tests for HarnessConfig."""

    def test_defaults(self) -> None:
        """Should default to the test-cases namespace, 30s timeout and 5s cooldown."""
        config = HarnessConfig()

        assert config.namespace == DEFAULT_NAMESPACE == "test-cases"
        assert config.timeout == DEFAULT_TIMEOUT == 30.0
        assert config.cooldown == DEFAULT_COOLDOWN == 5.0
        assert config.context is None
        assert config.kubeconfig == str(Path("~/.kube/config").expanduser())

    def test_kubeconfig_expands_home(self) -> None:
        """Should expand ~ in the kubeconfig path."""
        config = HarnessConfig(kubeconfig="~/clusters/kind.yaml")

        assert not config.kubeconfig.startswith("~")
        assert config.kubeconfig.endswith("clusters/kind.yaml")

    def test_namespace_is_stripped(self) -> None:
        """Should strip whitespace around the namespace."""
        assert HarnessConfig(namespace="  e2e ").namespace == "e2e"

    def test_empty_namespace_rejected(self) -> None:
        """Should reject a blank namespace."""
        with pytest.raises(ValidationError, match="namespace must not be empty"):
            HarnessConfig(namespace="   ")

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_non_positive_timeout_rejected(self, timeout: float) -> None:
        """Should reject a timeout that is not positive."""
        with pytest.raises(ValidationError, match="timeout must be positive"):
            HarnessConfig(timeout=timeout)

    def test_zero_cooldown_allowed(self) -> None:
        """Should accept a zero cooldown."""
        assert HarnessConfig(cooldown=0).cooldown == 0

    def test_negative_cooldown_rejected(self) -> None:
        """Should reject a negative cooldown."""
        with pytest.raises(ValidationError, match="cooldown must be non-negative"):
            HarnessConfig(cooldown=-1)

    def test_unknown_field_rejected(self) -> None:
        """Should reject unknown settings."""
        with pytest.raises(ValidationError):
            HarnessConfig(retries=3)  # type: ignore[call-arg]


@pytest.mark.unit
@pytest.mark.kubernetes
class TestHarnessConfigFromEnv:
    """Tests for HarnessConfig.from_env."""

    def test_without_environment(self) -> None:
        """Should fall back to defaults when nothing is set."""
        assert HarnessConfig.from_env() == HarnessConfig()

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should read every supported environment variable."""
        monkeypatch.setenv("KUBECONFIG", "/tmp/kubeconfig.yaml")
        monkeypatch.setenv("K8S_HARNESS_CONTEXT", "kind-test")
        monkeypatch.setenv("K8S_HARNESS_NAMESPACE", "signing")
        monkeypatch.setenv("K8S_HARNESS_TIMEOUT", "45")
        monkeypatch.setenv("K8S_HARNESS_COOLDOWN", "0.5")

        config = HarnessConfig.from_env()

        assert config.kubeconfig == "/tmp/kubeconfig.yaml"
        assert config.context == "kind-test"
        assert config.namespace == "signing"
        assert config.timeout == 45.0
        assert config.cooldown == 0.5

    def test_environment_takes_precedence(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should let environment variables win over base config values."""
        monkeypatch.setenv("K8S_HARNESS_TIMEOUT", "10")

        config = HarnessConfig.from_env({"timeout": 60, "namespace": "base"})

        assert config.timeout == 10.0
        assert config.namespace == "base"

    def test_invalid_environment_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should validate values coming from the environment."""
        monkeypatch.setenv("K8S_HARNESS_TIMEOUT", "0")

        with pytest.raises(ValidationError):
            HarnessConfig.from_env()
