"""Kubernetes test harness configuration model."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_KUBECONFIG = "~/.kube/config"
DEFAULT_NAMESPACE = "test-cases"
DEFAULT_TIMEOUT = 30.0
DEFAULT_COOLDOWN = 5.0


class HarnessConfig(BaseModel):
    """Settings shared by every harness operation.

    ``timeout`` is the wall-clock budget of a single wait, ``cooldown`` the
    pause inserted after each non-matching watch event.
    """

    model_config = ConfigDict(extra="forbid")

    kubeconfig: str = DEFAULT_KUBECONFIG
    context: str | None = None
    namespace: str = DEFAULT_NAMESPACE
    timeout: float = DEFAULT_TIMEOUT
    cooldown: float = DEFAULT_COOLDOWN

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str) -> str:
        """Expand ~ in kubeconfig path."""
        return str(Path(v).expanduser())

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Validate namespace is a non-empty name."""
        if not v.strip():
            raise ValueError("namespace must not be empty")
        return v.strip()

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("cooldown")
    @classmethod
    def validate_cooldown(cls, v: float) -> float:
        """Validate cooldown is non-negative."""
        if v < 0:
            raise ValueError("cooldown must be non-negative")
        return v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> HarnessConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            KUBECONFIG: Path to the kubeconfig file
            K8S_HARNESS_CONTEXT: Kubeconfig context to use
            K8S_HARNESS_NAMESPACE: Namespace all test resources live in
            K8S_HARNESS_TIMEOUT: Per-wait timeout in seconds
            K8S_HARNESS_COOLDOWN: Pause after a non-matching event in seconds
        """
        config_dict = base_config.copy() if base_config else {}

        if kubeconfig := os.environ.get("KUBECONFIG"):
            config_dict["kubeconfig"] = kubeconfig

        if context := os.environ.get("K8S_HARNESS_CONTEXT"):
            config_dict["context"] = context

        if namespace := os.environ.get("K8S_HARNESS_NAMESPACE"):
            config_dict["namespace"] = namespace

        if timeout := os.environ.get("K8S_HARNESS_TIMEOUT"):
            config_dict["timeout"] = float(timeout)

        if cooldown := os.environ.get("K8S_HARNESS_COOLDOWN"):
            config_dict["cooldown"] = float(cooldown)

        return cls.model_validate(config_dict)
