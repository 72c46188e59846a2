"""Kubernetes configuration resource payload models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field

from cluster_test_harness.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _metadata_fields,
)


class SecretSummary(K8sEntityBase):
    """Secret payload model.

    SECURITY: Never includes actual secret data values. Only key names are exposed.
    """

    _entity_name: ClassVar[str] = "secret"

    type: str = Field(default="Opaque", description="Secret type")
    data_keys: list[str] = Field(default_factory=list, description="Data key names (values hidden)")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> SecretSummary:
        """Create from a kubernetes V1Secret object.

        Only extracts key names - never includes secret values.
        """
        data = getattr(obj, "data", None) or {}
        string_data = getattr(obj, "string_data", None) or {}

        return cls(
            **_metadata_fields(obj),
            type=getattr(obj, "type", "Opaque") or "Opaque",
            data_keys=sorted({*data.keys(), *string_data.keys()}),
        )
