"""Kubernetes cluster event payload model."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field

from cluster_test_harness.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _metadata_fields,
    _safe_get,
)


class EventSummary(K8sEntityBase):
    """Cluster Event payload model."""

    _entity_name: ClassVar[str] = "event"

    type: str = Field(default="Normal", description="Event type (Normal/Warning)")
    reason: str | None = Field(default=None, description="Event reason")
    message: str | None = Field(default=None, description="Event message")
    involved_object_kind: str | None = Field(default=None, description="Involved object kind")
    involved_object_name: str | None = Field(default=None, description="Involved object name")
    involved_object_uid: str | None = Field(default=None, description="Involved object UID")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> EventSummary:
        """Create from a kubernetes CoreV1Event object."""
        involved = getattr(obj, "involved_object", None)

        return cls(
            **_metadata_fields(obj),
            type=getattr(obj, "type", "Normal") or "Normal",
            reason=getattr(obj, "reason", None),
            message=getattr(obj, "message", None),
            involved_object_kind=_safe_get(involved, "kind"),
            involved_object_name=_safe_get(involved, "name"),
            involved_object_uid=_safe_get(involved, "uid"),
        )
