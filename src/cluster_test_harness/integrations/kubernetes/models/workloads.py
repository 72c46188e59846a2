"""Kubernetes workload resource payload models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field

from cluster_test_harness.integrations.kubernetes.models.base import (
    K8sEntityBase,
    OwnerReference,
    _metadata_fields,
    _safe_get,
)


class PodSummary(K8sEntityBase):
    """Pod payload model."""

    _entity_name: ClassVar[str] = "pod"

    phase: str = Field(default="Unknown", description="Pod phase")
    owner_references: list[OwnerReference] = Field(
        default_factory=list, description="Owner references"
    )

    @classmethod
    def from_k8s_object(cls, obj: Any) -> PodSummary:
        """Create from a kubernetes V1Pod object."""
        owner_refs = _safe_get(obj, "metadata", "owner_references") or []
        return cls(
            **_metadata_fields(obj),
            phase=_safe_get(obj, "status", "phase", default="Unknown"),
            owner_references=[OwnerReference.from_k8s_object(ref) for ref in owner_refs],
        )


class DeploymentSummary(K8sEntityBase):
    """Deployment payload model."""

    _entity_name: ClassVar[str] = "deployment"

    replicas: int = Field(default=0, description="Desired replicas")
    ready_replicas: int = Field(default=0, description="Ready replicas")
    selector: dict[str, str] | None = Field(default=None, description="Pod selector labels")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> DeploymentSummary:
        """Create from a kubernetes V1Deployment object."""
        match_labels = _safe_get(obj, "spec", "selector", "match_labels")
        return cls(
            **_metadata_fields(obj),
            replicas=_safe_get(obj, "spec", "replicas", default=0) or 0,
            ready_replicas=_safe_get(obj, "status", "ready_replicas", default=0) or 0,
            selector=dict(match_labels) if match_labels else None,
        )


class ReplicaSetSummary(K8sEntityBase):
    """ReplicaSet payload model."""

    _entity_name: ClassVar[str] = "replicaset"

    replicas: int = Field(default=0, description="Desired replicas")
    ready_replicas: int = Field(default=0, description="Ready replicas")
    owner_references: list[OwnerReference] = Field(
        default_factory=list, description="Owner references"
    )

    @classmethod
    def from_k8s_object(cls, obj: Any) -> ReplicaSetSummary:
        """Create from a kubernetes V1ReplicaSet object."""
        owner_refs = _safe_get(obj, "metadata", "owner_references") or []
        return cls(
            **_metadata_fields(obj),
            replicas=_safe_get(obj, "spec", "replicas", default=0) or 0,
            ready_replicas=_safe_get(obj, "status", "ready_replicas", default=0) or 0,
            owner_references=[OwnerReference.from_k8s_object(ref) for ref in owner_refs],
        )

    def is_owned_by(self, uid: str) -> bool:
        """Whether an owner reference points at the given uid."""
        return any(ref.uid == uid for ref in self.owner_references)
