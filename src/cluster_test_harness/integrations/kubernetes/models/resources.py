"""Resource kinds and watch scopes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from cluster_test_harness.integrations.kubernetes.models.base import K8sEntityBase
from cluster_test_harness.integrations.kubernetes.models.cluster import EventSummary
from cluster_test_harness.integrations.kubernetes.models.configuration import SecretSummary
from cluster_test_harness.integrations.kubernetes.models.workloads import (
    DeploymentSummary,
    PodSummary,
    ReplicaSetSummary,
)


class ResourceKind(StrEnum):
    """Resource kinds the harness creates, lists, deletes, or watches."""

    DEPLOYMENT = "Deployment"
    REPLICA_SET = "ReplicaSet"
    POD = "Pod"
    SECRET = "Secret"
    EVENT = "Event"

    @property
    def api_group(self) -> str:
        """Client attribute holding the API group for this kind."""
        if self in (ResourceKind.DEPLOYMENT, ResourceKind.REPLICA_SET):
            return "apps_v1"
        return "core_v1"

    @property
    def method_suffix(self) -> str:
        """Suffix of the ``<verb>_namespaced_*`` SDK methods."""
        return _METHOD_SUFFIXES[self]

    @property
    def sdk_model(self) -> str:
        """Name of the kubernetes.client model watch events deserialize into."""
        return _SDK_MODELS[self]

    @property
    def summary_model(self) -> type[K8sEntityBase]:
        """Payload model built from SDK objects of this kind."""
        return _SUMMARY_MODELS[self]

    @property
    def name_field(self) -> str:
        """Field selector key that filters this kind by name."""
        if self is ResourceKind.EVENT:
            return "involvedObject.name"
        return "metadata.name"


_METHOD_SUFFIXES: dict[ResourceKind, str] = {
    ResourceKind.DEPLOYMENT: "deployment",
    ResourceKind.REPLICA_SET: "replica_set",
    ResourceKind.POD: "pod",
    ResourceKind.SECRET: "secret",
    ResourceKind.EVENT: "event",
}

_SDK_MODELS: dict[ResourceKind, str] = {
    ResourceKind.DEPLOYMENT: "V1Deployment",
    ResourceKind.REPLICA_SET: "V1ReplicaSet",
    ResourceKind.POD: "V1Pod",
    ResourceKind.SECRET: "V1Secret",
    ResourceKind.EVENT: "CoreV1Event",
}

_SUMMARY_MODELS: dict[ResourceKind, type[K8sEntityBase]] = {
    ResourceKind.DEPLOYMENT: DeploymentSummary,
    ResourceKind.REPLICA_SET: ReplicaSetSummary,
    ResourceKind.POD: PodSummary,
    ResourceKind.SECRET: SecretSummary,
    ResourceKind.EVENT: EventSummary,
}


@dataclass(frozen=True)
class WatchScope:
    """What a watch session subscribes to.

    A scope filters one resource kind in one namespace, either by name or by
    label equality. With neither set it covers the whole namespace.
    """

    kind: ResourceKind
    namespace: str
    name: str | None = None
    labels: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if self.name is not None and self.labels:
            raise ValueError("a watch scope filters by name or by labels, not both")

    @classmethod
    def for_name(cls, kind: ResourceKind, namespace: str, name: str) -> WatchScope:
        """Scope a single resource by name."""
        return cls(kind=kind, namespace=namespace, name=name)

    @classmethod
    def for_labels(
        cls, kind: ResourceKind, namespace: str, labels: dict[str, str]
    ) -> WatchScope:
        """Scope a resource family by label equality."""
        return cls(kind=kind, namespace=namespace, labels=tuple(sorted(labels.items())))

    @property
    def field_selector(self) -> str | None:
        """Field selector string, if the scope filters by name."""
        if self.name is None:
            return None
        return f"{self.kind.name_field}={self.name}"

    @property
    def label_selector(self) -> str | None:
        """Label selector string, if the scope filters by labels."""
        if not self.labels:
            return None
        return ",".join(f"{key}={value}" for key, value in self.labels)

    def selector_kwargs(self) -> dict[str, str]:
        """Selector keyword arguments for ``list_namespaced_*`` calls."""
        kwargs: dict[str, str] = {}
        if field_selector := self.field_selector:
            kwargs["field_selector"] = field_selector
        if label_selector := self.label_selector:
            kwargs["label_selector"] = label_selector
        return kwargs

    def __str__(self) -> str:
        selector = self.field_selector or self.label_selector or "*"
        return f"{self.kind}[{selector}] in {self.namespace}"
