"""Shared fixtures for harness service tests."""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from typing import Any
from unittest.mock import MagicMock

import pytest
from kubernetes.client import (
    CoreV1Event,
    V1Deployment,
    V1DeploymentSpec,
    V1DeploymentStatus,
    V1LabelSelector,
    V1ListMeta,
    V1ObjectMeta,
    V1ObjectReference,
    V1OwnerReference,
    V1Pod,
    V1PodTemplateSpec,
    V1ReplicaSet,
    V1Secret,
)

from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
from cluster_test_harness.integrations.kubernetes.config import HarnessConfig
from cluster_test_harness.integrations.kubernetes.models import ResourceKind
from cluster_test_harness.services.kubernetes import TestEnvironment

NAMESPACE = "test-cases"

ApiCalls = dict[tuple[ResourceKind, str], MagicMock]


class FakeResponse:
    """Streaming watch response; a silent read blocks until ``shutdown()``."""

    def __init__(self) -> None:
        self.shut_down = threading.Event()
        self.closed = False

    def shutdown(self) -> None:
        self.shut_down.set()

    def close(self) -> None:
        self.closed = True


class FakeWatch:
    """Stand-in for ``kubernetes.watch.Watch`` replaying scripted events.

    Like the SDK, ``stream`` issues the list call with ``watch=True`` and
    reads the response it returns, and ``stop()`` only sets a flag checked
    between events. After the scripted events the stream either ends (the
    server closed it), raises ``error``, or, when ``hold_open``, blocks on the
    response until its socket is shut down.
    """

    def __init__(
        self,
        events: Iterable[dict[str, Any]] = (),
        *,
        hold_open: bool = False,
        error: Exception | None = None,
    ) -> None:
        self.events = list(events)
        self.hold_open = hold_open
        self.error = error
        self.stream_calls: list[dict[str, Any]] = []
        self.responses: list[FakeResponse] = []
        self.stopped = threading.Event()
        self._api_client = MagicMock()

    def stream(self, func: Callable[..., Any], **kwargs: Any) -> Iterator[dict[str, Any]]:
        self.stream_calls.append(dict(kwargs))
        response = func(watch=True, _preload_content=False, **kwargs)
        self.responses.append(response)
        try:
            for event in self.events:
                if self.stopped.is_set():
                    return
                yield event
            if self.error is not None:
                raise self.error
            if self.hold_open:
                response.shut_down.wait()
        finally:
            response.close()

    def stop(self) -> None:
        self.stopped.set()


def watch_endpoint(list_call: Callable[..., Any] | None = None) -> Callable[..., Any]:
    """``list_namespaced_*`` method answering watch requests with a FakeResponse.

    Plain list requests go to ``list_call`` (an empty listing if None).
    """

    def list_namespaced(**kwargs: Any) -> Any:
        if kwargs.pop("watch", False):
            kwargs.pop("_preload_content", None)
            return FakeResponse()
        return list_call(**kwargs) if list_call is not None else listing()

    return list_namespaced


class WatchScript:
    """Hands out one FakeWatch per session, in order."""

    def __init__(self, *watches: FakeWatch) -> None:
        self.watches = list(watches)
        self.created: list[FakeWatch] = []

    def __call__(self) -> FakeWatch:
        if not self.watches:
            raise AssertionError("no more scripted watch sessions")
        watch = self.watches.pop(0)
        self.created.append(watch)
        return watch


# =============================================================================
# SDK object builders
# =============================================================================


def deployment(
    name: str = "web",
    *,
    uid: str = "d-1",
    ready: int | None = None,
    selector: dict[str, str] | None = None,
) -> V1Deployment:
    spec = None
    if selector is not None:
        spec = V1DeploymentSpec(
            selector=V1LabelSelector(match_labels=selector),
            template=V1PodTemplateSpec(),
        )
    return V1Deployment(
        metadata=V1ObjectMeta(name=name, namespace=NAMESPACE, uid=uid),
        spec=spec,
        status=V1DeploymentStatus(ready_replicas=ready),
    )


def replica_set(name: str, *, uid: str, owner_uid: str) -> V1ReplicaSet:
    return V1ReplicaSet(
        metadata=V1ObjectMeta(
            name=name,
            namespace=NAMESPACE,
            uid=uid,
            owner_references=[
                V1OwnerReference(api_version="apps/v1", kind="Deployment", name="web", uid=owner_uid)
            ],
        )
    )


def k8s_event(involved_name: str, *, involved_uid: str, reason: str) -> CoreV1Event:
    return CoreV1Event(
        metadata=V1ObjectMeta(name=f"{involved_name}.{reason.lower()}", namespace=NAMESPACE),
        involved_object=V1ObjectReference(kind="ReplicaSet", name=involved_name, uid=involved_uid),
        reason=reason,
        message=f"{reason} for {involved_name}",
        type="Warning" if reason.startswith("Failed") else "Normal",
    )


def pod(name: str) -> V1Pod:
    return V1Pod(metadata=V1ObjectMeta(name=name, namespace=NAMESPACE))


def secret(name: str) -> V1Secret:
    return V1Secret(metadata=V1ObjectMeta(name=name, namespace=NAMESPACE), data={"key": "dg=="})


def watch_event(event_type: str, obj: Any) -> dict[str, Any]:
    return {"type": event_type, "object": obj}


def listing(*items: Any, resource_version: str = "100") -> MagicMock:
    """List response as returned by ``list_namespaced_*``."""
    response = MagicMock()
    response.items = list(items)
    response.metadata = V1ListMeta(resource_version=resource_version)
    return response


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def api_calls() -> ApiCalls:
    """One mock per (kind, verb), as resolved through ``api_for``."""
    return defaultdict(MagicMock)


@pytest.fixture
def mock_k8s_client(api_calls: ApiCalls) -> MagicMock:
    """Create a mock Kubernetes client with real error translation.

    Every ``list`` call returns an empty listing unless a test overrides it;
    watch requests on a list method get a FakeResponse instead.
    """

    def api_for(kind: ResourceKind, verb: str) -> Callable[..., Any]:
        if verb == "list":
            return watch_endpoint(api_calls[(kind, verb)])
        return api_calls[(kind, verb)]

    mock_client = MagicMock()
    mock_client.config = HarnessConfig(timeout=1.0, cooldown=0)
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    mock_client.api_for.side_effect = api_for
    for kind in ResourceKind:
        api_calls[(kind, "list")].return_value = listing()
    return mock_client


@pytest.fixture
def environment() -> TestEnvironment:
    """Test environment bound to the default namespace."""
    return TestEnvironment(namespace=NAMESPACE)
