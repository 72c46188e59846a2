"""Watch change events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import kubernetes.client
from pydantic import ValidationError

from cluster_test_harness.integrations.kubernetes.models.base import K8sEntityBase
from cluster_test_harness.integrations.kubernetes.models.resources import ResourceKind


class EventType(StrEnum):
    """Watch event types reported by the API server."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ChangeEvent:
    """One decoded watch event.

    ``payload`` holds the typed summary when the event's object is the kind
    the session watches, and ``None`` otherwise (status objects on ERROR
    events, bookmarks, objects of an unexpected kind). ``raw`` keeps the
    undecoded object for diagnostics.
    """

    type: EventType
    kind: ResourceKind
    payload: K8sEntityBase | None = None
    raw: Any = None

    @classmethod
    def from_watch_event(cls, event: dict[str, Any], kind: ResourceKind) -> ChangeEvent:
        """Decode a ``kubernetes.watch.Watch.stream`` event dict."""
        event_type = EventType(event.get("type", EventType.ERROR))
        obj = event.get("object")
        payload = None
        if event_type is not EventType.ERROR:
            payload = _decode_payload(obj, kind)
        return cls(type=event_type, kind=kind, payload=payload, raw=obj)

    @property
    def name(self) -> str | None:
        """Name of the payload resource, if any."""
        return self.payload.name if self.payload is not None else None


def _decode_payload(obj: Any, kind: ResourceKind) -> K8sEntityBase | None:
    sdk_model = getattr(kubernetes.client, kind.sdk_model)
    if not isinstance(obj, sdk_model):
        return None
    try:
        return kind.summary_model.from_k8s_object(obj)
    except ValidationError:
        return None
