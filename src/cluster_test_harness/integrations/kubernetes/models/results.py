"""Outcomes of a condition wait."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cluster_test_harness.integrations.kubernetes.models.base import K8sEntityBase
from cluster_test_harness.integrations.kubernetes.models.events import ChangeEvent


@dataclass(frozen=True)
class Matched:
    """The predicate accepted an event.

    ``event`` is ``None`` when the condition already held before any watch
    was opened (deletion confirmation on an empty scope).
    """

    event: ChangeEvent | None = None

    @property
    def resource(self) -> K8sEntityBase | None:
        """Payload of the matching event."""
        return self.event.payload if self.event is not None else None


@dataclass(frozen=True)
class TimedOut:
    """The budget elapsed before a match."""

    timeout: float
    elapsed: float


@dataclass(frozen=True)
class StreamError:
    """The subscription ended before a match.

    ``cause`` is the exception raised by the stream, ``status`` the object
    carried by an ERROR watch event. Both are ``None`` when the server simply
    closed the stream.
    """

    cause: BaseException | None = None
    status: Any = None


WaitResult = Matched | TimedOut | StreamError
