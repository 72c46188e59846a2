"""Condition waits over Kubernetes watch streams.

A wait opens one watch session for a scope. A background thread pumps the
session's events into a queue and the waiting thread blocks on that queue
with the time left until a fixed deadline, so "next event" and "deadline
reached" race without fixed-interval polling. Every wait resolves to exactly
one of Matched, TimedOut, or StreamError, and closes its session first.
"""

from __future__ import annotations

import functools
import math
import queue
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from kubernetes import watch

from cluster_test_harness.integrations.kubernetes.config import (
    DEFAULT_COOLDOWN,
    DEFAULT_TIMEOUT,
)
from cluster_test_harness.integrations.kubernetes.exceptions import (
    ConditionNotMetError,
    ConditionTimeoutError,
    KubernetesError,
    ResourceListError,
    WatchStreamError,
)
from cluster_test_harness.integrations.kubernetes.models import (
    ChangeEvent,
    EventType,
    Matched,
    ResourceKind,
    StreamError,
    TimedOut,
    WaitResult,
    WatchScope,
)
from cluster_test_harness.integrations.kubernetes.models.base import _safe_get
from cluster_test_harness.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from cluster_test_harness.integrations.kubernetes.client import KubernetesClient
    from cluster_test_harness.services.kubernetes.environment import TestEnvironment

logger = structlog.get_logger()

# Extra seconds the API server keeps a watch open beyond the client budget
WATCH_TIMEOUT_MARGIN = 10

# Seconds close() waits for the pump thread to leave the stream
PUMP_JOIN_TIMEOUT = 5.0

ConditionPredicate = Callable[[ChangeEvent], bool]
WatchFactory = Callable[[], Any]


class _StreamClosed:
    """Queued by the pump thread when it leaves the stream."""

    __slots__ = ("error",)

    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error


class WatchSession:
    """One watch subscription with exactly one consumer.

    Lifecycle: ``open()`` starts the pump thread, ``next_event()`` hands out
    raw watch events in delivery order, ``close()`` stops the watch, shuts
    down the streaming HTTP response and waits for the pump thread to leave
    it. Use it as a context manager so it is closed on every exit path.

    ``Watch.stop()`` alone only ends the stream at the next event, so the
    session keeps its own handle on the response returned by the list call.
    """

    def __init__(
        self,
        list_func: Callable[..., Any],
        scope: WatchScope,
        *,
        server_timeout: int,
        resource_version: str | None = None,
        watch_factory: WatchFactory = watch.Watch,
    ) -> None:
        self._list_func = self._capture_response(list_func)
        self._scope = scope
        self._server_timeout = server_timeout
        self._resource_version = resource_version
        self._watch = watch_factory()
        self._events: queue.Queue[Any] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._response: Any = None
        self._log = logger.bind(entity="watch", scope=str(scope))

    def _capture_response(self, list_func: Callable[..., Any]) -> Callable[..., Any]:
        # Watch.stream reads the return type from the wrapped docstring
        @functools.wraps(list_func)
        def list_and_capture(*args: Any, **kwargs: Any) -> Any:
            response = list_func(*args, **kwargs)
            with self._lock:
                self._response = response
                closed = self._closed.is_set()
            if closed:
                self._release(response)
            return response

        return list_and_capture

    @property
    def is_open(self) -> bool:
        """Whether the session was opened and not yet closed."""
        return self._thread is not None and not self._closed.is_set()

    @property
    def has_pending(self) -> bool:
        """Whether an item is already waiting in the queue."""
        return not self._events.empty()

    def open(self) -> None:
        """Start streaming events for the scope."""
        if self._thread is not None:
            raise RuntimeError(f"watch session for {self._scope} already opened")

        kwargs: dict[str, Any] = {
            "namespace": self._scope.namespace,
            "timeout_seconds": self._server_timeout,
            **self._scope.selector_kwargs(),
        }
        if self._resource_version:
            kwargs["resource_version"] = self._resource_version

        self._thread = threading.Thread(
            target=self._pump,
            args=(kwargs,),
            name=f"watch-{self._scope.kind}",
            daemon=True,
        )
        self._thread.start()
        self._log.debug("watch_opened", server_timeout=self._server_timeout)

    def _pump(self, kwargs: dict[str, Any]) -> None:
        try:
            for event in self._watch.stream(self._list_func, **kwargs):
                if self._closed.is_set():
                    return
                self._events.put(event)
        except Exception as e:
            # Errors after close() come from tearing the response down
            if not self._closed.is_set():
                self._events.put(_StreamClosed(e))
            return
        if not self._closed.is_set():
            self._events.put(_StreamClosed())

    def next_event(self, timeout: float) -> dict[str, Any] | _StreamClosed:
        """Block until the next item arrives.

        Raises:
            queue.Empty: If nothing arrived within ``timeout`` seconds.
        """
        return self._events.get(timeout=max(timeout, 0.0))

    def close(self) -> None:
        """Stop the watch and release the server-side subscription.

        Returns once the pump thread has left the stream, or after
        ``PUMP_JOIN_TIMEOUT`` seconds with a warning.
        """
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            response = self._response

        self._watch.stop()
        if response is not None:
            self._release(response)

        if self._thread is not None:
            self._thread.join(timeout=PUMP_JOIN_TIMEOUT)
            if self._thread.is_alive():
                self._log.warning("watch_pump_still_running", timeout=PUMP_JOIN_TIMEOUT)

        # Each Watch builds an ApiClient of its own for deserialization
        self._watch._api_client.close()
        self._log.debug("watch_closed")

    def _release(self, response: Any) -> None:
        """Shut the response's socket down, unblocking a read in the pump thread."""
        try:
            response.shutdown()
        except (OSError, RuntimeError, ValueError) as e:
            # Already released by the stream's own teardown
            self._log.debug("watch_response_already_released", error=str(e))
        response.close()

    def __enter__(self) -> WatchSession:
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class ConditionWatcher(K8sBaseManager):
    """Resolves "has condition C become true for scope S".

    ``await_condition`` applies a caller-supplied predicate to each decoded
    event; ``await_deletion`` confirms a scope has become empty. Both enforce
    one wall-clock budget per call, checked on every loop iteration so a
    silent stream still times out.
    """

    _entity_name = "watcher"

    def __init__(
        self,
        client: KubernetesClient,
        environment: TestEnvironment,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        cooldown: float = DEFAULT_COOLDOWN,
        watch_factory: WatchFactory = watch.Watch,
    ) -> None:
        """Initialize the watcher.

        Args:
            client: Kubernetes API client instance.
            environment: Test environment every watch is scoped to.
            timeout: Default budget of a single wait in seconds.
            cooldown: Pause after a non-matching event when no other event is queued.
            watch_factory: Builds the ``kubernetes.watch.Watch`` of each session.
        """
        super().__init__(client, environment)
        self._timeout = timeout
        self._cooldown = cooldown
        self._watch_factory = watch_factory

    @property
    def timeout(self) -> float:
        """Default budget of a single wait in seconds."""
        return self._timeout

    def scope(
        self,
        kind: ResourceKind,
        *,
        name: str | None = None,
        labels: dict[str, str] | None = None,
    ) -> WatchScope:
        """Build a scope in the environment's namespace."""
        if labels:
            return WatchScope.for_labels(kind, self.namespace, labels)
        return WatchScope(kind=kind, namespace=self.namespace, name=name)

    def open_session(
        self,
        scope: WatchScope,
        *,
        budget: float,
        resource_version: str | None = None,
    ) -> WatchSession:
        """Create an unopened session for a scope."""
        return WatchSession(
            self._client.api_for(scope.kind, "list"),
            scope,
            server_timeout=math.ceil(budget + self._cooldown) + WATCH_TIMEOUT_MARGIN,
            resource_version=resource_version,
            watch_factory=self._watch_factory,
        )

    # =========================================================================
    # Waits
    # =========================================================================

    def await_condition(
        self,
        scope: WatchScope,
        predicate: ConditionPredicate,
        timeout: float | None = None,
    ) -> WaitResult:
        """Wait until an event in scope satisfies the predicate.

        Events whose payload does not decode as the scope's kind are treated
        as "not yet". The first matching event wins; later events are never
        looked at.

        Args:
            scope: What to watch.
            predicate: Pure function over a decoded event.
            timeout: Budget in seconds (watcher default if None).

        Returns:
            Matched with the event, TimedOut, or StreamError.
        """
        budget = self._timeout if timeout is None else timeout
        started = time.monotonic()
        deadline = started + budget
        self._log.debug("awaiting_condition", scope=str(scope), timeout=budget)

        with self.open_session(scope, budget=budget) as session:
            while True:
                item = self._next_item(session, deadline)
                if item is None:
                    return self._timed_out(scope, budget, started)
                if isinstance(item, _StreamClosed):
                    return self._stream_error(scope, cause=item.error)

                event = ChangeEvent.from_watch_event(item, scope.kind)
                if event.type is EventType.ERROR:
                    return self._stream_error(scope, status=event.raw)
                if event.payload is not None and predicate(event):
                    self._log.info(
                        "condition_matched",
                        scope=str(scope),
                        name=event.name,
                        event_type=str(event.type),
                    )
                    return Matched(event)

                self._log.debug("condition_not_met", scope=str(scope), event_type=str(event.type))
                self._cool_down(session, deadline)

    def await_deletion(self, scope: WatchScope, timeout: float | None = None) -> WaitResult:
        """Wait until no object remains in scope.

        Lists the scope first; an empty scope matches immediately without
        opening a watch. Otherwise the watch resumes from the list's
        resourceVersion and tracks names until the last one is deleted.

        Raises:
            ResourceListError: If the initial list fails.
        """
        budget = self._timeout if timeout is None else timeout
        started = time.monotonic()
        deadline = started + budget

        try:
            listing = self._client.api_for(scope.kind, "list")(
                namespace=scope.namespace, **scope.selector_kwargs()
            )
        except Exception as e:
            self._raise_operation_error(ResourceListError, e, str(scope.kind))

        remaining: set[str] = {
            name for item in listing.items if (name := _safe_get(item, "metadata", "name"))
        }
        if not remaining:
            self._log.debug("deletion_confirmed", scope=str(scope))
            return Matched()

        self._log.info("awaiting_deletion", scope=str(scope), count=len(remaining), timeout=budget)
        resource_version = _safe_get(listing, "metadata", "resource_version")

        with self.open_session(scope, budget=budget, resource_version=resource_version) as session:
            while True:
                item = self._next_item(session, deadline)
                if item is None:
                    return self._timed_out(scope, budget, started)
                if isinstance(item, _StreamClosed):
                    return self._stream_error(scope, cause=item.error)

                event = ChangeEvent.from_watch_event(item, scope.kind)
                if event.type is EventType.ERROR:
                    return self._stream_error(scope, status=event.raw)
                if event.name is not None:
                    if event.type is EventType.DELETED:
                        remaining.discard(event.name)
                    elif event.type is EventType.ADDED:
                        remaining.add(event.name)
                if not remaining:
                    self._log.info("deletion_confirmed", scope=str(scope))
                    return Matched(event)

                self._cool_down(session, deadline)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _next_item(
        self, session: WatchSession, deadline: float
    ) -> dict[str, Any] | _StreamClosed | None:
        """Next queued item, or None once the deadline has passed."""
        while (remaining := deadline - time.monotonic()) > 0:
            try:
                return session.next_event(remaining)
            except queue.Empty:
                continue
        return None

    def _cool_down(self, session: WatchSession, deadline: float) -> None:
        """Pause after a non-matching event, never past the deadline."""
        if self._cooldown <= 0 or session.has_pending:
            return
        pause = min(self._cooldown, deadline - time.monotonic())
        if pause > 0:
            time.sleep(pause)

    def _timed_out(self, scope: WatchScope, budget: float, started: float) -> TimedOut:
        elapsed = time.monotonic() - started
        self._log.warning("condition_timed_out", scope=str(scope), timeout=budget, elapsed=elapsed)
        return TimedOut(timeout=budget, elapsed=elapsed)

    def _stream_error(
        self,
        scope: WatchScope,
        *,
        cause: BaseException | None = None,
        status: Any = None,
    ) -> StreamError:
        self._log.warning(
            "watch_stream_closed",
            scope=str(scope),
            error=str(cause) if cause is not None else None,
            status=status,
        )
        return StreamError(cause=cause, status=status)


def result_error(result: WaitResult, waiting_for: str) -> KubernetesError | None:
    """Error describing a wait that did not match, or None for Matched.

    Args:
        result: Outcome of a wait.
        waiting_for: What was awaited, e.g. "deployment web to be ready".
    """
    if isinstance(result, Matched):
        return None
    if isinstance(result, TimedOut):
        return ConditionTimeoutError(
            f"timeout reached while waiting for {waiting_for}",
            timeout_seconds=result.timeout,
        )
    if isinstance(result, StreamError):
        return WatchStreamError(
            f"watch stream closed while waiting for {waiting_for}",
            original_error=result.cause,
            status=result.status,
        )
    return ConditionNotMetError(f"failed to wait for {waiting_for}")
