"""Condition predicates over decoded watch events.

Each factory returns a pure function of one ChangeEvent. Payload variants
are matched structurally, so an event of another kind simply does not match.
"""

from __future__ import annotations

from cluster_test_harness.integrations.kubernetes.models import (
    ChangeEvent,
    DeploymentSummary,
    EventSummary,
    EventType,
    ReplicaSetSummary,
)
from cluster_test_harness.services.kubernetes.condition_watcher import ConditionPredicate

# Reason a ReplicaSet controller reports when it cannot create pods
FAILED_CREATE_REASON = "FailedCreate"


def deployment_ready(desired: int = 1) -> ConditionPredicate:
    """Match a Deployment whose ready replicas equal ``desired``."""

    def check(event: ChangeEvent) -> bool:
        if event.type is EventType.DELETED:
            return False
        match event.payload:
            case DeploymentSummary(ready_replicas=ready):
                return ready == desired
            case _:
                return False

    return check


def replica_set_owned_by(owner_uid: str) -> ConditionPredicate:
    """Match the first ReplicaSet owned by the object with ``owner_uid``."""

    def check(event: ChangeEvent) -> bool:
        if event.type is EventType.DELETED:
            return False
        match event.payload:
            case ReplicaSetSummary() as replica_set:
                return replica_set.is_owned_by(owner_uid)
            case _:
                return False

    return check


def failed_create(involved_uid: str | None = None) -> ConditionPredicate:
    """Match a FailedCreate Event, optionally only for one involved object."""

    def check(event: ChangeEvent) -> bool:
        match event.payload:
            case EventSummary(reason=reason, involved_object_uid=uid):
                if reason != FAILED_CREATE_REASON:
                    return False
                return involved_uid is None or uid == involved_uid
            case _:
                return False

    return check


def any_resource() -> ConditionPredicate:
    """Match any live object of the scope's kind."""

    def check(event: ChangeEvent) -> bool:
        return event.payload is not None and event.type is not EventType.DELETED

    return check
