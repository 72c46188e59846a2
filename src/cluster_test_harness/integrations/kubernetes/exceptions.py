"""Exception hierarchy of the cluster test harness.

Transport errors are translated from ``kubernetes.client.ApiException`` by
``KubernetesClient.translate_api_exception``. Lifecycle errors wrap one of
them with the operation that failed. Wait errors describe a condition wait
that did not match, and ``CleanupError`` is what finally fails a test.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class KubernetesError(Exception):
    """Root of every harness error.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status of the API response, if there was one.
        resource_type: Kind of the object involved, e.g. "Deployment".
        resource_name: Name of the object involved.
        namespace: Namespace of the object involved.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    @property
    def location(self) -> str | None:
        """``[Kind/name in namespace]`` when the object is known."""
        if not (self.resource_type and self.resource_name):
            return None
        suffix = f" in {self.namespace}" if self.namespace else ""
        return f"[{self.resource_type}/{self.resource_name}{suffix}]"

    def __str__(self) -> str:
        text = self.message
        if self.status_code:
            text += f" (status: {self.status_code})"
        if location := self.location:
            text += f" {location}"
        return text


# =============================================================================
# Transport Errors
# =============================================================================


class KubernetesConnectionError(KubernetesError):
    """No cluster could be reached or no credentials could be loaded."""

    def __init__(
        self,
        message: str = "cannot reach the Kubernetes API server",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message=message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """The API server refused the credentials (401) or the verb (403)."""

    def __init__(
        self,
        message: str = "request not authorized",
        status_code: int | None = 401,
        reason: str | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code)
        self.reason = reason


class KubernetesValidationError(KubernetesError):
    """The API server rejected an object as invalid (400/422)."""

    def __init__(
        self,
        message: str = "object rejected by the API server",
        validation_errors: dict[str, Any] | None = None,
        status_code: int | None = 422,
    ) -> None:
        super().__init__(message=message, status_code=status_code)
        self.validation_errors = validation_errors or {}


class _ObjectStateError(KubernetesError):
    """An object is in the wrong existence state for the request."""

    status: int
    state: str

    def __init__(
        self,
        message: str | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        if resource_type and resource_name:
            message = f"{resource_type} '{resource_name}' {self.state}"
            if namespace:
                message = f"{message} in namespace '{namespace}'"
        super().__init__(
            message=message or f"object {self.state}",
            status_code=self.status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )


class KubernetesNotFoundError(_ObjectStateError):
    """The object does not exist (404)."""

    status = 404
    state = "not found"


class KubernetesConflictError(_ObjectStateError):
    """The object already exists (409)."""

    status = 409
    state = "already exists"


# =============================================================================
# Lifecycle Errors
# =============================================================================


class ResourceOperationError(KubernetesError):
    """A create, list, or delete call against the cluster failed.

    Wraps the translated transport error so the fatal message names both the
    operation and its cause.

    Attributes:
        operation: The lifecycle operation ("create", "list", "delete").
        original_error: The translated underlying error.
    """

    operation: str = "operate on"

    def __init__(
        self,
        resource_type: str,
        resource_name: str | None = None,
        namespace: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        target = resource_type if resource_name is None else f"{resource_type} '{resource_name}'"
        message = f"failed to {self.operation} {target}"
        if original_error is not None:
            message += f": {original_error}"
        status_code = getattr(original_error, "status_code", None)
        super().__init__(
            message=message,
            status_code=status_code,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )
        self.original_error = original_error


class ResourceCreateError(ResourceOperationError):
    """The cluster rejected a create (validation, conflict, or transport)."""

    operation = "create"


class ResourceListError(ResourceOperationError):
    """Listing a resource collection failed."""

    operation = "list"


class ResourceDeleteError(ResourceOperationError):
    """A delete request was not accepted."""

    operation = "delete"


# =============================================================================
# Wait Errors
# =============================================================================


class ConditionTimeoutError(KubernetesError):
    """A watched condition was not observed within its timeout budget."""

    def __init__(
        self,
        message: str = "Kubernetes condition timed out",
        timeout_seconds: float | None = None,
    ) -> None:
        if timeout_seconds:
            message = f"{message} (after {timeout_seconds:g}s)"
        super().__init__(message=message)
        self.timeout_seconds = timeout_seconds


class WatchStreamError(KubernetesError):
    """The watch subscription terminated before the condition matched."""

    def __init__(
        self,
        message: str = "Watch stream closed unexpectedly",
        original_error: BaseException | None = None,
        status: Any = None,
    ) -> None:
        if original_error is not None:
            message = f"{message}: {original_error}"
        elif status is not None:
            message = f"{message}: {status}"
        super().__init__(message=message)
        self.original_error = original_error
        self.status = status


class ConditionNotMetError(KubernetesError):
    """A wait ended without a match, a timeout, or a stream error."""

    def __init__(self, message: str = "Condition was not met") -> None:
        super().__init__(message=message)


# =============================================================================
# Cleanup
# =============================================================================


class CleanupError(KubernetesError):
    """Aggregate of the originating test error and every teardown failure.

    Attributes:
        observed_error: The error that triggered cleanup, if any.
        errors: Failures raised by individual teardown steps.
    """

    def __init__(
        self,
        observed_error: BaseException | None = None,
        errors: Sequence[BaseException] = (),
    ) -> None:
        self.observed_error = observed_error
        self.errors = list(errors)

        lines = []
        if observed_error is not None:
            lines.append(f"test failed: {observed_error}")
        if self.errors:
            lines.append(f"cleanup failed with {len(self.errors)} error(s):")
            lines.extend(f"  - {error}" for error in self.errors)
        super().__init__(message="\n".join(lines) or "cleanup failed")

    def __str__(self) -> str:
        return self.message
