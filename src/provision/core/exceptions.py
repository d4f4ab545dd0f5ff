from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence


class ProvisionError(Exception):
    """Base exception for the provision engine.

    ``kind`` is the stable error identifier surfaced in verification reports.
    """

    kind: str = "ProvisionError"
    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.kind,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Configuration errors (block one Context only)
# ---------------------------------------------------------------------------


class ValidationError(ProvisionError, ValueError):
    """Raised when a Property value fails its validator."""

    kind = "ValidationError"

    def __init__(
        self,
        message: str = "",
        *,
        property_name: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if property_name:
            ctx["property"] = property_name
        ProvisionError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)
        self.property_name = property_name


class MissingRequiredPropertyError(ValidationError):
    """Raised when a required Property has neither a value nor a default."""

    kind = "MissingRequiredProperty"


class UnknownPropertyError(ValidationError):
    """Raised when an option does not match any Property of the Context type."""

    kind = "UnknownProperty"


class ConfigurationError(ProvisionError):
    """Aggregate of several configuration errors, reported together."""

    kind = "ConfigurationError"

    def __init__(
        self,
        message: str = "",
        *,
        errors: Sequence[Any] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.errors: List[Any] = list(errors or [])

    def to_json_error(self) -> Dict[str, Any]:
        payload = super().to_json_error()
        payload["errors"] = [
            e.to_json_error() if isinstance(e, ProvisionError) else {"message": str(e)}
            for e in self.errors
        ]
        return payload


# ---------------------------------------------------------------------------
# Dependency-graph errors
# ---------------------------------------------------------------------------


class UnresolvedCapabilityError(ProvisionError, LookupError):
    """Raised when a required capability has no usable provider."""

    kind = "UnresolvedCapability"

    def __init__(
        self,
        message: str = "",
        *,
        capability: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if capability:
            ctx["capability"] = capability
        ProvisionError.__init__(self, message, context=ctx)
        LookupError.__init__(self, message)
        self.capability = capability


class AmbiguousCapabilityError(UnresolvedCapabilityError):
    """Raised when several providers match and none was selected explicitly."""

    kind = "AmbiguousCapability"


class DuplicateProviderError(ProvisionError):
    """Raised when a capability already has a different provider in a scope."""

    kind = "DuplicateProvider"


class DependencyCycleError(ProvisionError):
    """Raised when no valid verification order exists."""

    kind = "DependencyCycle"

    def __init__(
        self,
        message: str = "",
        *,
        cycle: Sequence[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        self.cycle: List[str] = list(cycle or [])
        if self.cycle:
            ctx["cycle"] = list(self.cycle)
        super().__init__(message, context=ctx)


class DuplicateContextError(ProvisionError, ValueError):
    """Raised when a Context name is already taken in an inventory."""

    kind = "DuplicateContext"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ProvisionError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class DependencyFailedError(ProvisionError):
    """Raised when a provider verified in the same run did not reach Verified."""

    kind = "DependencyFailed"


# ---------------------------------------------------------------------------
# Task errors (converted to structured results at the Task boundary)
# ---------------------------------------------------------------------------


class TaskFailureError(ProvisionError):
    """Raised when a Task action fails."""

    kind = "TaskFailure"

    def __init__(
        self,
        message: str = "",
        *,
        exit_code: int | None = None,
        output: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if exit_code is not None:
            ctx["exit_code"] = exit_code
        super().__init__(message, context=ctx)
        self.exit_code = exit_code
        self.output = output


class SourceFetchFailedError(TaskFailureError):
    """Raised when the source-control collaborator fails."""

    kind = "SourceFetchFailed"


class BuildFailedError(TaskFailureError):
    """Raised when the build-tool collaborator fails."""

    kind = "BuildFailed"


class TaskTimeoutError(TaskFailureError):
    """Raised when an external command exceeds its bounded wait."""

    kind = "Timeout"


class TaskCancelledError(TaskFailureError):
    """Raised when a Task observes the caller's cancellation signal."""

    kind = "Cancelled"


# ---------------------------------------------------------------------------
# Structural / infrastructure errors
# ---------------------------------------------------------------------------


class StateTransitionError(ProvisionError, ValueError):
    """Raised when a Context lifecycle transition is not allowed."""

    kind = "StateTransitionError"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ProvisionError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class ContextNotFoundError(ProvisionError, KeyError):
    """Raised when a Context name is not known."""

    kind = "ContextNotFound"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ProvisionError.__init__(self, message, context=context)
        KeyError.__init__(self, message)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class UnknownContextTypeError(ProvisionError, ValueError):
    """Raised when a Context type tag has no registered implementation."""

    kind = "UnknownContextType"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ProvisionError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class RegistryLockedError(ProvisionError, RuntimeError):
    """Raised when the capability registry is mutated during a pipeline run."""

    kind = "RegistryLocked"

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ProvisionError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class PersistenceError(ProvisionError):
    """Raised when persisted Context state cannot be read or written."""

    kind = "PersistenceError"


__all__ = [
    "ProvisionError",
    "ValidationError",
    "MissingRequiredPropertyError",
    "UnknownPropertyError",
    "ConfigurationError",
    "UnresolvedCapabilityError",
    "AmbiguousCapabilityError",
    "DuplicateProviderError",
    "DuplicateContextError",
    "DependencyCycleError",
    "DependencyFailedError",
    "TaskFailureError",
    "SourceFetchFailedError",
    "BuildFailedError",
    "TaskTimeoutError",
    "TaskCancelledError",
    "StateTransitionError",
    "ContextNotFoundError",
    "UnknownContextTypeError",
    "RegistryLockedError",
    "PersistenceError",
]
