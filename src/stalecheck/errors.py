from __future__ import annotations


class StalecheckError(RuntimeError):
    """Base class for errors raised by stalecheck."""


class ConfigTypeError(StalecheckError, TypeError):
    """Raised when something other than a resolved BuildContext is passed in."""


class MetadataReadError(StalecheckError):
    """Raised when stored metadata for a target is unreadable or invalid."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"cannot read metadata of {name!r}: {reason}")
        self.name = name
        self.reason = reason


class WorkerEvaluationError(StalecheckError):
    """Raised when one evaluation inside a parallel map fails."""

    def __init__(self, item: object, exc: BaseException):
        super().__init__(f"evaluation of {item!r} failed: {exc}")
        self.item = item


class CacheScopeViolation(StalecheckError):
    """The call-scoped hash memo was already populated at entry."""


class GraphCycleError(StalecheckError, ValueError):
    """Raised when the dependency graph is not acyclic."""
