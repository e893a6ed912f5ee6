"""Staleness detection for Make-like pipelines."""

from .config import Settings
from .context import BuildContext, assert_context, build_context
from .errors import (
    CacheScopeViolation,
    ConfigTypeError,
    GraphCycleError,
    MetadataReadError,
    StalecheckError,
    WorkerEvaluationError,
)
from .graph import BuildGraph, NodeKind
from .meta import Metadata, dependency_profile, record_build
from .outdated import first_outdated, missed, outdated
from .store import MetaStore
from .triggers import Trigger

__all__ = [
    "BuildContext",
    "BuildGraph",
    "CacheScopeViolation",
    "ConfigTypeError",
    "GraphCycleError",
    "MetaStore",
    "Metadata",
    "MetadataReadError",
    "NodeKind",
    "Settings",
    "StalecheckError",
    "Trigger",
    "WorkerEvaluationError",
    "assert_context",
    "build_context",
    "dependency_profile",
    "first_outdated",
    "missed",
    "outdated",
    "record_build",
]
