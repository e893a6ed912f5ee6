"""Trigger policies: which signal marks a built target as stale."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Union

from .graph import is_file_node
from .meta import Metadata, current_command_hash, current_depends_hash, current_file_hash

if TYPE_CHECKING:
    from .context import BuildContext


class Trigger(str, Enum):
    ANY = "any"
    ALWAYS = "always"
    COMMAND = "command"
    DEPENDS = "depends"
    FILE = "file"
    MISSING = "missing"

    @classmethod
    def parse(cls, value: Union["Trigger", str]) -> "Trigger":
        if isinstance(value, Trigger):
            return value
        key = str(value or "").strip().lower()
        for member in cls:
            if member.value == key:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"unknown trigger {value!r} (expected one of: {valid})")


def command_changed(name: str, recorded: Metadata, context: "BuildContext") -> bool:
    return recorded.command != current_command_hash(name, context)


def depends_changed(name: str, recorded: Metadata, context: "BuildContext") -> bool:
    return recorded.depends != current_depends_hash(name, context)


def file_changed(name: str, recorded: Metadata, context: "BuildContext") -> bool:
    if not is_file_node(context.graph, name):
        return False
    current = current_file_hash(name, context)
    return current is None or current != recorded.file


Check = Callable[[str, Metadata, "BuildContext"], bool]

_SIGNALS: dict[str, Check] = {
    "command": command_changed,
    "depends": depends_changed,
    "file": file_changed,
}


def _always(name: str, recorded: Metadata, context: "BuildContext") -> bool:
    return True


def _missing(name: str, recorded: Metadata, context: "BuildContext") -> bool:
    # Existence is checked before any trigger runs.
    return False


def _any(name: str, recorded: Metadata, context: "BuildContext") -> bool:
    return (
        command_changed(name, recorded, context)
        or depends_changed(name, recorded, context)
        or file_changed(name, recorded, context)
    )


_EVALUATORS: dict[Trigger, Check] = {
    Trigger.ANY: _any,
    Trigger.ALWAYS: _always,
    Trigger.COMMAND: command_changed,
    Trigger.DEPENDS: depends_changed,
    Trigger.FILE: file_changed,
    Trigger.MISSING: _missing,
}

_UNHANDLED = set(Trigger) - set(_EVALUATORS)
if _UNHANDLED:  # pragma: no cover
    raise RuntimeError(f"triggers without an evaluator: {sorted(t.value for t in _UNHANDLED)}")


def resolve_trigger(name: str, context: "BuildContext") -> Trigger:
    """The target's own trigger if it declares one, otherwise the context default."""
    own = context.graph.nodes[name].get("trigger") if name in context.graph else None
    if own:
        return Trigger.parse(own)
    return context.trigger


def should_build(name: str, recorded: Optional[Metadata], context: "BuildContext") -> bool:
    """Decide whether an existing target must be rebuilt.

    Callers check existence first; a target with no recorded metadata is
    always stale.
    """
    if recorded is None:
        return True
    return _EVALUATORS[resolve_trigger(name, context)](name, recorded, context)


def stale_reasons(name: str, recorded: Optional[Metadata], context: "BuildContext") -> list[str]:
    """Every reason ``name`` would be rebuilt, without short-circuiting."""
    if recorded is None:
        return ["no recorded metadata"]
    trigger = resolve_trigger(name, context)
    if trigger is Trigger.ALWAYS:
        return ["trigger is always"]
    if trigger is Trigger.MISSING:
        return []
    watched = ("command", "depends", "file") if trigger is Trigger.ANY else (trigger.value,)
    return [f"{signal} changed" for signal in watched if _SIGNALS[signal](name, recorded, context)]
