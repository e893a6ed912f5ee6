from __future__ import annotations

import ast
import hashlib
import inspect
import json
import pickle
import textwrap
import types
from pathlib import Path
from typing import Any, Callable, Union

Command = Union[str, Callable[..., Any], None]

_CHUNK_SIZE = 1 << 20
_MAX_DEPTH = 64


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_file(path: str | Path) -> str:
    """Hash file contents in chunks so large outputs do not load into memory."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _type_name(cls: type) -> str:
    return f"{getattr(cls, '__module__', '')}.{getattr(cls, '__qualname__', cls.__name__)}"


def _code_form(code: types.CodeType) -> list[Any]:
    consts = [_code_form(c) if isinstance(c, types.CodeType) else _canonical(c) for c in code.co_consts]
    return ["code", code.co_code.hex(), consts, list(code.co_names)]


def _reduced_state(value: Any, depth: int, active: set[int]) -> Any:
    try:
        reduced = value.__reduce_ex__(4)
    except Exception:  # pylint: disable=broad-except
        reduced = None
    if isinstance(reduced, str):
        return ["global", reduced]
    if isinstance(reduced, tuple):
        parts = []
        # Index 0 is the reconstructor; the type name already identifies it.
        for item in reduced[1:]:
            if hasattr(item, "__next__"):
                item = list(item)
            parts.append(_canonical(item, depth + 1, active))
        return ["reduce", parts]
    if hasattr(value, "__dict__"):
        return ["vars", _canonical(vars(value), depth + 1, active)]
    try:
        return ["pickle", hashlib.sha256(pickle.dumps(value, protocol=4)).hexdigest()]
    except Exception:  # pylint: disable=broad-except
        return ["opaque"]


def _canonical(value: Any, depth: int = 0, active: set[int] | None = None) -> Any:
    """JSON-ready form of ``value`` that does not depend on the interpreter session.

    Sets and dicts are ordered by the encoding of their members, so the result
    is independent of PYTHONHASHSEED; nothing includes a memory address.
    """
    if active is None:
        active = set()
    cls = type(value)
    if value is None or cls in (bool, int, str):
        return value
    if cls is float:
        return ["float", repr(value)]
    if cls is complex:
        return ["complex", repr(value)]
    if cls in (bytes, bytearray):
        return [cls.__name__, bytes(value).hex()]
    if isinstance(value, types.CodeType):
        return _code_form(value)
    if isinstance(value, types.ModuleType):
        return ["module", value.__name__]
    if isinstance(value, type):
        return ["type", _type_name(value)]
    if inspect.isroutine(value):
        return ["routine", standardize_command(value)]
    if depth > _MAX_DEPTH:
        return ["deep", _type_name(cls)]

    key = id(value)
    if key in active:
        return ["cycle", _type_name(cls)]
    active.add(key)
    try:
        if cls in (list, tuple):
            return [cls.__name__, [_canonical(v, depth + 1, active) for v in value]]
        if cls is dict:
            items = [[_canonical(k, depth + 1, active), _canonical(v, depth + 1, active)] for k, v in value.items()]
            return ["dict", sorted(items, key=_dumps)]
        if isinstance(value, (set, frozenset)):
            name = cls.__name__ if cls in (set, frozenset) else _type_name(cls)
            return [name, sorted((_canonical(v, depth + 1, active) for v in value), key=_dumps)]
        return ["object", _type_name(cls), _reduced_state(value, depth, active)]
    finally:
        active.discard(key)


def standardize_command(command: Command) -> str:
    """Return a canonical text form of a command.

    Text that parses as Python is normalized through its AST, so reformatting
    or editing comments leaves the command hash unchanged. Functions are
    reduced to their source (or qualified name when the source is unavailable),
    lambdas to their bytecode, and callable instances to their type and state.
    """
    if command is None:
        return ""
    if callable(command):
        if inspect.isfunction(command) and command.__name__ == "<lambda>":
            # getsource() returns the whole line, which may hold other lambdas.
            return "lambda:" + _dumps(_code_form(command.__code__))
        if not (inspect.isroutine(command) or isinstance(command, type)):
            return f"{_type_name(type(command))}:{_dumps(_canonical(command))}"
        try:
            command = textwrap.dedent(inspect.getsource(command))
        except (OSError, TypeError):
            module = getattr(command, "__module__", "") or ""
            return f"{module}.{command.__qualname__}"
    text = str(command)
    try:
        tree = ast.parse(textwrap.dedent(text))
    except SyntaxError:
        return text.strip()
    return ast.dump(tree, annotate_fields=False, include_attributes=False)


def hash_command(command: Command) -> str:
    return hash_text(standardize_command(command))


def hash_object(value: Any) -> str:
    """Hash an in-memory value: functions by code, everything else by canonical content."""
    if inspect.isroutine(value):
        return hash_command(value)
    return hash_text(_dumps(_canonical(value)))
