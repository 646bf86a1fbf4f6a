"""Handler parameter descriptors and argument resolution.

Two steps, kept separate so the algorithm is plain data transformation:

- ``describe()`` inspects a handler method once and returns frozen
  ``ParameterDescriptor`` tuples (cached per function of an imported module).
- ``resolve()`` turns descriptors, the invocation context, and the path
  arguments into a ``Resolution`` — the exact ``*args, **kwargs`` to
  call the method with — or raises a ``DispatchError``.

Resolution order per parameter:

1. Context value whose name equals the parameter name (no type check)
2. Remaining-arguments container (``PathArguments``, ``list[str]``,
   ``tuple[str, ...]``, ``*args``) — last positional parameter only
3. Unused context value that is an instance of the annotated class
4. ``Fetchable`` entity — one path argument used as identifier
5. ``str`` / ``int`` / ``bool`` / unannotated — next path argument

Anything else is an ``InvalidParameterType``. Every parameter is
classified before any path argument is consumed, so configuration
errors surface regardless of how many arguments the request carried.
"""

from __future__ import annotations

import inspect
import re
import sys
import types
import typing
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import cache
from typing import Any, Protocol, get_args, get_origin, runtime_checkable

from perch.dispatch.arguments import PathArguments
from perch.errors import (
    DictionaryNotLast,
    ExpectingArgument,
    InvalidParameterType,
    MissingArgument,
    MissingIdentifierArgument,
)

_EMPTY = inspect.Parameter.empty

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})

# ASCII digits only: no underscores, padding, or other Unicode numerals
_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)


def _to_int(value: str) -> int:
    if not _INTEGER_RE.fullmatch(value):
        msg = f"not an integer: {value!r}"
        raise ValueError(msg)
    return int(value)


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    msg = f"not a boolean: {value!r}"
    raise ValueError(msg)


# (name used in error messages, converter) for each scalar type
CONVERTERS: dict[type, tuple[str, Callable[[str], Any]]] = {
    str: ("string", str),
    int: ("integer", _to_int),
    bool: ("boolean", _to_bool),
}


def convert_scalar(value: str, target: type) -> Any:
    """Convert a path argument string to *target*.

    Raises ``ValueError`` if the string cannot be converted.
    Raises ``KeyError`` if *target* is not a supported scalar type.
    """
    _, converter = CONVERTERS[target]
    return converter(value)


@runtime_checkable
class Fetchable(Protocol):
    """An entity type that can be looked up by a path argument.

    ``fetch`` returns ``None`` (or raises ``LookupError``) on a miss::

        class Article:
            @classmethod
            def fetch(cls, identifier: str) -> Article | None:
                return store.get(identifier)
    """

    @classmethod
    def fetch(cls, identifier: str) -> Any: ...


class ParameterKind(Enum):
    POSITIONAL = "positional"
    KEYWORD = "keyword"
    VAR_POSITIONAL = "var_positional"


@dataclass(frozen=True, slots=True)
class ParameterDescriptor:
    """One declared handler parameter.

    Attributes:
        name: Parameter name as declared.
        position: 0-based index in the parameter list (``self`` excluded).
        annotation: Normalised annotation; ``None`` when untyped.
        kind: Positional, keyword-only, or ``*args``.
        default: Declared default, or ``inspect.Parameter.empty``.
        optional: Declared as ``X | None``.
    """

    name: str
    position: int
    annotation: Any = None
    kind: ParameterKind = ParameterKind.POSITIONAL
    default: Any = _EMPTY
    optional: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not _EMPTY

    @property
    def type_name(self) -> str:
        if self.annotation is None:
            return "mixed"
        if self.annotation in CONVERTERS:
            return CONVERTERS[self.annotation][0]
        if get_origin(self.annotation) is not None:
            return str(self.annotation)
        return getattr(self.annotation, "__name__", str(self.annotation))


@dataclass(frozen=True, slots=True)
class Resolution:
    """Concrete call arguments for a handler method."""

    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)


# -- Introspection --


def _normalize_annotation(annotation: Any) -> Any:
    """Map an inspected annotation to what the resolver matches on.

    ``X | None`` and ``Optional[X]`` become ``X``; missing annotations
    and ``Any`` become ``None`` (untyped).
    """
    if annotation is _EMPTY or annotation is Any:
        return None
    if _is_union(annotation):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return _normalize_annotation(args[0])
    return annotation


def _is_union(annotation: Any) -> bool:
    origin = get_origin(annotation)
    return origin is types.UnionType or origin is typing.Union


def _is_optional(annotation: Any) -> bool:
    return _is_union(annotation) and type(None) in get_args(annotation)


_KINDS = {
    inspect.Parameter.POSITIONAL_ONLY: ParameterKind.POSITIONAL,
    inspect.Parameter.POSITIONAL_OR_KEYWORD: ParameterKind.POSITIONAL,
    inspect.Parameter.KEYWORD_ONLY: ParameterKind.KEYWORD,
    inspect.Parameter.VAR_POSITIONAL: ParameterKind.VAR_POSITIONAL,
}


def _describe_function(func: Callable[..., Any], skip_first: bool) -> tuple[ParameterDescriptor, ...]:
    sig = inspect.signature(func, eval_str=True)
    params = list(sig.parameters.values())
    if skip_first:
        params = params[1:]

    descriptors: list[ParameterDescriptor] = []
    for position, param in enumerate(params):
        kind = _KINDS.get(param.kind)
        if kind is None:
            # **kwargs never receives anything
            continue
        descriptors.append(
            ParameterDescriptor(
                name=param.name,
                position=position,
                annotation=_normalize_annotation(param.annotation),
                kind=kind,
                default=param.default,
                optional=_is_optional(param.annotation),
            )
        )
    return tuple(descriptors)


_describe_cached = cache(_describe_function)


def describe(method: Callable[..., Any]) -> tuple[ParameterDescriptor, ...]:
    """Return the parameter descriptors for a handler method.

    Bound methods are described through their underlying function so the
    result is computed once per class, not once per handler instance.

    Only functions of imported modules are cached. Handler scripts run
    afresh for every request and their functions hold that request's
    context through their globals, so they are described uncached.
    """
    func = getattr(method, "__func__", None)
    skip_first = func is not None
    if func is None:
        func = method
    if getattr(func, "__module__", None) in sys.modules:
        return _describe_cached(func, skip_first)
    return _describe_function(func, skip_first)


# -- Resolution --


class _Source(Enum):
    CONTEXT = "context"
    DEFAULT = "default"
    REMAINING = "remaining"
    ENTITY = "entity"
    SCALAR = "scalar"


@dataclass(frozen=True, slots=True)
class _Step:
    descriptor: ParameterDescriptor
    source: _Source
    value: Any = None


def _is_remaining_container(annotation: Any) -> bool:
    if annotation in (list, tuple):
        return True
    origin = get_origin(annotation)
    if origin is list:
        return get_args(annotation) == (str,)
    if origin is tuple:
        return get_args(annotation) == (str, ...)
    return inspect.isclass(annotation) and issubclass(annotation, PathArguments)


def _wrap_remaining(annotation: Any, remaining: Sequence[str]) -> Any:
    container = get_origin(annotation) or annotation
    if container is list:
        return list(remaining)
    if container is tuple:
        return tuple(remaining)
    return container(remaining)


def _find_instance(context: Mapping[str, Any], cls: type, used: set[str]) -> str | None:
    """Return the first unused context key whose value is a *cls* instance."""
    for key, value in context.items():
        if key not in used and isinstance(value, cls):
            return key
    return None


def _may_default(d: ParameterDescriptor) -> bool:
    """True if an unmatched class parameter may fall back to its default.

    Builtin types other than the scalars never fall back. Any other
    class must be declared ``X | None`` (or be keyword-only) to be left
    to its default when the context has no instance of it.
    """
    if not d.has_default or d.annotation.__module__ == "builtins":
        return False
    return d.optional or d.kind is ParameterKind.KEYWORD


def _plan(
    descriptors: Sequence[ParameterDescriptor],
    context: Mapping[str, Any],
) -> list[_Step]:
    """Decide where every parameter's value comes from.

    Pure with respect to path arguments: raises ``InvalidParameterType``
    and ``DictionaryNotLast`` before anything is consumed.
    """
    positional = [d for d in descriptors if d.kind is not ParameterKind.KEYWORD]
    last_positional = positional[-1] if positional else None

    used: set[str] = set()
    steps: list[_Step] = []
    for d in descriptors:
        annotation = d.annotation

        if d.kind is not ParameterKind.VAR_POSITIONAL and d.name in context and d.name not in used:
            used.add(d.name)
            steps.append(_Step(d, _Source.CONTEXT, context[d.name]))
            continue

        if d.kind is ParameterKind.VAR_POSITIONAL or _is_remaining_container(annotation):
            if d is not last_positional:
                raise DictionaryNotLast(d.name)
            steps.append(_Step(d, _Source.REMAINING))
            continue

        if inspect.isclass(annotation) and annotation not in CONVERTERS:
            key = _find_instance(context, annotation, used)
            if key is not None:
                used.add(key)
                steps.append(_Step(d, _Source.CONTEXT, context[key]))
            elif d.kind is ParameterKind.POSITIONAL and isinstance(annotation, Fetchable):
                steps.append(_Step(d, _Source.ENTITY))
            elif _may_default(d):
                steps.append(_Step(d, _Source.DEFAULT, d.default))
            else:
                raise InvalidParameterType(d.type_name)
            continue

        if d.kind is ParameterKind.KEYWORD:
            # Keyword-only parameters never consume path arguments
            if not d.has_default:
                raise InvalidParameterType(d.type_name)
            steps.append(_Step(d, _Source.DEFAULT, d.default))
            continue

        if annotation is None or annotation in CONVERTERS:
            steps.append(_Step(d, _Source.SCALAR))
            continue

        raise InvalidParameterType(d.type_name)
    return steps


def _fetch(entity_type: Any, identifier: str, position: int) -> Any:
    try:
        entity = entity_type.fetch(identifier)
    except LookupError:
        entity = None
    if entity is None:
        raise MissingIdentifierArgument(position)
    return entity


def _scalar(d: ParameterDescriptor, raw: str) -> Any:
    if d.annotation is None:
        return raw
    try:
        return convert_scalar(raw, d.annotation)
    except ValueError:
        raise MissingArgument(d.type_name, d.position) from None


def resolve(
    descriptors: Sequence[ParameterDescriptor],
    context: Mapping[str, Any],
    arguments: Sequence[str],
) -> Resolution:
    """Bind *context* values and *arguments* to *descriptors*.

    Path arguments are consumed left to right; whatever is left after the
    last parameter is discarded. Raises a ``DispatchError`` subclass when
    a parameter cannot be bound. Nothing is returned partially bound.
    """
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    index = 0

    for step in _plan(descriptors, context):
        d = step.descriptor
        match step.source:
            case _Source.CONTEXT | _Source.DEFAULT:
                value = step.value
            case _Source.REMAINING:
                remaining = arguments[index:]
                index = len(arguments)
                if d.kind is ParameterKind.VAR_POSITIONAL:
                    args.extend(remaining)
                    continue
                value = _wrap_remaining(d.annotation, remaining)
            case _Source.ENTITY:
                if index >= len(arguments):
                    raise MissingIdentifierArgument(d.position)
                value = _fetch(d.annotation, arguments[index], d.position)
                index += 1
            case _Source.SCALAR:
                if index < len(arguments):
                    value = _scalar(d, arguments[index])
                    index += 1
                elif d.has_default:
                    value = d.default
                elif d.annotation is None:
                    raise ExpectingArgument(d.position + 1)
                else:
                    raise MissingArgument(d.type_name, d.position)

        if d.kind is ParameterKind.KEYWORD:
            kwargs[d.name] = value
        else:
            args.append(value)

    return Resolution(args=tuple(args), kwargs=kwargs)
