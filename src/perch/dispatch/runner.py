"""AppRunner — run one handler for one request.

Mutable during setup (``set_variable``, ``set_arguments``).
Frozen when ``execute()`` is called; each runner executes exactly once.

Pipeline::

    capture output
      └─ load script / class ──► response? done
                               └─ handler object
                                    ├─ pick method from first path argument
                                    ├─ inject public fields (+ set_logger)
                                    ├─ resolve parameters
                                    └─ invoke ──► response
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from perch.config import DispatchConfig
from perch.dispatch.arguments import PathArguments
from perch.dispatch.capture import OutputCapture
from perch.dispatch.loader import Outcome, load_script, load_target
from perch.dispatch.params import describe, resolve
from perch.errors import DispatchError, NoResponseProduced, UnknownController
from perch.http.response import Respond, Response

_log = logging.getLogger("perch.dispatch")

# Method names reachable from a URL
_METHOD_NAME_RE = re.compile(r"^[A-Za-z]\w*$")

# Hooks the runner calls itself; never dispatched to
_RESERVED_METHODS = frozenset({"set_logger"})

_MISSING = object()


@runtime_checkable
class LoggerAware(Protocol):
    """A handler that wants the logger through a setter."""

    def set_logger(self, logger: logging.Logger) -> None: ...


def _public_method(handler: Any, name: str) -> Callable[..., Any] | None:
    if not _METHOD_NAME_RE.match(name) or name in _RESERVED_METHODS:
        return None
    attr = getattr(handler, name, None)
    if attr is None or not callable(attr) or inspect.isclass(attr):
        return None
    return attr


def _is_public_field(handler: Any, name: str) -> bool:
    """True if *name* is a writable data attribute declared on *handler*."""
    if name.startswith("_"):
        return False
    attr = inspect.getattr_static(handler, name, _MISSING)
    if attr is _MISSING:
        return any(name in inspect.get_annotations(klass) for klass in type(handler).__mro__)
    if isinstance(attr, property | staticmethod | classmethod):
        return False
    return not inspect.isroutine(attr) and not inspect.isclass(attr)


class AppRunner:
    """Dispatch one request to a handler script, class, or object.

    Usage::

        runner = AppRunner("app/blog.py", ["article", "42"])
        runner.set_variable("request", request).set_variable("template", template)
        response = runner.execute()

    Context values reach the handler three ways: as globals of the
    script, as public fields of the handler object, and as method
    parameters (matched by name, then by type).

    Thread safety:
        None. A runner belongs to exactly one request.
    """

    __slots__ = (
        "_arguments",
        "_config",
        "_logger",
        "_started",
        "_target",
        "_variables",
    )

    def __init__(
        self,
        target: str | Path | Any,
        arguments: Iterable[str] = (),
        *,
        config: DispatchConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._target = target
        self._arguments: tuple[str, ...] = tuple(arguments)
        self._variables: dict[str, Any] = {}
        self._config: DispatchConfig = config or DispatchConfig()
        self._logger: logging.Logger = logger or _log
        self._started: bool = False

    # -- Context setup --

    def set_variable(self, name: str, value: Any) -> AppRunner:
        """Make *value* available to the handler as *name*."""
        self._check_not_started()
        self._variables[name] = value
        return self

    def set_variables(self, variables: Mapping[str, Any]) -> AppRunner:
        """Set several context values at once."""
        self._check_not_started()
        self._variables.update(variables)
        return self

    def get_variable(self, name: str, default: Any = None) -> Any:
        return self._variables.get(name, default)

    def set_arguments(self, arguments: Iterable[str]) -> AppRunner:
        """Replace the path arguments wholesale."""
        self._check_not_started()
        self._arguments = tuple(arguments)
        return self

    @property
    def variables(self) -> Mapping[str, Any]:
        return MappingProxyType(self._variables)

    @property
    def arguments(self) -> PathArguments:
        return PathArguments(self._arguments)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    # -- Execution --

    def execute(self) -> Response:
        """Run the handler and return its response.

        Raises a ``DispatchError`` subclass when the request cannot be
        bound to the handler. Exceptions from handler code propagate
        unchanged.
        """
        self._check_not_started()
        self._started = True

        variables = dict(self._variables)
        arguments = self._arguments
        capture = OutputCapture(self._logger, level=self._config.output_log_level)

        try:
            with capture:
                outcome = self._load(variables, arguments, capture)
                if outcome.is_response:
                    return outcome.response
                return self._dispatch(outcome.handler, variables, arguments, capture)
        except DispatchError as exc:
            self._logger.debug("%d %s: %s", exc.status, self._describe_target(), exc.detail)
            raise

    def _context(
        self,
        variables: Mapping[str, Any],
        arguments: tuple[str, ...],
        capture: OutputCapture,
        **extra: Any,
    ) -> Mapping[str, Any]:
        """Build the read-only context; caller-set values win over defaults."""
        context: dict[str, Any] = {
            "logger": self._logger,
            "arguments": PathArguments(arguments),
            "output": capture,
            **extra,
        }
        context.update(variables)
        return MappingProxyType(context)

    def _load(
        self,
        variables: Mapping[str, Any],
        arguments: tuple[str, ...],
        capture: OutputCapture,
    ) -> Outcome:
        if isinstance(self._target, str | Path):
            context = self._context(variables, arguments, capture)
            return load_script(self._target, context, output=capture, config=self._config)
        return load_target(self._target)

    def _select_method(
        self,
        handler: Any,
        arguments: tuple[str, ...],
    ) -> tuple[Callable[..., Any], tuple[str, ...], str | None]:
        """Pick the method to call from the first path argument.

        Returns the bound method, the arguments left for its parameters,
        and the suffix stripped from the method name (if any).
        """
        default = self._config.default_method
        requested = default
        if arguments:
            requested, suffix = arguments[0], None
            separator = self._config.suffix_separator
            if separator and separator in requested:
                requested, _, suffix = requested.partition(separator)
            method = _public_method(handler, requested)
            if method is not None:
                return method, arguments[1:], suffix

        method = _public_method(handler, default)
        if method is not None:
            return method, arguments, None
        raise UnknownController(requested)

    def _inject_fields(self, handler: Any, context: Mapping[str, Any]) -> None:
        if isinstance(handler, LoggerAware):
            handler.set_logger(context["logger"])
        for name, value in context.items():
            if _is_public_field(handler, name):
                setattr(handler, name, value)

    def _dispatch(
        self,
        handler: Any,
        variables: Mapping[str, Any],
        arguments: tuple[str, ...],
        capture: OutputCapture,
    ) -> Response:
        method, remaining, suffix = self._select_method(handler, arguments)
        extra = {"suffix": suffix} if suffix is not None else {}
        context = self._context(variables, remaining, capture, **extra)
        self._inject_fields(handler, context)

        resolution = resolve(describe(method), context, remaining)
        self._logger.debug(
            "Dispatching to %s.%s with %d argument(s)",
            type(handler).__name__,
            method.__name__,
            len(resolution.args) + len(resolution.kwargs),
        )

        try:
            result = method(*resolution.args, **resolution.kwargs)
        except Respond as exc:
            return exc.response

        if isinstance(result, Response):
            return result
        raise NoResponseProduced()

    # -- Internal --

    def _describe_target(self) -> str:
        if isinstance(self._target, str | Path):
            return str(self._target)
        if inspect.isclass(self._target):
            return self._target.__name__
        return type(self._target).__name__

    def _check_not_started(self) -> None:
        if self._started:
            msg = (
                "Cannot modify or re-run an AppRunner after execute() has been called. "
                "Create a new runner for each request."
            )
            raise RuntimeError(msg)
