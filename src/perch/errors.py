"""Perch exception hierarchy.

Shared across the loader, resolver, and runner so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when dispatch configuration is invalid."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    The hosting layer catches these and renders an error page; anything
    else raised by handler code reaches it untouched.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class DispatchError(HTTPError):
    """Base for every failure detected while dispatching to a handler."""


class UnknownController(DispatchError):  # noqa: N818
    """404 — the requested method does not exist on the handler."""

    def __init__(self, name: str) -> None:
        super().__init__(status=404, detail=f"Unknown controller: {name}")
        object.__setattr__(self, "name", name)


class DictionaryNotLast(DispatchError):  # noqa: N818
    """500 — a remaining-arguments parameter is followed by other parameters."""

    def __init__(self, parameter: str = "") -> None:
        super().__init__(status=500, detail="Dictionary must be last parameter")
        object.__setattr__(self, "parameter", parameter)


class MissingArgument(DispatchError):  # noqa: N818
    """400 — a scalar parameter has no usable path argument.

    Raised both when the path arguments ran out and when the next one
    could not be converted to the declared type.
    """

    def __init__(self, type_name: str, position: int) -> None:
        super().__init__(
            status=400,
            detail=f"Invalid arguments - missing {type_name} as argument {position}",
        )
        object.__setattr__(self, "type_name", type_name)
        object.__setattr__(self, "position", position)


class ExpectingArgument(DispatchError):  # noqa: N818
    """400 — an untyped parameter has no path argument left."""

    def __init__(self, position: int) -> None:
        super().__init__(
            status=400,
            detail=f"Invalid arguments - expecting argument {position}",
        )
        object.__setattr__(self, "position", position)


class MissingIdentifierArgument(DispatchError):  # noqa: N818
    """400 — an entity parameter has no identifier or the lookup missed."""

    def __init__(self, position: int) -> None:
        super().__init__(
            status=400,
            detail=f"Invalid arguments - missing identifier as argument {position}",
        )
        object.__setattr__(self, "position", position)


class InvalidParameterType(DispatchError):  # noqa: N818
    """500 — a handler parameter is annotated with a type perch cannot bind."""

    def __init__(self, type_name: str) -> None:
        super().__init__(status=500, detail=f"Invalid parameter type: {type_name}")
        object.__setattr__(self, "type_name", type_name)


class NoResponseProduced(DispatchError):  # noqa: N818
    """500 — the script or handler finished without producing a response."""

    def __init__(self) -> None:
        super().__init__(status=500, detail="App did not produce any response")
