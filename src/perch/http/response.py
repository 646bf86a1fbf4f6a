"""What a handler hands back: a ``Response`` value, or ``Respond`` to stop early."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Response:
    """The result of one dispatch. Immutable.

    Produced by handler methods, by scripts (``response = Response(...)``),
    and by ``Template.response()``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8", errors="replace")
        return self.body


class Respond(Exception):  # noqa: N818
    """Terminate a script or handler early with *response*.

    Not an error: the runner unwraps it and returns the response
    exactly as if it had been returned::

        if not items:
            raise Respond(Response("nothing here", content_type="text/plain"))
    """

    def __init__(self, response: Response) -> None:
        super().__init__(response)
        self.response = response
