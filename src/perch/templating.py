"""Template handle passed to handlers as the ``template`` context value.

A thin, mutable wrapper around a kida ``Environment``: the handler picks
a template, assigns variables, and either builds the ``Response`` itself
or ends the request with ``render()``::

    template.set_template("article.html")
    template.assign(article=article)
    template.render()  # raises Respond
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn

from kida import Environment, FileSystemLoader

from perch.errors import ConfigurationError
from perch.http.response import Respond, Response


def create_environment(template_dir: str | Path, *, autoescape: bool = True) -> Environment:
    """Create a kida Environment loading templates from *template_dir*."""
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=autoescape,
    )


class Template:
    """Per-request template state bound to a shared environment."""

    __slots__ = ("_content_type", "_context", "_env", "_name")

    def __init__(self, env: Environment) -> None:
        self._env = env
        self._name: str | None = None
        self._content_type = "text/html; charset=utf-8"
        self._context: dict[str, Any] = {}

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    def set_template(self, name: str, content_type: str = "text/html; charset=utf-8") -> Template:
        self._name = name
        self._content_type = content_type
        return self

    def assign(self, **context: Any) -> Template:
        self._context.update(context)
        return self

    def response(self) -> Response:
        """Render the selected template into a ``Response``."""
        if self._name is None:
            raise ConfigurationError("No template selected; call set_template() first")
        body = self._env.get_template(self._name).render(self._context)
        return Response(body=body, content_type=self._content_type)

    def render(self) -> NoReturn:
        """Render and end the request with the result."""
        raise Respond(self.response())
