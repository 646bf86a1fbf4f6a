"""Handler loading — run a script file or adopt a handler class/object.

A handler script is an ordinary Python file executed as a fresh module.
Its globals are seeded with the invocation context, so a script can use
``request``, ``template``, ``logger`` and friends as plain names. Since
modules cannot ``return``, a script publishes its result by binding a
module-level name:

- ``response = Response(...)`` — the final response
- ``controller = Handler()`` (or the class itself) — an object whose
  methods are dispatched to

``raise Respond(response)`` ends the script early from anywhere,
including functions it calls.
"""

from __future__ import annotations

import importlib.util
import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from perch.config import DispatchConfig
from perch.dispatch.capture import OutputCapture
from perch.errors import ConfigurationError, NoResponseProduced
from perch.http.response import Respond, Response


@dataclass(frozen=True, slots=True)
class Outcome:
    """What loading (or invoking) a handler produced.

    Exactly one of ``response`` or ``handler`` is set.
    """

    response: Response | None = None
    handler: Any = None

    @property
    def is_response(self) -> bool:
        return self.response is not None


def load_target(target: Any) -> Outcome:
    """Turn an already-resolved handler class or object into an ``Outcome``.

    Classes are instantiated without arguments. A ``Respond`` raised by
    the constructor becomes the response.
    """
    if isinstance(target, Response):
        return Outcome(response=target)
    if inspect.isclass(target):
        try:
            target = target()
        except Respond as exc:
            return Outcome(response=exc.response)
    return Outcome(handler=target)


def _result_from_namespace(
    module_vars: Mapping[str, Any],
    seeded: Mapping[str, Any],
    config: DispatchConfig,
) -> Outcome:
    def published(name: str) -> Any:
        value = module_vars.get(name)
        # A context value that merely happens to share the name doesn't count
        if name in seeded and value is seeded[name]:
            return None
        return value

    response = published(config.response_name)
    if isinstance(response, Response):
        return Outcome(response=response)

    controller = published(config.controller_name)
    if controller is not None:
        return load_target(controller)

    raise NoResponseProduced()


def load_script(
    path: str | Path,
    context: Mapping[str, Any],
    *,
    output: OutputCapture,
    config: DispatchConfig,
) -> Outcome:
    """Execute the handler script at *path* and return its outcome.

    Raises ``NoResponseProduced`` if the script published neither a
    response nor a controller. Any other exception raised by the script
    propagates unchanged.
    """
    file = Path(path)
    if not file.is_file():
        raise FileNotFoundError(f"Handler script not found: {file}")

    module_name = f"_perch_script_{file.stem}_{id(output)}"
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load handler script: {file}")

    seeded = {**context, "output": output, "print": output.print}
    module = importlib.util.module_from_spec(spec)
    module.__dict__.update(seeded)

    try:
        spec.loader.exec_module(module)
    except Respond as exc:
        return Outcome(response=exc.response)

    return _result_from_namespace(vars(module), seeded, config)
