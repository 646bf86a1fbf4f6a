"""Output capture — buffer what a handler prints and send it to the log.

Handler scripts run with ``print`` and ``output`` bound to an
``OutputCapture`` instead of the process stdout. Nothing a handler
writes reaches the client; on scope exit each line is logged.

No global redirection: the writer is injected into the script namespace,
so concurrent runners in other threads never see each other's output.
It follows that only these writers are captured:

- ``print`` called from code defined in the handler script itself
- ``output`` (context value, script global, or a parameter named
  ``output``), the supported writer for all handler code

``print`` in modules the script imports, ``sys.stdout.write``, and
``print`` in handler classes or objects passed directly to ``AppRunner``
all go to the process stdout as usual.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from io import StringIO
from types import TracebackType
from typing import Any


class OutputCapture:
    """Text writer and context manager for one dispatch scope.

    Usage::

        with OutputCapture(logger) as output:
            print("debugging", file=output)
        # "Script output line 1/1: debugging" is logged here
    """

    __slots__ = ("_buffer", "_flushed", "_level", "_logger")

    def __init__(self, logger: logging.Logger, *, level: int = logging.INFO) -> None:
        self._logger = logger
        self._level = level
        self._buffer = StringIO()
        self._flushed = False

    # -- Writer protocol --

    def write(self, data: Any) -> int:
        """Buffer *data*. Never raises."""
        try:
            if isinstance(data, bytes | bytearray):
                data = bytes(data).decode("utf-8", errors="replace")
            return self._buffer.write(data)
        except Exception:
            self._logger.warning("Discarding script output that could not be buffered", exc_info=True)
            return 0

    def writelines(self, lines: Iterable[Any]) -> None:
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        """No-op; output is only released when the scope closes."""

    def writable(self) -> bool:
        return True

    # -- Inspection --

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    @property
    def lines(self) -> list[str]:
        return self._buffer.getvalue().splitlines()

    @property
    def has_output(self) -> bool:
        return bool(self._buffer.getvalue())

    def print(self, *args: Any, **kwargs: Any) -> None:
        """``print`` replacement bound into handler namespaces."""
        kwargs.setdefault("file", self)
        print(*args, **kwargs)

    # -- Scope --

    def release(self) -> None:
        """Log each non-empty buffered line. Runs once per scope."""
        if self._flushed:
            return
        self._flushed = True
        lines = self.lines
        total = len(lines)
        for index, line in enumerate(lines, start=1):
            if line.strip():
                self._logger.log(self._level, "Script output line %d/%d: %s", index, total, line)

    def __enter__(self) -> OutputCapture:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
