"""Dispatch — load a handler, bind its parameters, invoke it.

Leaves first: output capture, parameter resolution, handler loading,
and the ``AppRunner`` that ties them together for one request.
"""

from perch.dispatch.arguments import PathArguments
from perch.dispatch.params import Fetchable, describe, resolve
from perch.dispatch.runner import AppRunner, LoggerAware

__all__ = [
    "AppRunner",
    "Fetchable",
    "LoggerAware",
    "PathArguments",
    "describe",
    "resolve",
]
