"""Perch — controller invocation for script-based web handlers.

Given a handler script (or class) and the path arguments left over after
routing, perch picks the method to call, binds context objects and typed
path arguments to its parameters, runs it, and returns the response.

Basic usage::

    from perch import AppRunner

    runner = AppRunner("handlers/blog.py", ["article", "42"])
    runner.set_variable("request", request)
    response = runner.execute()

A handler script::

    from perch import Response

    class Blog:
        def article(self, article_id: int) -> Response:
            return Response(f"Article {article_id}", content_type="text/plain")

    controller = Blog
"""

__version__ = "0.1.0-dev"
__all__ = [
    "AppRunner",
    "ConfigurationError",
    "DispatchConfig",
    "DispatchError",
    "Fetchable",
    "HTTPError",
    "LoggerAware",
    "PathArguments",
    "PerchError",
    "Request",
    "Respond",
    "Response",
    "Template",
]

# name -> module that defines it
_LAZY_IMPORTS: dict[str, str] = {
    "AppRunner": "perch.dispatch.runner",
    "LoggerAware": "perch.dispatch.runner",
    "Fetchable": "perch.dispatch.params",
    "PathArguments": "perch.dispatch.arguments",
    "DispatchConfig": "perch.config",
    "Request": "perch.http.request",
    "Respond": "perch.http.response",
    "Response": "perch.http.response",
    "Template": "perch.templating",
    "ConfigurationError": "perch.errors",
    "DispatchError": "perch.errors",
    "HTTPError": "perch.errors",
    "PerchError": "perch.errors",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
