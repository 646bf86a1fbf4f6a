"""Dispatch configuration.

DispatchConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

import logging
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    """Dispatch configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = DispatchConfig(default_method="main", suffix_separator=":")
    """

    # Method resolution
    default_method: str = "index"
    suffix_separator: str = "."  # "list.json" calls list(), suffix "json"

    # Script result conventions (module-level names)
    response_name: str = "response"
    controller_name: str = "controller"

    # Output capture
    output_log_level: int = logging.INFO
