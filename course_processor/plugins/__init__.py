"""Input and output handler plugins and the closed registry naming them.

Examples
--------
>>> from course_processor.plugins import get_output_plugin
>>> get_output_plugin("html").__name__
'HTMLOutputHandler'
"""

from __future__ import annotations

import typing as typ

from course_processor.diagnostics import CourseProcessingError

from .base import InputPlugin, OutputPlugin
from .html_input import HTMLInputHandler
from .html_output import HTMLOutputHandler, active_courseinfo

INPUT_PLUGINS: dict[str, type[InputPlugin]] = {"html": HTMLInputHandler}
OUTPUT_PLUGINS: dict[str, type[OutputPlugin]] = {"html": HTMLOutputHandler}

_P = typ.TypeVar("_P")


def _lookup(registry: dict[str, type[_P]], name: str, *, kind: str) -> type[_P]:
    try:
        return registry[name.lower()]
    except KeyError:
        available = ", ".join(sorted(registry))
        msg = f"Unknown {kind} handler '{name}' (available: {available})."
        raise CourseProcessingError(msg) from None


def get_input_plugin(name: str) -> type[InputPlugin]:
    """Return the input handler class registered as ``name``.

    Raises
    ------
    CourseProcessingError
        If no input handler has that name.
    """
    return _lookup(INPUT_PLUGINS, name, kind="input")


def get_output_plugin(name: str) -> type[OutputPlugin]:
    """Return the output handler class registered as ``name``.

    Raises
    ------
    CourseProcessingError
        If no output handler has that name.
    """
    return _lookup(OUTPUT_PLUGINS, name, kind="output")


def describe_plugins() -> list[tuple[str, str, str]]:
    """Return ``(kind, name, description)`` for every registered handler."""
    rows = [
        ("input", name, plugin.description)
        for name, plugin in sorted(INPUT_PLUGINS.items())
    ]
    rows.extend(
        ("output", name, plugin.description)
        for name, plugin in sorted(OUTPUT_PLUGINS.items())
    )
    return rows


__all__ = [
    "INPUT_PLUGINS",
    "OUTPUT_PLUGINS",
    "HTMLInputHandler",
    "HTMLOutputHandler",
    "InputPlugin",
    "OutputPlugin",
    "active_courseinfo",
    "describe_plugins",
    "get_input_plugin",
    "get_output_plugin",
]
