"""Load processor configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from course_processor.diagnostics import CourseProcessingError

from .helpers import (
    _build_output_config,
    _normalize_names,
    _optional_str,
    _validate_reference_style,
)
from .models import ProcessorConfig


def load_processor_config(path: Path | None) -> ProcessorConfig:
    """Load the YAML configuration controlling handlers, filters, and output.

    Parameters
    ----------
    path : Path or None
        Filesystem path to the YAML configuration file. ``None`` returns the
        defaults (HTML input and output handlers, IEEE references, no filters).

    Returns
    -------
    ProcessorConfig
        Parsed configuration with defaults applied for absent fields.

    Raises
    ------
    CourseProcessingError
        If the file is missing, cannot be parsed, or contains invalid values.

    Examples
    --------
    >>> from pathlib import Path
    >>> from course_processor.config import load_processor_config
    >>> config = load_processor_config(Path("processor.yaml"))  # doctest: +SKIP
    >>> config.output_handler  # doctest: +SKIP
    'html'
    """
    if path is None:
        return ProcessorConfig()
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise CourseProcessingError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"Configuration file '{path}' is not valid YAML: {exc}"
        raise CourseProcessingError(msg) from exc
    if not isinstance(loaded, dict):
        msg = f"Top-level YAML structure in '{path}' must be a mapping."
        raise CourseProcessingError(msg)

    raw: dict[str, typ.Any] = dict(loaded)
    processor_raw = raw.get("processor", {}) or {}
    output_raw = raw.get("output", {}) or {}
    for section, value in (("processor", processor_raw), ("output", output_raw)):
        if not isinstance(value, dict):
            msg = f"Configuration section '{section}' must be a mapping."
            raise CourseProcessingError(msg)

    input_handlers = _normalize_names(
        processor_raw.get("input_handlers", ["html"]),
        field="processor.input_handlers",
    )
    return ProcessorConfig(
        output_handler=(
            _optional_str(processor_raw.get("output_handler")) or "html"
        ).lower(),
        input_handlers=input_handlers or ["html"],
        reference_style=_validate_reference_style(
            processor_raw.get("reference_style")
        ),
        filters=_normalize_names(
            processor_raw.get("filters"), field="processor.filters"
        ),
        output=_build_output_config(output_raw, base_dir=path.parent),
    )


__all__ = ["load_processor_config"]
