"""Utility helpers shared by the processor configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from course_processor.diagnostics import CourseProcessingError

from .models import REFERENCE_STYLES, OutputConfig


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_names(value: str | list[object] | None, *, field: str) -> list[str]:
    """Normalize a scalar or list of names into lowercase, non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [segment.lower() for segment in value.replace(",", " ").split()]
    if isinstance(value, list):
        normalized: list[str] = []
        for segment in value:
            text = str(segment).strip().lower()
            if text:
                normalized.append(text)
        return normalized
    msg = f"Configuration field '{field}' must be a name or a list of names."
    raise CourseProcessingError(msg)


def _coerce_bool(value: object, *, field: str) -> bool:
    """Accept YAML booleans only; anything else is a configuration error."""
    if isinstance(value, bool):
        return value
    msg = f"Configuration field '{field}' must be true or false, got {value!r}."
    raise CourseProcessingError(msg)


def _build_output_config(
    payload: typ.Mapping[str, typ.Any], *, base_dir: Path
) -> OutputConfig:
    """Build an OutputConfig from the ``output`` mapping of the config file."""
    base = OutputConfig()
    templates_raw = _optional_str(payload.get("templates_dir"))
    templates_dir = None
    if templates_raw is not None:
        templates_dir = Path(templates_raw)
        if not templates_dir.is_absolute():
            templates_dir = base_dir / templates_dir
    return OutputConfig(
        templates_dir=templates_dir,
        strict_redefinitions=_coerce_bool(
            payload.get("strict_redefinitions", base.strict_redefinitions),
            field="output.strict_redefinitions",
        ),
        keep_intermediate=_coerce_bool(
            payload.get("keep_intermediate", base.keep_intermediate),
            field="output.keep_intermediate",
        ),
        force_media=[
            str(item)
            for item in payload.get("force_media", []) or []
            if str(item).strip()
        ],
    )


def _validate_reference_style(value: object | None) -> str:
    """Return the configured reference style, rejecting unknown styles."""
    style = (_optional_str(value) or "ieee").lower()
    if style not in REFERENCE_STYLES:
        allowed = ", ".join(REFERENCE_STYLES)
        msg = f"Unknown reference style '{style}' (expected one of: {allowed})."
        raise CourseProcessingError(msg)
    return style
