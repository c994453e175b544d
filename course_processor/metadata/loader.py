"""Read ``metadata.yaml`` files into the metadata tagged union."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from course_processor._constants import METADATA_FILENAME
from course_processor.diagnostics import LOG, CourseProcessingError

from .models import (
    CourseMetadata,
    LoadResult,
    MetadataInvalid,
    MetadataNotFound,
    ThemeMetadata,
)
from .validation import build_course_metadata, build_theme_metadata

if typ.TYPE_CHECKING:
    from pathlib import Path


def _read_yaml(path: Path) -> object:
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        return loader.load(handle)


def load_metadata(directory: Path) -> LoadResult:
    """Load and validate the metadata file stored in ``directory``.

    Parameters
    ----------
    directory : Path
        The course root or a theme directory.

    Returns
    -------
    LoadResult
        :class:`MetadataNotFound` when no metadata file exists,
        :class:`MetadataInvalid` when it cannot be parsed or fails validation,
        otherwise :class:`CourseMetadata` or :class:`ThemeMetadata` depending
        on the root key of the document.

    Examples
    --------
    >>> from pathlib import Path
    >>> from course_processor.metadata import load_metadata
    >>> result = load_metadata(Path("course/basics"))  # doctest: +SKIP
    >>> result.kind  # doctest: +SKIP
    'theme'
    """
    path = directory / METADATA_FILENAME
    if not path.is_file():
        return MetadataNotFound(path)

    try:
        payload = _read_yaml(path)
    except (OSError, YAMLError) as exc:
        return MetadataInvalid(path, f"Unable to read metadata '{path}': {exc}")

    try:
        match payload:
            case {"course": dict() as course} if "theme" not in payload:
                return build_course_metadata(course, path=path)
            case {"theme": dict() as theme} if "course" not in payload:
                return build_theme_metadata(theme, path=path)
            case _:
                return MetadataInvalid(
                    path,
                    f"Metadata '{path}' must contain exactly one 'course' or "
                    "'theme' mapping at the top level.",
                )
    except CourseProcessingError as exc:
        return MetadataInvalid(path, str(exc))


def require_course_metadata(source_root: Path) -> CourseMetadata:
    """Return the course metadata for ``source_root`` or raise a fatal error."""
    match load_metadata(source_root):
        case CourseMetadata() as course:
            return course
        case MetadataNotFound(path=path):
            msg = f"Unable to locate course metadata '{path}'."
        case MetadataInvalid(reason=reason):
            msg = f"Course metadata failed validation: {reason}"
        case ThemeMetadata(path=path):
            msg = f"Metadata '{path}' describes a theme, not a course."
    raise CourseProcessingError(msg)


def discover_themes(source_root: Path) -> list[ThemeMetadata]:
    """Load metadata for every theme directory directly below ``source_root``.

    Directories without a metadata file are not themes and are skipped.

    Raises
    ------
    CourseProcessingError
        If any theme metadata is invalid, a directory holds course metadata,
        or a theme name differs from its directory name.
    """
    themes: list[ThemeMetadata] = []
    for directory in sorted(p for p in source_root.iterdir() if p.is_dir()):
        match load_metadata(directory):
            case MetadataNotFound():
                LOG.debug("Skipping '%s': no theme metadata", directory.name)
                continue
            case MetadataInvalid(reason=reason):
                msg = f"Theme metadata failed validation: {reason}"
                raise CourseProcessingError(msg)
            case CourseMetadata(path=path):
                msg = f"Metadata '{path}' describes a course inside a theme directory."
                raise CourseProcessingError(msg)
            case ThemeMetadata() as theme:
                if theme.name != directory.name:
                    msg = (
                        f"Theme directory '{directory.name}' declares the name "
                        f"'{theme.name}'; the name must match the directory."
                    )
                    raise CourseProcessingError(msg)
                themes.append(theme)
    return themes


__all__ = ["discover_themes", "load_metadata", "require_course_metadata"]
