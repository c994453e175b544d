"""Typed metadata for courses, themes, and modules.

A metadata file describes either the whole course or a single theme. Loading
decides the kind once, so callers receive a :data:`Metadata` value that is
either :class:`CourseMetadata` or :class:`ThemeMetadata`, or one of the
:class:`MetadataNotFound` and :class:`MetadataInvalid` outcomes.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path  # noqa: TC003 - used for runtime type metadata

from course_processor.filters import ResourceFilters  # noqa: TC001

IndexOrder: typ.TypeAlias = int | float


@dc.dataclass(slots=True)
class MapResource:
    """An author-supplied HTML fragment included in a map page."""

    content: str
    filters: ResourceFilters | None = None


@dc.dataclass(slots=True)
class CourseInfo:
    """Course title and splash media shown on the front page."""

    title: str
    splash: str
    width: str
    height: str
    type: str
    content: str
    filters: ResourceFilters | None = None


@dc.dataclass(slots=True)
class CourseMetadata:
    """Course-level metadata read from the source root."""

    path: Path
    version: str
    courseinfo: list[CourseInfo]
    extrahead: str = ""
    maps: list[MapResource] = dc.field(default_factory=list)

    kind: typ.ClassVar[str] = "course"


@dc.dataclass(slots=True)
class ModuleMetadata:
    """A module entry within a theme's metadata."""

    name: str
    title: str
    level: str
    indexorder: IndexOrder
    prerequisites: list[str] = dc.field(default_factory=list)
    leadsto: list[str] = dc.field(default_factory=list)
    objectives: list[str] = dc.field(default_factory=list)
    outcomes: list[str] = dc.field(default_factory=list)
    filters: ResourceFilters | None = None
    step_filters: dict[str, ResourceFilters | None] = dc.field(default_factory=dict)

    @property
    def has_outjectives(self) -> bool:
        """Return whether the module declares objectives or outcomes."""
        return bool(self.objectives or self.outcomes)


@dc.dataclass(slots=True)
class ThemeMetadata:
    """Theme-level metadata read from a theme directory."""

    path: Path
    name: str
    title: str
    indexorder: IndexOrder
    modules: dict[str, ModuleMetadata] = dc.field(default_factory=dict)
    objectives: list[str] = dc.field(default_factory=list)
    outcomes: list[str] = dc.field(default_factory=list)
    maps: list[MapResource] = dc.field(default_factory=list)
    extrahead: str = ""
    filters: ResourceFilters | None = None

    kind: typ.ClassVar[str] = "theme"

    @property
    def has_outjectives(self) -> bool:
        """Return whether the theme declares objectives or outcomes."""
        return bool(self.objectives or self.outcomes)


@dc.dataclass(frozen=True, slots=True)
class MetadataNotFound:
    """No metadata file exists in the inspected directory."""

    path: Path


@dc.dataclass(frozen=True, slots=True)
class MetadataInvalid:
    """A metadata file exists but cannot be parsed or validated."""

    path: Path
    reason: str


Metadata: typ.TypeAlias = CourseMetadata | ThemeMetadata
LoadResult: typ.TypeAlias = MetadataNotFound | MetadataInvalid | Metadata


__all__ = [
    "CourseInfo",
    "CourseMetadata",
    "IndexOrder",
    "LoadResult",
    "MapResource",
    "Metadata",
    "MetadataInvalid",
    "MetadataNotFound",
    "ModuleMetadata",
    "ThemeMetadata",
]
