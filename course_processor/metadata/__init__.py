"""Load and validate course and theme metadata.

Each course has a ``metadata.yaml`` at its root describing the course version
and front-page information, and each theme directory holds a
``metadata.yaml`` listing the theme's modules with their levels, index order,
and prerequisite/leadsto relations. :func:`load_metadata` reads one file and
returns a tagged result; :func:`require_course_metadata` and
:func:`discover_themes` turn invalid results into fatal errors for the
processing run.

Examples
--------
>>> from pathlib import Path
>>> from course_processor.metadata import discover_themes
>>> themes = discover_themes(Path("course"))  # doctest: +SKIP
>>> [theme.name for theme in themes]  # doctest: +SKIP
['basics', 'advanced']
"""

from .loader import discover_themes, load_metadata, require_course_metadata
from .models import (
    CourseInfo,
    CourseMetadata,
    LoadResult,
    MapResource,
    Metadata,
    MetadataInvalid,
    MetadataNotFound,
    ModuleMetadata,
    ThemeMetadata,
)
from .validation import (
    build_course_metadata,
    build_theme_metadata,
    check_modules_with_plugins,
    repair_relations,
)

__all__ = [
    "CourseInfo",
    "CourseMetadata",
    "LoadResult",
    "MapResource",
    "Metadata",
    "MetadataInvalid",
    "MetadataNotFound",
    "ModuleMetadata",
    "ThemeMetadata",
    "build_course_metadata",
    "build_theme_metadata",
    "check_modules_with_plugins",
    "discover_themes",
    "load_metadata",
    "repair_relations",
    "require_course_metadata",
]
