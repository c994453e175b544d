"""Unit tests for metadata loading, validation, and relation repair."""

from __future__ import annotations

import textwrap
import typing as typ

import pytest

from course_processor.diagnostics import CourseProcessingError, Diagnostics
from course_processor.metadata import (
    CourseMetadata,
    MetadataInvalid,
    MetadataNotFound,
    ThemeMetadata,
    build_theme_metadata,
    check_modules_with_plugins,
    discover_themes,
    load_metadata,
    require_course_metadata,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def _theme(tmp_path: Path, payload: dict[str, typ.Any]) -> ThemeMetadata:
    return build_theme_metadata(payload, path=tmp_path / "basics" / "metadata.yaml")


def _module(**fields: typ.Any) -> dict[str, typ.Any]:
    return {"title": "Module", "level": "green", "indexorder": 1, **fields}


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding="utf-8")


def test_missing_inverse_relations_are_inserted(tmp_path: Path) -> None:
    """A prerequisite on one side should appear as leadsto on the other."""
    theme = _theme(
        tmp_path,
        {
            "name": "basics",
            "title": "Basics",
            "indexorder": 1,
            "modules": {
                "intro": _module(),
                "advanced": _module(indexorder=2, prerequisites=["intro"]),
                "extra": _module(indexorder=3, leadsto=["advanced"]),
            },
        },
    )
    assert theme.modules["intro"].leadsto == ["advanced"]
    assert theme.modules["advanced"].prerequisites == ["intro", "extra"]
    assert theme.modules["advanced"].leadsto == []


def test_relation_to_unknown_module_is_fatal(tmp_path: Path) -> None:
    """Relations must name modules defined in the same theme."""
    with pytest.raises(CourseProcessingError, match="no such module"):
        _theme(
            tmp_path,
            {
                "name": "basics",
                "title": "Basics",
                "indexorder": 1,
                "modules": {"intro": _module(leadsto=["missing"])},
            },
        )


def test_self_reference_is_fatal(tmp_path: Path) -> None:
    """A module may not list itself as a prerequisite."""
    with pytest.raises(CourseProcessingError, match="lists itself"):
        _theme(
            tmp_path,
            {
                "name": "basics",
                "title": "Basics",
                "indexorder": 1,
                "modules": {"intro": _module(prerequisites=["intro"])},
            },
        )


@pytest.mark.parametrize("value", ["intro", [["intro"]], [{"name": "intro"}]])
def test_malformed_relation_is_fatal(tmp_path: Path, value: object) -> None:
    """Relations must be flat lists of module names."""
    with pytest.raises(CourseProcessingError, match="malformed prerequisites"):
        _theme(
            tmp_path,
            {
                "name": "basics",
                "title": "Basics",
                "indexorder": 1,
                "modules": {
                    "intro": _module(),
                    "advanced": _module(prerequisites=value),
                },
            },
        )


def test_module_without_indexorder_is_fatal(tmp_path: Path) -> None:
    """Every module needs an indexorder."""
    with pytest.raises(CourseProcessingError, match="Module 'intro'.*indexorder"):
        _theme(
            tmp_path,
            {
                "name": "basics",
                "title": "Basics",
                "indexorder": 1,
                "modules": {"intro": {"title": "Intro", "level": "green"}},
            },
        )


def test_unknown_level_is_fatal(tmp_path: Path) -> None:
    """Levels are restricted to the four difficulty colours."""
    with pytest.raises(CourseProcessingError, match="unknown level 'purple'"):
        _theme(
            tmp_path,
            {
                "name": "basics",
                "title": "Basics",
                "indexorder": 1,
                "modules": {"intro": _module(level="purple")},
            },
        )


def test_dummy_module_is_skipped(tmp_path: Path) -> None:
    """The reserved ``dummy`` module is not validated or kept."""
    theme = _theme(
        tmp_path,
        {
            "name": "basics",
            "title": "Basics",
            "indexorder": 1,
            "modules": {"intro": _module(), "dummy": {"title": "placeholder"}},
        },
    )
    assert list(theme.modules) == ["intro"]


def test_empty_objectives_list_is_fatal(tmp_path: Path) -> None:
    """Objectives, when present, must be a non-empty list."""
    with pytest.raises(CourseProcessingError, match="objectives"):
        _theme(
            tmp_path,
            {"name": "basics", "title": "Basics", "indexorder": 1, "objectives": []},
        )


def test_load_metadata_outcomes(tmp_path: Path) -> None:
    """Loading distinguishes missing, invalid, course, and theme metadata."""
    assert isinstance(load_metadata(tmp_path), MetadataNotFound)

    _write(tmp_path / "broken" / "metadata.yaml", "course: [unclosed\n")
    assert isinstance(load_metadata(tmp_path / "broken"), MetadataInvalid)

    _write(
        tmp_path / "both" / "metadata.yaml",
        """\
        course: {version: "1"}
        theme: {name: both}
        """,
    )
    invalid = load_metadata(tmp_path / "both")
    assert isinstance(invalid, MetadataInvalid)
    assert "exactly one" in invalid.reason

    _write(
        tmp_path / "course" / "metadata.yaml",
        """\
        course:
          version: "2.1"
          courseinfo:
            title: Course
            splash: splash.png
            width: 10
            height: 10
            type: image
            content: Hello
        """,
    )
    course = load_metadata(tmp_path / "course")
    assert isinstance(course, CourseMetadata)
    assert course.version == "2.1"
    assert course.courseinfo[0].width == "10"


def test_missing_version_is_fatal(tmp_path: Path) -> None:
    """Course metadata without a version cannot be processed."""
    _write(
        tmp_path / "metadata.yaml",
        """\
        course:
          courseinfo:
            title: Course
            splash: splash.png
            width: 10
            height: 10
            type: image
            content: Hello
        """,
    )
    with pytest.raises(CourseProcessingError, match="version"):
        require_course_metadata(tmp_path)


def test_discover_themes_requires_matching_name(tmp_path: Path) -> None:
    """A theme's declared name must equal its directory name."""
    _write(
        tmp_path / "basics" / "metadata.yaml",
        """\
        theme:
          name: other
          title: Basics
          indexorder: 1
        """,
    )
    (tmp_path / "media").mkdir()
    with pytest.raises(CourseProcessingError, match="must match the directory"):
        discover_themes(tmp_path)


def test_discover_themes_skips_plain_directories(tmp_path: Path) -> None:
    """Directories without metadata are not themes."""
    _write(
        tmp_path / "basics" / "metadata.yaml",
        """\
        theme:
          name: basics
          title: Basics
          indexorder: 1
        """,
    )
    (tmp_path / "media").mkdir()
    assert [theme.name for theme in discover_themes(tmp_path)] == ["basics"]


class _RejectingPlugin:
    def module_check(self, theme_dir: Path, module: str) -> str | None:
        return f"cannot handle {module}"


def test_module_rejected_by_every_plugin_warns(tmp_path: Path) -> None:
    """A module no plugin recognizes fails the theme with a warning."""
    theme = _theme(
        tmp_path,
        {
            "name": "basics",
            "title": "Basics",
            "indexorder": 1,
            "modules": {"intro": _module()},
        },
    )
    diagnostics = Diagnostics()
    plugins = typ.cast("list[typ.Any]", [_RejectingPlugin()])
    assert not check_modules_with_plugins(theme, tmp_path, plugins, diagnostics)
    assert diagnostics.matching("cannot handle intro")
