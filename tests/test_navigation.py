"""Unit tests for ordering and navigation menus."""

from __future__ import annotations

import typing as typ

import pytest
from bs4 import BeautifulSoup

from course_processor.diagnostics import CourseProcessingError, Diagnostics
from course_processor.metadata import ModuleMetadata, build_theme_metadata
from course_processor.navigation import (
    Dropdown,
    DropdownEntry,
    build_dropdowns,
    render,
    sort_by_indexorder,
)
from course_processor.scanner import ModuleLayout, StepEntry, ThemeLayout

if typ.TYPE_CHECKING:
    from pathlib import Path


def _layout(tmp_path: Path) -> list[ThemeLayout]:
    theme = build_theme_metadata(
        {
            "name": "basics",
            "title": "The Basics",
            "indexorder": 1,
            "modules": {
                "intro": {"title": "Intro", "level": "green", "indexorder": 1},
                "advanced": {
                    "title": "Advanced",
                    "level": "red",
                    "indexorder": 2,
                    "prerequisites": ["intro"],
                },
            },
        },
        path=tmp_path / "basics" / "metadata.yaml",
    )
    intro = ModuleLayout(
        theme.modules["intro"],
        [StepEntry(1, "step01.html", "One"), StepEntry(2, "step02.html", "Two")],
    )
    advanced = ModuleLayout(theme.modules["advanced"])
    return [ThemeLayout(theme, [intro, advanced])]


def test_sort_by_indexorder_orders_numerically() -> None:
    """Items sort by ascending ``indexorder`` regardless of name."""
    items = [
        ModuleMetadata(name="b", title="B", level="green", indexorder=10),
        ModuleMetadata(name="a", title="A", level="green", indexorder=2.5),
    ]
    assert [item.name for item in sort_by_indexorder(items, kind="module")] == [
        "a",
        "b",
    ]


def test_sort_by_indexorder_without_value_is_fatal() -> None:
    """Missing index orders never fall back to alphabetical order."""
    item = ModuleMetadata(name="a", title="A", level="green", indexorder=1)
    item.indexorder = typ.cast("int", None)
    with pytest.raises(CourseProcessingError, match="module 'a'"):
        sort_by_indexorder([item], kind="module")


def test_render_marks_single_current_entry_without_mutation() -> None:
    """Rendering is pure and marks at most one entry as current."""
    menu = Dropdown(
        "step",
        (
            DropdownEntry("step01.html", "One", "basics/intro/step01.html"),
            DropdownEntry("step02.html", "Two", "basics/intro/step02.html"),
        ),
    )
    before = menu.entries
    first = BeautifulSoup(render(menu, "step01.html", prefix="../../"), "html.parser")
    second = BeautifulSoup(render(menu, "step02.html"), "html.parser")

    assert menu.entries == before
    current = first.select("li.current a")
    assert [a["href"] for a in current] == ["../../basics/intro/step01.html"]
    assert [a.get_text() for a in second.select("li.current a")] == ["Two"]


def test_render_escapes_labels() -> None:
    """Entry labels are HTML-escaped."""
    menu = Dropdown("theme", (DropdownEntry("t", "A & B", "t/map.html"),))
    assert "A &amp; B" in render(menu, None)


def test_build_dropdowns_marks_relations(tmp_path: Path) -> None:
    """Module menus tag prerequisites and follow-on modules."""
    cache = build_dropdowns(_layout(tmp_path))
    html = cache.render_modules(
        "basics", "advanced", prefix="", diagnostics=Diagnostics()
    )
    soup = BeautifulSoup(html, "html.parser")
    intro, advanced = soup.find_all("li")
    assert intro["class"] == ["prereq"]
    assert intro.a is not None
    assert intro.a["href"] == "basics/intro/step01.html"
    assert advanced["class"] == ["current"]
    assert advanced.a is not None
    assert advanced.a["href"] == "basics/themeindex.html#advanced"

    leads = BeautifulSoup(
        cache.render_modules("basics", "intro", prefix="", diagnostics=Diagnostics()),
        "html.parser",
    )
    assert leads.find_all("li")[1]["class"] == ["leadsto"]


def test_build_dropdowns_step_menu(tmp_path: Path) -> None:
    """Each module gets a step menu in output order."""
    cache = build_dropdowns(_layout(tmp_path))
    menu = cache.steps[("basics", "intro")]
    assert [entry.id for entry in menu.entries] == ["step01.html", "step02.html"]
    assert cache.themes.entries[0].href == "basics/index.html"


def test_missing_current_entry_warns(tmp_path: Path) -> None:
    """Rendering with an unknown current entry warns but still renders."""
    cache = build_dropdowns(_layout(tmp_path))
    diagnostics = Diagnostics()
    html = cache.render_steps(
        "basics", "intro", "step09.html", prefix="", diagnostics=diagnostics
    )
    assert "current" not in html
    assert diagnostics.matching("No entry 'step09.html' in the step dropdown")
