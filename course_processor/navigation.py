"""Ordering and navigation menus for themes, modules, and steps.

Themes and modules are ordered by their author-assigned ``indexorder``; a
missing value is fatal rather than falling back to alphabetical order.

Menus are built once after the scan as :class:`Dropdown` values holding
structured entries with hrefs relative to the course root. :func:`render`
turns a dropdown into HTML for one page, marking a single entry as current
without touching the cached dropdown, so the same menu serves every page.

Examples
--------
>>> from course_processor.navigation import Dropdown, DropdownEntry, render
>>> menu = Dropdown(
...     "step",
...     (
...         DropdownEntry("step01.html", "Start", "basics/intro/step01.html"),
...         DropdownEntry("step02.html", "Next", "basics/intro/step02.html"),
...     ),
... )
>>> "current" in render(menu, "step02.html", prefix="../../")
True
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import numbers
import typing as typ

from markupsafe import Markup

from course_processor._constants import (
    THEME_INDEX_FILENAME,
    THEME_MAP_FILENAME,
)
from course_processor.diagnostics import CourseProcessingError

if typ.TYPE_CHECKING:
    from course_processor.diagnostics import Diagnostics
    from course_processor.scanner import ModuleLayout, ThemeLayout

_T = typ.TypeVar("_T")

RELATION_PREREQ = "prereq"
RELATION_LEADSTO = "leadsto"


class _Ordered(typ.Protocol):
    name: str
    indexorder: typ.Any


def sort_by_indexorder(items: cabc.Iterable[_T], *, kind: str) -> list[_T]:
    """Return ``items`` sorted by ascending ``indexorder``.

    Parameters
    ----------
    items : Iterable
        Objects exposing ``name`` and ``indexorder`` attributes.
    kind : str
        Human-readable item kind used in error messages (``"theme"``).

    Raises
    ------
    CourseProcessingError
        If any item lacks a numeric ``indexorder``.
    """
    entries = list(items)
    for item in entries:
        order = typ.cast("_Ordered", item).indexorder
        if order is None or isinstance(order, bool) or not isinstance(
            order, numbers.Real
        ):
            name = typ.cast("_Ordered", item).name
            msg = f"Attempt to sort {kind} '{name}' without a numeric indexorder."
            raise CourseProcessingError(msg)
    return sorted(entries, key=lambda item: typ.cast("_Ordered", item).indexorder)


@dc.dataclass(frozen=True, slots=True)
class DropdownEntry:
    """One menu entry; ``href`` is relative to the course root."""

    id: str
    label: str
    href: str
    relation: str = ""


@dc.dataclass(frozen=True, slots=True)
class Dropdown:
    """An ordered, immutable navigation menu."""

    name: str
    entries: tuple[DropdownEntry, ...] = ()

    def __contains__(self, entry_id: object) -> bool:
        return any(entry.id == entry_id for entry in self.entries)


def render(dropdown: Dropdown, current_id: str | None, *, prefix: str = "") -> str:
    """Render ``dropdown`` as an HTML list with ``current_id`` marked current.

    The function is pure: at most one entry carries the ``current`` class and
    the dropdown itself is unchanged, so the same value can be rendered for
    every page with a different current entry.

    Parameters
    ----------
    dropdown : Dropdown
        The cached menu.
    current_id : str or None
        Identity of the entry to mark; ``None`` marks nothing.
    prefix : str, optional
        Relative path from the rendering page back to the course root.

    Returns
    -------
    str
        A ``<ul>`` element as a :class:`markupsafe.Markup` string.
    """
    items: list[str] = []
    for entry in dropdown.entries:
        classes = [entry.relation] if entry.relation else []
        if entry.id == current_id:
            classes.append("current")
        class_attr = Markup(' class="{}"').format(" ".join(classes)) if classes else ""
        items.append(
            Markup('<li{}><a href="{}">{}</a></li>').format(
                class_attr, prefix + entry.href, entry.label
            )
        )
    return Markup('<ul class="dropdown dropdown-{}">{}</ul>').format(
        dropdown.name, Markup("").join(items)
    )


def _module_href(theme: ThemeLayout, module: ModuleLayout) -> str:
    if module.steps:
        return f"{theme.name}/{module.name}/{module.steps[0].filename}"
    return f"{theme.name}/{THEME_INDEX_FILENAME}#{module.name}"


def _relation(module: ModuleLayout, other: ModuleLayout) -> str:
    if other.name in module.metadata.prerequisites:
        return RELATION_PREREQ
    if other.name in module.metadata.leadsto:
        return RELATION_LEADSTO
    return ""


@dc.dataclass(frozen=True, slots=True)
class DropdownCache:
    """Menus computed once after the scan and reused for every page."""

    themes: Dropdown
    modules: dict[tuple[str, str], Dropdown]
    steps: dict[tuple[str, str], Dropdown]

    def render_themes(
        self, current: str | None, *, prefix: str, diagnostics: Diagnostics
    ) -> str:
        """Render the theme menu, warning when ``current`` has no entry."""
        return self._render(self.themes, current, prefix, diagnostics)

    def render_modules(
        self, theme: str, module: str, *, prefix: str, diagnostics: Diagnostics
    ) -> str:
        """Render the module relationship menu for ``theme``/``module``."""
        dropdown = self.modules.get((theme, module), Dropdown("module"))
        return self._render(dropdown, module, prefix, diagnostics)

    def render_steps(
        self,
        theme: str,
        module: str,
        current: str,
        *,
        prefix: str,
        diagnostics: Diagnostics,
    ) -> str:
        """Render the step menu for ``theme``/``module`` marking ``current``."""
        dropdown = self.steps.get((theme, module), Dropdown("step"))
        return self._render(dropdown, current, prefix, diagnostics)

    @staticmethod
    def _render(
        dropdown: Dropdown,
        current: str | None,
        prefix: str,
        diagnostics: Diagnostics,
    ) -> str:
        if current is not None and current not in dropdown:
            diagnostics.warn(
                f"No entry '{current}' in the {dropdown.name} dropdown; "
                "rendering without a current marker."
            )
        return render(dropdown, current, prefix=prefix)


def build_dropdowns(layout: cabc.Sequence[ThemeLayout]) -> DropdownCache:
    """Build the theme, module, and step menus for an ordered course layout.

    Parameters
    ----------
    layout : Sequence[ThemeLayout]
        Included themes in index order, each with modules in index order and
        steps in output order, as produced by the scanner.

    Returns
    -------
    DropdownCache
        One theme menu for the course, plus a module relationship menu and a
        step menu per module.
    """
    themes = Dropdown(
        "theme",
        tuple(
            DropdownEntry(
                theme.name,
                theme.metadata.title,
                f"{theme.name}/{THEME_MAP_FILENAME}",
            )
            for theme in layout
        ),
    )
    modules: dict[tuple[str, str], Dropdown] = {}
    steps: dict[tuple[str, str], Dropdown] = {}
    for theme in layout:
        for module in theme.modules:
            key = (theme.name, module.name)
            modules[key] = Dropdown(
                "module",
                tuple(
                    DropdownEntry(
                        other.name,
                        other.metadata.title,
                        _module_href(theme, other),
                        _relation(module, other),
                    )
                    for other in theme.modules
                ),
            )
            steps[key] = Dropdown(
                "step",
                tuple(
                    DropdownEntry(
                        step.filename,
                        step.title,
                        f"{theme.name}/{module.name}/{step.filename}",
                    )
                    for step in module.steps
                ),
            )
    return DropdownCache(themes=themes, modules=modules, steps=steps)


__all__ = [
    "RELATION_LEADSTO",
    "RELATION_PREREQ",
    "Dropdown",
    "DropdownCache",
    "DropdownEntry",
    "build_dropdowns",
    "render",
    "sort_by_indexorder",
]
