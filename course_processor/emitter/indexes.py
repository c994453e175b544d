"""Emit theme-level and course-level index, map, and front pages.

Per theme this writes ``themeindex.html`` (every module with its
prerequisite/leadsto cross-links and step list), ``index.html`` (the map page
built from the theme's ``maps`` resources) and, when the theme declares them,
``outjectives.html``. For the course it writes ``courseindex.html``,
``coursemap.html`` and ``frontpage.html``.
"""

from __future__ import annotations

import typing as typ

import markdown
from markupsafe import Markup

from course_processor._constants import (
    COURSE_INDEX_FILENAME,
    COURSE_MAP_FILENAME,
    FRONTPAGE_FILENAME,
    MEDIA_DIRNAME,
    OUTJECTIVES_FILENAME,
    THEME_INDEX_FILENAME,
    THEME_MAP_FILENAME,
)
from course_processor.diagnostics import LOG

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from course_processor.metadata import MapResource
    from course_processor.scanner import ModuleLayout, ThemeLayout

    from .context import ProcessingContext

THEME_PREFIX = "../"
COURSE_PREFIX = ""
MISSING_THEME_MAP = (
    '<p class="error">No body content specified for this theme. '
    "Add a maps section to the theme metadata!</p>"
)


def _included_maps(
    context: ProcessingContext, maps: cabc.Sequence[MapResource], *, owner: str
) -> Markup:
    """Concatenate the map resources that pass the active filters."""
    parts: list[str] = []
    for resource in maps:
        if context.filters.excludes(resource.filters):
            LOG.info(
                "Map '%s...' for %s excluded by filter rule",
                resource.content[:24],
                owner,
            )
            continue
        parts.append(resource.content)
    return Markup("".join(parts))


def _module_rows(
    theme: ThemeLayout, *, anchor_prefix: str, step_prefix: str
) -> list[dict[str, typ.Any]]:
    """Return template rows for the modules of ``theme`` in index order."""
    titles = {module.name: module.metadata.title for module in theme.modules}

    def _links(names: list[str]) -> list[dict[str, str]]:
        return [
            {"name": name, "title": titles[name], "href": f"#{anchor_prefix}{name}"}
            for name in names
            if name in titles
        ]

    rows: list[dict[str, typ.Any]] = []
    for module in theme.modules:
        meta = module.metadata
        rows.append(
            {
                "name": module.name,
                "anchor": f"{anchor_prefix}{module.name}",
                "title": meta.title,
                "level": meta.level,
                "level_label": meta.level.capitalize(),
                "prerequisites": _links(meta.prerequisites),
                "leadsto": _links(meta.leadsto),
                "steps": _step_rows(module, step_prefix),
            }
        )
    return rows


def _step_rows(module: ModuleLayout, step_prefix: str) -> list[dict[str, str]]:
    return [
        {"title": step.title, "href": f"{step_prefix}{module.name}/{step.filename}"}
        for step in module.steps
    ]


def emit_theme_index(context: ProcessingContext, theme: ThemeLayout) -> list[Path]:
    """Write the text index, map page, and outjectives page for ``theme``.

    Returns
    -------
    list[Path]
        The written pages.
    """
    meta = theme.metadata
    theme_dir = context.output_root / theme.name
    written = [
        context.writer.write(
            theme_dir / THEME_INDEX_FILENAME,
            "theme_index.jinja",
            context.page_context(
                prefix=THEME_PREFIX,
                title=f"{meta.title} index",
                theme=meta,
                theme_title=meta.title,
                modules=_module_rows(theme, anchor_prefix="", step_prefix=""),
                has_outjectives=meta.has_outjectives,
            ),
        )
    ]

    body = _included_maps(context, meta.maps, owner=f"theme '{theme.name}'")
    if not body:
        context.diagnostics.warn(
            f"Theme '{theme.name}' has no map content; writing a placeholder map."
        )
        body = Markup(MISSING_THEME_MAP)
    written.append(
        context.writer.write(
            theme_dir / THEME_MAP_FILENAME,
            "theme_map.jinja",
            context.page_context(
                prefix=THEME_PREFIX,
                title=meta.title,
                theme=meta,
                theme_title=meta.title,
                body=body,
                has_outjectives=meta.has_outjectives,
            ),
        )
    )

    if meta.has_outjectives:
        written.append(
            context.writer.write(
                theme_dir / OUTJECTIVES_FILENAME,
                "outjectives.jinja",
                context.page_context(
                    prefix=THEME_PREFIX,
                    title=f"{meta.title} objectives and outcomes",
                    theme=meta,
                    theme_title=meta.title,
                    objectives=meta.objectives,
                    outcomes=meta.outcomes,
                ),
            )
        )
    return written


def _map_rows(layout: cabc.Sequence[ThemeLayout]) -> list[list[dict[str, typ.Any]]]:
    """Lay theme cells out two per row, with a single wide row first if odd."""
    cells = [
        {"name": theme.name, "title": theme.metadata.title, "span": 1}
        for theme in layout
    ]
    rows: list[list[dict[str, typ.Any]]] = []
    if len(cells) % 2 == 1:
        rows.append([{**cells.pop(0), "span": 2}])
    rows.extend(cells[index : index + 2] for index in range(0, len(cells), 2))
    return rows


def emit_course_index(context: ProcessingContext) -> list[Path]:
    """Write the course index, course map, and front page.

    Module anchors in the course index are namespaced ``theme-module`` so
    modules with the same name in different themes stay distinct.
    """
    root = context.output_root
    layout = context.scan.layout
    themes = [
        {
            "name": theme.name,
            "title": theme.metadata.title,
            "href": f"{theme.name}/{THEME_MAP_FILENAME}",
            "modules": _module_rows(
                theme,
                anchor_prefix=f"{theme.name}-",
                step_prefix=f"{theme.name}/",
            ),
        }
        for theme in layout
    ]
    written = [
        context.writer.write(
            root / COURSE_INDEX_FILENAME,
            "course_index.jinja",
            context.page_context(
                prefix=COURSE_PREFIX,
                title=f"{context.courseinfo.title} course index",
                themes=themes,
            ),
        )
    ]

    body = _included_maps(context, context.course.maps, owner="the course")
    if not body:
        LOG.debug("No course map specified, or all maps filtered out. Generating map.")
    written.append(
        context.writer.write(
            root / COURSE_MAP_FILENAME,
            "course_map.jinja",
            context.page_context(
                prefix=COURSE_PREFIX,
                title=f"{context.courseinfo.title} course map",
                body=body,
                rows=_map_rows(layout) if not body else [],
            ),
        )
    )

    info = context.courseinfo
    context.writer.media.record(info.splash)
    written.append(
        context.writer.write(
            root / FRONTPAGE_FILENAME,
            "frontpage.jinja",
            context.page_context(
                prefix=COURSE_PREFIX,
                title=info.title,
                splash=f"{MEDIA_DIRNAME}/{info.splash}",
                splash_type=info.type,
                splash_width=info.width,
                splash_height=info.height,
                message=Markup(markdown.markdown(info.content)),
            ),
        )
    )
    return written


__all__ = ["MISSING_THEME_MAP", "emit_course_index", "emit_theme_index"]
