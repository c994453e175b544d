"""Emit step pages with resolved markup and navigation."""

from __future__ import annotations

import typing as typ

from markupsafe import Markup

from course_processor._constants import THEME_INDEX_FILENAME
from course_processor.markup import PageLocation

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.scanner import ModuleLayout, ThemeLayout

    from .context import ProcessingContext

STEP_PREFIX = "../../"


def _related(
    theme: ThemeLayout, names: list[str], *, prefix: str
) -> list[dict[str, str]]:
    """Return link rows for the included modules named in ``names``."""
    rows: list[dict[str, str]] = []
    for name in names:
        module = theme.module(name)
        if module is None:
            continue
        if module.steps:
            href = f"{prefix}{theme.name}/{module.name}/{module.steps[0].filename}"
        else:
            href = f"{prefix}{theme.name}/{THEME_INDEX_FILENAME}#{module.name}"
        rows.append({"name": name, "title": module.metadata.title, "href": href})
    return rows


def emit_step(
    context: ProcessingContext,
    theme: ThemeLayout,
    module: ModuleLayout,
    index: int,
) -> Path:
    """Render the step at position ``index`` of ``module``.

    Previous and next links are ``None`` at the first and last step of the
    module so the template can show them disabled.
    """
    step = module.steps[index]
    path = context.output_root / theme.name / module.name / step.filename
    label = f"{theme.name}/{module.name}/{step.filename}"
    body = Markup("")
    if not step.is_outjectives:
        body = Markup(
            context.converter.convert(
                step.body, PageLocation(STEP_PREFIX, path.parent, label)
            )
        )

    steps = module.steps
    meta = module.metadata
    page = context.page_context(
        prefix=STEP_PREFIX,
        title=f"{meta.title}: {step.title}",
        theme=theme.metadata,
        theme_name=theme.name,
        theme_title=theme.metadata.title,
        module_name=module.name,
        module_title=meta.title,
        step_title=step.title,
        step_number=index + 1,
        step_count=len(steps),
        level=meta.level,
        level_label=meta.level.capitalize(),
        body=body,
        is_outjectives=step.is_outjectives,
        objectives=meta.objectives,
        outcomes=meta.outcomes,
        prev_href=steps[index - 1].filename if index > 0 else None,
        next_href=steps[index + 1].filename if index + 1 < len(steps) else None,
        first_href=steps[0].filename,
        last_href=steps[-1].filename,
        prerequisites=_related(theme, meta.prerequisites, prefix=STEP_PREFIX),
        leadsto=_related(theme, meta.leadsto, prefix=STEP_PREFIX),
        module_menu=context.dropdowns.render_modules(
            theme.name,
            module.name,
            prefix=STEP_PREFIX,
            diagnostics=context.diagnostics,
        ),
        step_menu=context.dropdowns.render_steps(
            theme.name,
            module.name,
            step.filename,
            prefix=STEP_PREFIX,
            diagnostics=context.diagnostics,
        ),
    )
    return context.writer.write(path, "step.jinja", page)


def emit_module_steps(
    context: ProcessingContext, theme: ThemeLayout, module: ModuleLayout
) -> list[Path]:
    """Render every step of ``module`` in output order."""
    return [
        emit_step(context, theme, module, index) for index in range(len(module.steps))
    ]


__all__ = ["STEP_PREFIX", "emit_module_steps", "emit_step"]
