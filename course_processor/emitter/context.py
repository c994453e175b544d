"""Read-only context passed to every emitter call."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from markupsafe import Markup

from course_processor._constants import COURSE_BASE_MARKER

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.diagnostics import Diagnostics
    from course_processor.filters import FilterSet
    from course_processor.markup import MarkupConverter
    from course_processor.metadata import CourseInfo, CourseMetadata, ThemeMetadata
    from course_processor.navigation import DropdownCache
    from course_processor.scanner import ScanResult

    from .templates import PageWriter


@dc.dataclass(frozen=True, slots=True)
class ProcessingContext:
    """Scan results, menus, and collaborators shared by the emit phase."""

    output_root: Path
    course: CourseMetadata
    courseinfo: CourseInfo
    scan: ScanResult
    dropdowns: DropdownCache
    converter: MarkupConverter
    writer: PageWriter
    filters: FilterSet
    diagnostics: Diagnostics

    def extrahead(self, prefix: str, theme: ThemeMetadata | None = None) -> Markup:
        """Return course and theme extra head HTML with the course base resolved."""
        extra = self.course.extrahead
        if theme is not None and theme.extrahead:
            extra = f"{extra}\n{theme.extrahead}" if extra else theme.extrahead
        return Markup(extra.replace(COURSE_BASE_MARKER, prefix))

    def page_context(
        self,
        *,
        prefix: str,
        title: str,
        theme: ThemeMetadata | None = None,
        **extra: typ.Any,
    ) -> dict[str, typ.Any]:
        """Return the template context every page shares, merged with ``extra``."""
        context: dict[str, typ.Any] = {
            "prefix": prefix,
            "title": title,
            "course_title": self.courseinfo.title,
            "version": self.course.version,
            "extrahead": self.extrahead(prefix, theme),
            "glossary_enabled": self.scan.has_glossary,
            "references_enabled": self.scan.has_references,
            "theme_menu": self.dropdowns.render_themes(
                theme.name if theme is not None else None,
                prefix=prefix,
                diagnostics=self.diagnostics,
            ),
        }
        context.update(extra)
        return context


__all__ = ["ProcessingContext"]
