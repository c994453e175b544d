"""Output handler producing the templated HTML course.

Processing runs in two phases over the working copy of the course. The scan
phase records anchors, glossary terms, and citations for every included step
and builds the navigation menus. The emit phase then writes step pages,
theme and course indexes, glossary pages, and the references page, before
merging the template framework and tidying intermediate files and unused
media out of the output tree.
"""

from __future__ import annotations

import shutil
import typing as typ

from course_processor._constants import (
    FRAMEWORK_DIRNAME,
    MEDIA_DIRNAME,
    METADATA_FILENAME,
)
from course_processor.diagnostics import LOG, CourseProcessingError
from course_processor.emitter import (
    DEFAULT_TEMPLATES_DIR,
    MediaTracker,
    PageWriter,
    ProcessingContext,
    TemplateEngine,
    emit_course_index,
    emit_glossary_pages,
    emit_module_steps,
    emit_reference_page,
    emit_theme_index,
)
from course_processor.filters import FilterSet
from course_processor.markup import MarkupConverter
from course_processor.metadata import check_modules_with_plugins
from course_processor.navigation import build_dropdowns
from course_processor.references import ReferenceHandler
from course_processor.scanner import STEP_FILE_PATTERN, scan

from .base import OutputPlugin

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.metadata import CourseInfo, CourseMetadata, ThemeMetadata
    from course_processor.scanner import ScanResult


def active_courseinfo(course: CourseMetadata, filters: FilterSet) -> CourseInfo:
    """Return the first ``courseinfo`` block kept by ``filters``.

    Raises
    ------
    CourseProcessingError
        If every block is excluded by the active filters.
    """
    for info in course.courseinfo:
        if filters.includes(info.filters):
            return info
    msg = "No courseinfo block in the course metadata passes the active filters."
    raise CourseProcessingError(msg)


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as exc:
        msg = f"Unable to remove '{path}': {exc}"
        raise CourseProcessingError(msg) from exc
    LOG.debug("Removed %s", path)


def _remove_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        msg = f"Unable to remove '{path}': {exc}"
        raise CourseProcessingError(msg) from exc


class HTMLOutputHandler(OutputPlugin):
    """Write the course as a cross-linked static HTML site."""

    name = "html"
    description = "HTML output processor"

    @property
    def templates_dir(self) -> Path | None:
        """Return the configured template override directory, if any."""
        return self.config.output.templates_dir

    def use_plugin(self) -> bool:
        """Check the template override and the front page before any output.

        Raises
        ------
        CourseProcessingError
            If ``templates_dir`` is set but is not a directory, or no
            ``courseinfo`` block passes the active filters.
        """
        active_courseinfo(self.course, FilterSet(self.config.filters))
        if self.templates_dir is not None and not self.templates_dir.is_dir():
            msg = f"Template directory '{self.templates_dir}' does not exist."
            raise CourseProcessingError(msg)
        LOG.debug(
            "HTML output handler using templates from %s",
            self.templates_dir or DEFAULT_TEMPLATES_DIR,
        )
        return True

    def process(self) -> bool:
        """Scan the intermediate tree and emit every page of the course."""
        filters = FilterSet(self.config.filters)
        courseinfo = active_courseinfo(self.course, filters)
        themes = self._checked_themes()
        references = (
            ReferenceHandler(self.diagnostics)
            if self.config.references_enabled
            else None
        )

        LOG.info("Scanning course tree in %s", self.root)
        result = scan(
            self.root,
            themes,
            filters,
            self.diagnostics,
            references=references,
            strict_redefinitions=self.config.output.strict_redefinitions,
        )

        media = MediaTracker()
        writer = PageWriter(TemplateEngine(self.templates_dir), media)
        context = ProcessingContext(
            output_root=self.root,
            course=self.course,
            courseinfo=courseinfo,
            scan=result,
            dropdowns=build_dropdowns(result.layout),
            converter=MarkupConverter(
                result, writer, self.diagnostics, references=references
            ),
            writer=writer,
            filters=filters,
            diagnostics=self.diagnostics,
        )

        for theme in result.layout:
            LOG.info("Writing theme '%s'", theme.name)
            for module in theme.modules:
                emit_module_steps(context, theme, module)
            emit_theme_index(context, theme)
        emit_glossary_pages(context)
        emit_reference_page(context)
        emit_course_index(context)

        self._merge_framework(media)
        self._tidy(result)
        removed = media.cleanup(
            self.root / MEDIA_DIRNAME, force=self.config.output.force_media
        )
        LOG.info("Removed %d unused media files", len(removed))
        self.written = list(writer.written)
        LOG.info("HTML output complete: %d pages written", len(self.written))
        return True

    def _checked_themes(self) -> list[ThemeMetadata]:
        """Return the themes whose modules every input plugin check accepts."""
        themes: list[ThemeMetadata] = []
        for theme in self.themes:
            if check_modules_with_plugins(
                theme, self.root / theme.name, self.input_plugins, self.diagnostics
            ):
                themes.append(theme)
            else:
                self.diagnostics.warn(
                    f"Theme '{theme.name}' failed validation and will be skipped."
                )
        return themes

    def _framework_dir(self) -> Path | None:
        for base in (self.templates_dir, DEFAULT_TEMPLATES_DIR):
            if base is not None and (base / FRAMEWORK_DIRNAME).is_dir():
                return base / FRAMEWORK_DIRNAME
        return None

    def _merge_framework(self, media: MediaTracker) -> None:
        """Copy the template framework files into the course root."""
        framework = self._framework_dir()
        if framework is None:
            LOG.debug("No template framework to merge")
            return
        LOG.debug("Merging framework from %s", framework)
        try:
            shutil.copytree(framework, self.root, dirs_exist_ok=True)
        except (OSError, shutil.Error) as exc:
            msg = f"Unable to copy template framework '{framework}': {exc}"
            raise CourseProcessingError(msg) from exc
        for path in framework.rglob("*.html"):
            media.record_html(path.read_text(encoding="utf-8"))

    def _tidy(self, result: ScanResult) -> None:
        """Drop excluded content, intermediate steps, and metadata copies."""
        if self.config.output.keep_intermediate:
            LOG.info("Keeping intermediate files in %s", self.root)
            return
        included = {theme.name: theme for theme in result.layout}
        for theme in self.themes:
            theme_dir = self.root / theme.name
            layout = included.get(theme.name)
            if layout is None:
                if theme_dir.is_dir():
                    _remove_tree(theme_dir)
                continue
            _remove_file(theme_dir / METADATA_FILENAME)
            kept = {module.name for module in layout.modules}
            for name in theme.modules:
                module_dir = theme_dir / name
                if not module_dir.is_dir():
                    continue
                if name not in kept:
                    _remove_tree(module_dir)
                    continue
                for path in module_dir.iterdir():
                    if path.is_file() and STEP_FILE_PATTERN.match(path.name):
                        _remove_file(path)
        _remove_file(self.root / METADATA_FILENAME)


__all__ = ["HTMLOutputHandler", "active_courseinfo"]
