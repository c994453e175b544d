"""Jinja2 template engine and page writer shared by every emitter.

:class:`TemplateEngine` is the opaque rendering collaborator: given a template
name and a context mapping it returns text. Templates ship in
``course_processor/templates``; a ``templates_dir`` override is searched first
so a course can replace individual page skeletons. :class:`PageWriter` renders
and persists pages, records the media each page uses, and turns any write
failure into a fatal error.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from course_processor.diagnostics import LOG, CourseProcessingError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .media import MediaTracker

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"


class TemplateEngine:
    """Render named Jinja templates with a context mapping."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        search_path = [str(DEFAULT_TEMPLATES_DIR)]
        if templates_dir is not None:
            search_path.insert(0, str(templates_dir))
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, name: str, context: cabc.Mapping[str, typ.Any]) -> str:
        """Render template ``name`` with ``context`` and return the text."""
        return self.env.get_template(name).render(**context)


class PageWriter:
    """Render templates to files, tracking written pages and used media.

    Parameters
    ----------
    engine : TemplateEngine
        Engine used to render page templates.
    media : MediaTracker
        Tracker updated with every media file a written page references.
    """

    def __init__(self, engine: TemplateEngine, media: MediaTracker) -> None:
        self.engine = engine
        self.media = media
        self.written: list[Path] = []

    def write(
        self, path: Path, template: str, context: cabc.Mapping[str, typ.Any]
    ) -> Path:
        """Render ``template`` with ``context`` into ``path``.

        Raises
        ------
        CourseProcessingError
            If the file or its parent directory cannot be written.
        """
        text = self.engine.render(template, context)
        self.media.record_html(text)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            msg = f"Unable to write '{path}': {exc}"
            raise CourseProcessingError(msg) from exc
        LOG.debug("wrote %s", path)
        self.written.append(path)
        return path


__all__ = ["DEFAULT_TEMPLATES_DIR", "PageWriter", "TemplateEngine"]
