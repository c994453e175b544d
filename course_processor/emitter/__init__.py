"""Page, index, glossary, and reference emitters for the generation phase."""

from __future__ import annotations

from .backmatter import bucket_label, emit_glossary_pages, emit_reference_page
from .context import ProcessingContext
from .indexes import emit_course_index, emit_theme_index
from .media import MediaTracker
from .steps import emit_module_steps, emit_step
from .templates import DEFAULT_TEMPLATES_DIR, PageWriter, TemplateEngine

__all__ = [
    "DEFAULT_TEMPLATES_DIR",
    "MediaTracker",
    "PageWriter",
    "ProcessingContext",
    "TemplateEngine",
    "bucket_label",
    "emit_course_index",
    "emit_glossary_pages",
    "emit_module_steps",
    "emit_reference_page",
    "emit_step",
    "emit_theme_index",
]
