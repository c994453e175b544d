"""Compile theme/module/step course trees into cross-linked HTML courses.

This package exposes the ``course-processor`` CLI and the
:class:`~course_processor.processor.CourseProcessor` that drives it.

Exports
-------
- ``app``: Cyclopts application behind the console script.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``CourseProcessor``: Validates, copies, and converts one course.

Examples
--------
>>> from course_processor import CourseProcessor
>>> CourseProcessor.__name__
'CourseProcessor'
"""

from __future__ import annotations

from .cli import app, main
from .processor import CourseProcessor, ProcessingResult

__all__ = ["CourseProcessor", "ProcessingResult", "app", "main"]
