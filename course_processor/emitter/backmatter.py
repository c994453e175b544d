"""Emit the glossary pages and the references page.

Glossary terms are partitioned by the first character of the term into
``a``-``z``, ``digit`` and ``symb`` buckets. One page is written per non-empty
bucket plus ``glossary/index.html``; every page carries an index bar across
all buckets. Each entry shows the definition and numbered backlinks to every
step that uses the term. Terms nobody references are left out.
"""

from __future__ import annotations

import collections
import typing as typ

from markupsafe import Markup

from course_processor._constants import (
    GLOSSARY_BUCKETS,
    GLOSSARY_DIRNAME,
    GLOSSARY_INDEX_FILENAME,
    REFERENCES_FILENAME,
)
from course_processor.markup import PageLocation

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.scanner import GlossaryTerm

    from .context import ProcessingContext

GLOSSARY_PREFIX = "../"
BUCKET_LABELS = {"digit": "0-9", "symb": "Symbols"}


def bucket_label(bucket: str) -> str:
    """Return the index bar label for a glossary bucket."""
    return BUCKET_LABELS.get(bucket, bucket.upper())


def _index_bar(
    buckets: typ.Collection[str], active: str | None
) -> list[dict[str, typ.Any]]:
    return [
        {
            "bucket": bucket,
            "label": bucket_label(bucket),
            "href": f"{bucket}.html" if bucket in buckets else None,
            "active": bucket == active,
        }
        for bucket in GLOSSARY_BUCKETS
    ]


def _entry(
    context: ProcessingContext, term: GlossaryTerm, glossary_dir: Path
) -> dict[str, typ.Any]:
    definition = Markup('<span class="error">No definition provided.</span>')
    if term.definition is not None:
        location = PageLocation(
            GLOSSARY_PREFIX, glossary_dir, f"glossary entry '{term.term}'"
        )
        definition = Markup(context.converter.convert(term.definition, location))
    return {
        "key": term.key,
        "term": term.term,
        "definition": definition,
        "backlinks": [
            {
                "number": number,
                "href": location.href(GLOSSARY_PREFIX),
                "title": context.scan.step_titles.get(location, location.step),
            }
            for number, location in enumerate(term.references, start=1)
        ],
    }


def emit_glossary_pages(context: ProcessingContext) -> list[Path]:
    """Write one page per non-empty glossary bucket and the glossary index.

    Returns
    -------
    list[Path]
        The written pages; empty when no term is referenced anywhere.
    """
    terms = sorted(
        (term for term in context.scan.glossary.values() if term.references),
        key=lambda term: (term.key, term.term),
    )
    if not terms:
        return []
    by_bucket: dict[str, list[GlossaryTerm]] = collections.defaultdict(list)
    for term in terms:
        by_bucket[term.bucket].append(term)

    glossary_dir = context.output_root / GLOSSARY_DIRNAME
    written: list[Path] = []
    for bucket in GLOSSARY_BUCKETS:
        if bucket not in by_bucket:
            continue
        written.append(
            context.writer.write(
                glossary_dir / f"{bucket}.html",
                "glossary.jinja",
                context.page_context(
                    prefix=GLOSSARY_PREFIX,
                    title=f"Glossary: {bucket_label(bucket)}",
                    bucket_title=bucket_label(bucket),
                    index_bar=_index_bar(by_bucket, bucket),
                    entries=[
                        _entry(context, term, glossary_dir)
                        for term in by_bucket[bucket]
                    ],
                ),
            )
        )
    written.append(
        context.writer.write(
            glossary_dir / GLOSSARY_INDEX_FILENAME,
            "glossary_index.jinja",
            context.page_context(
                prefix=GLOSSARY_PREFIX,
                title="Glossary",
                index_bar=_index_bar(by_bucket, None),
                buckets=[
                    {
                        "label": bucket_label(bucket),
                        "href": f"{bucket}.html",
                        "terms": [
                            {"term": term.term, "key": term.key}
                            for term in by_bucket[bucket]
                        ],
                    }
                    for bucket in GLOSSARY_BUCKETS
                    if bucket in by_bucket
                ],
            ),
        )
    )
    return written


def emit_reference_page(context: ProcessingContext) -> Path | None:
    """Write ``references.html`` when any citation was recorded."""
    handler = context.scan.references
    if handler is None or not context.scan.has_references:
        return None
    return context.writer.write(
        context.output_root / REFERENCES_FILENAME,
        "references.jinja",
        context.page_context(
            prefix="",
            title="References",
            entries=handler.page_entries(),
        ),
    )


__all__ = ["bucket_label", "emit_glossary_pages", "emit_reference_page"]
