"""Rewrite custom bracket markup in step bodies into final HTML.

Rules run in a fixed order, each over the output of the previous one:

1. glossary markers become links into the glossary pages,
2. ``[img]``, ``[anim]``, ``[applet]`` and ``[clear]`` become media HTML,
3. ``[local]`` popups are written to their own page and linked,
4. ``[link to="..."]`` markers resolve through the anchor table,
5. ``[target name="..."]`` markers become HTML anchors,
6. ``[ref]`` markers become citations, then adjacent citations merge.

Each rule only touches text matching its own pattern. Problems with a single
marker (a missing media attribute, an unknown anchor) become inline error
fragments plus a warning; they never abort the page.

Examples
--------
>>> from course_processor.markup import media_alignment_class
>>> media_alignment_class("right"), media_alignment_class(None)
('floatright', 'floatleft')
"""

from __future__ import annotations

import dataclasses as dc
import hashlib
import re
import typing as typ

from markupsafe import Markup

from course_processor._constants import GLOSSARY_DIRNAME, MEDIA_DIRNAME
from course_processor.scanner import (
    GLOSSARY_DEFINITION_PATTERN,
    GLOSSARY_REFERENCE_PATTERN,
    REF_PATTERN,
    TARGET_PATTERN,
    glossary_bucket,
    glossary_key,
    marker_value,
    parse_attributes,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.diagnostics import Diagnostics
    from course_processor.emitter.templates import PageWriter
    from course_processor.references import ReferenceHandler
    from course_processor.scanner import ScanResult

IMAGE_PATTERN = re.compile(r"\[img\s+(.*?)/?\s*\]", re.IGNORECASE | re.DOTALL)
ANIM_PATTERN = re.compile(r"\[anim\s+(.*?)/?\s*\]", re.IGNORECASE | re.DOTALL)
APPLET_PATTERN = re.compile(r"\[applet\s+(.*?)/?\s*\]", re.IGNORECASE | re.DOTALL)
CLEAR_PATTERN = re.compile(r"\[clear\s*/?\s*\]", re.IGNORECASE)
LOCAL_PATTERN = re.compile(
    r"\[local\s+(.*?)\s*\](.*?)\[/\s*local\s*\]", re.IGNORECASE | re.DOTALL
)
LINK_PATTERN = re.compile(
    r"\[link\s+(?:to|name)\s*=\s*\"([^\"]+?)\"\s*\](.*?)\[/\s*link\s*\]",
    re.IGNORECASE | re.DOTALL,
)
CLEAR_HTML = '<div style="clear: both;"></div>'
ALIGNMENT_CLASSES = {"left": "floatleft", "right": "floatright", "center": "center"}
POPUP_ESCAPES = (
    ("\\[", "["),
    ("\\]", "]"),
    ('\\"', '"'),
    ("&#91;", "["),
    ("&#93;", "]"),
)


@dc.dataclass(frozen=True, slots=True)
class PageLocation:
    """Where a converted page lives.

    Attributes
    ----------
    prefix : str
        Relative path from the page back to the course root (``"../../"``
        for steps, ``"../"`` for glossary and theme pages).
    output_dir : Path
        Directory receiving popup pages written for this page.
    label : str
        Page identity used in warnings.
    """

    prefix: str
    output_dir: Path
    label: str


def media_alignment_class(align: str | None) -> str:
    """Map a media ``align`` attribute to its CSS class, defaulting to left."""
    return ALIGNMENT_CLASSES.get((align or "").strip().lower(), "floatleft")


def _error_paragraph(message: str) -> str:
    return str(Markup('<p class="error">{}</p>').format(message))


class MarkupConverter:
    """Apply the markup rewrite rules to step bodies and glossary definitions.

    Parameters
    ----------
    scan : ScanResult
        Anchor and glossary tables from the scan phase.
    writer : PageWriter
        Writer used for popup pages.
    diagnostics : Diagnostics
        Warning channel for marker-level problems.
    references : ReferenceHandler, optional
        Citation collaborator; ``[ref]`` markers are left untouched without it.
    """

    def __init__(
        self,
        scan: ScanResult,
        writer: PageWriter,
        diagnostics: Diagnostics,
        *,
        references: ReferenceHandler | None = None,
    ) -> None:
        self.scan = scan
        self.writer = writer
        self.diagnostics = diagnostics
        self.references = references

    def convert(self, text: str, location: PageLocation) -> str:
        """Return ``text`` with every supported marker rewritten to HTML."""
        text = self.convert_glossary(text, location)
        text = self.convert_media(text, location)
        # Popup bodies only receive the glossary and media rules.
        text = self.convert_local(text, location)
        text = self.convert_links(text, location)
        text = self.convert_targets(text)
        return self.convert_references(text, location)

    def convert_glossary(self, text: str, location: PageLocation) -> str:
        """Replace glossary definitions and references with glossary links."""

        def _repl(match: re.Match[str]) -> str:
            return self._glossary_link(match.group(1), location)

        text = GLOSSARY_REFERENCE_PATTERN.sub(_repl, text)
        return GLOSSARY_DEFINITION_PATTERN.sub(_repl, text)

    def _glossary_link(self, term: str, location: PageLocation) -> str:
        term = marker_value(term)
        key = glossary_key(term)
        entry = self.scan.glossary.get(key)
        bucket = entry.bucket if entry is not None else glossary_bucket(term)
        href = f"{location.prefix}{GLOSSARY_DIRNAME}/{bucket}.html#{key}"
        return str(Markup('<a class="glossary" href="{}">{}</a>').format(href, term))

    def convert_media(self, text: str, location: PageLocation) -> str:
        """Replace image, animation, applet, and clear markers."""
        text = IMAGE_PATTERN.sub(lambda m: self._image(m.group(1), location), text)
        text = ANIM_PATTERN.sub(lambda m: self._anim(m.group(1), location), text)
        text = APPLET_PATTERN.sub(lambda m: self._applet(m.group(1), location), text)
        return CLEAR_PATTERN.sub(CLEAR_HTML, text)

    def _media_error(self, message: str, location: PageLocation) -> str:
        self.diagnostics.warn(f"{message} ({location.label})")
        return _error_paragraph(message)

    def _media_source(self, name: str, location: PageLocation) -> str:
        self.writer.media.record(name)
        return f"{location.prefix}{MEDIA_DIRNAME}/{name}"

    def _image(self, raw: str, location: PageLocation) -> str:
        attrs = parse_attributes(raw)
        if not attrs.get("name"):
            return self._media_error(
                "Image tag attribute list does not include name.", location
            )
        style = "border: none;"
        if attrs.get("width"):
            style += f" width: {attrs['width']};"
        if attrs.get("height"):
            style += f" height: {attrs['height']};"
        return str(
            Markup(
                '<div class="{}"><img src="{}" style="{}" alt="{}" title="{}" /></div>'
            ).format(
                media_alignment_class(attrs.get("align")),
                self._media_source(attrs["name"], location),
                style,
                attrs.get("alt", "image"),
                attrs.get("title", "image"),
            )
        )

    def _sized(
        self, kind: str, raw: str, location: PageLocation
    ) -> dict[str, str] | str:
        attrs = parse_attributes(raw)
        if not attrs.get("name"):
            return self._media_error(
                f"{kind} tag attribute list does not include name.", location
            )
        if not attrs.get("width") or not attrs.get("height"):
            return self._media_error(
                f"{kind} tag attribute list is missing width or height information.",
                location,
            )
        return attrs

    def _anim(self, raw: str, location: PageLocation) -> str:
        attrs = self._sized("Anim", raw, location)
        if isinstance(attrs, str):
            return attrs
        source = self._media_source(attrs["name"], location)
        return str(
            Markup(
                '<div class="{}"><object data="{}" width="{}" height="{}">'
                '<param name="movie" value="{}" /></object></div>'
            ).format(
                media_alignment_class(attrs.get("align")),
                source,
                attrs["width"],
                attrs["height"],
                source,
            )
        )

    def _applet(self, raw: str, location: PageLocation) -> str:
        attrs = self._sized("Applet", raw, location)
        if isinstance(attrs, str):
            return attrs
        params = Markup("").join(
            Markup('<param name="{}" value="{}" />').format(
                key, self._media_source(attrs[key], location)
            )
            for key in ("codebase", "archive")
            if attrs.get(key)
        )
        return str(
            Markup(
                '<div class="{}"><object type="application/x-java-applet" '
                'width="{}" height="{}"><param name="code" value="{}" />{}'
                "</object></div>"
            ).format(
                media_alignment_class(attrs.get("align")),
                attrs["width"],
                attrs["height"],
                attrs["name"],
                params,
            )
        )

    def convert_local(self, text: str, location: PageLocation) -> str:
        """Write each ``[local]`` popup to its own page and link to it."""

        def _repl(match: re.Match[str]) -> str:
            title = parse_attributes(match.group(1)).get("text", "Popup")
            body = match.group(2)
            for escaped, plain in POPUP_ESCAPES:
                body = body.replace(escaped, plain)
            digest = hashlib.sha1(
                f"{title}\0{body}".encode(), usedforsecurity=False
            ).hexdigest()[:12]
            filename = f"popup-{digest}.html"
            self.writer.write(
                location.output_dir / filename,
                "popup.jinja",
                {"title": title, "body": Markup(body), "prefix": location.prefix},
            )
            return str(
                Markup('<a class="popup" href="{}" target="_blank">{}</a>').format(
                    filename, title
                )
            )

        return LOCAL_PATTERN.sub(_repl, text)

    def convert_links(self, text: str, location: PageLocation) -> str:
        """Resolve ``[link to="..."]`` markers through the anchor table."""

        def _repl(match: re.Match[str]) -> str:
            name, label = marker_value(match.group(1)), match.group(2)
            anchor = self.scan.anchors.get(name)
            if anchor is None:
                self.diagnostics.warn(
                    f"Unable to locate anchor '{name}' linked from {location.label}."
                )
                return str(
                    Markup(
                        '<span class="error">{} (Unable to locate anchor {})</span>'
                    ).format(Markup(label), name)
                )
            return str(
                Markup('<a href="{}">{}</a>').format(
                    anchor.href(location.prefix), Markup(label)
                )
            )

        return LINK_PATTERN.sub(_repl, text)

    @staticmethod
    def convert_targets(text: str) -> str:
        """Replace ``[target name="..."]`` markers with HTML anchors."""
        return TARGET_PATTERN.sub(
            lambda m: str(
                Markup('<a id="{0}" name="{0}"></a>').format(marker_value(m.group(1)))
            ),
            text,
        )

    def convert_references(self, text: str, location: PageLocation) -> str:
        """Convert ``[ref]`` markers to citations and merge adjacent ones."""
        if self.references is None:
            return text
        handler = self.references
        text = REF_PATTERN.sub(
            lambda m: handler.convert_references(
                parse_attributes(m.group(1)), prefix=location.prefix
            ),
            text,
        )
        return handler.compress_references(text)


__all__ = [
    "ALIGNMENT_CLASSES",
    "MarkupConverter",
    "PageLocation",
    "media_alignment_class",
]
