"""Citation handling for ``[ref ...]`` markers in IEEE numeric style.

A reference marker either defines a citation (it carries a ``type``
attribute plus bibliographic fields) or simply cites one by ``id``::

    [ref id="knuth97" type="book" author="Knuth, D. E." booktitle="TAOCP" /]
    [ref id="knuth97" /]

During the scan every marker is passed to
:meth:`ReferenceHandler.set_reference_point`. Citations are numbered in order
of first appearance. During emission markers become ``[n]`` links into
``references.html`` and adjacent citations are compressed, so ``[1][2][3]``
reads ``[1,2,3]``.
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from markupsafe import Markup, escape

from course_processor._constants import REFERENCES_FILENAME
from course_processor.diagnostics import CourseProcessingError

if typ.TYPE_CHECKING:
    from course_processor.diagnostics import Diagnostics
    from course_processor.scanner import StepLocation

REFERENCE_TYPES = ("book", "book article", "periodical")
ADJACENT_CITATIONS = re.compile(r"</a>\]\s+\[<a ")
MERGE_CITATIONS = re.compile(
    r"(<a class=\"citation\" href=\"[^\"]*" + re.escape(REFERENCES_FILENAME)
    + r"#[^\"]*\">[^<]*</a>)\]\[<a class=\"citation\""
)


@dc.dataclass(slots=True)
class ReferenceEntry:
    """A cited work with its definition and every citing step."""

    id: str
    number: int
    definition: dict[str, str] | None = None
    defined_at: StepLocation | None = None
    backlinks: list[tuple[StepLocation, str]] = dc.field(default_factory=list)


def _initials(text: str) -> str:
    if re.fullmatch(r"\w\.(\s*\w\.)*", text.strip()):
        return re.sub(r"\s", "", text)
    return "".join(f"{word[0]}." for word in re.findall(r"\w+", text))


def format_names(name: str, others: str | None = None) -> str:
    """Format ``Surname, Initials`` pairs as IEEE author lists.

    >>> format_names("Knuth, Donald", "Graham, R. L., Patashnik, Oren")
    'D. Knuth, R.L. Graham and O. Patashnik'
    """
    joined = f"{name}, {others}" if others else name
    parts = [part.strip() for part in joined.split(",") if part.strip()]
    people: list[str] = []
    index = 0
    while index < len(parts):
        surname = parts[index]
        initials = _initials(parts[index + 1]) if index + 1 < len(parts) else ""
        index += 2
        suffix = ""
        candidate = parts[index] if index < len(parts) else ""
        if candidate.endswith(".") and len(candidate) <= 4:
            suffix = f", {candidate}"
            index += 1
        people.append(f"{initials} {surname}{suffix}".strip())
    if len(people) <= 1:
        return "".join(people)
    return ", ".join(people[:-1]) + " and " + people[-1]


def _editors(fields: dict[str, str]) -> str:
    parts: list[str] = []
    if fields.get("editor"):
        label = "Eds." if fields.get("coeditors") else "Ed."
        names = format_names(fields["editor"], fields.get("coeditors"))
        parts.append(f"{names}, {label}")
    if fields.get("translator"):
        names = format_names(fields["translator"], fields.get("cotranslators"))
        parts.append(f"{names}, Trans.")
    return ", ".join(parts)


def format_citation(fields: dict[str, str]) -> Markup:
    """Return the IEEE-style citation text for a reference definition."""
    authors = ""
    if fields.get("author"):
        authors = format_names(fields["author"], fields.get("authors"))
    lead = escape(f"{authors}, ") if authors else Markup("")
    location = fields.get("location", "n.p.")
    publisher = fields.get("publisher", "n.p.")
    year = fields.get("year", "n.d.")
    editors = _editors(fields)
    kind = fields["type"]
    if kind == "book":
        title = fields.get("booktitle", "")
        if fields.get("edition"):
            title = f"{title}, {fields['edition']}"
        tail = f". {editors}" if editors else ""
        return lead + Markup("<i>{}</i>{}. {}: {}, {}.").format(
            title, tail, location, publisher, year
        )
    if kind == "book article":
        return lead + Markup('"{}," in <i>{}</i>{}. {}: {}, {}, pp. {}.').format(
            fields.get("articletitle", ""),
            fields.get("booktitle", ""),
            f", {editors}" if editors else "",
            location,
            publisher,
            year,
            fields.get("pages", "n.pag."),
        )
    details = [
        f"vol. {fields['volume']}" if fields.get("volume") else "",
        f"no. {fields['issue']}" if fields.get("issue") else "",
        f"pp. {fields['pages']}" if fields.get("pages") else "",
        year,
    ]
    return lead + Markup('"{}," <i>{}</i>, {}.').format(
        fields.get("articletitle", ""),
        fields.get("journalname", ""),
        ", ".join(part for part in details if part),
    )


class ReferenceHandler:
    """Collect citations during the scan and convert markers during emission.

    Parameters
    ----------
    diagnostics : Diagnostics
        Warning channel for redefinitions and unsupported reference types.
    """

    style = "ieee"

    def __init__(self, diagnostics: Diagnostics) -> None:
        self.diagnostics = diagnostics
        self._entries: dict[str, ReferenceEntry] = {}

    def set_reference_point(
        self, attrs: dict[str, str], location: StepLocation, step_title: str
    ) -> None:
        """Record a ``[ref]`` marker found in the step at ``location``.

        Raises
        ------
        CourseProcessingError
            If the marker has no ``id`` attribute.
        """
        key = attrs.get("id")
        if not key:
            msg = f"Malformed reference in {location}: no id provided."
            raise CourseProcessingError(msg)
        entry = self._entries.get(key)
        if entry is None:
            entry = ReferenceEntry(id=key, number=len(self._entries) + 1)
            self._entries[key] = entry

        kind = attrs.get("type")
        if kind is not None:
            if kind.lower() not in REFERENCE_TYPES:
                self.diagnostics.warn(
                    f"Unsupported reference type '{kind}' in {location}."
                )
            elif entry.definition is not None:
                self.diagnostics.warn(
                    f"Redefinition of reference '{key}' in {location}, first set "
                    f"in {entry.defined_at}; keeping the first definition."
                )
            else:
                entry.definition = {**attrs, "type": kind.lower()}
                entry.defined_at = location
        entry.backlinks.append((location, step_title))

    def entries(self) -> list[ReferenceEntry]:
        """Return every recorded citation in numbering order."""
        return sorted(self._entries.values(), key=lambda entry: entry.number)

    def convert_references(self, attrs: dict[str, str], *, prefix: str) -> str:
        """Return the ``[n]`` citation link for a marker's attributes."""
        key = attrs.get("id", "")
        entry = self._entries.get(key)
        if entry is None:
            self.diagnostics.warn(f"Citation of unknown reference '{key}'.")
            return str(Markup('<span class="error">[{}?]</span>').format(key))
        return str(
            Markup('[<a class="citation" href="{}{}#ref-{}">{}</a>]').format(
                prefix, REFERENCES_FILENAME, entry.id, entry.number
            )
        )

    @staticmethod
    def compress_references(body: str) -> str:
        """Merge adjacent citation links: ``[1] [2][3]`` becomes ``[1,2,3]``."""
        body = ADJACENT_CITATIONS.sub("</a>][<a ", body)
        previous = None
        while previous != body:
            previous = body
            body = MERGE_CITATIONS.sub(r'\1,<a class="citation"', body)
        return body

    def page_entries(self) -> list[dict[str, typ.Any]]:
        """Return template context rows for the references page."""
        rows: list[dict[str, typ.Any]] = []
        for entry in self.entries():
            if entry.definition is None:
                self.diagnostics.warn(
                    f"Reference '{entry.id}' is cited but never defined."
                )
                citation = Markup('<span class="error">No definition provided.</span>')
            else:
                citation = format_citation(entry.definition)
            rows.append(
                {
                    "id": entry.id,
                    "number": entry.number,
                    "citation": citation,
                    "backlinks": [
                        {"href": location.href(), "title": title}
                        for location, title in entry.backlinks
                    ],
                }
            )
        return rows


__all__ = [
    "REFERENCE_TYPES",
    "ReferenceEntry",
    "ReferenceHandler",
    "format_citation",
    "format_names",
]
