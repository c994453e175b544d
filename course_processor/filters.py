"""Include/exclude filtering for themes, modules, steps, and map resources.

Authors tag resources in metadata with ``filters`` mappings such as::

    filters:
      include: [lab]
      exclude: [print]

The user selects active filter names on the command line or in the processor
configuration. :class:`FilterSet` decides whether a tagged resource belongs in
the generated course: any matching exclude removes it, and a resource with
includes needs at least one of them to be active. Names compare
case-insensitively.

Examples
--------
>>> from course_processor.filters import FilterSet, ResourceFilters
>>> active = FilterSet(["Lab"])
>>> active.includes(ResourceFilters(include=("lab",)))
True
>>> FilterSet([]).includes(ResourceFilters(include=("lab",)))
False
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from course_processor.diagnostics import CourseProcessingError


@dc.dataclass(frozen=True, slots=True)
class ResourceFilters:
    """Filter names attached to a single resource in metadata."""

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: object, *, where: str) -> ResourceFilters | None:
        """Build filters from a metadata ``filters`` value.

        Parameters
        ----------
        payload : object
            The raw value read from YAML; ``None`` means no filters.
        where : str
            Human-readable resource identity used in error messages.

        Raises
        ------
        CourseProcessingError
            If the payload is not a mapping of ``include``/``exclude`` lists.
        """
        if payload is None:
            return None
        if not isinstance(payload, cabc.Mapping):
            msg = f"Filters for {where} must be a mapping with include/exclude lists."
            raise CourseProcessingError(msg)
        return cls(
            include=_names(payload.get("include"), where=where, key="include"),
            exclude=_names(payload.get("exclude"), where=where, key="exclude"),
        )


def _names(value: object, *, where: str, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        msg = f"Filter '{key}' for {where} must be a list of names."
        raise CourseProcessingError(msg)
    # Nested structures are ignored rather than matched.
    return tuple(
        str(item).strip().lower()
        for item in value
        if not isinstance(item, (list, dict)) and str(item).strip()
    )


class FilterSet:
    """The set of filter names selected for a processing run."""

    def __init__(self, names: typ.Iterable[str] = ()) -> None:
        self.names = frozenset(name.strip().lower() for name in names if name.strip())

    def includes(self, filters: ResourceFilters | None) -> bool:
        """Return whether a resource tagged with ``filters`` should be kept."""
        if filters is None:
            return True
        if not self.names and not filters.include:
            return True
        if any(name in self.names for name in filters.exclude):
            return False
        if not filters.include:
            return True
        return any(name in self.names for name in filters.include)

    def excludes(self, filters: ResourceFilters | None) -> bool:
        """Return whether a resource tagged with ``filters`` should be dropped."""
        return not self.includes(filters)

    def __repr__(self) -> str:
        return f"FilterSet({sorted(self.names)!r})"


__all__ = ["FilterSet", "ResourceFilters"]
