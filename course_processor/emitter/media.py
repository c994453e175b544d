"""Track media referenced by emitted pages and remove the rest."""

from __future__ import annotations

import re
import typing as typ

from bs4 import BeautifulSoup

from course_processor._constants import MEDIA_DIRNAME
from course_processor.diagnostics import LOG, CourseProcessingError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

MEDIA_PATH_PATTERN = re.compile(rf"(?:^|/){MEDIA_DIRNAME}/([^?#]+)")
MEDIA_ATTRIBUTES = ("src", "href", "data", "value")


class MediaTracker:
    """Remember every ``media/...`` file named in generated HTML."""

    def __init__(self) -> None:
        self.used: set[str] = set()

    def record(self, name: str) -> None:
        """Mark ``name`` (relative to the media directory) as used."""
        self.used.add(name.strip("/").lower())

    def record_html(self, text: str) -> None:
        """Mark every media file referenced by an HTML attribute in ``text``.

        Attribute values are read after entity decoding, so names containing
        spaces or ``&`` are recorded as written on disk.
        """
        soup = BeautifulSoup(text, "html.parser")
        for tag in soup.find_all(True):
            for attribute in MEDIA_ATTRIBUTES:
                value = tag.get(attribute)
                if not isinstance(value, str):
                    continue
                match = MEDIA_PATH_PATTERN.search(value)
                if match is not None:
                    self.record(match.group(1))

    def cleanup(self, media_dir: Path, *, force: cabc.Iterable[str] = ()) -> list[Path]:
        """Delete files under ``media_dir`` that no page references.

        Parameters
        ----------
        media_dir : Path
            The course media directory in the output tree.
        force : Iterable[str], optional
            Names to keep even when unreferenced.

        Returns
        -------
        list[Path]
            The removed files.
        """
        if not media_dir.is_dir():
            return []
        keep = self.used | {name.strip("/").lower() for name in force}
        removed: list[Path] = []
        for path in sorted(media_dir.rglob("*")):
            if not path.is_file():
                continue
            name = path.relative_to(media_dir).as_posix().lower()
            if name in keep:
                continue
            try:
                path.unlink()
            except OSError as exc:
                msg = f"Unable to remove unused media '{path}': {exc}"
                raise CourseProcessingError(msg) from exc
            LOG.debug("Removed unused media %s", path)
            removed.append(path)
        return removed


__all__ = ["MEDIA_ATTRIBUTES", "MEDIA_PATH_PATTERN", "MediaTracker"]
