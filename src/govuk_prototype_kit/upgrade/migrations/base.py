"""Building blocks shared by the migration steps.

A step never writes to disk itself. Its transform reads the project and
returns the :class:`FileChange` objects describing the desired end state of
the files it owns; the runner compares them with disk and writes only real
differences. Returning the same changes on a second run is therefore a no-op,
which is how every step stays idempotent.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from packaging.version import Version

if TYPE_CHECKING:
    from govuk_prototype_kit.upgrade.project import Project


@dataclass(frozen=True)
class FileChange:
    """Desired content of one project file; ``None`` content deletes it."""

    path: Path
    content: str | None

    @property
    def is_delete(self) -> bool:
        return self.content is None


Transform = Callable[["Project"], Sequence[FileChange]]


@dataclass(frozen=True)
class MigrationStep:
    """An immutable, version-scoped, idempotent file transformation.

    The step applies to projects whose detected version satisfies
    ``applies_from <= version < applies_before``.
    """

    step_id: str
    description: str
    applies_from: Version
    applies_before: Version
    transform: Transform

    def applies_to(self, version: Version) -> bool:
        return self.applies_from <= version < self.applies_before

    @property
    def version_range(self) -> str:
        return f">={self.applies_from},<{self.applies_before}"


def find_line(lines: Sequence[str], wanted: str, start: int = 0) -> int | None:
    """Index of the first line equal to *wanted* ignoring surrounding whitespace."""
    for index in range(start, len(lines)):
        if lines[index].strip() == wanted:
            return index
    return None


def is_boilerplate(line: str, patterns: Iterable[str]) -> bool:
    stripped = line.strip()
    if not stripped:
        return True
    return any(re.match(pattern, stripped) for pattern in patterns)


def replace_file_header(
    content: str,
    *,
    marker: str,
    header: str,
    boilerplate: Iterable[str] = (),
    keep_before: str | None = None,
) -> str | None:
    """Replace everything up to and including the *marker* line with *header*.

    Lines above the marker that do not match a *boilerplate* pattern are
    user content; they are kept, in order, directly after the new header.
    When *keep_before* names a line of *header* they go in front of that
    line instead, followed by a blank line, so code written at the top
    level of the file stays there. Everything below the marker is kept
    verbatim. Returns None when the marker is not present.
    """
    lines = content.split("\n")
    index = find_line(lines, marker)
    if index is None:
        return None
    patterns = tuple(boilerplate)
    kept = [line for line in lines[:index] if not is_boilerplate(line, patterns)]

    header_lines = header.split("\n")
    split = find_line(header_lines, keep_before) if keep_before is not None else None
    if split is None or not kept:
        return "\n".join([header, *kept, *lines[index + 1 :]])
    return "\n".join([*header_lines[:split], *kept, "", *header_lines[split:], *lines[index + 1 :]])


def remove_line_after(content: str, marker: str, unwanted: str) -> str:
    """Remove *unwanted* when it is the first non-blank line after *marker*.

    Matching lines anywhere else in the file are left alone.
    """
    lines = content.split("\n")
    index = find_line(lines, marker)
    if index is None:
        return content
    for candidate in range(index + 1, len(lines)):
        if not lines[candidate].strip():
            continue
        if lines[candidate].strip() == unwanted.strip():
            del lines[candidate]
        break
    return "\n".join(lines)


def remove_lines(content: str, unwanted: Iterable[str]) -> str:
    """Remove lines equal to any of *unwanted* (surrounding whitespace ignored)."""
    targets = {line.strip() for line in unwanted if line.strip()}
    lines = content.split("\n")
    return "\n".join(line for line in lines if line.strip() not in targets)


def to_json(data: object) -> str:
    """Serialise JSON the way npm writes manifests: two-space indent, newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
