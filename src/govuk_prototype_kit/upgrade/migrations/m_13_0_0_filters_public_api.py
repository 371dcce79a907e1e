"""Migration: Replace the legacy filters wrapper in app/filters.js.

Pre-13 prototypes exported a function receiving the Nunjucks environment and
returning an object of filters. From 13.0.0 filters are registered through
``govukPrototypeKit.views.addFilter``.

The unchanged legacy wrapper is replaced by the two lines that import
``addFilter``; anything written before or after the wrapper is kept. Filters
defined *inside* the wrapper cannot be moved safely, so the step stops and
asks for the file to be updated by hand.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from packaging.version import Version

from govuk_prototype_kit.core.paths import FILTERS
from govuk_prototype_kit.errors import TransformError

from .base import FileChange, MigrationStep, find_line

MIGRATION_ID = "13.0.0_filters_public_api"
MIGRATION_VERSION = "13.0.0"
MIGRATION_DESCRIPTION = "Register filters through the kit's public API in app/filters.js"

FILTERS_HEADER = (
    "const govukPrototypeKit = require('govuk-prototype-kit')\n"
    "const addFilter = govukPrototypeKit.views.addFilter"
)

CURRENT_FILTER_API = "govukPrototypeKit.views.addFilter"
LEGACY_WRAPPER_OPEN = re.compile(r"^module\.exports\s*=\s*function\s*\(\s*env\s*\)\s*\{$")
LEGACY_RETURN_LINE = "return filters"
LEGACY_WRAPPER_CLOSE = "}"
LEGACY_FILTERS_OBJECT = re.compile(r"^(?:var|let|const)\s+filters\s*=\s*\{\s*\}$")

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


def _find_wrapper_open(lines: List[str]) -> int | None:
    for index, line in enumerate(lines):
        if LEGACY_WRAPPER_OPEN.match(line.strip()):
            return index
    return None


def _has_custom_filters(body: List[str]) -> bool:
    """True when the wrapper body holds anything but its stock comments."""
    code = _BLOCK_COMMENT.sub("", "\n".join(body))
    for line in code.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue
        if LEGACY_FILTERS_OBJECT.match(stripped):
            continue
        return True
    return False


def upgrade_filters(content: str) -> str:
    """Return filters.js rewritten for ``addFilter``.

    Raises:
        TransformError: If the legacy wrapper holds custom filters or the
            file matches no known layout.
    """
    if CURRENT_FILTER_API in content:
        return content

    lines = content.split("\n")
    start = _find_wrapper_open(lines)
    if start is None:
        raise TransformError(
            str(FILTERS),
            "expected the legacy 'module.exports = function (env) {' wrapper; update the file by hand",
        )
    return_index = find_line(lines, LEGACY_RETURN_LINE, start + 1)
    close_index = (
        find_line(lines, LEGACY_WRAPPER_CLOSE, return_index + 1)
        if return_index is not None
        else None
    )
    if return_index is None or close_index is None:
        raise TransformError(str(FILTERS), "the legacy filters wrapper is not closed as expected")

    if _has_custom_filters(lines[start + 1 : return_index]):
        raise TransformError(
            str(FILTERS),
            "custom filters are defined inside the legacy wrapper; "
            "move them to addFilter calls by hand",
        )

    kept_before = [line for line in lines[:start] if line.strip()]
    return "\n".join([FILTERS_HEADER, *kept_before, *lines[close_index + 1 :]])


def _transform(project) -> List[FileChange]:
    content = project.read_text(FILTERS)
    if content is None:
        return []
    return [FileChange(Path(FILTERS), upgrade_filters(content))]


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
