"""Migration: Point app/routes.js at the kit's public router.

Legacy routes files built their own Express router::

    const express = require('express')
    const router = express.Router()

    // Add your routes here - above the module.exports line

    module.exports = router

From 13.0.0 the router comes from ``govukPrototypeKit.requests.setupRouter()``
and nothing is exported. Only the boilerplate header and the export line are
replaced; routes and comments written by the user stay exactly where they are.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from packaging.version import Version

from govuk_prototype_kit.core.paths import ROUTES
from govuk_prototype_kit.errors import TransformError

from .base import FileChange, MigrationStep, remove_lines, replace_file_header

MIGRATION_ID = "13.0.0_routes_public_api"
MIGRATION_VERSION = "13.0.0"
MIGRATION_DESCRIPTION = "Use the kit's public router in app/routes.js"

ROUTES_HEADER = (
    "// \n"
    "// For guidance on how to create routes see:\n"
    "// https://prototype-kit.service.gov.uk/docs/create-routes\n"
    "// \n"
    "\n"
    "const govukPrototypeKit = require('govuk-prototype-kit')\n"
    "const router = govukPrototypeKit.requests.setupRouter()\n"
    "\n"
    "// Add your routes here"
)

CURRENT_ROUTER_SETUP = "govukPrototypeKit.requests.setupRouter()"
LEGACY_ROUTER_LINE = "const router = express.Router()"

LEGACY_HEADER_PATTERNS = [
    r"^const express = require\('express'\)$",
    r"^var express = require\('express'\)$",
]

LEGACY_TRAILING_LINES = [
    "// Add your routes here - above the module.exports line",
    "module.exports = router",
]


def upgrade_routes(content: str) -> str:
    """Return routes.js rewritten for the public router.

    Raises:
        TransformError: If the file matches neither the legacy nor the
            current layout.
    """
    if CURRENT_ROUTER_SETUP in content:
        return content

    rewritten = replace_file_header(
        content,
        marker=LEGACY_ROUTER_LINE,
        header=ROUTES_HEADER,
        boilerplate=LEGACY_HEADER_PATTERNS,
    )
    if rewritten is None:
        raise TransformError(
            str(ROUTES),
            f"expected '{LEGACY_ROUTER_LINE}' or '{CURRENT_ROUTER_SETUP}'; update the file by hand",
        )
    return remove_lines(rewritten, LEGACY_TRAILING_LINES)


def _transform(project) -> List[FileChange]:
    content = project.read_text(ROUTES)
    if content is None:
        return []
    return [FileChange(Path(ROUTES), upgrade_routes(content))]


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
