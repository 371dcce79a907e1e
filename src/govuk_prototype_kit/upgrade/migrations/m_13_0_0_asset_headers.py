"""Migration: Refresh the boilerplate headers of application.js and application.scss.

The kit now compiles GOV.UK Frontend and initialises it itself, so the legacy
imports and ``initAll`` calls at the top of the prototype's own script and
stylesheet are replaced by a short guidance comment. Documentation links in
the leading comment block are moved to the current documentation site.

Rules and code written by the user below the boilerplate are never touched.
Files that match neither the legacy nor the current layout are left as they
are: they belong to the user.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from packaging.version import Version

from govuk_prototype_kit.core.paths import APPLICATION_JS, APPLICATION_SCSS

from .base import FileChange, MigrationStep, remove_line_after, replace_file_header

MIGRATION_ID = "13.0.0_asset_headers"
MIGRATION_VERSION = "13.0.0"
MIGRATION_DESCRIPTION = "Refresh the headers of application.js and application.scss"

LEGACY_DOCS_URL = "https://govuk-prototype-kit.herokuapp.com/docs/"
CURRENT_DOCS_URL = "https://prototype-kit.service.gov.uk/docs/"

SCRIPT_READY_LINE = "window.GOVUKPrototypeKit.documentReady(() => {"

SCRIPT_HEADER = (
    "//\n"
    "// For guidance on how to add JavaScript see:\n"
    "// https://prototype-kit.service.gov.uk/docs/adding-css-javascript-and-images\n"
    "// \n"
    "\n"
    f"{SCRIPT_READY_LINE}\n"
    "  // Add JavaScript here"
)

STYLE_HEADER = (
    "//\n"
    "// For guidance on how to add CSS and SCSS see:\n"
    "// https://prototype-kit.service.gov.uk/docs/adding-css-javascript-and-images\n"
    "// \n"
    "\n"
    "// Add extra styles here"
)

LEGACY_SCRIPT_MARKER = "$(document).ready(function () {"
LEGACY_STYLE_MARKERS = (
    "// Add extra styles here, or re-organise into seperate files.",
    "// Add extra styles here, or re-organise into separate files.",
)

LEGACY_CONSOLE_WARNING = (
    "// Warn about using the kit in production\n"
    "if (window.console && window.console.info) {\n"
    "  window.console.info('GOV.UK Prototype Kit - do not use for production')\n"
    "}\n"
)

GUIDANCE_PATTERNS = [
    r"^//$",
    r"^// For guidance on how to add .+ see:$",
    r"^// https://(?:govuk-prototype-kit\.herokuapp\.com|prototype-kit\.service\.gov\.uk)/docs/\S*$",
]

LEGACY_SCRIPT_PATTERNS = [
    *GUIDANCE_PATTERNS,
    r"^/\* global \$ \*/$",
]

LEGACY_STYLE_PATTERNS = [
    *GUIDANCE_PATTERNS,
    r"^// global styles for <a> and <p> tags$",
    r"^\$govuk-global-styles: true;$",
    r"^// Import GOV\.UK Frontend$",
    r"^@import \"node_modules/govuk-frontend/[^\"]*\";$",
    r"^// Patterns that aren't in Frontend$",
    r"^@import \"patterns/[^\"]*\";$",
]

# Dropped only as the first statement of the legacy ready handler.
LEGACY_INIT_LINE = "window.GOVUKFrontend.initAll()"


def rewrite_documentation_links(content: str) -> str:
    """Move documentation links in the leading ``//`` comment block."""
    lines = content.split("\n")
    for index, line in enumerate(lines):
        if not line.lstrip().startswith("//"):
            break
        lines[index] = line.replace(LEGACY_DOCS_URL, CURRENT_DOCS_URL)
    return "\n".join(lines)


def upgrade_application_js(content: str) -> str:
    content = remove_line_after(
        content.replace(LEGACY_CONSOLE_WARNING, ""), LEGACY_SCRIPT_MARKER, LEGACY_INIT_LINE
    )
    rewritten = replace_file_header(
        content,
        marker=LEGACY_SCRIPT_MARKER,
        header=SCRIPT_HEADER,
        boilerplate=LEGACY_SCRIPT_PATTERNS,
        keep_before=SCRIPT_READY_LINE,
    )
    if rewritten is not None:
        content = rewritten
    return rewrite_documentation_links(content)


def upgrade_application_scss(content: str) -> str:
    for marker in LEGACY_STYLE_MARKERS:
        rewritten = replace_file_header(
            content,
            marker=marker,
            header=STYLE_HEADER,
            boilerplate=LEGACY_STYLE_PATTERNS,
        )
        if rewritten is not None:
            content = rewritten
            break
    return rewrite_documentation_links(content)


def _transform(project) -> List[FileChange]:
    changes: List[FileChange] = []
    script = project.read_text(APPLICATION_JS)
    if script is not None:
        changes.append(FileChange(Path(APPLICATION_JS), upgrade_application_js(script)))
    style = project.read_text(APPLICATION_SCSS)
    if style is not None:
        changes.append(FileChange(Path(APPLICATION_SCSS), upgrade_application_scss(style)))
    return changes


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
