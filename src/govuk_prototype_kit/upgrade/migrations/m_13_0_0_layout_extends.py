"""Migration: Extend the kit's current base layouts from the prototype's views.

Legacy ``app/views/layout.html`` extended GOV.UK Frontend's template directly
and pulled in the kit's head, header and script includes itself. From 13.0.0
the kit ships branded and unbranded base layouts that do all of that, so:

- ``layout.html`` gets a guidance comment and extends
  ``govuk-prototype-kit/layouts/govuk-branded.html``; the stock head, header
  and bodyEnd blocks are removed, every other block is kept
- any view extending a legacy base layout (``layout_unbranded.html``,
  ``govuk/template.njk``) is pointed at its replacement
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List

from packaging.version import Version

from govuk_prototype_kit.core.paths import LAYOUT, VIEWS_DIR

from .base import FileChange, MigrationStep, is_boilerplate

MIGRATION_ID = "13.0.0_layout_extends"
MIGRATION_VERSION = "13.0.0"
MIGRATION_DESCRIPTION = "Extend the kit's base layouts from app/views"

BRANDED_LAYOUT = "govuk-prototype-kit/layouts/govuk-branded.html"
UNBRANDED_LAYOUT = "govuk-prototype-kit/layouts/unbranded.html"

LEGACY_BASE_LAYOUTS: Dict[str, str] = {
    "govuk/template.njk": BRANDED_LAYOUT,
    "layout_unbranded.html": UNBRANDED_LAYOUT,
}

LAYOUT_HEADER = (
    "{#\n"
    "For guidance on how to use layouts see:\n"
    "https://prototype-kit.service.gov.uk/docs/layouts\n"
    "#}\n"
    "\n"
    '{% extends "' + BRANDED_LAYOUT + '" %}'
)

LEGACY_LAYOUT_PATTERNS = [
    r"^\{#$",
    r"^#\}$",
    r"^For guidance on how to use layouts see:$",
    r"^https://\S+/docs/\S*$",
]

LEGACY_LAYOUT_BLOCKS = [
    "{% block head %}\n"
    '  {% include "includes/head.html" %}\n'
    "{% endblock %}",
    "{% block header %}\n"
    "  {# Set serviceName in config.js. #}\n"
    "  {{ govukHeader({\n"
    '    homepageUrl: "/",\n'
    "    serviceName: serviceName,\n"
    '    serviceUrl: "/",\n'
    '    containerClasses: "govuk-width-container"\n'
    "  }) }}\n"
    "{% endblock %}",
    "{% block bodyEnd %}\n"
    "  {% block scripts %}\n"
    '    {% include "includes/scripts.html" %}\n'
    "    {% block pageScripts %}{% endblock %}\n"
    "  {% endblock %}\n"
    "  <!-- GOV.UK Prototype Kit {{releaseVersion}} -->\n"
    "{% endblock %}",
]

_EXTENDS = re.compile(r"""^(?P<open>\s*\{%-?\s*extends\s+)(?P<quote>["'])(?P<path>[^"']+)(?P=quote)(?P<close>.*)$""")


def _extends_path(line: str) -> str | None:
    match = _EXTENDS.match(line)
    return match.group("path") if match else None


def rewrite_extends(content: str) -> str:
    """Point an ``extends`` of a legacy base layout at its replacement."""
    lines = content.split("\n")
    for index, line in enumerate(lines):
        match = _EXTENDS.match(line)
        if not match:
            continue
        replacement = LEGACY_BASE_LAYOUTS.get(match.group("path"))
        if replacement is not None:
            lines[index] = (
                match.group("open")
                + match.group("quote")
                + replacement
                + match.group("quote")
                + match.group("close")
            )
        break
    return "\n".join(lines)


def upgrade_layout(content: str) -> str:
    """Return layout.html rewritten to extend the kit's branded layout."""
    lines = content.split("\n")
    index = next(
        (i for i, line in enumerate(lines) if _extends_path(line) == "govuk/template.njk"),
        None,
    )
    if index is None:
        return rewrite_extends(content)

    kept = [line for line in lines[:index] if not is_boilerplate(line, LEGACY_LAYOUT_PATTERNS)]
    rewritten = "\n".join([LAYOUT_HEADER, *kept, *lines[index + 1 :]])
    for block in LEGACY_LAYOUT_BLOCKS:
        rewritten = re.sub(r"\n*" + re.escape(block), "", rewritten, count=1)
    return rewritten


def _transform(project) -> List[FileChange]:
    changes: List[FileChange] = []
    for relative in project.glob(VIEWS_DIR, "*.html"):
        content = project.read_text(relative)
        if relative == Path(LAYOUT):
            changes.append(FileChange(relative, upgrade_layout(content)))
        else:
            changes.append(FileChange(relative, rewrite_extends(content)))
    return changes


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
