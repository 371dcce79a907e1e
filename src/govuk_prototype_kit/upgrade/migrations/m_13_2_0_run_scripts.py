"""Migration: Merge the kit's run scripts into package.json.

Prototypes start, develop and serve through the kit's own command line. The
baseline ``dev``, ``serve`` and ``start`` scripts are added when missing.
Scripts that only made sense when the prototype was a copy of the kit
(``node start.js``, the kit's lint and test commands) are dropped; any other
script, including a customised ``start``, is left alone.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, FrozenSet, List

from packaging.version import Version

from govuk_prototype_kit.core.paths import MANIFEST
from govuk_prototype_kit.errors import TransformError

from .base import FileChange, MigrationStep, to_json

MIGRATION_ID = "13.2.0_run_scripts"
MIGRATION_VERSION = "13.2.0"
MIGRATION_DESCRIPTION = "Add the kit's dev, serve and start scripts to package.json"

BASELINE_SCRIPTS: Dict[str, str] = {
    "dev": "govuk-prototype-kit dev",
    "serve": "govuk-prototype-kit serve",
    "start": "govuk-prototype-kit start",
}

LEGACY_SCRIPTS: Dict[str, FrozenSet[str]] = {
    "start": frozenset({"node start.js"}),
    "lint": frozenset({"standard"}),
    "rapidtest": frozenset({"jest --bail"}),
    "test": frozenset(
        {
            "npm run lint && gulp generate-assets && jest",
            "npm run lint && jest",
            "standard && jest",
        }
    ),
}


def merge_scripts(scripts: Dict[str, object]) -> Dict[str, object]:
    """Drop legacy kit scripts, keep custom ones, add missing baseline scripts."""
    merged = {
        name: command
        for name, command in scripts.items()
        if not (isinstance(command, str) and command in LEGACY_SCRIPTS.get(name, frozenset()))
    }
    for name, command in BASELINE_SCRIPTS.items():
        merged.setdefault(name, command)
    return merged


def upgrade_manifest_scripts(content: str) -> str:
    try:
        manifest = json.loads(content)
    except ValueError as exc:
        raise TransformError(str(MANIFEST), f"invalid JSON: {exc}") from exc
    if not isinstance(manifest, dict):
        raise TransformError(str(MANIFEST), "expected a JSON object")

    scripts = manifest.get("scripts", {})
    if not isinstance(scripts, dict):
        raise TransformError(str(MANIFEST), "'scripts' must be an object")

    manifest["scripts"] = merge_scripts(scripts)
    return to_json(manifest)


def _transform(project) -> List[FileChange]:
    content = project.read_text(MANIFEST)
    if content is None:
        return []
    return [FileChange(Path(MANIFEST), upgrade_manifest_scripts(content))]


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
