"""Migration: Declare the packages the kit no longer bundles.

Up to 12.x a prototype was a copy of the kit itself, so its package.json
listed the kit's own build tooling and relied on the kit bundling the
step-by-step pattern, jQuery and the Notify client. From 13.0.0 the kit is an
ordinary dependency:

- kit build tooling (gulp, nodemon, the old GOV.UK toolkits) is dropped
- step-by-step, jquery and notifications-node-client become explicit
  dependencies so existing pages keep working

The ``govuk-prototype-kit`` entry itself is left to ``13.2.0_kit_version``.
Dependencies are written in alphabetical order, as npm writes them.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from packaging.version import Version

from govuk_prototype_kit.core.paths import MANIFEST
from govuk_prototype_kit.errors import TransformError

from .base import FileChange, MigrationStep, to_json

MIGRATION_ID = "13.0.0_manifest_dependencies"
MIGRATION_VERSION = "13.0.0"
MIGRATION_DESCRIPTION = "Declare the plugins and libraries the kit no longer bundles in package.json"

ADDED_DEPENDENCIES: Dict[str, str] = {
    "@govuk-prototype-kit/step-by-step": "^2.1.0",
    "jquery": "^3.6.3",
    "notifications-node-client": "^7.0.0",
}

# Build tooling of the kit itself, copied into every pre-13 prototype.
LEGACY_KIT_DEPENDENCIES = frozenset(
    {
        "browser-sync",
        "express-writer",
        "govuk-elements-sass",
        "govuk_frontend_toolkit",
        "govuk_template_jinja",
        "gulp",
        "gulp-nodemon",
        "gulp-sass",
        "gulp-sourcemaps",
        "nodemon",
        "require-dir",
    }
)


def upgrade_dependencies(dependencies: Dict[str, object]) -> Dict[str, object]:
    """Return the normalised dependency map for a 13.x prototype."""
    upgraded = {
        name: spec for name, spec in dependencies.items() if name not in LEGACY_KIT_DEPENDENCIES
    }
    for name, spec in ADDED_DEPENDENCIES.items():
        upgraded.setdefault(name, spec)
    return dict(sorted(upgraded.items()))


def upgrade_manifest_dependencies(content: str) -> str:
    """Rewrite the ``dependencies`` of a package.json document.

    Every other key keeps its value and position.
    """
    try:
        manifest = json.loads(content)
    except ValueError as exc:
        raise TransformError(str(MANIFEST), f"invalid JSON: {exc}") from exc
    if not isinstance(manifest, dict):
        raise TransformError(str(MANIFEST), "expected a JSON object")

    dependencies = manifest.get("dependencies", {})
    if not isinstance(dependencies, dict):
        raise TransformError(str(MANIFEST), "'dependencies' must be an object")

    manifest["dependencies"] = upgrade_dependencies(dependencies)
    return to_json(manifest)


def _transform(project) -> List[FileChange]:
    content = project.read_text(MANIFEST)
    if content is None:
        return []
    return [FileChange(Path(MANIFEST), upgrade_manifest_dependencies(content))]


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
