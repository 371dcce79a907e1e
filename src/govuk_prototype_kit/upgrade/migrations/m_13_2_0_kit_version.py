"""Migration: Pin the ``govuk-prototype-kit`` dependency to the migrating kit.

The kit entry in package.json is what version detection reads, so it is
rewritten only once every other step has succeeded. A run that stops part
way leaves the old version in place and the next run plans the remaining
steps again.

Entries that point somewhere other than the registry (``file:``, git, ...)
and pins newer than the running kit are left alone.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from packaging.version import Version

from govuk_prototype_kit.core.paths import MANIFEST
from govuk_prototype_kit.errors import TransformError
from govuk_prototype_kit.upgrade.detector import KIT_PACKAGE, parse_dependency_version

from .base import FileChange, MigrationStep, to_json

MIGRATION_ID = "13.2.0_kit_version"
MIGRATION_VERSION = "13.2.0"
MIGRATION_DESCRIPTION = "Pin govuk-prototype-kit in package.json to the version doing the migration"


def _kit_version() -> str:
    from govuk_prototype_kit import __version__

    return __version__


def pin_kit_dependency(dependencies: Dict[str, object], kit_version: str) -> Dict[str, object]:
    """Return *dependencies* with the kit entry pinned to *kit_version*.

    An existing entry keeps its position; a missing one is added and the map
    sorted, as npm does when installing.
    """
    declared = dependencies.get(KIT_PACKAGE)
    if declared is None:
        return dict(sorted({**dependencies, KIT_PACKAGE: kit_version}.items()))

    declared_version = parse_dependency_version(declared)
    if declared_version is None or declared_version >= Version(kit_version):
        return dict(dependencies)
    return {name: kit_version if name == KIT_PACKAGE else spec for name, spec in dependencies.items()}


def upgrade_manifest_kit_version(content: str, kit_version: str) -> str:
    try:
        manifest = json.loads(content)
    except ValueError as exc:
        raise TransformError(str(MANIFEST), f"invalid JSON: {exc}") from exc
    if not isinstance(manifest, dict):
        raise TransformError(str(MANIFEST), "expected a JSON object")

    dependencies = manifest.get("dependencies", {})
    if not isinstance(dependencies, dict):
        raise TransformError(str(MANIFEST), "'dependencies' must be an object")

    manifest["dependencies"] = pin_kit_dependency(dependencies, kit_version)
    return to_json(manifest)


def _transform(project) -> List[FileChange]:
    content = project.read_text(MANIFEST)
    if content is None:
        return []
    return [FileChange(Path(MANIFEST), upgrade_manifest_kit_version(content, _kit_version()))]


STEP = MigrationStep(
    step_id=MIGRATION_ID,
    description=MIGRATION_DESCRIPTION,
    applies_from=Version("0.0.0"),
    applies_before=Version(MIGRATION_VERSION),
    transform=_transform,
)
