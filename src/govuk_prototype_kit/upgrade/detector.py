"""Detect which kit version a prototype was built against."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from packaging.version import InvalidVersion, Version

from govuk_prototype_kit.core.paths import MANIFEST

logger = logging.getLogger(__name__)

KIT_PACKAGE = "govuk-prototype-kit"

# Unknown or missing version data is treated as the oldest version so that
# no step is skipped by a false negative.
OLDEST_KNOWN_VERSION = Version("0.0.0")

# Leading range operators accepted on a registry-style dependency entry.
_RANGE_PREFIX = re.compile(r"^(?:\^|~|>=|<=|>|<|=|==|v)+")
_SEMVER = re.compile(r"^\d+\.\d+\.\d+(?:[-+].*)?$")


def parse_dependency_version(spec: object) -> Version | None:
    """Return the version named by a dependency entry, or None.

    Accepts exact versions and simple ranges such as ``^13.1.0`` or
    ``~12.3.0``. Paths, URLs, ``file:`` references, tags like ``latest`` and
    compound ranges are not versions and return None.
    """
    if not isinstance(spec, str):
        return None
    candidate = _RANGE_PREFIX.sub("", spec.strip())
    if not _SEMVER.match(candidate):
        return None
    try:
        return Version(candidate)
    except InvalidVersion:
        return None


class VersionDetector:
    """Infer the kit version a project declares in its manifest."""

    def __init__(self, project_path: Path):
        self.project_path = project_path

    def declared_dependency(self) -> object:
        manifest_path = self.project_path / MANIFEST
        try:
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.debug("Could not read %s: %s", manifest_path, exc)
            return None
        if not isinstance(manifest, dict):
            return None
        dependencies = manifest.get("dependencies")
        if not isinstance(dependencies, dict):
            return None
        return dependencies.get(KIT_PACKAGE)

    def detect_version(self) -> Version:
        """Return the declared kit version, or the oldest known version."""
        declared = self.declared_dependency()
        version = parse_dependency_version(declared)
        if version is None:
            logger.info(
                "No usable %s version declared (%r); assuming %s",
                KIT_PACKAGE,
                declared,
                OLDEST_KNOWN_VERSION,
            )
            return OLDEST_KNOWN_VERSION
        return version
