"""The prototype project being migrated."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from packaging.version import Version

from govuk_prototype_kit.core.paths import WELL_KNOWN_FILES
from govuk_prototype_kit.core.preflight import git_status_paths, is_version_controlled
from govuk_prototype_kit.upgrade.detector import VersionDetector


@dataclass
class Project:
    """A previously scaffolded prototype on disk.

    File contents are always read from disk so that a step sees exactly what
    earlier steps wrote.
    """

    root: Path
    detected_version: Version
    version_controlled: bool = False
    clean: bool | None = None

    @classmethod
    def load(cls, root: Path) -> "Project":
        root = root.resolve()
        version_controlled = is_version_controlled(root)
        clean: bool | None = None
        if version_controlled:
            dirty = git_status_paths(root)
            clean = None if dirty is None else not dirty
        return cls(
            root=root,
            detected_version=VersionDetector(root).detect_version(),
            version_controlled=version_controlled,
            clean=clean,
        )

    def path(self, relative: Path | str) -> Path:
        return self.root / relative

    def exists(self, relative: Path | str) -> bool:
        return self.path(relative).is_file()

    def read_text(self, relative: Path | str) -> str | None:
        """Return file content, or None when the file does not exist."""
        target = self.path(relative)
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    def read_json(self, relative: Path | str) -> Any:
        content = self.read_text(relative)
        if content is None:
            return None
        return json.loads(content)

    def present_files(self) -> dict[str, bool]:
        """Presence of each well-known file, keyed by concept name."""
        return {name: self.exists(rel) for name, rel in WELL_KNOWN_FILES.items()}

    def glob(self, relative_dir: Path | str, pattern: str) -> list[Path]:
        """Relative paths of files under *relative_dir* matching *pattern*, sorted."""
        base = self.path(relative_dir)
        if not base.is_dir():
            return []
        return sorted(p.relative_to(self.root) for p in base.rglob(pattern) if p.is_file())
