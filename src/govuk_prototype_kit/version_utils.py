"""Version lookup that also works from a source checkout."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION = "govuk-prototype-kit"
FALLBACK_VERSION = "0.0.0-dev"


def read_version_from_pyproject() -> str | None:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    if not pyproject.is_file():
        return None
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return None
    project = data.get("project", {})
    return project.get("name") == DISTRIBUTION and project.get("version") or None


def get_version() -> str:
    """Installed version, then the checkout's pyproject.toml, then a dev marker."""
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        return read_version_from_pyproject() or FALLBACK_VERSION
