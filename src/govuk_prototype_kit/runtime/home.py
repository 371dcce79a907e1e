"""Locations used by the bootstrapper.

Provides the canonical functions for locating:
- The per-project directory the pinned kit is installed into
- The package index consulted when resolving ``latest``
- The kit's own source tree (for ``--version local``)
"""

from __future__ import annotations

import os
from pathlib import Path

INSTALL_DIR_ENV = "GOVUK_PROTOTYPE_KIT_INSTALL_DIR"
INDEX_URL_ENV = "GOVUK_PROTOTYPE_KIT_INDEX_URL"
SOURCE_ROOT_ENV = "GOVUK_PROTOTYPE_KIT_SOURCE_ROOT"

DEFAULT_INSTALL_DIR = ".prototype-kit"
DEFAULT_INDEX_URL = "https://pypi.org/pypi"


def get_install_dir(project_root: Path) -> Path:
    """Return the directory the pinned kit is installed into.

    Resolution order:
    1. GOVUK_PROTOTYPE_KIT_INSTALL_DIR (absolute, or relative to the project)
    2. ``<project>/.prototype-kit``
    """
    configured = os.environ.get(INSTALL_DIR_ENV, "").strip() or DEFAULT_INSTALL_DIR
    path = Path(configured).expanduser()
    if not path.is_absolute():
        path = project_root / path
    return path


def get_index_url() -> str:
    """Return the JSON API base of the package index, without a trailing slash."""
    configured = os.environ.get(INDEX_URL_ENV, "").strip() or DEFAULT_INDEX_URL
    return configured.rstrip("/")


def get_source_root() -> Path:
    """Return the root of the running kit's source tree.

    Resolution order:
    1. GOVUK_PROTOTYPE_KIT_SOURCE_ROOT environment variable (CI/testing)
    2. The checkout this module was imported from (development layout)

    Raises:
        FileNotFoundError: If no source tree can be found. An installed wheel
            has no source tree to install from.
    """
    if env_root := os.environ.get(SOURCE_ROOT_ENV):
        root = Path(env_root)
        if root.is_dir():
            return root
        raise FileNotFoundError(f"{SOURCE_ROOT_ENV} path does not exist: {env_root}")

    dev_root = Path(__file__).resolve().parents[3]
    if (dev_root / "pyproject.toml").is_file():
        return dev_root

    raise FileNotFoundError(
        "Could not find the kit's source tree. "
        f"Set {SOURCE_ROOT_ENV} to use --version local from an installed copy."
    )
