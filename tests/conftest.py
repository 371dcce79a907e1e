from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from tests.prototype_fixtures import write_legacy_prototype

GIT_AVAILABLE = shutil.which("git") is not None


def run(cmd: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True)


@pytest.fixture()
def legacy_prototype(tmp_path: Path) -> Path:
    """A prototype as kit 11.x scaffolded it, not under version control."""
    return write_legacy_prototype(tmp_path / "prototype")


@pytest.fixture()
def git_prototype(legacy_prototype: Path) -> Path:
    """The legacy prototype committed to a fresh git repository."""
    if not GIT_AVAILABLE:
        pytest.skip("git is not installed")
    run(["git", "init"], cwd=legacy_prototype)
    run(["git", "config", "user.name", "Prototype Kit"], cwd=legacy_prototype)
    run(["git", "config", "user.email", "prototype@example.com"], cwd=legacy_prototype)
    run(["git", "config", "commit.gpgsign", "false"], cwd=legacy_prototype)
    run(["git", "add", "."], cwd=legacy_prototype)
    run(["git", "commit", "-m", "Initial commit"], cwd=legacy_prototype)
    return legacy_prototype
