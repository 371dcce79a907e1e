"""Deterministic preflight checks run before a migration touches any file.

Two things must hold before migrating:

1. The directory is a prototype created by the kit: ``package.json`` exists
   and declares dependencies.
2. When the project is under git, the working tree is clean, so a failed
   migration can be discarded by reverting local changes.

The clean-tree check can only be skipped by the project not being under
version control. When git itself cannot be run, a ``.git`` entry at or above
the project still blocks the migration. There is no override flag.
"""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from govuk_prototype_kit.core.paths import MANIFEST
from govuk_prototype_kit.errors import PreflightError

__all__ = [
    "PreflightIssue",
    "PreflightResult",
    "ensure_preflight",
    "git_status_paths",
    "is_version_controlled",
    "preflight_checks",
    "run_preflight",
]

logger = logging.getLogger(__name__)

# Dirty paths listed in a single issue message before truncating.
MAX_LISTED_PATHS = 10

# Shell-style exit codes used when git cannot be started or hangs.
_GIT_NOT_FOUND = 127
_GIT_TIMED_OUT = 124


@dataclass
class PreflightIssue:
    """Single blocking issue with optional remediation command."""

    code: str
    check: str
    message: str
    remediation: str
    command: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload = {
            "code": self.code,
            "check": self.check,
            "message": self.message,
            "remediation": self.remediation,
        }
        if self.command:
            payload["command"] = self.command
        return payload


@dataclass
class PreflightResult:
    """Result envelope for preflight checks."""

    project_root: Path
    errors: list[PreflightIssue] = field(default_factory=list)
    version_controlled: bool = False

    @property
    def passed(self) -> bool:
        return not self.errors

    def reasons(self) -> list[str]:
        return [issue.message for issue in self.errors]

    def to_dict(self) -> dict[str, object]:
        return {
            "project_root": str(self.project_root),
            "passed": self.passed,
            "version_controlled": self.version_controlled,
            "errors": [issue.to_dict() for issue in self.errors],
        }


@dataclass
class _GitCommandResult:
    returncode: int
    stdout: str
    stderr: str


def _run_git(repo_root: Path, args: list[str], timeout: int = 15) -> _GitCommandResult:
    """Run git command and normalize failure shape for deterministic handling."""
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=str(repo_root),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout,
        )
        return _GitCommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
    except FileNotFoundError:
        return _GitCommandResult(
            returncode=_GIT_NOT_FOUND,
            stdout="",
            stderr="git executable not found on PATH",
        )
    except subprocess.TimeoutExpired:
        return _GitCommandResult(
            returncode=_GIT_TIMED_OUT,
            stdout="",
            stderr=f"git command timed out: git {' '.join(args)}",
        )


def _is_dubious_ownership(stderr: str) -> bool:
    text = stderr.lower()
    return "dubious ownership" in text or "safe.directory" in text


def is_version_controlled(project_root: Path) -> bool:
    """Return True when *project_root* is inside a git work tree."""
    check = _run_git(project_root, ["rev-parse", "--is-inside-work-tree"])
    return check.returncode == 0 and check.stdout.strip().lower() == "true"


def git_status_paths(project_root: Path) -> set[str] | None:
    """Return changed paths reported by ``git status --porcelain -z``.

    Returns ``None`` when ``git status`` fails (e.g. not a git repo) so
    callers can distinguish "no dirty files" from "unable to determine".
    """
    result = _run_git(project_root, ["status", "--porcelain", "-z"])
    if result.returncode != 0:
        return None

    entries = result.stdout.split("\0")
    paths: set[str] = set()

    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if not entry or len(entry) < 4:
            continue

        status = entry[:2]
        path = entry[3:]

        # Renames and copies list the destination first; the source follows
        # as a separate NUL field.
        if "R" in status or "C" in status:
            if i < len(entries) and entries[i]:
                i += 1

        normalized = path.strip().replace("\\", "/")
        if normalized.startswith("./"):
            normalized = normalized[2:]

        if normalized:
            paths.add(normalized)

    return paths


def _check_manifest(project_root: Path, result: PreflightResult) -> None:
    manifest_path = project_root / MANIFEST
    if not manifest_path.is_file():
        result.errors.append(
            PreflightIssue(
                code="MANIFEST_MISSING",
                check="project_manifest",
                message=f"No {MANIFEST} found in {project_root}.",
                remediation="Run migrate from the root of a prototype created with the kit.",
            )
        )
        return

    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        result.errors.append(
            PreflightIssue(
                code="MANIFEST_UNREADABLE",
                check="project_manifest",
                message=f"{MANIFEST} could not be read: {exc}",
                remediation=f"Fix the JSON syntax in {MANIFEST} and try again.",
            )
        )
        return

    dependencies = manifest.get("dependencies") if isinstance(manifest, dict) else None
    if not isinstance(dependencies, dict) or not dependencies:
        result.errors.append(
            PreflightIssue(
                code="MANIFEST_NO_DEPENDENCIES",
                check="project_manifest",
                message=f"{MANIFEST} does not declare any dependencies, so this is not a kit prototype.",
                remediation="Run migrate from the root of a prototype created with the kit.",
            )
        )


def _has_git_metadata(project_root: Path) -> bool:
    """Return True when a ``.git`` entry exists at or above *project_root*."""
    return any((directory / ".git").exists() for directory in (project_root, *project_root.parents))


def _check_clean_tree(project_root: Path, result: PreflightResult) -> None:
    repo_check = _run_git(project_root, ["rev-parse", "--is-inside-work-tree"])
    if repo_check.returncode in (_GIT_NOT_FOUND, _GIT_TIMED_OUT):
        # Without a working git only the absence of any .git proves the
        # project is not under version control.
        if repo_check.returncode == _GIT_TIMED_OUT or _has_git_metadata(project_root):
            result.version_controlled = True
            result.errors.append(
                PreflightIssue(
                    code="GIT_UNAVAILABLE",
                    check="clean_tree",
                    message=f"Git could not be run, so local changes cannot be checked: {repo_check.stderr}.",
                    remediation="Make sure git is installed and working, then try again.",
                )
            )
        else:
            logger.debug("git not found and no .git above %s; skipping clean tree check", project_root)
        return

    if repo_check.returncode != 0 or repo_check.stdout.strip().lower() != "true":
        if _is_dubious_ownership(repo_check.stderr):
            result.version_controlled = True
            result.errors.append(
                PreflightIssue(
                    code="UNTRUSTED_REPOSITORY",
                    check="repository_trust",
                    message="Git rejected repository ownership trust (safe.directory), so local changes cannot be checked.",
                    remediation="Mark the repository as trusted for this machine.",
                    command=f"git config --global --add safe.directory {shlex.quote(str(project_root))}",
                )
            )
        else:
            logger.debug("%s is not under git; skipping clean tree check", project_root)
        return

    result.version_controlled = True
    dirty = git_status_paths(project_root)
    if dirty is None:
        result.errors.append(
            PreflightIssue(
                code="GIT_STATUS_FAILED",
                check="clean_tree",
                message="Unable to determine whether the project has uncommitted changes.",
                remediation="Check that `git status` works in the project directory.",
                command=f"git -C {shlex.quote(str(project_root))} status",
            )
        )
        return

    if dirty:
        listed = sorted(dirty)[:MAX_LISTED_PATHS]
        more = len(dirty) - len(listed)
        suffix = f" (and {more} more)" if more > 0 else ""
        result.errors.append(
            PreflightIssue(
                code="UNCOMMITTED_CHANGES",
                check="clean_tree",
                message=f"The project has uncommitted changes: {', '.join(listed)}{suffix}.",
                remediation="Commit or stash your changes before migrating.",
                command=f"git -C {shlex.quote(str(project_root))} status",
            )
        )


def run_preflight(project_root: Path) -> PreflightResult:
    """Run every preflight check and collect the blocking issues."""
    root = project_root.resolve()
    result = PreflightResult(project_root=root)
    _check_manifest(root, result)
    _check_clean_tree(root, result)
    return result


def preflight_checks(project_root: Path) -> bool:
    """Return True when the project may be migrated.

    Blocking reasons are emitted through the module logger.
    """
    result = run_preflight(project_root)
    for reason in result.reasons():
        logger.error(reason)
    return result.passed


def ensure_preflight(project_root: Path) -> PreflightResult:
    """Run preflight checks, raising :class:`PreflightError` on failure."""
    result = run_preflight(project_root)
    if not result.passed:
        raise PreflightError(result.reasons())
    return result
