"""Two-stage bootstrap: install the pinned kit, then hand over to it.

Stage one runs in whatever copy of the kit the user invoked. It resolves the
kit version that should perform the migration, installs exactly that version
into the project (``prepare_migration``) and re-runs ``migrate`` from the
installed copy (``run_stage_two``). The re-run carries a random token both as
an argument and in the environment, so a user typing the internal flag by
hand is not mistaken for stage two.
"""

from __future__ import annotations

import logging
import os
import re
import secrets
import subprocess
import sys
from pathlib import Path
from typing import Mapping, Optional

import httpx

from govuk_prototype_kit.errors import BootstrapError
from govuk_prototype_kit.runtime.home import get_index_url, get_install_dir, get_source_root
from govuk_prototype_kit.utils import BadResponseError, request_https_json

logger = logging.getLogger(__name__)
installer_logger = logging.getLogger(f"{__name__}.installer")

KIT_DISTRIBUTION = "govuk-prototype-kit"
KIT_PACKAGE = "govuk_prototype_kit"
SENTINEL_OPTION = "--running-within-migrate-script"
TOKEN_ENV = "GOVUK_PROTOTYPE_KIT_MIGRATE_TOKEN"

_SEMVER = re.compile(r"^v?(\d+\.\d+\.\d+)$")


def latest_published_version() -> str:
    """Return the newest kit version published on the package index."""
    url = f"{get_index_url()}/{KIT_DISTRIBUTION}/json"
    try:
        payload = request_https_json(url)
    except BadResponseError as exc:
        raise BootstrapError(
            f"Could not look up the latest {KIT_DISTRIBUTION} release: "
            f"{exc} (status {exc.status_code})"
        ) from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise BootstrapError(f"Could not look up the latest {KIT_DISTRIBUTION} release: {exc}") from exc

    info = payload.get("info") if isinstance(payload, dict) else None
    version = info.get("version") if isinstance(info, dict) else None
    if not isinstance(version, str) or not version:
        raise BootstrapError(f"No version found in the package index response from {url}")
    return version


def resolve_dependency_spec(version_option: str = "latest") -> str:
    """Turn the user's ``--version`` value into an installable requirement.

    ``local`` installs the running kit's source tree, ``latest`` pins the
    newest published release, and a bare ``X.Y.Z`` pins that release.
    Anything else (a path, URL or ``file:`` reference) is passed through.
    """
    option = (version_option or "latest").strip()
    if option == "local":
        try:
            return str(get_source_root())
        except FileNotFoundError as exc:
            raise BootstrapError(str(exc)) from exc
    if option == "latest":
        return f"{KIT_DISTRIBUTION}=={latest_published_version()}"
    match = _SEMVER.match(option)
    if match:
        return f"{KIT_DISTRIBUTION}=={match.group(1)}"
    return option


def _relay(output: Optional[str], level: int) -> None:
    for line in (output or "").splitlines():
        if line.strip():
            installer_logger.log(level, line.rstrip())


def prepare_migration(dependency_spec: str, project_path: Path) -> Path:
    """Install *dependency_spec* into the project's pinned kit directory.

    Returns the install directory.

    Raises:
        BootstrapError: If the installer fails or the kit is not importable
            from the install directory afterwards.
    """
    project_root = Path(project_path).resolve()
    install_dir = get_install_dir(project_root)
    install_dir.mkdir(parents=True, exist_ok=True)
    (install_dir / ".gitignore").write_text("*\n", encoding="utf-8")

    cmd = [
        sys.executable,
        "-m",
        "pip",
        "install",
        "--upgrade",
        "--no-input",
        "--target",
        str(install_dir),
        dependency_spec,
    ]
    logger.info("Installing %s into %s", dependency_spec, install_dir)
    try:
        result = subprocess.run(
            cmd,
            cwd=project_root,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise BootstrapError(f"Could not run the package installer: {exc}") from exc

    _relay(result.stdout, logging.DEBUG)
    _relay(result.stderr, logging.WARNING)
    if result.returncode != 0:
        raise BootstrapError(
            f"Installing {dependency_spec} failed (exit code {result.returncode})",
            exit_code=result.returncode,
        )

    if not (install_dir / KIT_PACKAGE / "__init__.py").is_file():
        raise BootstrapError(f"{KIT_PACKAGE} was not installed into {install_dir}")
    return install_dir


def new_stage_two_token() -> str:
    return secrets.token_hex(16)


def is_stage_two_invocation(token: Optional[str], environ: Optional[Mapping[str, str]] = None) -> bool:
    """True when *token* matches the token stage one put in the environment."""
    if not token:
        return False
    expected = (os.environ if environ is None else environ).get(TOKEN_ENV, "")
    return bool(expected) and secrets.compare_digest(token, expected)


def stage_two_command(project_root: Path, token: str, verbose: bool = False) -> list[str]:
    cmd = [sys.executable, "-m", KIT_PACKAGE]
    if verbose:
        cmd.append("--verbose")
    cmd.extend(["migrate", SENTINEL_OPTION, token, str(project_root)])
    return cmd


def run_stage_two(project_path: Path, verbose: bool = False) -> int:
    """Re-run ``migrate`` from the pinned install and return its exit code.

    Blocks until the child exits. There is no timeout and no retry.
    """
    project_root = Path(project_path).resolve()
    install_dir = get_install_dir(project_root)
    token = new_stage_two_token()

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        entry for entry in (str(install_dir), env.get("PYTHONPATH", "")) if entry
    )
    env[TOKEN_ENV] = token

    cmd = stage_two_command(project_root, token, verbose=verbose)
    logger.debug("Starting stage two: %s", " ".join(cmd[:-2] + ["<token>", cmd[-1]]))
    try:
        completed = subprocess.run(cmd, cwd=project_root, env=env, check=False)
    except OSError as exc:
        raise BootstrapError(f"Could not start the pinned kit: {exc}") from exc
    return completed.returncode
