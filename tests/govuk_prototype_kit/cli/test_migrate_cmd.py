"""Tests for the migrate command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from packaging.version import Version
from typer.testing import CliRunner

from govuk_prototype_kit import __version__, app
from govuk_prototype_kit.cli.commands import migrate_cmd
from govuk_prototype_kit.errors import BootstrapError
from govuk_prototype_kit.runtime.bootstrap import SENTINEL_OPTION, TOKEN_ENV
from govuk_prototype_kit.upgrade import registry
from govuk_prototype_kit.upgrade.migrations import m_13_2_0_kit_version

runner = CliRunner()


@pytest.fixture()
def bootstrap_mocks(monkeypatch: pytest.MonkeyPatch) -> dict[str, MagicMock]:
    mocks = {
        "resolve_dependency_spec": MagicMock(return_value="govuk-prototype-kit==13.2.0"),
        "prepare_migration": MagicMock(),
        "run_stage_two": MagicMock(return_value=0),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(migrate_cmd, name, mock)
    return mocks


@pytest.fixture()
def stage_two_env(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv(TOKEN_ENV, "secret-token")
    monkeypatch.setattr(registry, "_tool_version", lambda: Version("13.2.0"))
    monkeypatch.setattr(m_13_2_0_kit_version, "_kit_version", lambda: "13.2.0")
    return "secret-token"


class TestStageOne:
    def test_preflight_failure_exits_before_bootstrap(self, tmp_path: Path, bootstrap_mocks):
        result = runner.invoke(app, ["migrate", str(tmp_path)])

        assert result.exit_code == 1
        assert "cannot be migrated yet" in result.output
        assert "package.json" in result.output
        bootstrap_mocks["prepare_migration"].assert_not_called()
        bootstrap_mocks["run_stage_two"].assert_not_called()

    def test_hands_over_to_stage_two(self, legacy_prototype: Path, bootstrap_mocks):
        result = runner.invoke(app, ["migrate", str(legacy_prototype), "--version", "13.2.0"])

        assert result.exit_code == 0, result.output
        bootstrap_mocks["resolve_dependency_spec"].assert_called_once_with("13.2.0")
        bootstrap_mocks["prepare_migration"].assert_called_once_with(
            "govuk-prototype-kit==13.2.0", legacy_prototype.resolve()
        )
        bootstrap_mocks["run_stage_two"].assert_called_once_with(legacy_prototype.resolve(), verbose=False)

    def test_verbose_is_passed_on(self, legacy_prototype: Path, bootstrap_mocks):
        runner.invoke(app, ["--verbose", "migrate", str(legacy_prototype)])

        bootstrap_mocks["run_stage_two"].assert_called_once_with(legacy_prototype.resolve(), verbose=True)

    def test_stage_two_exit_code_is_propagated(self, legacy_prototype: Path, bootstrap_mocks):
        bootstrap_mocks["run_stage_two"].return_value = 3

        result = runner.invoke(app, ["migrate", str(legacy_prototype)])

        assert result.exit_code == 3

    def test_failed_install_uses_installer_exit_code(self, legacy_prototype: Path, bootstrap_mocks):
        bootstrap_mocks["prepare_migration"].side_effect = BootstrapError("install failed", exit_code=5)

        result = runner.invoke(app, ["migrate", str(legacy_prototype)])

        assert result.exit_code == 5
        assert "install failed" in result.output
        bootstrap_mocks["run_stage_two"].assert_not_called()

    def test_failed_lookup_exits_1(self, legacy_prototype: Path, bootstrap_mocks):
        bootstrap_mocks["resolve_dependency_spec"].side_effect = BootstrapError("index unavailable")

        result = runner.invoke(app, ["migrate", str(legacy_prototype)])

        assert result.exit_code == 1
        bootstrap_mocks["prepare_migration"].assert_not_called()


class TestStageTwo:
    def test_token_mismatch_is_a_usage_error(self, legacy_prototype: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv(TOKEN_ENV, "expected")

        result = runner.invoke(app, ["migrate", SENTINEL_OPTION, "guessed", str(legacy_prototype)])

        assert result.exit_code == 2
        assert (legacy_prototype / "app" / "config.js").exists()

    def test_migrates_project(self, legacy_prototype: Path, stage_two_env: str):
        result = runner.invoke(app, ["migrate", SENTINEL_OPTION, stage_two_env, str(legacy_prototype)])

        assert result.exit_code == 0, result.output
        assert "Migration complete." in result.output
        assert "Migrate test prototype" in result.output
        assert (legacy_prototype / "app" / "config.json").exists()
        assert not (legacy_prototype / "app" / "config.js").exists()

    def test_second_run_is_up_to_date_or_unchanged(self, legacy_prototype: Path, stage_two_env: str):
        runner.invoke(app, ["migrate", SENTINEL_OPTION, stage_two_env, str(legacy_prototype)])

        result = runner.invoke(app, ["migrate", SENTINEL_OPTION, stage_two_env, str(legacy_prototype)])

        assert result.exit_code == 0
        assert "0 file(s) changed" in result.output

    def test_step_failure_exits_1_with_description(self, legacy_prototype: Path, stage_two_env: str):
        (legacy_prototype / "app" / "routes.js").write_text("module.exports = {}\n", encoding="utf-8")

        result = runner.invoke(app, ["migrate", SENTINEL_OPTION, stage_two_env, str(legacy_prototype)])

        assert result.exit_code == 1
        assert "Migration failed" in result.output
        assert "public router" in result.output

    def test_current_project_is_a_no_op(self, tmp_path: Path, stage_two_env: str):
        (tmp_path / "package.json").write_text(
            '{"dependencies": {"govuk-prototype-kit": "^13.2.0"}}\n', encoding="utf-8"
        )

        result = runner.invoke(app, ["migrate", SENTINEL_OPTION, stage_two_env, str(tmp_path)])

        assert result.exit_code == 0
        assert "already up to date" in result.output


class TestRootOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
