"""Tests for the step executor."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from packaging.version import Version

from govuk_prototype_kit.errors import StepError, TransformError
from govuk_prototype_kit.upgrade import runner as runner_module
from govuk_prototype_kit.upgrade.migrations import m_13_2_0_kit_version
from govuk_prototype_kit.upgrade.migrations.base import FileChange, MigrationStep
from govuk_prototype_kit.upgrade.migrations.m_13_0_0_layout_extends import LAYOUT_HEADER
from govuk_prototype_kit.upgrade.project import Project
from govuk_prototype_kit.upgrade.registry import MigrationRegistry
from govuk_prototype_kit.upgrade.runner import MigrationRunner, migrate
from tests.prototype_fixtures import LEGACY_FILTERS_JS, LEGACY_PACKAGE_JSON, write_files, write_manifest

TOOL_VERSION = Version("13.2.0")


def _writer(step_id: str, path: str, content: str) -> MigrationStep:
    return MigrationStep(
        step_id=step_id,
        description=f"write {path}",
        applies_from=Version("0.0.0"),
        applies_before=Version("1.0.0"),
        transform=lambda project: [FileChange(Path(path), content)],
    )


def _failing(step_id: str) -> MigrationStep:
    def transform(project):
        raise TransformError("app/filters.js", "cannot migrate")

    return MigrationStep(
        step_id=step_id,
        description="Fail on purpose",
        applies_from=Version("0.0.0"),
        applies_before=Version("1.0.0"),
        transform=transform,
    )


def _run(tmp_path: Path, steps: list[MigrationStep]):
    project = Project(root=tmp_path, detected_version=Version("0.0.0"))
    plan = MigrationRegistry.plan(Version("0.0.0"), Version("1.0.0"), steps)
    return MigrationRunner(project).run(plan)


class TestMigrationRunner:
    def test_steps_run_in_order_and_stop_at_first_failure(self, tmp_path: Path):
        report = _run(
            tmp_path,
            [_writer("a", "a.txt", "A"), _failing("b"), _writer("c", "c.txt", "C")],
        )

        assert not report.success
        assert [result.step_id for result in report.results] == ["a", "b"]
        assert report.failed_step.step_id == "b"
        assert report.failed_step.description == "Fail on purpose"
        assert "cannot migrate" in report.failed_step.error
        assert report.not_run == ["c"]
        assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "A"
        assert not (tmp_path / "c.txt").exists()

    def test_later_steps_see_earlier_writes(self, tmp_path: Path):
        def copy(project):
            return [FileChange(Path("copy.txt"), project.read_text("first.txt"))]

        second = MigrationStep("copy", "copy", Version("0.0.0"), Version("1.0.0"), copy)
        report = _run(tmp_path, [_writer("first", "first.txt", "hello"), second])

        assert report.success
        assert (tmp_path / "copy.txt").read_text(encoding="utf-8") == "hello"

    def test_unchanged_files_are_not_rewritten(self, tmp_path: Path):
        (tmp_path / "a.txt").write_text("A", encoding="utf-8")

        with patch.object(runner_module, "_write_durably") as write:
            report = _run(tmp_path, [_writer("a", "a.txt", "A")])

        write.assert_not_called()
        assert report.results[0].changed_files == []

    def test_nested_directories_are_created(self, tmp_path: Path):
        _run(tmp_path, [_writer("a", "app/new/file.txt", "x")])
        assert (tmp_path / "app" / "new" / "file.txt").read_text(encoding="utf-8") == "x"

    def test_delete(self, tmp_path: Path):
        (tmp_path / "old.js").write_text("x", encoding="utf-8")
        step = MigrationStep(
            "rm", "rm", Version("0.0.0"), Version("1.0.0"), lambda project: [FileChange(Path("old.js"), None)]
        )

        first = _run(tmp_path, [step])
        second = _run(tmp_path, [step])

        assert first.changed_files == [Path("old.js")]
        assert second.changed_files == []
        assert not (tmp_path / "old.js").exists()

    def test_empty_plan(self, tmp_path: Path):
        report = _run(tmp_path, [])

        assert report.success
        assert report.results == []

    def test_raise_for_failure_carries_report(self, tmp_path: Path):
        report = _run(tmp_path, [_failing("b")])

        with pytest.raises(StepError) as excinfo:
            report.raise_for_failure()

        assert excinfo.value.step_id == "b"
        assert excinfo.value.report is report
        assert isinstance(excinfo.value.cause, TransformError)
        assert str(excinfo.value) == "Migration step failed: Fail on purpose (app/filters.js: cannot migrate)"


class TestMigrate:
    @pytest.fixture(autouse=True)
    def _pin_kit_version(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(m_13_2_0_kit_version, "_kit_version", lambda: "13.2.0")

    def test_custom_filters_stop_the_run(self, legacy_prototype: Path):
        custom = LEGACY_FILTERS_JS.replace(
            "  return filters", "  filters.shout = (text) => text.toUpperCase()\n  return filters"
        )
        write_files(legacy_prototype, {"app/filters.js": custom})

        with pytest.raises(StepError) as excinfo:
            migrate(legacy_prototype, TOOL_VERSION)

        error = excinfo.value
        assert error.step_id == "13.0.0_filters_public_api"
        report = error.report
        assert [r.step_id for r in report.results if r.success] == [
            "13.0.0_manifest_dependencies",
            "13.0.0_config_json",
            "13.0.0_routes_public_api",
        ]
        assert report.not_run == [
            "13.0.0_asset_headers",
            "13.0.0_layout_extends",
            "13.2.0_run_scripts",
            "13.2.0_kit_version",
        ]
        assert (legacy_prototype / "app" / "filters.js").read_text(encoding="utf-8") == custom
        assert (legacy_prototype / "app" / "config.json").exists()

    def test_up_to_date_project_is_untouched(self, tmp_path: Path):
        manifest = '{\n  "dependencies": {\n    "govuk-prototype-kit": "13.2.0"\n  }\n}\n'
        (tmp_path / "package.json").write_text(manifest, encoding="utf-8")

        report = migrate(tmp_path, TOOL_VERSION)

        assert report.planned == []
        assert report.success
        assert (tmp_path / "package.json").read_text(encoding="utf-8") == manifest

    def test_rerun_after_a_failed_step_applies_the_remaining_steps(self, legacy_prototype: Path):
        dependencies = {**LEGACY_PACKAGE_JSON["dependencies"], "govuk-prototype-kit": "^12.3.0"}
        write_manifest(legacy_prototype, {**LEGACY_PACKAGE_JSON, "dependencies": dependencies})
        custom = LEGACY_FILTERS_JS.replace(
            "  return filters", "  filters.shout = (text) => text.toUpperCase()\n  return filters"
        )
        write_files(legacy_prototype, {"app/filters.js": custom})

        with pytest.raises(StepError):
            migrate(legacy_prototype, TOOL_VERSION)

        manifest_path = legacy_prototype / "package.json"
        assert json.loads(manifest_path.read_text(encoding="utf-8"))["dependencies"]["govuk-prototype-kit"] == "^12.3.0"

        write_files(legacy_prototype, {"app/filters.js": LEGACY_FILTERS_JS})
        second = migrate(legacy_prototype, TOOL_VERSION)

        assert second.success
        assert second.from_version == Version("12.3.0")
        assert second.planned[-4:] == [
            "13.0.0_asset_headers",
            "13.0.0_layout_extends",
            "13.2.0_run_scripts",
            "13.2.0_kit_version",
        ]
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        assert manifest["dependencies"]["govuk-prototype-kit"] == "13.2.0"
        assert manifest["scripts"] == {
            "dev": "govuk-prototype-kit dev",
            "serve": "govuk-prototype-kit serve",
            "start": "govuk-prototype-kit start",
        }
        layout = (legacy_prototype / "app" / "views" / "layout.html").read_text(encoding="utf-8")
        assert layout == LAYOUT_HEADER + "\n"
