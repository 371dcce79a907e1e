"""Step executor: applies a migration plan to a project on disk."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from packaging.version import Version

from govuk_prototype_kit.errors import StepError
from govuk_prototype_kit.upgrade.migrations.base import FileChange, MigrationStep
from govuk_prototype_kit.upgrade.project import Project
from govuk_prototype_kit.upgrade.registry import MigrationPlan, MigrationRegistry

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Outcome of a single step."""

    step_id: str
    description: str
    success: bool
    changed_files: List[Path] = field(default_factory=list)
    error: Optional[str] = None
    cause: Optional[BaseException] = field(default=None, repr=False)


@dataclass
class MigrationReport:
    """Outcome of running a plan."""

    project_root: Path
    from_version: Version
    to_version: Version
    planned: List[str] = field(default_factory=list)
    results: List[StepResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results)

    @property
    def failed_step(self) -> Optional[StepResult]:
        return next((result for result in self.results if not result.success), None)

    @property
    def changed_files(self) -> List[Path]:
        changed: List[Path] = []
        for result in self.results:
            changed.extend(path for path in result.changed_files if path not in changed)
        return changed

    @property
    def not_run(self) -> List[str]:
        """Planned step ids that never started because an earlier one failed."""
        started = {result.step_id for result in self.results}
        return [step_id for step_id in self.planned if step_id not in started]

    def raise_for_failure(self) -> None:
        failed = self.failed_step
        if failed is None:
            return
        raise StepError(
            failed.step_id,
            failed.description,
            failed.cause or RuntimeError(failed.error or "unknown error"),
            report=self,
        )


def _write_durably(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())


class MigrationRunner:
    """Runs plan steps strictly in order, stopping at the first failure.

    Each step reads the project as the previous step left it. Writes are
    flushed to disk before the next step starts, and a file is only touched
    when its content actually changes.
    """

    def __init__(self, project: Project):
        self.project = project

    def run(self, plan: MigrationPlan) -> MigrationReport:
        report = MigrationReport(
            project_root=self.project.root,
            from_version=plan.detected_version,
            to_version=plan.tool_version,
            planned=plan.step_ids,
        )
        if not len(plan):
            logger.info("No migration steps apply to version %s", plan.detected_version)
            return report

        for step in plan:
            result = self.run_step(step)
            report.results.append(result)
            if not result.success:
                logger.error("Step %s failed: %s", step.step_id, result.error)
                break
        return report

    def run_step(self, step: MigrationStep) -> StepResult:
        logger.info("Running %s: %s", step.step_id, step.description)
        try:
            changes = step.transform(self.project)
            changed = self.apply(changes)
        except Exception as exc:
            return StepResult(
                step_id=step.step_id,
                description=step.description,
                success=False,
                error=str(exc),
                cause=exc,
            )
        for path in changed:
            logger.debug("%s changed %s", step.step_id, path)
        return StepResult(
            step_id=step.step_id,
            description=step.description,
            success=True,
            changed_files=changed,
        )

    def apply(self, changes: Iterable[FileChange]) -> List[Path]:
        """Apply *changes* and return the relative paths that really changed."""
        changed: List[Path] = []
        for change in changes:
            target = self.project.path(change.path)
            if change.is_delete:
                if target.is_file():
                    target.unlink()
                    changed.append(change.path)
                continue
            if self.project.read_text(change.path) == change.content:
                continue
            _write_durably(target, change.content)
            changed.append(change.path)
        return changed


def migrate(project_path: Path, tool_version: Version | None = None) -> MigrationReport:
    """Detect the project's version, then plan and run the applicable steps.

    Raises:
        StepError: If a step fails. Steps after it are not run, and the
            partial report is attached as ``report``.
    """
    project = Project.load(Path(project_path))
    plan = MigrationRegistry.plan(project.detected_version, tool_version)
    logger.info(
        "Migrating %s from %s to %s (%d steps)",
        project.root,
        plan.detected_version,
        plan.tool_version,
        len(plan),
    )
    report = MigrationRunner(project).run(plan)
    report.raise_for_failure()
    return report
