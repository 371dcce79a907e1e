"""Upgrade system for migrating prototypes between kit versions."""

from __future__ import annotations

from govuk_prototype_kit.core.preflight import preflight_checks
from govuk_prototype_kit.runtime.bootstrap import prepare_migration

from .detector import VersionDetector
from .project import Project
from .registry import MigrationPlan, MigrationRegistry
from .runner import MigrationReport, MigrationRunner, StepResult, migrate

__all__ = [
    "MigrationPlan",
    "MigrationRegistry",
    "MigrationReport",
    "MigrationRunner",
    "Project",
    "StepResult",
    "VersionDetector",
    "migrate",
    "prepare_migration",
    "preflight_checks",
]
