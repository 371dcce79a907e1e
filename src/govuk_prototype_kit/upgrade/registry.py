"""Static catalogue of migration steps and plan selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple

from packaging.version import Version

from .migrations import (
    m_13_0_0_asset_headers,
    m_13_0_0_config_json,
    m_13_0_0_filters_public_api,
    m_13_0_0_layout_extends,
    m_13_0_0_manifest_dependencies,
    m_13_0_0_routes_public_api,
    m_13_2_0_kit_version,
    m_13_2_0_run_scripts,
)
from .migrations.base import MigrationStep


def _checked_catalogue(steps: Iterable[MigrationStep]) -> Tuple[MigrationStep, ...]:
    """Return *steps* as a tuple after checking ids and ordering.

    Later steps may rely on earlier ones having run, so the declared order is
    the execution order. It must be ascending by lower version bound.

    Raises:
        ValueError: If an id repeats or a step is declared out of order.
    """
    catalogue = tuple(steps)
    seen: set[str] = set()
    for previous, step in zip((None, *catalogue), catalogue):
        if step.step_id in seen:
            raise ValueError(f"Duplicate migration step id: {step.step_id}")
        seen.add(step.step_id)
        if previous is not None and step.applies_from < previous.applies_from:
            raise ValueError(
                f"Migration step {step.step_id} applies from {step.applies_from}, "
                f"before {previous.step_id} ({previous.applies_from})"
            )
        if step.applies_before <= step.applies_from:
            raise ValueError(f"Migration step {step.step_id} has an empty version range")
    return catalogue


# Version detection reads the kit pin, so the step that writes it runs last.
STEPS: Tuple[MigrationStep, ...] = _checked_catalogue(
    [
        m_13_0_0_manifest_dependencies.STEP,
        m_13_0_0_config_json.STEP,
        m_13_0_0_routes_public_api.STEP,
        m_13_0_0_filters_public_api.STEP,
        m_13_0_0_asset_headers.STEP,
        m_13_0_0_layout_extends.STEP,
        m_13_2_0_run_scripts.STEP,
        m_13_2_0_kit_version.STEP,
    ]
)


@dataclass(frozen=True)
class MigrationPlan:
    """Ordered steps selected for one project; computed fresh on every run."""

    detected_version: Version
    tool_version: Version
    steps: Tuple[MigrationStep, ...]

    def __iter__(self) -> Iterator[MigrationStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def step_ids(self) -> List[str]:
        return [step.step_id for step in self.steps]


def _tool_version() -> Version:
    from govuk_prototype_kit import __version__

    return Version(__version__)


class MigrationRegistry:
    """Read-only access to the step catalogue."""

    @classmethod
    def get_all(cls) -> List[MigrationStep]:
        """All steps in execution order."""
        return list(STEPS)

    @classmethod
    def get_by_id(cls, step_id: str) -> MigrationStep | None:
        return next((step for step in STEPS if step.step_id == step_id), None)

    @classmethod
    def plan(
        cls,
        detected_version: Version,
        tool_version: Version | None = None,
        steps: Sequence[MigrationStep] | None = None,
    ) -> MigrationPlan:
        """Select the steps that apply to *detected_version*, in order.

        A project already at or beyond the running tool's version gets an
        empty plan rather than an error.
        """
        tool_version = tool_version if tool_version is not None else _tool_version()
        catalogue = STEPS if steps is None else _checked_catalogue(steps)
        if detected_version >= tool_version:
            selected: Tuple[MigrationStep, ...] = ()
        else:
            selected = tuple(step for step in catalogue if step.applies_to(detected_version))
        return MigrationPlan(
            detected_version=detected_version,
            tool_version=tool_version,
            steps=selected,
        )
