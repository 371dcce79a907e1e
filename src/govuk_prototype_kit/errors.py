"""Exception hierarchy for the prototype kit migration engine."""

from __future__ import annotations


class PrototypeKitError(Exception):
    """Base exception for prototype kit errors."""


class PreflightError(PrototypeKitError):
    """The project cannot be migrated from its current state.

    Raised before any file is touched.
    """

    def __init__(self, reasons: list[str]):
        self.reasons = list(reasons)
        summary = "; ".join(self.reasons) if self.reasons else "preflight checks failed"
        super().__init__(f"Preflight checks failed: {summary}")


class BootstrapError(PrototypeKitError):
    """Installing or launching the pinned kit version failed."""

    def __init__(self, message: str, exit_code: int | None = None):
        self.exit_code = exit_code
        super().__init__(message)


class StepError(PrototypeKitError):
    """A migration step failed; later steps were not run."""

    def __init__(self, step_id: str, description: str, cause: BaseException, report=None):
        self.step_id = step_id
        self.report = report
        self.description = description
        self.cause = cause
        super().__init__(f"Migration step failed: {description} ({cause})")


class TransformError(ValueError):
    """A file does not match any structure the transformer knows."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
