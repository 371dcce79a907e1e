"""Pinned-version bootstrap for the migrate command."""

from .bootstrap import (
    SENTINEL_OPTION,
    TOKEN_ENV,
    is_stage_two_invocation,
    new_stage_two_token,
    prepare_migration,
    resolve_dependency_spec,
    run_stage_two,
)

__all__ = [
    "SENTINEL_OPTION",
    "TOKEN_ENV",
    "is_stage_two_invocation",
    "new_stage_two_token",
    "prepare_migration",
    "resolve_dependency_spec",
    "run_stage_two",
]
