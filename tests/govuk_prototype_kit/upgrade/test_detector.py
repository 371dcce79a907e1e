"""Tests for project version detection."""

from __future__ import annotations

from pathlib import Path

import pytest
from packaging.version import Version

from govuk_prototype_kit.upgrade.detector import (
    OLDEST_KNOWN_VERSION,
    VersionDetector,
    parse_dependency_version,
)
from tests.prototype_fixtures import write_manifest


class TestParseDependencyVersion:
    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("13.1.0", "13.1.0"),
            ("^13.1.0", "13.1.0"),
            ("~12.3.4", "12.3.4"),
            (">=11.0.0", "11.0.0"),
            ("v12.0.1", "12.0.1"),
        ],
    )
    def test_versions(self, spec: str, expected: str):
        assert parse_dependency_version(spec) == Version(expected)

    @pytest.mark.parametrize(
        "spec",
        ["file:../../..", "latest", "github:alphagov/govuk-prototype-kit", "13", ">=12 <14", None, 13],
    )
    def test_not_versions(self, spec):
        assert parse_dependency_version(spec) is None


class TestVersionDetector:
    def test_declared_version(self, tmp_path: Path):
        write_manifest(tmp_path, {"dependencies": {"govuk-prototype-kit": "^13.1.0"}})
        assert VersionDetector(tmp_path).detect_version() == Version("13.1.0")

    def test_dev_dependency_is_not_consulted(self, tmp_path: Path):
        write_manifest(tmp_path, {"devDependencies": {"govuk-prototype-kit": "^13.1.0"}})
        assert VersionDetector(tmp_path).detect_version() == OLDEST_KNOWN_VERSION

    def test_unparseable_version_biases_to_oldest(self, tmp_path: Path):
        write_manifest(tmp_path, {"dependencies": {"govuk-prototype-kit": "file:../kit"}})
        assert VersionDetector(tmp_path).detect_version() == OLDEST_KNOWN_VERSION

    def test_missing_manifest_biases_to_oldest(self, tmp_path: Path):
        assert VersionDetector(tmp_path).detect_version() == OLDEST_KNOWN_VERSION

    def test_malformed_manifest_biases_to_oldest(self, tmp_path: Path):
        (tmp_path / "package.json").write_text("{not json", encoding="utf-8")
        assert VersionDetector(tmp_path).detect_version() == OLDEST_KNOWN_VERSION
