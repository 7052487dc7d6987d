"""Tests for security.py - workspace path validation."""

import os

import pytest

from constellation_insight.exceptions import (
    InvalidPathError,
    SecurityError,
    WorkspaceBoundaryError,
)
from constellation_insight.security import (
    PathValidator,
    normalize_separators,
    validate_root_directory,
)


@pytest.fixture
def validator(tmp_path):
    return PathValidator(tmp_path)


class TestNormalizeSeparators:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("src\\app.ts", "src/app.ts"),
            ("./src//app.ts", "src/app.ts"),
            ("src/lib/", "src/lib"),
            ("  a.ts ", "a.ts"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_separators(raw) == expected


class TestPathValidator:
    def test_relative_path(self, validator):
        assert validator.to_workspace_relative("./src/app.ts") == "src/app.ts"

    def test_absolute_path_inside(self, validator, tmp_path):
        path = tmp_path / "src" / "app.ts"
        assert validator.to_workspace_relative(str(path)) == "src/app.ts"

    @pytest.mark.parametrize("raw", ["../secret.ts", "src/../../etc/passwd", "src\\..\\..\\x.ts"])
    def test_traversal(self, validator, raw):
        with pytest.raises(SecurityError):
            validator.to_workspace_relative(raw)

    def test_home_directory(self, validator):
        with pytest.raises(SecurityError):
            validator.to_workspace_relative("~/notes.ts")

    def test_absolute_outside(self, validator):
        with pytest.raises(WorkspaceBoundaryError):
            validator.to_workspace_relative("/etc/passwd")

    def test_symlink_escaping_workspace(self, tmp_path):
        outside = tmp_path / "outside.ts"
        outside.write_text("export {}")
        workspace = tmp_path / "ws"
        workspace.mkdir()
        os.symlink(outside, workspace / "link.ts")

        with pytest.raises(WorkspaceBoundaryError):
            PathValidator(workspace).to_workspace_relative("link.ts")

    def test_symlinked_directory_escaping_workspace(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.ts").write_text("export {}")
        workspace = tmp_path / "ws"
        workspace.mkdir()
        os.symlink(outside, workspace / "vendor", target_is_directory=True)

        validator = PathValidator(workspace)
        with pytest.raises(WorkspaceBoundaryError):
            validator.to_workspace_relative("vendor/secret.ts")
        with pytest.raises(WorkspaceBoundaryError):
            validator.to_workspace_relative("vendor/missing.ts")

    def test_symlink_inside_workspace_allowed(self, tmp_path):
        workspace = tmp_path / "ws"
        (workspace / "src").mkdir(parents=True)
        os.symlink(workspace / "src", workspace / "lib", target_is_directory=True)

        assert PathValidator(workspace).to_workspace_relative("lib/app.ts") == "lib/app.ts"

    @pytest.mark.parametrize("raw", ["", "   ", ".", "./"])
    def test_empty_or_root(self, validator, raw):
        with pytest.raises(InvalidPathError):
            validator.to_workspace_relative(raw)

    def test_scan_path(self, validator):
        assert validator.validate_scan_path(".") == "."
        assert validator.validate_scan_path("") == "."
        assert validator.validate_scan_path("src/") == "src"
        with pytest.raises(SecurityError):
            validator.validate_scan_path("../sibling")

    def test_is_safe_path(self, validator):
        assert validator.is_safe_path("src/app.ts")
        assert not validator.is_safe_path("../app.ts")


class TestValidateRootDirectory:
    def test_valid_directory(self, tmp_path):
        assert validate_root_directory(tmp_path) == tmp_path.resolve()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(InvalidPathError):
            validate_root_directory(tmp_path / "missing")

    def test_file_is_not_a_workspace(self, tmp_path):
        target = tmp_path / "file.ts"
        target.write_text("")
        with pytest.raises(InvalidPathError):
            validate_root_directory(target)

    def test_system_directory(self):
        with pytest.raises(SecurityError):
            validate_root_directory("/etc")
