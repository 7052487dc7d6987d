"""Tests for the error taxonomy and structured error results."""

import pytest

from constellation_insight.exceptions import (
    AnalysisTimeoutError,
    ConfigurationError,
    ConstellationError,
    ErrorCode,
    ErrorResult,
    FileNotInGraphError,
    InvalidPathError,
    MalformedGraphError,
    ScanCancelledError,
    ScanError,
    ScanTimeoutError,
    SecurityError,
    WorkspaceBoundaryError,
)
from constellation_insight.impact import PathSuggestion


class TestErrorCodes:
    """Each exception pins the code callers branch on."""

    @pytest.mark.parametrize(
        "exc,code",
        [
            (ScanError("exit 1"), ErrorCode.SCAN_FAILED),
            (ScanTimeoutError(120), ErrorCode.SCAN_TIMEOUT),
            (ScanCancelledError(), ErrorCode.SCAN_CANCELLED),
            (MalformedGraphError("no nodes"), ErrorCode.MALFORMED_GRAPH),
            (FileNotInGraphError("a.ts"), ErrorCode.FILE_NOT_FOUND),
            (InvalidPathError("", "Path is empty"), ErrorCode.INVALID_PATH),
            (SecurityError("path traversal"), ErrorCode.PATH_SECURITY),
            (WorkspaceBoundaryError("/etc/passwd", "/ws"), ErrorCode.WORKSPACE_BOUNDARY_VIOLATION),
            (AnalysisTimeoutError("Impact traversal", 30), ErrorCode.ANALYSIS_TIMEOUT),
            (ConfigurationError("bad weights"), ErrorCode.INVALID_CONFIG),
        ],
    )
    def test_codes(self, exc, code):
        assert exc.code is code
        assert isinstance(exc, ConstellationError)

    def test_scan_errors_share_a_base(self):
        assert issubclass(ScanTimeoutError, ScanError)
        assert issubclass(MalformedGraphError, ScanError)

    def test_boundary_violation_is_a_security_error(self):
        assert issubclass(WorkspaceBoundaryError, SecurityError)

    def test_str_includes_code_and_details(self):
        text = str(ScanError("exit 2", "/ws"))
        assert text.startswith("[SCAN_FAILED] Dependency scan failed: exit 2")
        assert "workspace_root=/ws" in text


class TestErrorResult:
    def test_from_known_exception(self):
        result = ErrorResult.from_exception(ScanTimeoutError(5, "/ws"), graph_available=False)

        assert not result.ok
        assert result.error_code is ErrorCode.SCAN_TIMEOUT
        assert result.error == "Dependency scan failed: scan did not finish within 5s"
        assert result.context == {
            "reason": "scan did not finish within 5s",
            "workspace_root": "/ws",
            "graph_available": False,
        }
        assert result.recovery_actions

    def test_context_overrides_details(self):
        result = ErrorResult.from_exception(ScanError("x", "/raw"), workspace_root="/normalized")
        assert result.context["workspace_root"] == "/normalized"

    def test_unknown_exception_is_internal(self):
        result = ErrorResult.from_exception(ZeroDivisionError("division by zero"))

        assert result.error_code is ErrorCode.INTERNAL_ERROR
        assert "division by zero" in result.error

    def test_path_suggestions_flow_through(self):
        suggestions = [PathSuggestion("src/utils/helpers.ts", 72, "similar_name")]
        result = ErrorResult.from_exception(FileNotInGraphError("helpr.ts", suggestions))

        assert result.path_suggestions == suggestions
        assert result.suggestions == ["Did you mean: src/utils/helpers.ts?"]

    def test_to_dict_uses_camel_case(self):
        suggestions = [PathSuggestion("src/a.ts", 55, "same_extension")]
        data = ErrorResult.from_exception(FileNotInGraphError("b.ts", suggestions)).to_dict()

        assert data["errorCode"] == "FILE_NOT_FOUND"
        assert data["pathSuggestions"] == [
            {"path": "src/a.ts", "confidence": 55, "reason": "same_extension"}
        ]
        assert set(data) == {
            "error",
            "errorCode",
            "suggestions",
            "recoveryActions",
            "pathSuggestions",
            "context",
        }
