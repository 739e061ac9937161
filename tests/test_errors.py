"""Tests for the structured error hierarchy."""

from __future__ import annotations

import pytest

from apiscramble.errors import (
    CacheError,
    ConfigValidationError,
    ErrorCode,
    ErrorContext,
    ExportError,
    GenerationError,
    InvalidTypeError,
    ScrambleError,
    StructuralError,
    UnresolvedReferenceError,
    UnsupportedTypeError,
)


class TestErrorCode:
    """Tests for error code categories."""

    @pytest.mark.parametrize(
        "code,category",
        [
            (ErrorCode.INVALID_TYPE, "type"),
            (ErrorCode.STRUCTURAL, "generation"),
            (ErrorCode.UNRESOLVED_REFERENCE, "reference"),
            (ErrorCode.INVALID_CONFIG, "config"),
            (ErrorCode.CACHE_FAILED, "cache"),
            (ErrorCode.EXPORT_FAILED, "export"),
            (ErrorCode.UNKNOWN, "unknown"),
        ],
    )
    def test_category(self, code: ErrorCode, category: str) -> None:
        assert code.category == category

    @pytest.mark.parametrize(
        "error_class,code",
        [
            (InvalidTypeError, "E101"),
            (UnsupportedTypeError, "E102"),
            (StructuralError, "E201"),
            (GenerationError, "E202"),
            (UnresolvedReferenceError, "E301"),
            (ConfigValidationError, "E401"),
            (CacheError, "E501"),
            (ExportError, "E601"),
        ],
    )
    def test_class_codes(self, error_class: type[ScrambleError], code: str) -> None:
        error = error_class()

        assert isinstance(error, ScrambleError)
        assert error.error_code.value == code


class TestScrambleError:
    """Tests for formatting and serialization."""

    def test_str_includes_location(self) -> None:
        error = GenerationError(
            "Failed to build operation",
            context=ErrorContext(path="/users/{id}", method="get"),
        )

        assert str(error) == "[E202] Failed to build operation | at operation=GET /users/{id}"

    def test_str_without_location(self) -> None:
        assert str(StructuralError("Bad input")) == "[E201] Bad input"

    def test_verbose_lists_suggestions(self) -> None:
        error = ExportError("Unknown format", suggestions=["Use postman"])

        text = error.format_verbose()

        assert text.startswith("Error [E601]: Unknown format")
        assert "  - Use postman" in text

    def test_default_suggestions_are_copies(self) -> None:
        CacheError().suggestions.append("extra")

        assert "extra" not in CacheError().suggestions

    def test_extra_context_and_cause(self) -> None:
        cause = KeyError("paths")
        error = StructuralError("Missing key", cause=cause, section="paths")

        data = error.to_dict()

        assert data["error_type"] == "StructuralError"
        assert data["context"]["extra"] == {"section": "paths"}
        assert data["cause"] == str(cause)


class TestSpecificErrors:
    """Tests for errors that carry extra attributes."""

    def test_invalid_type_token(self) -> None:
        error = InvalidTypeError(token="decimal")

        assert error.message == "Unsupported scalar type: decimal"
        assert error.context.extra["token"] == "decimal"

    def test_unsupported_type_message(self) -> None:
        assert "socket" in UnsupportedTypeError(value_type="socket").message

    def test_unresolved_reference_refs(self) -> None:
        error = UnresolvedReferenceError(refs=["#/components/schemas/A", "#/components/schemas/B"])

        assert error.refs == ["#/components/schemas/A", "#/components/schemas/B"]
        assert error.context.pointer == "#/components/schemas/A"
        assert "A, #/components/schemas/B" in error.message

    def test_config_field(self) -> None:
        error = ConfigValidationError("Bad driver", field="cache_driver", value="redis")

        assert (error.field, error.value) == ("cache_driver", "redis")
        assert error.context.extra["field"] == "cache_driver"
        assert not isinstance(error, ValueError)
