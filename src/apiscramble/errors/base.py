"""Custom exception hierarchy for apiscramble.

apiscramble errors carry:
- Structured error codes for programmatic handling
- Context describing where in the document the failure happened
- Actionable suggestions for recovery

All apiscramble errors inherit from ScrambleError and include:
- error_code: A unique ErrorCode enum for categorization
- context: ErrorContext with type/schema/path details
- suggestions: List of actionable steps to resolve the issue

Example:
    try:
        generator.generate(fragment)
    except UnresolvedReferenceError as e:
        print(f"Error: {e}")
        print(f"Suggestions: {e.suggestions}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for apiscramble.

    Error codes are organized by category:
    - E1xx: Type model and inference errors
    - E2xx: Schema and document generation errors
    - E3xx: Reference errors
    - E4xx: Configuration errors
    - E5xx: Cache errors
    - E6xx: Export errors
    - E9xx: Unknown/internal errors
    """

    # Type errors (E1xx)
    INVALID_TYPE = "E101"
    UNSUPPORTED_TYPE = "E102"

    # Generation errors (E2xx)
    STRUCTURAL = "E201"
    GENERATION_FAILED = "E202"

    # Reference errors (E3xx)
    UNRESOLVED_REFERENCE = "E301"

    # Configuration errors (E4xx)
    INVALID_CONFIG = "E401"

    # Cache errors (E5xx)
    CACHE_FAILED = "E501"

    # Export errors (E6xx)
    EXPORT_FAILED = "E601"

    # Unknown/internal errors (E9xx)
    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if code_num < 200:
            return "type"
        elif code_num < 300:
            return "generation"
        elif code_num < 400:
            return "reference"
        elif code_num < 500:
            return "config"
        elif code_num < 600:
            return "cache"
        elif code_num < 700:
            return "export"
        else:
            return "unknown"


@dataclass
class ErrorContext:
    """Structured context for error reporting.

    Attributes:
        schema_name: Name of the schema or component being generated.
        path: OpenAPI path (e.g. "/users/{id}") involved in the failure.
        method: HTTP method involved in the failure.
        pointer: JSON pointer or ``$ref`` string involved in the failure.
        extra: Additional context-specific information.
        timestamp: When the error occurred.
    """

    schema_name: str | None = None
    path: str | None = None
    method: str | None = None
    pointer: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for serialization."""
        result = {
            "schema_name": self.schema_name,
            "path": self.path,
            "method": self.method,
            "pointer": self.pointer,
            "extra": self.extra,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.schema_name:
            parts.append(f"schema={self.schema_name}")
        if self.method and self.path:
            parts.append(f"operation={self.method.upper()} {self.path}")
        elif self.path:
            parts.append(f"path={self.path}")
        if self.pointer:
            parts.append(f"ref={self.pointer}")
        return " > ".join(parts) if parts else "unknown location"


class ScrambleError(Exception):
    """Base exception for all apiscramble errors.

    Attributes:
        error_code: Unique ErrorCode for this error type
        message: Human-readable error description
        context: ErrorContext with generation details
        suggestions: List of actionable steps to resolve the issue
        cause: The underlying exception (if any)
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        if extra_context:
            self.context.extra.update(extra_context)

        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        """Get actionable suggestions for resolving this error."""
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            parts.append(f"at {location}")

        return " | ".join(parts)

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [
            f"Error [{self.error_code.value}]: {self.message}",
        ]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


class InvalidTypeError(ScrambleError):
    """An unrecognized primitive type name was given to the type model."""

    error_code = ErrorCode.INVALID_TYPE
    default_message = "Invalid type"
    default_suggestions = [
        "Use one of the scalar names: int, float, string, bool, null",
        "Use ObjectType for class references instead of ScalarType",
    ]

    def __init__(self, message: str | None = None, token: str | None = None, **kwargs: Any) -> None:
        self.token = token
        if token is not None and message is None:
            message = f"Unsupported scalar type: {token}"
        super().__init__(message=message, **kwargs)
        if token is not None:
            self.context.extra["token"] = token


class UnsupportedTypeError(ScrambleError):
    """Type inference met a value it has no mapping rule for.

    File handles, sockets, functions, modules and classes cannot be
    described by a JSON schema, so inference refuses them instead of
    falling back to an untyped schema.
    """

    error_code = ErrorCode.UNSUPPORTED_TYPE
    default_message = "Unsupported value type"
    default_suggestions = [
        "Pass plain data (scalars, lists, mappings or model instances)",
        "Describe the field explicitly with a type expression instead",
    ]

    def __init__(self, message: str | None = None, value_type: str | None = None, **kwargs: Any) -> None:
        self.value_type = value_type
        if value_type is not None and message is None:
            message = f"Cannot infer a schema type for value of type {value_type}"
        super().__init__(message=message, **kwargs)


class StructuralError(ScrambleError):
    """Input is missing the shape a builder or generator requires."""

    error_code = ErrorCode.STRUCTURAL
    default_message = "Malformed document structure"
    default_suggestions = [
        "Operations, schemas and components must be mappings",
        "Check the analyzer output against the expected input format",
    ]


class GenerationError(ScrambleError):
    """Schema or document generation failed."""

    error_code = ErrorCode.GENERATION_FAILED
    default_message = "Failed to generate documentation"
    default_suggestions = [
        "Make sure referenced classes are importable",
        "Run with --verbose to see the failing component",
    ]


class UnresolvedReferenceError(ScrambleError):
    """A ``$ref`` in the document does not point at an existing component."""

    error_code = ErrorCode.UNRESOLVED_REFERENCE
    default_message = "Unresolved $ref"
    default_suggestions = [
        "Register the referenced schema with DocumentBuilder.add_schema()",
        "Add the schema generator definitions to the document components",
    ]

    def __init__(
        self,
        message: str | None = None,
        refs: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        self.refs = list(refs or [])
        if message is None and self.refs:
            message = f"Unresolved reference(s): {', '.join(self.refs)}"
        super().__init__(message=message, **kwargs)
        if self.refs and self.context.pointer is None:
            self.context.pointer = self.refs[0]


class ConfigValidationError(ScrambleError):
    """Configuration failed validation."""

    error_code = ErrorCode.INVALID_CONFIG
    default_message = "Invalid configuration"
    default_suggestions = [
        "Check apiscramble.yaml for typos",
        "Check SCRAMBLE_* environment variables",
    ]

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message=message, **kwargs)
        if field is not None:
            self.context.extra["field"] = field


class CacheError(ScrambleError):
    """A cache driver failed to read or write an entry."""

    error_code = ErrorCode.CACHE_FAILED
    default_message = "Cache operation failed"
    default_suggestions = [
        "Check that the cache directory is writable",
        "Disable the cache with SCRAMBLE_CACHE_ENABLED=false",
    ]


class ExportError(ScrambleError):
    """Exporting a document to another format failed."""

    error_code = ErrorCode.EXPORT_FAILED
    default_message = "Export failed"
    default_suggestions = [
        "Use one of the supported export formats: postman, insomnia",
    ]
