"""apiscramble error handling module.

Provides the structured exception hierarchy shared by the type model,
the generators, the cache and the exporters.
"""

from apiscramble.errors.base import (
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

__all__ = [
    # Base exceptions
    "ScrambleError",
    "ErrorCode",
    "ErrorContext",
    # Type errors
    "InvalidTypeError",
    "UnsupportedTypeError",
    # Generation errors
    "StructuralError",
    "GenerationError",
    "UnresolvedReferenceError",
    # Ambient errors
    "ConfigValidationError",
    "CacheError",
    "ExportError",
]
