"""Schema, document and OpenAPI generation."""

from apiscramble.generator.document import DocumentBuilder
from apiscramble.generator.openapi import COMMON_PARAMETERS, OpenApiGenerator, normalize_path
from apiscramble.generator.parameters import ParameterExtractor
from apiscramble.generator.references import RefResolver, iter_refs
from apiscramble.generator.responses import COMMON_RESPONSES, STANDARD_RESPONSES, ResponseGenerator
from apiscramble.generator.schema import SchemaGenerator
from apiscramble.generator.security import PREDEFINED_SCHEMES, SecuritySchemeGenerator

__all__ = [
    "SchemaGenerator",
    "DocumentBuilder",
    "OpenApiGenerator",
    "ParameterExtractor",
    "ResponseGenerator",
    "SecuritySchemeGenerator",
    "RefResolver",
    "iter_refs",
    "normalize_path",
    "COMMON_PARAMETERS",
    "COMMON_RESPONSES",
    "STANDARD_RESPONSES",
    "PREDEFINED_SCHEMES",
]
