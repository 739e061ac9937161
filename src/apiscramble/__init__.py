"""apiscramble - OpenAPI documents from application metadata.

Quick Start:
    from apiscramble import OpenApiGenerator, ScrambleConfig

    generator = OpenApiGenerator(ScrambleConfig(title="Shop API"))
    document = generator.generate_from_sources(
        routes=[{"path": "/users/{id}", "method": "GET", "controller": "User", "action": "show"}],
    )

    # Or assemble a document by hand
    builder = DocumentBuilder().add_schema("User", user_schema).add_tag("users")
    document = generator.generate(builder)
"""

from __future__ import annotations

from apiscramble.analyzer import DocBlockParser, TypeInference, ValidationRuleParser
from apiscramble.cache import CacheManager, FileCache, MemoryCache
from apiscramble.config import ScrambleConfig, load_config
from apiscramble.errors import (
    ScrambleError,
    StructuralError,
    UnresolvedReferenceError,
)
from apiscramble.export import ExportManager, InsomniaExporter, PostmanExporter
from apiscramble.generator import DocumentBuilder, OpenApiGenerator, SchemaGenerator
from apiscramble.serialization import YamlGenerator
from apiscramble.sources import MappingSource
from apiscramble.types import ArrayType, ObjectType, ScalarType, Type, UnionType

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Types
    "Type",
    "ScalarType",
    "ArrayType",
    "UnionType",
    "ObjectType",
    # Analysis
    "TypeInference",
    "DocBlockParser",
    "ValidationRuleParser",
    # Generation
    "SchemaGenerator",
    "DocumentBuilder",
    "OpenApiGenerator",
    "MappingSource",
    "YamlGenerator",
    # Ambient
    "ScrambleConfig",
    "load_config",
    "CacheManager",
    "MemoryCache",
    "FileCache",
    "ExportManager",
    "PostmanExporter",
    "InsomniaExporter",
    # Errors
    "ScrambleError",
    "StructuralError",
    "UnresolvedReferenceError",
]
