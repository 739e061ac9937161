"""Pytest fixtures for apiscramble tests."""

from __future__ import annotations

from typing import Any

import pytest

from apiscramble.config import ScrambleConfig
from apiscramble.generator import DocumentBuilder, OpenApiGenerator, SchemaGenerator


@pytest.fixture
def config() -> ScrambleConfig:
    """Configuration with caching disabled and a fixed server."""
    return ScrambleConfig(
        title="Test API",
        version="2.0.0",
        servers=[{"url": "https://api.example.com/v1"}],
        cache_enabled=False,
    )


@pytest.fixture
def builder(config: ScrambleConfig) -> DocumentBuilder:
    return DocumentBuilder(config)


@pytest.fixture
def generator(config: ScrambleConfig) -> OpenApiGenerator:
    return OpenApiGenerator(config)


@pytest.fixture
def schema_generator() -> SchemaGenerator:
    return SchemaGenerator()


@pytest.fixture
def user_routes() -> list[dict[str, Any]]:
    """Routes of a small user resource."""
    return [
        {
            "path": "users",
            "method": "GET",
            "controller": "app.controller.User",
            "action": "index",
        },
        {
            "path": "/users/<id>",
            "method": "GET",
            "controller": "app.controller.User",
            "action": "show",
            "parameters": [{"name": "id", "type": "int", "pattern": "\\d+"}],
            "middleware": ["auth"],
        },
        {
            "path": "/users",
            "method": "POST",
            "controller": "app.controller.User",
            "action": "store",
            "middleware": ["jwt", "throttle:60,1"],
        },
        {
            "path": "/users/:id",
            "method": "DELETE",
            "controller": "app.controller.User",
            "action": "delete",
            "middleware": ["auth"],
        },
    ]


@pytest.fixture
def user_controllers() -> dict[str, Any]:
    return {
        "app.controller.User": {
            "class": "app.controller.User",
            "doc_comment": "/** User management */",
            "methods": {
                "index": {
                    "doc_comment": "/**\n * List users\n *\n * Paginated list of all users.\n */",
                    "parameters": [
                        {"name": "page", "type": "int", "is_optional": True},
                        {"name": "request", "type": "think\\Request"},
                    ],
                },
                "show": {
                    "doc_comment": "/**\n * Show a user\n * @return User\n */",
                    "parameters": [{"name": "id", "type": "int"}],
                },
                "store": {"doc_comment": "/** Create a user */"},
                "delete": {"doc_comment": "/**\n * Delete a user\n * @deprecated use archive\n */"},
            },
        }
    }


@pytest.fixture
def user_validators() -> dict[str, Any]:
    return {
        "app.controller.User@store": {
            "rules": {
                "name|User name": "required|string|max:100",
                "email": "required|email",
                "age": "integer|between:1,120",
            }
        }
    }


@pytest.fixture
def user_schemas() -> dict[str, Any]:
    return {"User": {"id": "int", "name": "string", "email": "email", "tags": "string[]"}}


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """A finished OpenAPI document used by exporter and CLI tests."""
    return {
        "openapi": "3.0.0",
        "info": {"title": "Pet Store", "version": "1.2.0", "description": "Pets"},
        "servers": [{"url": "https://api.example.com/v1"}],
        "paths": {
            "/pets": {
                "get": {
                    "summary": "List pets",
                    "operationId": "listPets",
                    "parameters": [
                        {"name": "limit", "in": "query", "required": False, "schema": {"type": "integer"}},
                        {"name": "X-Trace", "in": "header", "required": False, "schema": {"type": "string"}},
                    ],
                    "responses": {"200": {"description": "OK"}},
                },
                "post": {
                    "summary": "Create pet",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {"schema": {"$ref": "#/components/schemas/Pet"}},
                        },
                    },
                    "security": [{"bearerAuth": []}],
                    "responses": {"201": {"description": "Created"}},
                },
            },
            "/pets/{petId}": {
                "get": {
                    "operationId": "showPet",
                    "parameters": [
                        {"name": "petId", "in": "path", "required": True, "schema": {"type": "integer"}},
                    ],
                    "security": [{"bearerAuth": []}],
                    "responses": {"200": {"description": "OK"}},
                },
            },
        },
        "components": {
            "schemas": {
                "Pet": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "name": {"type": "string", "example": "Rex"},
                        "born": {"type": "string", "format": "date"},
                        "owner": {"$ref": "#/components/schemas/Owner"},
                        "tags": {"type": "array", "items": {"type": "string"}},
                    },
                },
                "Owner": {"type": "object", "properties": {"email": {"type": "string", "format": "email"}}},
            },
            "securitySchemes": {"bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        },
    }
