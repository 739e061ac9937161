"""Tests for OpenApiGenerator."""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest
import yaml

from apiscramble.cache import CacheManager, CachePort, CacheStats, MemoryCache
from apiscramble.config import ScrambleConfig
from apiscramble.errors import CacheError, StructuralError, UnresolvedReferenceError
from apiscramble.generator import COMMON_PARAMETERS, DocumentBuilder, OpenApiGenerator, normalize_path
from apiscramble.sources import MappingSource


def _dangling_fragment() -> dict[str, Any]:
    return {
        "paths": {
            "/a": {
                "get": {
                    "responses": {
                        "200": {
                            "description": "OK",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Missing"}}},
                        }
                    }
                }
            }
        }
    }


class BrokenCache(CachePort):
    """Driver whose every operation fails."""

    def get(self, key: str) -> Any | None:
        raise CacheError("read failed")

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        raise CacheError("write failed")

    def has(self, key: str) -> bool:
        raise CacheError("read failed")

    def delete(self, key: str) -> bool:
        raise CacheError("delete failed")

    def clear(self) -> bool:
        raise CacheError("clear failed")

    def get_stats(self) -> CacheStats:
        return CacheStats()


class UnavailableCache(MemoryCache):
    """Driver whose backend is gone on reads."""

    def get(self, key: str) -> Any | None:
        raise RuntimeError("backend down")


class TestNormalizePath:
    """Tests for framework placeholder rewriting."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("users", "/users"),
            ("/users/<id>", "/users/{id}"),
            ("/users/<int:id>", "/users/{id}"),
            ("/users/{id?}", "/users/{id}"),
            ("/users/:id/posts/:post", "/users/{id}/posts/{post}"),
            ("/users/{id}", "/users/{id}"),
        ],
    )
    def test_placeholders(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected


class TestGenerate:
    """Tests for fragment merging and finalization."""

    def test_defaults_for_empty_input(self, generator: OpenApiGenerator) -> None:
        assert generator.generate({}) == {
            "openapi": "3.0.0",
            "info": {"title": "Test API", "version": "2.0.0"},
            "paths": {},
        }

    def test_partial_info_is_completed(self, generator: OpenApiGenerator) -> None:
        document = generator.generate({"info": {"title": "Custom"}})

        assert document["info"] == {"title": "Custom", "version": "2.0.0"}

    def test_paths_merge_per_method(self, generator: OpenApiGenerator) -> None:
        document = generator.generate(
            {"paths": {"/a": {"get": {"summary": "old"}}}},
            {"paths": {"/a": {"get": {"summary": "new"}, "post": {}}, "/b": {"get": {}}}},
        )

        assert document["paths"] == {
            "/a": {"get": {"summary": "new"}, "post": {}},
            "/b": {"get": {}},
        }

    def test_components_merge_per_name(self, generator: OpenApiGenerator) -> None:
        document = generator.generate(
            {"components": {"schemas": {"A": {"type": "object"}}}},
            {"components": {"schemas": {"B": {"type": "string"}}, "responses": {"Ok": {"description": "OK"}}}},
        )

        assert document["components"] == {
            "schemas": {"A": {"type": "object"}, "B": {"type": "string"}},
            "responses": {"Ok": {"description": "OK"}},
        }

    def test_tags_deduplicated(self, generator: OpenApiGenerator) -> None:
        document = generator.generate(
            {"tags": [{"name": "users"}]},
            {"tags": [{"name": "users", "description": "again"}, {"name": "orders"}]},
        )

        assert document["tags"] == [{"name": "users"}, {"name": "orders"}]

    def test_other_keys_replaced(self, generator: OpenApiGenerator) -> None:
        document = generator.generate(
            {"servers": [{"url": "https://a"}]},
            {"servers": [{"url": "https://b"}]},
        )

        assert document["servers"] == [{"url": "https://b"}]

    def test_inputs_not_mutated(self, generator: OpenApiGenerator) -> None:
        fragment = {"paths": {"/a": {"get": {}}}, "tags": [{"name": "x"}]}
        original = copy.deepcopy(fragment)

        generator.generate(fragment, {"paths": {"/a": {"post": {}}}})

        assert fragment == original

    def test_accepts_builder(self, generator: OpenApiGenerator, builder: DocumentBuilder) -> None:
        builder.add_path("/ping", "get", {"responses": {}})

        document = generator.generate(builder)

        assert document["servers"] == [{"url": "https://api.example.com/v1"}]
        assert "/ping" in document["paths"]

    def test_top_level_key_order(self, generator: OpenApiGenerator) -> None:
        document = generator.generate(
            {"x-extra": True, "components": {"schemas": {}}, "paths": {}, "tags": [{"name": "a"}]}
        )

        assert list(document) == ["openapi", "info", "tags", "paths", "components", "x-extra"]

    def test_non_mapping_fragment(self, generator: OpenApiGenerator) -> None:
        with pytest.raises(StructuralError):
            generator.generate(["paths"])  # type: ignore[arg-type]

    def test_unresolved_reference_raises(self, generator: OpenApiGenerator) -> None:
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            generator.generate(_dangling_fragment())

        assert exc_info.value.refs == ["#/components/schemas/Missing"]

    def test_validation_can_be_disabled(self) -> None:
        generator = OpenApiGenerator(ScrambleConfig(validate_references=False))

        document = generator.generate(_dangling_fragment())

        assert document["components"] == {"schemas": {}}

    def test_reference_into_absent_section_raises(self, generator: OpenApiGenerator) -> None:
        fragment = {"paths": {"/a": {"get": {"responses": {"200": {"$ref": "#/components/responses/Nope"}}}}}}

        with pytest.raises(UnresolvedReferenceError) as exc_info:
            generator.generate(fragment)

        assert exc_info.value.refs == ["#/components/responses/Nope"]

    def test_component_reference_into_absent_section(self) -> None:
        generator = OpenApiGenerator(ScrambleConfig(validate_references=False))
        fragment = {
            "components": {
                "schemas": {"A": {"type": "object", "properties": {"x": {"$ref": "#/components/examples/X"}}}}
            }
        }

        document = generator.generate(fragment)

        assert document["components"]["examples"] == {}
        assert document["components"]["schemas"]["A"]["properties"]["x"] == {"$ref": "#/components/examples/X"}

    def test_json_output_is_stable(self, generator: OpenApiGenerator) -> None:
        fragment = {"paths": {"/a": {"get": {"responses": {}}}}}

        first = generator.generate_json(fragment)

        assert first == generator.generate_json(fragment)
        assert json.loads(first) == generator.generate(fragment)
        assert len(generator.generate_json(fragment, pretty=False)) < len(first)

    def test_yaml_output(self, generator: OpenApiGenerator) -> None:
        fragment = {"paths": {"/a": {"get": {"responses": {}}}}}

        assert yaml.safe_load(generator.generate_yaml(fragment)) == generator.generate(fragment)


class TestGenerateFromSources:
    """Tests for the full pipeline."""

    @pytest.fixture
    def document(
        self,
        generator: OpenApiGenerator,
        user_routes: list[dict[str, Any]],
        user_controllers: dict[str, Any],
        user_validators: dict[str, Any],
        user_schemas: dict[str, Any],
    ) -> dict[str, Any]:
        return generator.generate_from_sources(user_routes, user_controllers, user_validators, user_schemas)

    def test_paths_are_normalized(self, document: dict[str, Any]) -> None:
        assert list(document["paths"]) == ["/users", "/users/{id}"]
        assert list(document["paths"]["/users"]) == ["get", "post"]
        assert list(document["paths"]["/users/{id}"]) == ["get", "delete"]

    def test_controller_tag(self, document: dict[str, Any]) -> None:
        assert document["tags"] == [{"name": "User", "description": "User management"}]

    def test_document_shape(self, document: dict[str, Any]) -> None:
        assert list(document) == ["openapi", "info", "servers", "tags", "paths", "components"]
        assert document["info"] == {"title": "Test API", "version": "2.0.0"}

    def test_components(self, document: dict[str, Any]) -> None:
        components = document["components"]

        assert components["schemas"]["User"]["properties"]["tags"] == {"type": "array", "items": {"type": "string"}}
        assert list(components["securitySchemes"]) == ["bearerAuth"]
        assert components["parameters"] == COMMON_PARAMETERS
        assert set(components["responses"]) == {
            "BadRequest",
            "Unauthorized",
            "Forbidden",
            "NotFound",
            "ValidationError",
            "TooManyRequests",
            "InternalServerError",
        }

    def test_declared_return_type_references_schema(self, document: dict[str, Any]) -> None:
        show = document["paths"]["/users/{id}"]["get"]
        data = show["responses"]["200"]["content"]["application/json"]["schema"]["properties"]["data"]

        assert data == {"$ref": "#/components/schemas/User"}
        assert show["parameters"][0]["schema"] == {"type": "integer", "example": 1, "pattern": "\\d+"}

    def test_validator_rules_become_request_body(self, document: dict[str, Any]) -> None:
        store = document["paths"]["/users"]["post"]

        assert store["requestBody"]["content"]["application/json"]["schema"]["required"] == ["name", "email"]
        assert "422" in store["responses"]

    def test_mapping_source_supplies_everything(
        self,
        generator: OpenApiGenerator,
        user_routes: list[dict[str, Any]],
        user_controllers: dict[str, Any],
        user_validators: dict[str, Any],
        user_schemas: dict[str, Any],
        document: dict[str, Any],
    ) -> None:
        source = MappingSource(user_routes, user_controllers, user_validators, user_schemas)

        assert generator.generate_from_sources(source) == document

    def test_routes_only(self, generator: OpenApiGenerator) -> None:
        document = generator.generate_from_sources([{"path": "/ping", "method": "GET", "controller": "Health"}])

        assert list(document["paths"]) == ["/ping"]
        assert document["tags"] == [{"name": "Health", "description": "Health operations"}]
        assert "schemas" not in document["components"]


class TestGeneratorCache:
    """Tests for memoized generation."""

    def test_second_call_hits_cache(self, config: ScrambleConfig, user_routes: list[dict[str, Any]]) -> None:
        cache = CacheManager(MemoryCache())
        generator = OpenApiGenerator(config, cache=cache)

        first = generator.generate_from_sources(user_routes)
        second = generator.generate_from_sources(user_routes)

        assert first == second
        stats = cache.get_stats()
        assert stats.hits == 1
        assert stats.misses == 1

    def test_changed_input_misses(self, config: ScrambleConfig, user_routes: list[dict[str, Any]]) -> None:
        cache = CacheManager(MemoryCache())
        generator = OpenApiGenerator(config, cache=cache)

        generator.generate_from_sources(user_routes)
        generator.generate_from_sources(user_routes[:1])

        assert cache.get_stats().misses == 2

    def test_broken_cache_still_generates(self, config: ScrambleConfig, user_routes: list[dict[str, Any]]) -> None:
        cache = CacheManager(BrokenCache())
        cached = OpenApiGenerator(config, cache=cache)

        document = cached.generate_from_sources(user_routes)

        assert document == OpenApiGenerator(config).generate_from_sources(user_routes)
        assert cache.get_stats().errors == 2

    def test_clear_cache(self, config: ScrambleConfig, user_routes: list[dict[str, Any]]) -> None:
        cache = CacheManager(MemoryCache())
        generator = OpenApiGenerator(config, cache=cache)
        generator.generate_from_sources(user_routes)

        generator.clear_cache()

        assert cache.get_stats().size == 0

    def test_unexpected_driver_error_still_generates(
        self, config: ScrambleConfig, user_routes: list[dict[str, Any]]
    ) -> None:
        cache = CacheManager(UnavailableCache())

        document = OpenApiGenerator(config, cache=cache).generate_from_sources(user_routes)

        assert list(document["paths"]) == ["/users", "/users/{id}"]
        assert cache.get_stats().errors == 1
        assert cache.get_stats().misses == 1
