"""Tests for docblock, annotation, source and validation rule analysis."""

from __future__ import annotations

import enum
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional

import pytest

from apiscramble.analyzer import DocBlockParser, SourceParser, ValidationRuleParser, enum_values, type_from_annotation
from apiscramble.analyzer.ast_parser import parse_annotation_string
from apiscramble.analyzer.docblock import split_top_level
from apiscramble.errors import StructuralError
from apiscramble.types import ArrayType, ObjectType, ScalarType


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


@dataclass
class Address:
    city: str


class TestDocBlockParser:
    """Tests for docblock parsing."""

    @pytest.fixture
    def parser(self) -> DocBlockParser:
        return DocBlockParser()

    def test_summary_description_and_tags(self, parser: DocBlockParser) -> None:
        doc = """/**
         * Show a user
         *
         * Returns the user with the given id.
         * @param int $id The user id
         * @return User
         * @throws NotFoundException
         */"""

        parsed = parser.parse(doc)

        assert parsed["summary"] == "Show a user"
        assert parsed["description"] == "Returns the user with the given id."
        assert [tag["name"] for tag in parsed["tags"]] == ["param", "return", "throws"]
        assert parsed["tags"][0] == {"name": "param", "type": "int", "variable": "id", "description": "The user id"}
        assert parsed["tags"][2]["type"] == "NotFoundException"

    @pytest.mark.parametrize(
        "doc",
        [
            "/**\n * Show a user\n *\n * Returns the user.\n */",
            "/**\n\t* Show a user\n\t*\n\t* Returns the user.\n\t*/",
            "/** Show a user\n *\n * Returns the user. */",
        ],
    )
    def test_blank_star_line_separates_description(self, parser: DocBlockParser, doc: str) -> None:
        parsed = parser.parse(doc)

        assert parsed["summary"] == "Show a user"
        assert parsed["description"] == "Returns the user."

    def test_file_param(self, parser: DocBlockParser) -> None:
        tag = parser.parse("@param {file} $avatar Profile picture")["tags"][0]

        assert tag["is_file_upload"] is True
        assert tag["variable"] == "avatar"

    def test_api_param_annotation(self, parser: DocBlockParser) -> None:
        tag = parser.parse("@ApiParam {int} page Page number")["tags"][0]

        assert tag["param_type"] == "int"
        assert tag["param_name"] == "page"
        assert tag["description"] == "Page number"

    def test_unknown_tag_keeps_content(self, parser: DocBlockParser) -> None:
        assert parser.parse("@deprecated since 2.0")["tags"][0] == {"name": "deprecated", "content": "since 2.0"}

    def test_typed_tags(self, parser: DocBlockParser) -> None:
        doc = "@param string $name\n@return int[]\n@var ?bool"

        assert parser.parse_param_type(doc, "name") == ScalarType.string()
        assert parser.parse_return_type(doc) == ArrayType.of(ScalarType.integer())
        assert parser.parse_variable_type(doc).to_string() == "?bool"
        assert parser.parse_param_type(doc, "missing") is None

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("int", "int"),
            ("?string", "?string"),
            ("int[]", "array<int>"),
            ("array<string>", "array<string>"),
            ("array<string, int>", "array<string, int>"),
            ("string|int", "string|int"),
            ("string|null", "?string"),
            ("?array<int>|string", "?array<int>|string"),
        ],
    )
    def test_type_strings(self, parser: DocBlockParser, expression: str, expected: str) -> None:
        parsed = parser.parse_type_string(expression)

        assert parsed is not None
        assert parsed.to_string() == expected

    def test_untyped_names(self, parser: DocBlockParser) -> None:
        assert parser.parse_type_string("mixed") is None
        assert parser.parse_type_string("") is None

    def test_class_names(self, parser: DocBlockParser) -> None:
        parsed = parser.parse_type_string("\\App\\Models\\User")

        assert isinstance(parsed, ObjectType)
        assert parsed.class_name == "App\\Models\\User"

    def test_split_top_level(self) -> None:
        assert split_top_level("array<string|int>|null", "|") == ["array<string|int>", "null"]


class TestAnnotations:
    """Tests for live annotation mapping."""

    def test_scalars_and_optional(self) -> None:
        assert type_from_annotation(int) == ScalarType.integer()
        assert type_from_annotation(Optional[str]).to_string() == "?string"
        assert type_from_annotation(int | None).to_string() == "?int"

    def test_containers(self) -> None:
        assert type_from_annotation(list[int]).to_string() == "array<int>"
        assert type_from_annotation(dict[str, float]).to_openapi_schema() == {
            "type": "object",
            "additionalProperties": {"type": "number"},
        }
        assert type_from_annotation(tuple[int, ...]).to_string() == "array<int>"

    def test_any_is_untyped(self) -> None:
        assert type_from_annotation(Any) is None

    def test_annotated_unwraps(self) -> None:
        assert type_from_annotation(Annotated[int, "meta"]) == ScalarType.integer()

    def test_enum_and_literal(self) -> None:
        assert type_from_annotation(Color) == ScalarType.string()
        assert enum_values(Color) == ["red", "green"]
        assert enum_values(Literal["a", "b"]) == ["a", "b"]
        assert type_from_annotation(Literal[1, 2]) == ScalarType.integer()

    def test_class_reference(self) -> None:
        parsed = type_from_annotation(Address)

        assert isinstance(parsed, ObjectType)
        assert parsed.short_name == "Address"

    def test_forward_reference(self) -> None:
        parsed = type_from_annotation(typing.ForwardRef("list[Node] | None"))

        assert parsed is not None
        assert parsed.to_string() == "?array<Node>"


class TestSourceParser:
    """Tests for static class extraction."""

    SOURCE = '''
from enum import Enum
from typing import ClassVar, Literal, Optional


class Status(Enum):
    """Order status."""

    OPEN = "open"
    CLOSED = "closed"


class Order:
    """An order."""

    id: int
    note: Optional[str] = None
    items: list["Item"]
    status: Literal["open", "closed"] = "open"
    registry: ClassVar[dict] = {}
    _secret: str = ""
'''

    def test_collects_classes_in_order(self) -> None:
        classes = SourceParser().parse(self.SOURCE)

        assert [c.name for c in classes] == ["Status", "Order"]

    def test_enum_members(self) -> None:
        status = SourceParser().parse(self.SOURCE)[0]

        assert status.is_enum
        assert status.enum_values == ["open", "closed"]
        assert status.docstring == "Order status."

    def test_fields(self) -> None:
        order = SourceParser().parse(self.SOURCE)[1]
        fields = {f.name: f for f in order.fields}

        assert list(fields) == ["id", "note", "items", "status"]
        assert fields["id"].type == ScalarType.integer()
        assert not fields["id"].has_default
        assert fields["note"].optional
        assert fields["items"].type.to_string() == "array<Item>"
        assert fields["status"].enum == ["open", "closed"]

    def test_syntax_error(self) -> None:
        with pytest.raises(StructuralError):
            SourceParser().parse("class Broken(:\n    pass\n", "broken.py")

    def test_annotation_string(self) -> None:
        assert parse_annotation_string("dict[str, int]").to_string() == "array<string, int>"
        assert parse_annotation_string("Any") is None


class TestValidationRuleParser:
    """Tests for validation rule conversion."""

    @pytest.fixture
    def parser(self) -> ValidationRuleParser:
        return ValidationRuleParser()

    def test_parse_rule(self, parser: ValidationRuleParser) -> None:
        assert parser.parse_rule("required|string|max:100") == {"required": True, "string": True, "max": "100"}

    def test_regex_argument_keeps_colons(self, parser: ValidationRuleParser) -> None:
        assert parser.parse_rule("regex:^a:b$") == {"regex": "^a:b$"}

    def test_string_bounds(self, parser: ValidationRuleParser) -> None:
        parameter = parser.to_parameter("name|Full name", "required|string|min:2|max:100")

        assert parameter["required"] is True
        assert parameter["description"] == "Full name"
        assert parameter["schema"] == {"type": "string", "minLength": 2, "maxLength": 100}

    def test_numeric_bounds(self, parser: ValidationRuleParser) -> None:
        schema = parser.to_parameter("age", "integer|between:1,120")["schema"]

        assert schema == {"type": "integer", "minimum": 1, "maximum": 120}

    def test_formats_and_enums(self, parser: ValidationRuleParser) -> None:
        assert parser.to_parameter("email", "email")["schema"] == {"type": "string", "format": "email"}
        assert parser.to_parameter("site", "url")["schema"]["format"] == "uri"
        assert parser.to_parameter("state", "in:on,off")["schema"]["enum"] == ["on", "off"]

    def test_array_and_nullable(self, parser: ValidationRuleParser) -> None:
        schema = parser.to_parameter("ids", "array|nullable")["schema"]

        assert schema == {"type": "array", "items": {"type": "string"}, "nullable": True}

    def test_path_parameters_are_required(self, parser: ValidationRuleParser) -> None:
        assert parser.to_parameter("id", "integer", location="path")["required"] is True

    def test_to_schema(self, parser: ValidationRuleParser) -> None:
        schema = parser.to_schema({"name": "required|string", "nickname": "string"})

        assert schema["required"] == ["name"]
        assert list(schema["properties"]) == ["name", "nickname"]

    def test_to_schema_without_required(self, parser: ValidationRuleParser) -> None:
        assert "required" not in parser.to_schema({"nickname": "string"})

    def test_filter_by_scene(self, parser: ValidationRuleParser) -> None:
        parameters = parser.analyze_rules({"name": "string", "email": "email", "age": "integer"})

        filtered = parser.filter_by_scene(parameters, "edit", {"edit": ["name", "age"]})

        assert [p["name"] for p in filtered] == ["name", "age"]
        assert parser.filter_by_scene(parameters, "unknown", {}) == parameters
