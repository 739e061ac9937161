"""Schema generation from field specs, examples, types and classes.

Classes:
    SchemaGenerator: Produces schema fragments and records named definitions.

Example:
    >>> generator = SchemaGenerator()
    >>> generator.generate_from_array({"id": "int", "email": "email"})
    {'type': 'object', 'properties': {'id': {'type': 'integer'}, 'email': {'type': 'string', 'format': 'email'}}}
"""

from __future__ import annotations

import copy
import dataclasses
import enum
import importlib
import inspect
import logging
import types
import typing
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, ClassVar

from apiscramble.analyzer.annotations import enum_values, is_optional, type_from_annotation
from apiscramble.analyzer.ast_parser import ParsedClass, SourceParser
from apiscramble.analyzer.docblock import DocBlockParser
from apiscramble.analyzer.inference import TypeInference
from apiscramble.errors import ErrorContext, GenerationError, StructuralError, UnsupportedTypeError
from apiscramble.types import SCHEMA_REF_PREFIX, ObjectType, Type, apply_nullable

logger = logging.getLogger(__name__)

# Shorthand type names accepted in field specs.
FORMAT_ALIASES: dict[str, tuple[str, str]] = {
    "email": ("string", "email"),
    "url": ("string", "uri"),
    "uri": ("string", "uri"),
    "date": ("string", "date"),
    "datetime": ("string", "date-time"),
    "date-time": ("string", "date-time"),
    "time": ("string", "time"),
    "password": ("string", "password"),
    "binary": ("string", "binary"),
    "byte": ("string", "byte"),
    "uuid": ("string", "uuid"),
}

_UNTYPED = object()


class SchemaGenerator:
    """Generates schema fragments.

    Class schemas are inlined the first time a class is met during one
    ``generate_from_class`` call and referenced with ``$ref`` afterwards,
    which also breaks self-referencing structures. Every class schema is
    recorded under its short name in :attr:`definitions` so the references
    can be resolved once the definitions are added to a document.

    Args:
        inference: Type inference used for example payloads.
        docblock_parser: Parser for type expressions and docstrings.
        source_parser: Parser used by :meth:`generate_from_source`.
    """

    def __init__(
        self,
        inference: TypeInference | None = None,
        docblock_parser: DocBlockParser | None = None,
        source_parser: SourceParser | None = None,
    ) -> None:
        self._inference = inference or TypeInference()
        self._docblock = docblock_parser or DocBlockParser()
        self._source_parser = source_parser or SourceParser()
        self._class_cache: dict[type, dict[str, Any]] = {}
        self._definitions: dict[str, dict[str, Any]] = {}

    @property
    def definitions(self) -> dict[str, dict[str, Any]]:
        """Named schemas recorded so far, keyed by component name."""
        return copy.deepcopy(self._definitions)

    def add_definition(self, name: str, schema: dict[str, Any]) -> None:
        self._definitions[name] = copy.deepcopy(schema)

    def generate_from_array(
        self,
        spec: Mapping[str, Any],
        name: str | None = None,
        required: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """Generate an object schema from a field specification.

        Args:
            spec: Maps field names to a type expression (``"string"``,
                ``"?int"``, ``"int[]"``, ``"email"``...), a nested mapping or
                a one-element list describing array items.
            name: Record the result as a named definition.
            required: Field names to list as required. Nothing is required
                unless given.

        Raises:
            StructuralError: If ``spec`` or one of its values has an
                unsupported shape.
        """
        if not isinstance(spec, Mapping):
            raise StructuralError(
                f"Schema spec must be a mapping, got {type(spec).__name__}",
                context=ErrorContext(schema_name=name),
            )

        properties: dict[str, Any] = {}
        for field_name, value in spec.items():
            properties[str(field_name)] = self._field_schema(str(field_name), value, name)

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required is not None:
            schema["required"] = list(required)

        if name:
            self.add_definition(name, schema)
        return schema

    def generate_from_example(self, data: Any) -> dict[str, Any]:
        """Generate a schema describing an example payload.

        Instances of classes are described by :meth:`generate_from_class`,
        so every ``$ref`` in the result has a matching definition.

        Raises:
            UnsupportedTypeError: If the payload contains itself or a value
                with no schema mapping.
        """
        return self._example_schema(data, active=[])

    def _example_schema(self, data: Any, active: list[int]) -> dict[str, Any]:
        if isinstance(data, (Mapping, list, tuple)):
            if id(data) in active:
                raise UnsupportedTypeError(
                    f"Cannot describe a self-referencing {type(data).__name__} example",
                    value_type=type(data).__name__,
                )
            active.append(id(data))
            try:
                return self._container_schema(data, active)
            finally:
                active.pop()

        inferred = self._inference.infer(data)
        if isinstance(inferred, ObjectType):
            return self.generate_from_class(type(data))
        return self._inference.infer_schema(data)

    def _container_schema(self, data: Mapping[str, Any] | Sequence[Any], active: list[int]) -> dict[str, Any]:
        if isinstance(data, Mapping):
            return {
                "type": "object",
                "properties": {str(key): self._example_schema(value, active) for key, value in data.items()},
            }

        if data and len({type(item) for item in data}) == 1 and not _is_scalar_value(data[0]):
            return {"type": "array", "items": self._example_schema(data[0], active)}
        for item in data:
            if not _is_scalar_value(item) and isinstance(self._inference.infer(item), ObjectType):
                self.generate_from_class(type(item))
        return self._inference.infer_schema(list(data))

    def generate_from_type(self, type_: Type) -> dict[str, Any]:
        return type_.to_openapi_schema()

    def generate_from_class(self, target: type | str) -> dict[str, Any]:
        """Generate an object schema from a class.

        Args:
            target: A class or its dotted import path (``"app.models.User"``
                or ``"app.models:User"``).

        Raises:
            GenerationError: If the class cannot be imported.
        """
        cls = self._resolve_class(target)

        cached = self._class_cache.get(cls)
        if cached is not None:
            return copy.deepcopy(cached)

        schema = self._class_schema(cls, seen=set())
        self._class_cache[cls] = copy.deepcopy(schema)
        return schema

    def generate_from_source(self, source: str, filename: str = "<source>") -> dict[str, dict[str, Any]]:
        """Generate one schema per class defined in Python source text.

        Classes are parsed statically and never imported. Class-typed fields
        become ``$ref`` pointers to their short name.

        Returns:
            Mapping of class name to schema, in definition order.
        """
        schemas: dict[str, dict[str, Any]] = {}
        for parsed in self._source_parser.parse(source, filename):
            schema = self._parsed_class_schema(parsed)
            self.add_definition(parsed.name, schema)
            schemas[parsed.name] = schema
        return schemas

    def schema_from_type_string(self, expression: str) -> dict[str, Any]:
        """Render a type expression, accepting format aliases like ``email``."""
        text = expression.strip()
        nullable = text.startswith("?")
        core = text.lstrip("?").strip()

        alias = FORMAT_ALIASES.get(core.lower())
        if alias is not None:
            schema: dict[str, Any] = {"type": alias[0], "format": alias[1]}
        elif core.endswith("[]") and core[:-2].lower() in FORMAT_ALIASES:
            schema = {"type": "array", "items": self.schema_from_type_string(core[:-2])}
        else:
            parsed = self._docblock.parse_type_string(core)
            if parsed is None:
                logger.warning("Untyped expression %r, defaulting to string", expression)
                schema = {"type": "string"}
            else:
                schema = parsed.to_openapi_schema()

        if nullable:
            schema = apply_nullable(schema)
        return schema

    def clear_cache(self) -> None:
        """Drop memoized class schemas. Definitions are kept."""
        self._class_cache.clear()

    def _field_schema(self, field_name: str, value: Any, parent: str | None) -> dict[str, Any]:
        if isinstance(value, str):
            return self.schema_from_type_string(value)
        if isinstance(value, Type):
            return value.to_openapi_schema()
        if isinstance(value, Mapping):
            return self.generate_from_array(value)
        if isinstance(value, list) and len(value) == 1:
            return {"type": "array", "items": self._field_schema(field_name, value[0], parent)}

        raise StructuralError(
            f"Field '{field_name}' must be a type string, a mapping or a one-element list, "
            f"got {type(value).__name__}",
            context=ErrorContext(schema_name=parent, pointer=f"/properties/{field_name}"),
        )

    def _resolve_class(self, target: type | str) -> type:
        if isinstance(target, type):
            return target
        if not isinstance(target, str) or not target.strip():
            raise GenerationError(f"Expected a class or dotted class path, got {target!r}")

        path = target.strip().replace("\\", ".")
        module_name, sep, attr = path.partition(":")
        if not sep:
            module_name, _, attr = path.rpartition(".")
        if not module_name or not attr:
            raise GenerationError(f"Class path must include a module: '{target}'")

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise GenerationError(f"Cannot import module '{module_name}' for class '{target}'", cause=e) from e

        obj: Any = module
        for part in attr.split("."):
            obj = getattr(obj, part, None)
            if obj is None:
                raise GenerationError(f"Class '{attr}' not found in module '{module_name}'")
        if not isinstance(obj, type):
            raise GenerationError(f"'{target}' is not a class")
        return obj

    def _class_schema(self, cls: type, seen: set[type]) -> dict[str, Any]:
        name = cls.__name__
        if cls in seen:
            return {"$ref": f"{SCHEMA_REF_PREFIX}{name}"}
        seen.add(cls)

        properties: dict[str, Any] = {}
        required: list[str] = []

        for member, annotation, has_default in self._annotated_members(cls):
            if annotation is _UNTYPED:
                properties[member] = self._untyped(cls, member)
                continue
            properties[member] = self._annotation_schema(annotation, seen, cls, member)
            if not has_default and not is_optional(annotation):
                required.append(member)

        for member, prop in self._properties(cls):
            if member in properties:
                continue
            properties[member] = self._property_schema(cls, member, prop, seen)

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required

        self.add_definition(name, schema)
        return schema

    def _annotated_members(self, cls: type) -> Iterator[tuple[str, Any, bool]]:
        try:
            hints = typing.get_type_hints(cls)
        except (NameError, TypeError) as e:
            logger.warning("Cannot resolve annotations of %s: %s", cls.__name__, e)
            hints = {}
            for klass in reversed(cls.__mro__):
                hints.update(getattr(klass, "__annotations__", {}))

        model_fields = getattr(cls, "model_fields", None)
        if isinstance(model_fields, Mapping):
            for member, info in model_fields.items():
                yield member, hints.get(member, info.annotation), not info.is_required()
            return

        if dataclasses.is_dataclass(cls):
            for f in dataclasses.fields(cls):
                if f.name.startswith("_"):
                    continue
                has_default = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
                yield f.name, hints.get(f.name, f.type), has_default
            return

        for member, annotation in hints.items():
            if member.startswith("_") or typing.get_origin(annotation) is ClassVar or annotation is ClassVar:
                continue
            yield member, annotation, hasattr(cls, member)

        for member, value in _public_attributes(cls):
            if member not in hints:
                yield member, _UNTYPED, True

    def _properties(self, cls: type) -> Iterator[tuple[str, property]]:
        for klass in cls.__mro__:
            if _is_library_class(klass):
                continue
            for member, value in vars(klass).items():
                if isinstance(value, property) and not member.startswith("_"):
                    yield member, value

    def _property_schema(self, cls: type, member: str, prop: property, seen: set[type]) -> dict[str, Any]:
        annotation: Any = _UNTYPED
        if prop.fget is not None:
            try:
                annotation = typing.get_type_hints(prop.fget).get("return", _UNTYPED)
            except (NameError, TypeError):
                annotation = _UNTYPED

        if annotation is not _UNTYPED:
            schema = self._annotation_schema(annotation, seen, cls, member)
        else:
            doc_type = self._doc_type(prop.fget.__doc__ if prop.fget else None)
            schema = doc_type.to_openapi_schema() if doc_type is not None else self._untyped(cls, member)

        if prop.fset is None and "$ref" not in schema:
            schema["readOnly"] = True
        return schema

    def _doc_type(self, doc: str | None) -> Type | None:
        if not doc:
            return None
        return self._docblock.parse_return_type(doc) or self._docblock.parse_variable_type(doc)

    def _annotation_schema(self, annotation: Any, seen: set[type], owner: type, member: str) -> dict[str, Any]:
        origin = typing.get_origin(annotation)
        args = typing.get_args(annotation)

        if origin is typing.Annotated:
            return self._annotation_schema(args[0], seen, owner, member)

        if is_optional(annotation) and args:
            rest = [arg for arg in args if arg is not type(None)]
            if len(rest) == 1:
                return apply_nullable(self._annotation_schema(rest[0], seen, owner, member))
            schema = {"oneOf": [self._annotation_schema(arg, seen, owner, member) for arg in rest]}
            return apply_nullable(schema)

        if origin is typing.Union or origin is types.UnionType:
            return {"oneOf": [self._annotation_schema(arg, seen, owner, member) for arg in args]}

        if origin in (list, set, frozenset, Sequence) or (origin is tuple and args and args[-1] is Ellipsis):
            items = self._annotation_schema(args[0], seen, owner, member) if args else {}
            return {"type": "array", "items": items}

        if origin in (dict, Mapping) and len(args) == 2:
            return {
                "type": "object",
                "additionalProperties": self._annotation_schema(args[1], seen, owner, member),
            }

        values = enum_values(annotation)
        if values is not None:
            base = type_from_annotation(annotation)
            schema = base.to_openapi_schema() if base is not None else {"type": "string"}
            schema.pop("nullable", None)
            schema["enum"] = [v for v in values if v is not None]
            if None in values:
                schema["nullable"] = True
            return schema

        resolved = type_from_annotation(annotation)
        if resolved is None:
            return self._untyped(owner, member)
        if isinstance(resolved, ObjectType) and isinstance(annotation, type):
            return self._class_schema(annotation, seen)
        return resolved.to_openapi_schema()

    def _parsed_class_schema(self, parsed: ParsedClass) -> dict[str, Any]:
        if parsed.is_enum:
            values = parsed.enum_values or []
            kinds = {type(value) for value in values}
            schema: dict[str, Any] = {"type": "integer" if kinds == {int} else "string", "enum": values}
            if parsed.docstring:
                schema["description"] = parsed.docstring.split("\n")[0]
            return schema

        properties: dict[str, Any] = {}
        required: list[str] = []
        for parsed_field in parsed.fields:
            if parsed_field.type is None:
                logger.warning("Untyped member %s.%s, defaulting to string", parsed.name, parsed_field.name)
                field_schema: dict[str, Any] = {"type": "string"}
            else:
                field_schema = parsed_field.type.to_openapi_schema()
            if parsed_field.enum is not None:
                field_schema["enum"] = [v for v in parsed_field.enum if v is not None]
            properties[parsed_field.name] = field_schema
            if not parsed_field.has_default and not parsed_field.optional:
                required.append(parsed_field.name)

        schema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        if parsed.docstring:
            schema["description"] = parsed.docstring.split("\n")[0]
        return schema

    @staticmethod
    def _untyped(cls: type, member: str) -> dict[str, Any]:
        logger.warning("Untyped member %s.%s, defaulting to string", cls.__name__, member)
        return {"type": "string"}


def _is_library_class(klass: type) -> bool:
    module = klass.__module__ or ""
    return module == "builtins" or module.split(".")[0] in ("pydantic", "pydantic_core", "enum", "typing")


def _public_attributes(cls: type) -> Iterator[tuple[str, Any]]:
    """Plain class-level data attributes, excluding methods and descriptors."""
    seen: set[str] = set()
    for klass in reversed(cls.__mro__):
        if _is_library_class(klass):
            continue
        for member, value in vars(klass).items():
            if member.startswith("_") or isinstance(value, (property, classmethod, staticmethod)):
                continue
            if inspect.isroutine(value) or inspect.isclass(value) or isinstance(value, enum.Enum):
                continue
            if member not in seen:
                seen.add(member)
                yield member, value


def _is_scalar_value(value: Any) -> bool:
    return value is None or isinstance(value, (str, bytes, bytearray, int, float))
