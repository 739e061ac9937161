"""Static extraction of class fields from Python source.

Classes are collected with an ``ast.NodeVisitor``; nothing is imported or
executed. Annotated class attributes become fields whose annotations are
mapped onto the type model.

Example:
    >>> parser = SourceParser()
    >>> [c.name for c in parser.parse("class User:\\n    id: int\\n")]
    ['User']
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from typing import Any

from apiscramble.errors import StructuralError
from apiscramble.types import ArrayType, ObjectType, ScalarType, Type, UnionType

logger = logging.getLogger(__name__)

_NAME_TYPES: dict[str, tuple[str, str | None]] = {
    "int": ("int", None),
    "float": ("float", None),
    "str": ("string", None),
    "bool": ("bool", None),
    "bytes": ("string", "binary"),
    "datetime": ("string", "date-time"),
    "date": ("string", "date"),
    "time": ("string", "time"),
    "UUID": ("string", "uuid"),
    "Decimal": ("float", None),
    "EmailStr": ("string", "email"),
    "HttpUrl": ("string", "uri"),
    "AnyUrl": ("string", "uri"),
}
_SEQUENCE_NAMES = {"list", "List", "set", "Set", "frozenset", "FrozenSet", "Sequence", "Iterable", "tuple", "Tuple"}
_MAPPING_NAMES = {"dict", "Dict", "Mapping", "MutableMapping"}
_UNTYPED_NAMES = {"Any", "object"}
_ENUM_BASES = {"Enum", "IntEnum", "StrEnum"}


@dataclass
class ParsedField:
    """An annotated class attribute."""

    name: str
    type: Type | None
    has_default: bool = False
    optional: bool = False
    enum: list[Any] | None = None
    annotation: str = ""


@dataclass
class ParsedClass:
    """A class definition found in source text."""

    name: str
    bases: list[str] = field(default_factory=list)
    fields: list[ParsedField] = field(default_factory=list)
    docstring: str | None = None
    enum_values: list[Any] | None = None

    @property
    def is_enum(self) -> bool:
        return self.enum_values is not None


class ClassCollector(ast.NodeVisitor):
    """Collects class definitions and their annotated attributes."""

    def __init__(self) -> None:
        self.classes: list[ParsedClass] = []

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        bases = [_dotted_name(base) for base in node.bases]
        parsed = ParsedClass(
            name=node.name,
            bases=[b for b in bases if b],
            docstring=ast.get_docstring(node),
        )

        if any(base.split(".")[-1] in _ENUM_BASES for base in parsed.bases):
            parsed.enum_values = _enum_members(node)
        else:
            for statement in node.body:
                parsed_field = self._parse_field(statement)
                if parsed_field is not None:
                    parsed.fields.append(parsed_field)

        self.classes.append(parsed)
        self.generic_visit(node)

    def _parse_field(self, statement: ast.stmt) -> ParsedField | None:
        if not isinstance(statement, ast.AnnAssign) or not isinstance(statement.target, ast.Name):
            return None

        name = statement.target.id
        if name.startswith("_") or _is_class_var(statement.annotation):
            return None

        field_type = annotation_to_type(statement.annotation)
        return ParsedField(
            name=name,
            type=field_type,
            has_default=statement.value is not None,
            optional=field_type is not None and field_type.nullable,
            enum=_literal_values(statement.annotation),
            annotation=ast.unparse(statement.annotation),
        )


class SourceParser:
    """Parses Python source text into class descriptions."""

    def parse(self, source: str, filename: str = "<source>") -> list[ParsedClass]:
        """Return the classes defined in ``source``, outer classes first.

        Raises:
            StructuralError: If the source does not parse.
        """
        try:
            tree = ast.parse(source, filename=filename)
        except SyntaxError as e:
            raise StructuralError(
                f"Cannot parse {filename}: {e.msg} (line {e.lineno})",
                cause=e,
            ) from e

        collector = ClassCollector()
        collector.visit(tree)
        logger.debug("Collected %d classes from %s", len(collector.classes), filename)
        return collector.classes


def annotation_to_type(node: ast.expr | None) -> Type | None:
    """Map an annotation expression onto the type model.

    Returns None for missing or ``Any`` annotations.
    """
    if node is None:
        return None

    if isinstance(node, ast.Constant):
        if node.value is None:
            return ScalarType.null()
        if isinstance(node.value, str):
            return parse_annotation_string(node.value)
        return None

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _union([node.left, node.right])

    if isinstance(node, (ast.Name, ast.Attribute)):
        return _named_type(_dotted_name(node))

    if isinstance(node, ast.Subscript):
        return _subscript_type(node)

    return None


def parse_annotation_string(annotation: str) -> Type | None:
    """Map an annotation written as text (``"list[Node] | None"``)."""
    try:
        node = ast.parse(annotation.strip(), mode="eval").body
    except SyntaxError:
        logger.debug("Unparseable annotation %r", annotation)
        return None
    return annotation_to_type(node)


def _named_type(dotted: str) -> Type | None:
    short = dotted.split(".")[-1]
    if not short or short in _UNTYPED_NAMES:
        return None
    if short == "None":
        return ScalarType.null()
    if short in _NAME_TYPES:
        name, fmt = _NAME_TYPES[short]
        return ScalarType(name, format=fmt)
    if short in _SEQUENCE_NAMES:
        return ArrayType.simple()
    if short in _MAPPING_NAMES:
        return ArrayType.associative()
    return ObjectType(dotted)


def _subscript_type(node: ast.Subscript) -> Type | None:
    base = _dotted_name(node.value).split(".")[-1]
    args = list(node.slice.elts) if isinstance(node.slice, ast.Tuple) else [node.slice]

    if base == "Optional":
        inner = annotation_to_type(args[0])
        return inner.set_nullable(True) if inner is not None else None
    if base == "Union":
        return _union(args)
    if base == "Annotated":
        return annotation_to_type(args[0])
    if base == "Literal":
        values = [arg.value for arg in args if isinstance(arg, ast.Constant)]
        members: list[Type] = []
        for value in values:
            members.append(ScalarType.null() if value is None else _named_type(type(value).__name__))
        return UnionType(members).simplify() if members else None
    if base in _MAPPING_NAMES:
        value_type = annotation_to_type(args[1]) if len(args) == 2 else None
        return ArrayType.associative(value_type)
    if base in _SEQUENCE_NAMES:
        if base in ("tuple", "Tuple") and len(args) > 1 and not _is_ellipsis(args[-1]):
            value_type = _union(args)
        else:
            value_type = annotation_to_type(args[0])
        return ArrayType.of(value_type) if value_type is not None else ArrayType.simple()

    return _named_type(_dotted_name(node.value))


def _union(nodes: list[ast.expr]) -> Type | None:
    members: list[Type] = []
    for node in nodes:
        member = annotation_to_type(node)
        if member is None:
            return None
        members.append(member)
    return UnionType(members).simplify()


def _dotted_name(node: ast.expr) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        parent = _dotted_name(node.value)
        return f"{parent}.{node.attr}" if parent else node.attr
    if isinstance(node, ast.Subscript):
        return _dotted_name(node.value)
    return ""


def _is_ellipsis(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is Ellipsis


def _is_class_var(node: ast.expr) -> bool:
    return _dotted_name(node).split(".")[-1] == "ClassVar"


def _literal_values(node: ast.expr) -> list[Any] | None:
    if isinstance(node, ast.Subscript) and _dotted_name(node.value).split(".")[-1] == "Literal":
        args = list(node.slice.elts) if isinstance(node.slice, ast.Tuple) else [node.slice]
        return [arg.value for arg in args if isinstance(arg, ast.Constant)]
    return None


def _enum_members(node: ast.ClassDef) -> list[Any]:
    values: list[Any] = []
    for statement in node.body:
        if isinstance(statement, ast.Assign) and isinstance(statement.value, ast.Constant):
            if all(isinstance(t, ast.Name) and not t.id.startswith("_") for t in statement.targets):
                values.append(statement.value.value)
    return values
