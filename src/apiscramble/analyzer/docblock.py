"""Docblock parsing.

Parses structured comments (``/** ... */`` blocks or plain docstrings)
carrying ``@param``/``@return``/``@var``/``@throws`` annotations and
turns their type expressions into Type Model values.

Supported type expressions::

    int  ?string  int[]  array<string>  array<string, int>  string|int|null
    App\\Models\\User  app.models.User
"""

from __future__ import annotations

import re
from typing import Any

from apiscramble.types import ArrayType, ObjectType, ScalarType, Type, UnionType, canonical_scalar_name

# Names that carry no schema information.
UNTYPED_NAMES = {"mixed", "void", "never", "any", "callable", "resource"}
ARRAY_NAMES = {"array", "list", "iterable"}
OBJECT_NAMES = {"object", "stdclass", "dict"}

_PARAM_RE = re.compile(r"^(\S+)\s+\$?(\w+)(?:\s+(.+))?$")
_FILE_PARAM_RE = re.compile(r"^\{(file|upload)\}\s+\$?(\w+)(?:\s+(.+))?$")
_TAG_RE = re.compile(r"^@(\w+)(?:\s+(.+))?$")
_API_RE = re.compile(r"\{(\w+)\}\s+(\S+)\s*(.*)")
_GENERIC_RE = re.compile(r"^(array|list|iterable)<(.+)>$", re.IGNORECASE)


class DocBlockParser:
    """Parses docblocks into summary, description and tags."""

    def parse(self, doc_comment: str) -> dict[str, Any]:
        """Parse a docblock.

        Args:
            doc_comment: The raw comment or docstring.

        Returns:
            Dictionary with ``summary``, ``description`` and ``tags``.
            Each tag is a dictionary with at least a ``name`` key.
        """
        summary = ""
        description_lines: list[str] = []
        tags: list[dict[str, Any]] = []
        in_description = False

        for raw_line in self._clean(doc_comment).split("\n"):
            line = raw_line.strip()

            if not line:
                if summary:
                    in_description = True
                continue

            if line.startswith("@"):
                tag = self._parse_tag(line)
                if tag is not None:
                    tags.append(tag)
                continue

            if not summary:
                summary = line
            elif in_description:
                description_lines.append(line)

        return {
            "summary": summary,
            "description": " ".join(description_lines),
            "tags": tags,
        }

    def parse_param_type(self, doc_comment: str, param_name: str) -> Type | None:
        for tag in self.parse(doc_comment)["tags"]:
            if tag["name"] == "param" and tag.get("variable") == param_name:
                return self.parse_type_string(tag.get("type", ""))
        return None

    def parse_return_type(self, doc_comment: str) -> Type | None:
        for tag in self.parse(doc_comment)["tags"]:
            if tag["name"] == "return":
                return self.parse_type_string(tag.get("type", ""))
        return None

    def parse_variable_type(self, doc_comment: str) -> Type | None:
        for tag in self.parse(doc_comment)["tags"]:
            if tag["name"] == "var":
                return self.parse_type_string(tag.get("type", ""))
        return None

    def parse_type_string(self, type_string: str) -> Type | None:
        """Parse a type expression into a Type.

        Returns None for empty or untyped expressions (``mixed``, ``void``).

        Raises:
            InvalidTypeError: If a member is neither a scalar nor a valid class name.
        """
        text = (type_string or "").strip()
        if not text:
            return None

        nullable = False
        if text.startswith("?"):
            nullable = True
            text = text[1:].strip()

        parts = split_top_level(text, "|")
        if len(parts) > 1:
            members = [t for t in (self._parse_single(part) for part in parts) if t is not None]
            if not members:
                return None
            result = UnionType(members).simplify()
        else:
            result = self._parse_single(text)
            if result is None:
                return None

        if nullable:
            result.set_nullable(True)
        return result

    def _parse_single(self, text: str) -> Type | None:
        text = text.strip()
        lowered = text.lower()

        if not text or lowered in UNTYPED_NAMES:
            return None

        scalar = canonical_scalar_name(lowered)
        if scalar is not None:
            return ScalarType(scalar)

        if lowered in ARRAY_NAMES:
            return ArrayType.simple()
        if lowered in OBJECT_NAMES:
            return ArrayType.associative()

        generic = _GENERIC_RE.match(text)
        if generic:
            args = split_top_level(generic.group(2), ",")
            if len(args) == 2:
                key_type = self.parse_type_string(args[0])
                value_type = self.parse_type_string(args[1])
                return ArrayType(key_type, value_type)
            value_type = self.parse_type_string(args[0])
            return ArrayType.of(value_type) if value_type is not None else ArrayType.simple()

        if text.endswith("[]"):
            inner = self.parse_type_string(text[:-2])
            return ArrayType.of(inner) if inner is not None else ArrayType.simple()

        return ObjectType(text.lstrip("\\"))

    @staticmethod
    def _clean(doc_comment: str) -> str:
        cleaned = re.sub(r"^\s*/\*\*|\*/\s*$", "", doc_comment or "")
        cleaned = re.sub(r"^[ \t]*\*[ \t]?", "", cleaned, flags=re.MULTILINE)
        return cleaned.strip()

    def _parse_tag(self, line: str) -> dict[str, Any] | None:
        match = _TAG_RE.match(line)
        if not match:
            return None

        name, content = match.group(1), (match.group(2) or "").strip()
        tag: dict[str, Any] = {"name": name}

        if name == "param":
            tag.update(self._parse_param_tag(content))
        elif name in ("return", "var"):
            type_part, _, description = content.partition(" ")
            tag.update({"type": type_part, "description": description.strip()})
        elif name == "throws":
            tag["type"] = content
        elif name in ("Api", "ApiParam", "ApiResponse", "ApiSuccess", "ApiError"):
            tag.update(self._parse_api_tag(name, content))
        else:
            tag["content"] = content

        return tag

    @staticmethod
    def _parse_param_tag(content: str) -> dict[str, Any]:
        file_match = _FILE_PARAM_RE.match(content)
        if file_match:
            return {
                "type": "file",
                "variable": file_match.group(2),
                "description": file_match.group(3) or "",
                "is_file_upload": True,
            }

        match = _PARAM_RE.match(content)
        if match:
            result: dict[str, Any] = {
                "type": match.group(1),
                "variable": match.group(2),
                "description": match.group(3) or "",
            }
            if match.group(1).lower() in ("file", "upload", "uploadedfile"):
                result["is_file_upload"] = True
            return result

        return {"content": content}

    @staticmethod
    def _parse_api_tag(name: str, content: str) -> dict[str, Any]:
        result: dict[str, Any] = {"is_api_annotation": True, "content": content}
        match = _API_RE.match(content)

        if name == "Api":
            if match:
                result.update(
                    method=match.group(1).upper(),
                    path=match.group(2),
                    title=match.group(3).strip(),
                )
            else:
                result["title"] = content
        elif name == "ApiParam":
            if match:
                result.update(
                    param_type=match.group(1),
                    param_name=match.group(2),
                    description=match.group(3).strip(),
                )
            else:
                result["description"] = content
        else:
            if match:
                result.update(
                    type=match.group(1),
                    field=match.group(2),
                    description=match.group(3).strip(),
                )
            else:
                result["description"] = content

        return result


def split_top_level(text: str, separator: str) -> list[str]:
    """Split on ``separator`` outside of ``<...>`` and ``[...]`` brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []

    for char in text:
        if char in "<[":
            depth += 1
        elif char in ">]":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    parts.append("".join(current).strip())
    return [part for part in parts if part]
