"""JSON and YAML encoding of OpenAPI documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from apiscramble.errors import StructuralError

YAML_SUFFIXES = {".yaml", ".yml"}


class YamlGenerator:
    """YAML encoding that keeps key insertion order.

    ``decode(encode(x)) == x`` for mappings of scalars, lists and nested
    mappings.
    """

    @staticmethod
    def encode(data: Any) -> str:
        try:
            return yaml.safe_dump(
                data,
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
                width=120,
            )
        except yaml.YAMLError as e:
            raise StructuralError(f"Failed to encode document to YAML: {e}", cause=e) from e

    @staticmethod
    def decode(text: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise StructuralError(f"Invalid YAML: {e}", cause=e) from e

    dump = encode
    parse = decode


def to_json(data: Any, pretty: bool = True) -> str:
    try:
        if pretty:
            return json.dumps(data, indent=2, ensure_ascii=False)
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StructuralError(f"Failed to encode document to JSON: {e}", cause=e) from e


def dumps(data: Any, fmt: str = "json", pretty: bool = True) -> str:
    """Encode ``data`` as ``json`` or ``yaml``."""
    if fmt == "yaml":
        return YamlGenerator.encode(data)
    if fmt == "json":
        return to_json(data, pretty)
    raise StructuralError(f"Unknown document format: {fmt}")


def load_document(path: str | Path) -> Any:
    """Read a JSON or YAML file; the suffix decides the format.

    Raises:
        StructuralError: If the file cannot be parsed.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in YAML_SUFFIXES:
        return YamlGenerator.decode(text)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StructuralError(f"Invalid JSON in {path}: {e}", cause=e) from e


def save_document(data: Any, path: str | Path, fmt: str | None = None, pretty: bool = True) -> Path:
    """Write ``data`` to ``path``; the format defaults to the file suffix."""
    path = Path(path)
    if fmt is None:
        fmt = "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(data, fmt, pretty), encoding="utf-8")
    return path
