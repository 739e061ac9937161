"""ExportManager - selects an exporter by format name."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from apiscramble.errors import ErrorContext, ExportError, ScrambleError
from apiscramble.export.base import BaseExporter
from apiscramble.export.insomnia import InsomniaExporter
from apiscramble.export.postman import PostmanExporter

logger = logging.getLogger(__name__)


class ExportManager:
    """Registry of exporters keyed by format name.

    Example:
        >>> manager = ExportManager()
        >>> manager.supported_formats()
        ['postman', 'insomnia']
        >>> manager.save(document, "postman", "api.postman.json")
        PosixPath('api.postman.json')
    """

    def __init__(self) -> None:
        self._exporters: dict[str, BaseExporter] = {}
        self.register(PostmanExporter())
        self.register(InsomniaExporter())

    def register(self, exporter: BaseExporter) -> None:
        if not exporter.format_name:
            raise ExportError(f"{type(exporter).__name__} does not declare a format_name")
        self._exporters[exporter.format_name] = exporter

    def supported_formats(self) -> list[str]:
        return list(self._exporters)

    def format_info(self) -> dict[str, dict[str, str]]:
        return {
            name: {"description": exporter.description, "extension": exporter.file_extension}
            for name, exporter in self._exporters.items()
        }

    def get_exporter(self, fmt: str) -> BaseExporter:
        """Return the exporter for ``fmt``.

        Raises:
            ExportError: If no exporter handles ``fmt``.
        """
        exporter = self._exporters.get(fmt.lower())
        if exporter is None:
            raise ExportError(
                f"Unsupported export format: {fmt}",
                context=ErrorContext(extra={"format": fmt, "supported": self.supported_formats()}),
            )
        return exporter

    def export(self, document: Mapping[str, Any], fmt: str) -> dict[str, Any]:
        return self.get_exporter(fmt).export(document)

    def save(self, document: Mapping[str, Any], fmt: str, path: str | Path) -> Path:
        return self.get_exporter(fmt).save(document, path)

    def batch_export(self, document: Mapping[str, Any], targets: Mapping[str, str | Path]) -> dict[str, dict[str, Any]]:
        """Save one export per ``{format: path}`` entry, collecting failures."""
        results: dict[str, dict[str, Any]] = {}
        for fmt, path in targets.items():
            try:
                saved = self.save(document, fmt, path)
            except ScrambleError as e:
                logger.error("Export to %s failed: %s", fmt, e.message)
                results[fmt] = {"success": False, "path": str(path), "message": e.message}
            else:
                results[fmt] = {"success": True, "path": str(saved), "message": f"Exported to {saved}"}
        return results

    @staticmethod
    def validate_document(document: Mapping[str, Any]) -> dict[str, Any]:
        """Check the basic shape exporters rely on.

        Returns:
            ``valid`` flag plus ``errors`` and ``warnings`` lists.
        """
        errors: list[str] = []
        warnings: list[str] = []

        if "openapi" not in document:
            errors.append("Missing OpenAPI version")
        info = document.get("info")
        if not isinstance(info, Mapping):
            errors.append("Missing info section")
        else:
            if "title" not in info:
                warnings.append("Missing API title")
            if "version" not in info:
                warnings.append("Missing API version")

        paths = document.get("paths")
        if not paths:
            warnings.append("No API paths defined")
        for path, path_item in (paths or {}).items():
            if not isinstance(path_item, Mapping):
                errors.append(f"Invalid path item for: {path}")
                continue
            for method, operation in path_item.items():
                if not isinstance(operation, Mapping):
                    errors.append(f"Invalid operation for: {method} {path}")
                elif "responses" not in operation:
                    warnings.append(f"Missing responses for: {method} {path}")

        return {"valid": not errors, "errors": errors, "warnings": warnings}

    @staticmethod
    def summary(document: Mapping[str, Any]) -> dict[str, Any]:
        """Operation and component counts for display."""
        method_counts: dict[str, int] = {}
        for _, method, _ in BaseExporter.operations(document):
            method_counts[method.upper()] = method_counts.get(method.upper(), 0) + 1
        components = document.get("components") or {}
        info = document.get("info") or {}
        return {
            "title": info.get("title", "Unknown"),
            "version": info.get("version", "1.0.0"),
            "paths": len(document.get("paths") or {}),
            "operations": sum(method_counts.values()),
            "methods": method_counts,
            "schemas": len(components.get("schemas") or {}),
            "security_schemes": len(components.get("securitySchemes") or {}),
        }
