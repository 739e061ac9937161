"""Postman Collection v2.1 exporter."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from apiscramble.export.base import BaseExporter

POSTMAN_SCHEMA = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"


class PostmanExporter(BaseExporter):
    """Export an OpenAPI document as a Postman collection.

    Each operation becomes one request item. Path and query parameters are
    filled with ``{{name}}`` variables, request bodies with an example built
    from the body schema, and the first security scheme becomes the
    collection-level auth.
    """

    format_name = "postman"
    description = "Postman Collection v2.1"

    def export(self, document: Mapping[str, Any]) -> dict[str, Any]:
        collection: dict[str, Any] = {
            "info": self._info(document),
            "item": [self._item(path, method, op, document) for path, method, op in self.operations(document)],
        }
        auth = self._auth(next(iter(self.security_schemes(document).values()), None))
        if auth is not None:
            collection["auth"] = auth
        collection["variable"] = self._variables(document)
        return collection

    def _info(self, document: Mapping[str, Any]) -> dict[str, Any]:
        info = document.get("info") or {}
        return {
            "name": info.get("title", "API Collection"),
            "description": info.get("description", ""),
            "version": info.get("version", "1.0.0"),
            "schema": POSTMAN_SCHEMA,
        }

    def _item(
        self,
        path: str,
        method: str,
        operation: Mapping[str, Any],
        document: Mapping[str, Any],
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "method": method.upper(),
            "header": self._params(operation, "header"),
            "url": self._url(path, operation, document),
        }
        if "requestBody" in operation:
            request["body"] = self._body(operation["requestBody"], document)
        if operation.get("description"):
            request["description"] = operation["description"]
        if "security" in operation:
            auth = self._auth(self.operation_scheme(operation, document))
            if auth is not None:
                request["auth"] = auth

        return {
            "name": operation.get("summary") or operation.get("operationId") or f"{method.upper()} {path}",
            "request": request,
            "response": [],
        }

    @staticmethod
    def _params(operation: Mapping[str, Any], location: str) -> list[dict[str, Any]]:
        return [
            {
                "key": param["name"],
                "value": param.get("example", f"{{{{{param['name']}}}}}"),
                "description": param.get("description", ""),
            }
            for param in operation.get("parameters") or []
            if isinstance(param, Mapping) and param.get("in") == location
        ]

    def _url(self, path: str, operation: Mapping[str, Any], document: Mapping[str, Any]) -> dict[str, Any]:
        base_url = self.base_url(document)
        host, base_segments = self.split_url(base_url)
        # Postman marks path variables with a leading colon.
        segments = [
            f":{segment[1:-1]}" if segment.startswith("{") and segment.endswith("}") else segment
            for segment in path.split("/")
            if segment
        ]
        return {
            "raw": f"{base_url.rstrip('/')}{path}",
            "host": [host] if host else [],
            "path": base_segments + segments,
            "query": self._params(operation, "query"),
            "variable": self._params(operation, "path"),
        }

    def _body(self, request_body: Mapping[str, Any], document: Mapping[str, Any]) -> dict[str, Any]:
        content = request_body.get("content") or {}

        if "application/json" in content:
            example = self.example_from_schema(content["application/json"].get("schema") or {}, document)
            return {
                "mode": "raw",
                "raw": json.dumps(example, indent=4, ensure_ascii=False),
                "options": {"raw": {"language": "json"}},
            }

        if "application/x-www-form-urlencoded" in content:
            properties = (content["application/x-www-form-urlencoded"].get("schema") or {}).get("properties") or {}
            return {
                "mode": "urlencoded",
                "urlencoded": [
                    {
                        "key": name,
                        "value": prop.get("example", f"{{{{{name}}}}}"),
                        "description": prop.get("description", ""),
                    }
                    for name, prop in properties.items()
                ],
            }

        if "multipart/form-data" in content:
            properties = (content["multipart/form-data"].get("schema") or {}).get("properties") or {}
            formdata = []
            for name, prop in properties.items():
                field: dict[str, Any] = {"key": name, "description": prop.get("description", "")}
                if prop.get("type") == "string" and prop.get("format") == "binary":
                    field.update(type="file", src=[])
                else:
                    field.update(type="text", value=prop.get("example", f"{{{{{name}}}}}"))
                formdata.append(field)
            return {"mode": "formdata", "formdata": formdata}

        return {"mode": "raw", "raw": ""}

    @staticmethod
    def _auth(scheme: Mapping[str, Any] | None) -> dict[str, Any] | None:
        if not scheme:
            return None

        if scheme.get("type") == "http" and scheme.get("scheme") == "bearer":
            return {
                "type": "bearer",
                "bearer": [{"key": "token", "value": "{{bearerToken}}", "type": "string"}],
            }
        if scheme.get("type") == "http" and scheme.get("scheme") == "basic":
            return {
                "type": "basic",
                "basic": [
                    {"key": "username", "value": "{{username}}", "type": "string"},
                    {"key": "password", "value": "{{password}}", "type": "string"},
                ],
            }
        if scheme.get("type") == "apiKey":
            return {
                "type": "apikey",
                "apikey": [
                    {"key": "key", "value": scheme.get("name", "X-API-Key"), "type": "string"},
                    {"key": "value", "value": "{{apiKey}}", "type": "string"},
                    {"key": "in", "value": scheme.get("in", "header"), "type": "string"},
                ],
            }
        return None

    def _variables(self, document: Mapping[str, Any]) -> list[dict[str, Any]]:
        variables = [{"key": "baseUrl", "value": self.base_url(document), "type": "string"}]
        seen = {"baseUrl"}

        def add(key: str, value: str) -> None:
            if key not in seen:
                seen.add(key)
                variables.append({"key": key, "value": value, "type": "string"})

        for scheme in self.security_schemes(document).values():
            if scheme.get("type") == "http" and scheme.get("scheme") == "bearer":
                add("bearerToken", "your-bearer-token")
            elif scheme.get("type") == "http" and scheme.get("scheme") == "basic":
                add("username", "your-username")
                add("password", "your-password")
            elif scheme.get("type") == "apiKey":
                add("apiKey", "your-api-key")
        return variables
