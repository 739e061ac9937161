"""Insomnia v4 export."""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from apiscramble.export.base import BaseExporter

EXPORT_SOURCE = "apiscramble"


def _resource_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


class InsomniaExporter(BaseExporter):
    """Export an OpenAPI document as an Insomnia v4 export.

    The export holds one workspace, one base environment carrying
    ``base_url`` and credential placeholders, and one request per
    operation. Every resource is parented to the workspace.
    """

    format_name = "insomnia"
    description = "Insomnia export format v4"

    def export(self, document: Mapping[str, Any]) -> dict[str, Any]:
        workspace = self._workspace(document)
        resources = [workspace, self._environment(document, workspace["_id"])]
        for index, (path, method, operation) in enumerate(self.operations(document)):
            resources.append(self._request(path, method, operation, document, workspace["_id"], index))

        return {
            "_type": "export",
            "__export_format": 4,
            "__export_date": datetime.now(timezone.utc).isoformat(),
            "__export_source": EXPORT_SOURCE,
            "resources": resources,
        }

    def _workspace(self, document: Mapping[str, Any]) -> dict[str, Any]:
        info = document.get("info") or {}
        return {
            "_id": _resource_id("wrk"),
            "_type": "workspace",
            "name": info.get("title", "API Workspace"),
            "description": info.get("description", ""),
            "parentId": None,
            "scope": "collection",
        }

    def _environment(self, document: Mapping[str, Any], workspace_id: str) -> dict[str, Any]:
        data: dict[str, Any] = {"base_url": self.base_url(document)}
        for scheme in self.security_schemes(document).values():
            if scheme.get("type") == "http" and scheme.get("scheme") == "bearer":
                data["bearer_token"] = "your-bearer-token"
            elif scheme.get("type") == "http" and scheme.get("scheme") == "basic":
                data["username"] = "your-username"
                data["password"] = "your-password"
            elif scheme.get("type") == "apiKey":
                data["api_key"] = "your-api-key"

        return {
            "_id": _resource_id("env"),
            "_type": "environment",
            "name": "Base Environment",
            "data": data,
            "dataPropertyOrder": {"&": list(data)},
            "color": None,
            "isPrivate": False,
            "metaSortKey": 1000000000000,
            "parentId": workspace_id,
        }

    def _request(
        self,
        path: str,
        method: str,
        operation: Mapping[str, Any],
        document: Mapping[str, Any],
        workspace_id: str,
        index: int,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "_id": _resource_id("req"),
            "_type": "request",
            "parentId": workspace_id,
            "name": operation.get("summary") or operation.get("operationId") or f"{method.upper()} {path}",
            "description": operation.get("description", ""),
            "url": "{{ _.base_url }}" + path,
            "method": method.upper(),
            "headers": [
                {
                    "name": param["name"],
                    "value": param.get("example", f"{{{{ _.header_{param['name']} }}}}"),
                    "description": param.get("description", ""),
                    "disabled": False,
                }
                for param in self._parameters(operation, "header")
            ],
            "parameters": [
                {
                    "name": param["name"],
                    "value": param.get("example", f"{{{{ _.query_{param['name']} }}}}"),
                    "description": param.get("description", ""),
                    "disabled": not param.get("required", False),
                }
                for param in self._parameters(operation, "query")
            ],
            "authentication": self._authentication(operation, document),
            "metaSortKey": -(index + 1),
            "isPrivate": False,
            "settingStoreCookies": True,
            "settingSendCookies": True,
            "settingDisableRenderRequestBody": False,
            "settingEncodeUrl": True,
            "settingRebuildPath": True,
            "settingFollowRedirects": "global",
        }

        if "requestBody" in operation:
            body, headers = self._body(operation["requestBody"], document)
            request["body"] = body
            request["headers"].extend(headers)
        return request

    @staticmethod
    def _parameters(operation: Mapping[str, Any], location: str) -> list[Mapping[str, Any]]:
        return [
            param
            for param in operation.get("parameters") or []
            if isinstance(param, Mapping) and param.get("in") == location
        ]

    def _authentication(self, operation: Mapping[str, Any], document: Mapping[str, Any]) -> dict[str, Any]:
        scheme = self.operation_scheme(operation, document)
        if not scheme:
            return {"type": "none"}

        if scheme.get("type") == "http" and scheme.get("scheme") == "bearer":
            return {"type": "bearer", "token": "{{ _.bearer_token }}", "prefix": "Bearer"}
        if scheme.get("type") == "http" and scheme.get("scheme") == "basic":
            return {"type": "basic", "username": "{{ _.username }}", "password": "{{ _.password }}"}
        if scheme.get("type") == "apiKey" and scheme.get("in") in ("header", "query"):
            return {
                "type": "apikey",
                "key": scheme.get("name", "X-API-Key"),
                "value": "{{ _.api_key }}",
                "addTo": "header" if scheme["in"] == "header" else "queryParams",
            }
        return {"type": "none"}

    def _body(
        self, request_body: Mapping[str, Any], document: Mapping[str, Any]
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        content = request_body.get("content") or {}

        for mime_type in ("application/json", "application/x-www-form-urlencoded", "multipart/form-data"):
            if mime_type not in content:
                continue
            schema = content[mime_type].get("schema") or {}
            headers = [{"name": "Content-Type", "value": mime_type, "disabled": False}]

            if mime_type == "application/json":
                example = self.example_from_schema(schema, document)
                return {"mimeType": mime_type, "text": json.dumps(example, indent=4, ensure_ascii=False)}, headers

            params = []
            for name, prop in (schema.get("properties") or {}).items():
                param: dict[str, Any] = {"name": name, "description": prop.get("description", ""), "disabled": False}
                if prop.get("type") == "string" and prop.get("format") == "binary":
                    param.update(type="file", fileName="")
                else:
                    param["value"] = prop.get("example", f"{{{{ _.form_{name} }}}}")
                params.append(param)
            # The client sets the multipart boundary header itself.
            return {"mimeType": mime_type, "params": params}, headers if mime_type != "multipart/form-data" else []

        return {"mimeType": "text/plain", "text": ""}, []
