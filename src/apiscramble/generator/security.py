"""Security schemes and middleware classification."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from apiscramble.config import ScrambleConfig

logger = logging.getLogger(__name__)

PREDEFINED_SCHEMES: dict[str, dict[str, Any]] = {
    "bearerAuth": {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
        "description": "JWT Bearer token authentication",
    },
    "apiKeyAuth": {
        "type": "apiKey",
        "in": "header",
        "name": "X-API-Key",
        "description": "API key authentication",
    },
    "basicAuth": {
        "type": "http",
        "scheme": "basic",
        "description": "HTTP Basic authentication",
    },
    "oauth2": {
        "type": "oauth2",
        "flows": {
            "authorizationCode": {
                "authorizationUrl": "/oauth/authorize",
                "tokenUrl": "/oauth/token",
                "scopes": {"read": "Read access", "write": "Write access", "admin": "Admin access"},
            }
        },
        "description": "OAuth2 authentication",
    },
    "sessionAuth": {
        "type": "apiKey",
        "in": "cookie",
        "name": "session",
        "description": "Session cookie authentication",
    },
}

AUTH_MIDDLEWARE = {"auth", "auth.session", "auth.basic", "jwt", "jwt.auth", "api.auth"}
THROTTLE_MIDDLEWARE = {"throttle", "rate.limit", "api.throttle"}
CORS_MIDDLEWARE = {"cors", "api.cors", "cross.origin"}


class SecuritySchemeGenerator:
    """Classifies route middleware and produces security schemes.

    Middleware names are matched by keyword (``auth``, ``jwt``,
    ``throttle``, ``cors``...). Authenticated routes get a security
    requirement naming the scheme implied by the middleware, or the
    configured default scheme.
    """

    def __init__(self, config: ScrambleConfig) -> None:
        self.config = config

    def analyze_middleware(self, middleware: Iterable[str | Mapping[str, Any]] | None) -> dict[str, Any]:
        """Classify middleware into types and route features."""
        result: dict[str, Any] = {
            "middleware": [],
            "features": {"requires_auth": False, "has_rate_limit": False, "supports_cors": False},
            "schemes": [],
        }

        for entry in middleware or []:
            name = entry.get("name", "") if isinstance(entry, Mapping) else str(entry)
            # "throttle:60,1" carries arguments after the colon.
            base_name = name.split(":", 1)[0]
            kind = self.middleware_type(base_name)
            result["middleware"].append({"name": name, "type": kind})

            if kind == "authentication":
                result["features"]["requires_auth"] = True
                scheme = self.scheme_name_for(base_name)
                if scheme not in result["schemes"]:
                    result["schemes"].append(scheme)
            elif kind == "rate_limiting":
                result["features"]["has_rate_limit"] = True
            elif kind == "cors":
                result["features"]["supports_cors"] = True

        return result

    @staticmethod
    def middleware_type(name: str) -> str:
        lowered = name.lower()
        if lowered in AUTH_MIDDLEWARE or "auth" in lowered or "jwt" in lowered:
            return "authentication"
        if lowered in THROTTLE_MIDDLEWARE or "throttle" in lowered or "limit" in lowered:
            return "rate_limiting"
        if lowered in CORS_MIDDLEWARE or "cors" in lowered:
            return "cors"
        if any(word in lowered for word in ("permission", "role", "acl")):
            return "authorization"
        if "log" in lowered or "trace" in lowered:
            return "logging"
        if "cache" in lowered:
            return "caching"
        if "validate" in lowered or "check" in lowered:
            return "validation"
        return "custom"

    def scheme_name_for(self, middleware_name: str) -> str:
        lowered = middleware_name.lower()
        if "jwt" in lowered or "bearer" in lowered:
            return "bearerAuth"
        if "basic" in lowered:
            return "basicAuth"
        if "session" in lowered:
            return "sessionAuth"
        if "oauth" in lowered:
            return "oauth2"
        if "key" in lowered or "token" in lowered:
            return "apiKeyAuth"
        return self.config.default_security_scheme

    def operation_security(self, middleware_info: Mapping[str, Any] | None) -> list[dict[str, list[str]]] | None:
        """Security requirement list for an operation, or None when public."""
        if not middleware_info or not (middleware_info.get("features") or {}).get("requires_auth"):
            return None
        schemes = middleware_info.get("schemes") or [self.config.default_security_scheme]
        return [{name: []} for name in schemes]

    def global_schemes(self, used: Iterable[str] = ()) -> dict[str, dict[str, Any]]:
        """Configured schemes plus predefined ones for every scheme name in ``used``.

        Without configured schemes the default scheme is always included.
        """
        schemes = copy.deepcopy(dict(self.config.security_schemes))
        if not schemes:
            default = self.config.default_security_scheme
            schemes[default] = copy.deepcopy(PREDEFINED_SCHEMES.get(default, PREDEFINED_SCHEMES["bearerAuth"]))

        for name in used:
            if name not in schemes:
                if name in PREDEFINED_SCHEMES:
                    schemes[name] = copy.deepcopy(PREDEFINED_SCHEMES[name])
                else:
                    logger.warning("Security scheme %r is used but not defined", name)
        return schemes

    def validate_schemes(
        self,
        schemes: Mapping[str, Mapping[str, Any]],
        security: list[Any] | None = None,
    ) -> list[str]:
        """Return warnings about weak or missing security configuration."""
        warnings: list[str] = []
        if not schemes:
            warnings.append("No security schemes defined; the API may be unprotected")

        for name, scheme in schemes.items():
            if scheme.get("type") == "http" and scheme.get("scheme") == "basic":
                warnings.append(f"Security scheme '{name}' uses Basic authentication; prefer a token scheme")
            if scheme.get("type") == "apiKey" and scheme.get("in") == "query":
                warnings.append(f"Security scheme '{name}' passes the API key in the query string")

        if not security:
            warnings.append("No global security requirement; some endpoints may be unprotected")
        return warnings
