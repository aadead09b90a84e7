"""
Settings for the schema generator and the HTTP server.

Values come from keyword overrides first, then ``TYPEROUTE_*`` environment
variables, then the field defaults. Pydantic performs coercion and validation.
"""

import os
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "TYPEROUTE_"


def _from_env(fields: Mapping[str, str], environ: Optional[Mapping[str, str]]) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    values = {}
    for field_name, variable in fields.items():
        raw = environ.get(ENV_PREFIX + variable)
        if raw is not None and raw != "":
            values[field_name] = raw
    return values


class GeneratorSettings(BaseModel):
    """Settings for the OpenAPI document written by the schema synthesizer."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field("API Documentation", description="info.title of the generated document")
    version: str = Field("1.0.0", description="info.version of the generated document")
    description: Optional[str] = Field(None, description="Optional info.description")
    servers: List[str] = Field(
        default_factory=lambda: ["http://localhost:8000/"],
        description="Server URLs listed under servers",
    )
    openapi: str = Field("3.0.0", description="OpenAPI version string")
    output: str = Field("openapi.json", description="Default output path for the document")

    @field_validator("servers", mode="before")
    @classmethod
    def split_servers(cls, value):
        if isinstance(value, str):
            return [url.strip() for url in value.split(",") if url.strip()]
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "GeneratorSettings":
        """Build settings from TYPEROUTE_* variables, with explicit overrides on top.

        Variables: TYPEROUTE_TITLE, TYPEROUTE_API_VERSION, TYPEROUTE_DESCRIPTION,
        TYPEROUTE_SERVERS (comma separated), TYPEROUTE_OPENAPI_VERSION,
        TYPEROUTE_SPEC_OUTPUT.
        """
        values = _from_env(
            {
                "title": "TITLE",
                "version": "API_VERSION",
                "description": "DESCRIPTION",
                "servers": "SERVERS",
                "openapi": "OPENAPI_VERSION",
                "output": "SPEC_OUTPUT",
            },
            environ,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class ServerSettings(BaseModel):
    """Settings for serving a registry over HTTP."""

    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    port: int = Field(8000, ge=1, le=65535)
    log_level: str = "info"
    strict_routes: bool = Field(False, description="Treat (path, verb) collisions as errors")
    server_impl: str = Field("uvicorn", pattern="^(uvicorn|hypercorn)$")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ServerSettings":
        """Build settings from TYPEROUTE_* variables, with explicit overrides on top.

        Variables: TYPEROUTE_HOST, TYPEROUTE_PORT, TYPEROUTE_LOG_LEVEL,
        TYPEROUTE_STRICT_ROUTES, TYPEROUTE_SERVER_IMPL.
        """
        values = _from_env(
            {
                "host": "HOST",
                "port": "PORT",
                "log_level": "LOG_LEVEL",
                "strict_routes": "STRICT_ROUTES",
                "server_impl": "SERVER_IMPL",
            },
            environ,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
