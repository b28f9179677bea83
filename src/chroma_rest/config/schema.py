"""Pydantic models for client configuration."""

import os
from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_URL = "http://localhost:8000"
DEFAULT_TENANT = "default_tenant"
DEFAULT_DATABASE = "default_database"


def _default_url() -> str:
    return os.environ.get("CHROMA_HOST") or os.environ.get("CHROMA_URL") or DEFAULT_URL


class NoAuth(BaseModel):
    """No credentials are sent."""

    model_config = ConfigDict(frozen=True)

    method: Literal["none"] = "none"


class TokenAuth(BaseModel):
    """Static token sent in a request header."""

    model_config = ConfigDict(frozen=True)

    method: Literal["token"] = "token"
    token: str = Field(description="API token", min_length=1)
    header: Literal["Authorization", "X-Chroma-Token"] = Field(
        default="Authorization",
        description="'Authorization' sends 'Bearer <token>', 'X-Chroma-Token' sends the raw token",
    )


class BasicAuth(BaseModel):
    """HTTP basic credentials."""

    model_config = ConfigDict(frozen=True)

    method: Literal["basic"] = "basic"
    username: str = Field(description="Basic auth user name")
    password: str = Field(description="Basic auth password")


AuthConfig = Annotated[NoAuth | TokenAuth | BasicAuth, Field(discriminator="method")]


class ClientConfig(BaseModel):
    """Connection settings shared by a client and all of its collection handles."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(
        default_factory=_default_url,
        description="Server base URL (falls back to CHROMA_HOST / CHROMA_URL)",
    )
    tenant: str | None = Field(
        default=DEFAULT_TENANT,
        description="Tenant name, or None to resolve it from the auth identity endpoint",
    )
    database: str = Field(default=DEFAULT_DATABASE, description="Database name", min_length=1)
    auth: AuthConfig = Field(default_factory=NoAuth)
    timeout: float = Field(default=30.0, description="Request timeout in seconds", gt=0)
    ssl_verify: bool = Field(default=True, description="Verify TLS certificates")
    allow_reset: bool = Field(
        default=False,
        description="Permit reset(), which drops every collection on the server",
    )
    check_version: bool = Field(
        default=False,
        description="Call /version when connecting through ChromaClient.connect()",
    )

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = f"url must be an absolute http(s) URL, got {value!r}"
            raise ValueError(msg)
        return value.rstrip("/")
