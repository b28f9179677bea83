"""HTTP transport shared by the client and its collection handles."""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from chroma_rest.config.schema import DEFAULT_TENANT, BasicAuth, ClientConfig, TokenAuth
from chroma_rest.errors import ConnectivityError, ProtocolError, error_from_response

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v2"


@dataclass(frozen=True)
class UserIdentity:
    """Identity reported by the server for the configured credentials."""

    user_id: str
    tenant: str
    databases: list[str] = field(default_factory=list)


def auth_headers(config: ClientConfig) -> dict[str, str]:
    """Headers carrying the configured credentials."""
    auth = config.auth
    if isinstance(auth, TokenAuth):
        if auth.header == "Authorization":
            return {"Authorization": f"Bearer {auth.token}"}
        return {"X-Chroma-Token": auth.token}
    if isinstance(auth, BasicAuth):
        credentials = base64.b64encode(f"{auth.username}:{auth.password}".encode()).decode()
        return {"Authorization": f"Basic {credentials}"}
    return {}


class APIClient:
    """Thin JSON-over-HTTP layer around one shared ``httpx.AsyncClient``.

    Each call maps to exactly one request. Non-2xx responses are converted
    into the matching :class:`~chroma_rest.errors.ChromaError` subclass and
    transport failures into :class:`~chroma_rest.errors.ConnectivityError`.
    Nothing is retried here.
    """

    def __init__(self, config: ClientConfig, tenant: str | None = None):
        """Initialize the transport.

        Args:
            config: Validated client configuration
            tenant: Tenant override (e.g. resolved from the identity endpoint)
        """
        self.config = config
        self.tenant = tenant or config.tenant or DEFAULT_TENANT
        self.database = config.database
        self._client = httpx.AsyncClient(
            base_url=f"{config.url}{API_PREFIX}",
            headers=auth_headers(config),
            timeout=config.timeout,
            verify=config.ssl_verify,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def database_path(self, path: str) -> str:
        """Prefix ``path`` with the tenant/database scope."""
        if not path.startswith("/"):
            raise ValueError(f"path must start with '/': {path!r}")
        return f"/tenants/{self.tenant}/databases/{self.database}{path}"

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path relative to the versioned API root
            json: Optional JSON body
            params: Optional query string parameters

        Returns:
            Decoded JSON, or None for an empty body
        """
        logger.debug("%s %s", method, path)
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            raise ConnectivityError(f"{method} {path} failed: {e}") from e

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise ProtocolError(
                    f"{method} {path} returned a non-JSON body", response.status_code
                ) from e

        try:
            body = response.json()
        except ValueError:
            body = None
        raise error_from_response(response.status_code, body, response.text)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def get_database(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.get(self.database_path(path), params=params)

    async def post_database(self, path: str, json: Any = None) -> Any:
        return await self.post(self.database_path(path), json=json)

    async def put_database(self, path: str, json: Any = None) -> Any:
        return await self.put(self.database_path(path), json=json)

    async def delete_database(self, path: str) -> Any:
        """DELETE on a database-scoped path. This does not delete a database."""
        return await self.delete(self.database_path(path))

    async def get_identity(self) -> UserIdentity:
        """Resolve the tenant and databases visible to the configured credentials."""
        data = await self.get("/auth/identity")
        try:
            tenant = data["tenant"]
            identity = UserIdentity(
                user_id=str(data.get("user_id", "")),
                tenant=DEFAULT_TENANT if tenant == "*" else tenant,
                databases=list(data.get("databases") or []),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ProtocolError(f"Unexpected identity response: {data!r}") from e
        return identity

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
