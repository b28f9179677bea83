"""Top-level client: connection settings and collection lifecycle."""

import logging
from typing import Any, Optional
from urllib.parse import quote

from chroma_rest.api import APIClient, UserIdentity
from chroma_rest.collection import Collection, validate_metadata
from chroma_rest.config.loader import build_config
from chroma_rest.config.schema import ClientConfig
from chroma_rest.embeddings.base import EmbeddingFunction
from chroma_rest.errors import ConfigurationError, ProtocolError
from chroma_rest.models import CollectionModel, Metadata

logger = logging.getLogger(__name__)


def _collection_path(name: str) -> str:
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"Collection name must be a non-empty string, got {name!r}")
    return f"/collections/{quote(name, safe='')}"


class ChromaClient:
    """Client for a Chroma server's HTTP API.

    Holds the immutable connection configuration and one shared HTTP
    transport. Construction does not contact the server; use
    :meth:`connect` to resolve the tenant from the credentials and
    optionally check the server version first.

    Example:
        async with ChromaClient(url="http://localhost:8000") as client:
            collection = await client.get_or_create_collection("docs")
            print(await collection.count())
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        tenant: Optional[str] = None,
        **overrides: Any,
    ):
        """Initialize the client.

        Args:
            config: Validated configuration (defaults are used when None)
            tenant: Tenant override, e.g. from an identity lookup
            **overrides: ClientConfig fields to set or replace

        Raises:
            ConfigurationError: If the resulting configuration is invalid
        """
        if config is None:
            config = build_config(**overrides)
        elif overrides:
            config = build_config(**{**config.model_dump(), **overrides})
        self._config = config
        self._api = APIClient(config, tenant=tenant)
        logger.debug(
            "Client for %s (tenant=%s, database=%s)", config.url, self._api.tenant, config.database
        )

    @classmethod
    async def connect(
        cls, config: Optional[ClientConfig] = None, **overrides: Any
    ) -> "ChromaClient":
        """Build a client and run the optional pre-flight calls.

        When ``config.tenant`` is None the tenant is resolved from the
        identity endpoint. When ``config.check_version`` is set the server
        version is fetched, failing early if the server is unreachable.
        """
        client = cls(config, **overrides)
        try:
            if client.config.tenant is None:
                identity = await client.get_user_identity()
                client._api.tenant = identity.tenant
            if client.config.check_version:
                version = await client.version()
                logger.debug("Connected to server version %s", version)
        except BaseException:
            await client.aclose()
            raise
        return client

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def tenant(self) -> str:
        return self._api.tenant

    @property
    def database(self) -> str:
        return self._api.database

    async def heartbeat(self) -> int:
        """Server time in nanoseconds since the epoch; proves the server is alive."""
        data = await self._api.get("/heartbeat")
        try:
            return int(data["nanosecond heartbeat"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProtocolError(f"Unexpected heartbeat response: {data!r}") from e

    async def version(self) -> str:
        """Server version string."""
        data = await self._api.get("/version")
        if not isinstance(data, str):
            raise ProtocolError(f"Unexpected version response: {data!r}")
        return data

    async def get_user_identity(self) -> UserIdentity:
        """Identity (user, tenant, databases) of the configured credentials."""
        return await self._api.get_identity()

    def _handle(
        self, data: Any, embedding_function: Optional[EmbeddingFunction] = None
    ) -> Collection:
        return Collection(self._api, CollectionModel.from_response(data), embedding_function)

    async def list_collections(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> list[Collection]:
        """List collections in the configured database."""
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        data = await self._api.get_database("/collections", params=params or None)
        if not isinstance(data, list):
            raise ProtocolError(f"Expected a list of collections, got {data!r}")
        return [self._handle(item) for item in data]

    async def count_collections(self) -> int:
        """Number of collections in the configured database."""
        count = await self._api.get_database("/collections_count")
        if not isinstance(count, int) or isinstance(count, bool):
            raise ProtocolError(f"Expected an integer count, got {count!r}")
        return count

    async def create_collection(
        self,
        name: str,
        metadata: Optional[Metadata] = None,
        get_or_create: bool = False,
        configuration: Optional[dict[str, Any]] = None,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> Collection:
        """Create a collection.

        Args:
            name: Collection name, unique within the database
            metadata: Optional metadata (string keys, scalar values)
            get_or_create: Return the existing collection instead of failing
            configuration: Optional server-side collection configuration
            embedding_function: Default provider for the returned handle (client-side only)

        Raises:
            ConflictError: If the name is taken and ``get_or_create`` is False
        """
        _collection_path(name)
        if metadata is not None:
            validate_metadata(metadata, "collection metadata")

        body: dict[str, Any] = {"name": name, "get_or_create": get_or_create}
        if metadata is not None:
            body["metadata"] = dict(metadata)
        if configuration is not None:
            body["configuration"] = configuration

        data = await self._api.post_database("/collections", json=body)
        return self._handle(data, embedding_function)

    async def get_or_create_collection(
        self,
        name: str,
        metadata: Optional[Metadata] = None,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> Collection:
        """Get a collection, creating it if needed.

        This is a single create request with ``get_or_create`` set, so the
        server decides atomically; concurrent callers end up with the same
        collection.
        """
        return await self.create_collection(
            name, metadata, get_or_create=True, embedding_function=embedding_function
        )

    async def get_collection(
        self, name: str, embedding_function: Optional[EmbeddingFunction] = None
    ) -> Collection:
        """Look up a collection by name.

        Raises:
            NotFoundError: If no collection has this name
        """
        data = await self._api.get_database(_collection_path(name))
        return self._handle(data, embedding_function)

    async def delete_collection(self, name: str) -> None:
        """Delete a collection and all of its entries.

        Raises:
            NotFoundError: If no collection has this name
        """
        await self._api.delete_database(_collection_path(name))

    async def reset(self) -> bool:
        """Drop every collection on the server.

        Requires ``allow_reset=True`` in the client configuration (the server
        has its own switch for this as well).

        Raises:
            ConfigurationError: If reset is not enabled in the configuration
        """
        if not self._config.allow_reset:
            raise ConfigurationError("reset() is disabled; set allow_reset=True to enable it")
        logger.warning("Resetting server %s: all collections will be dropped", self._config.url)
        result = await self._api.post("/reset")
        return bool(result) if result is not None else True

    async def aclose(self) -> None:
        """Close the shared HTTP transport."""
        await self._api.close()

    async def __aenter__(self) -> "ChromaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
