"""Operations on a single collection."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, Optional

from chroma_rest.api import APIClient
from chroma_rest.embeddings.base import EmbeddingFunction, compute_embeddings
from chroma_rest.errors import ConfigurationError, ProtocolError
from chroma_rest.filters import FilterLike, to_wire
from chroma_rest.models import (
    DEFAULT_GET_INCLUDE,
    DEFAULT_QUERY_INCLUDE,
    INCLUDE_VALUES,
    CollectionEntries,
    CollectionModel,
    Embedding,
    GetResult,
    Metadata,
    QueryResult,
)

logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool)


def validate_metadata(metadata: Any, what: str = "metadata") -> None:
    """Check that ``metadata`` maps string keys to scalar values.

    Raises:
        ConfigurationError: On any other shape
    """
    if not isinstance(metadata, Mapping):
        raise ConfigurationError(f"{what} must be a mapping, got {type(metadata).__name__}")
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise ConfigurationError(f"{what} keys must be strings, got {key!r}")
        if value is not None and not isinstance(value, _SCALARS):
            raise ConfigurationError(
                f"{what}[{key!r}] must be a str, int, float or bool, got {type(value).__name__}"
            )


def _validate_include(
    include: Optional[Sequence[str]],
    default: Sequence[str],
    allowed: Sequence[str],
) -> list[str]:
    if include is None:
        return list(default)
    if isinstance(include, str):
        raise ConfigurationError("include must be a list of strings, not a string")
    unknown = [item for item in include if item not in allowed]
    if unknown:
        raise ConfigurationError(
            f"Unknown include values {unknown}; expected any of {list(allowed)}"
        )
    return list(include)


def _find_duplicates(ids: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for entry_id in ids:
        if entry_id in seen and entry_id not in duplicates:
            duplicates.append(entry_id)
        seen.add(entry_id)
    return duplicates


def _as_list(value: Sequence[Any], what: str) -> list[Any]:
    """Copy a sequence argument into a list, refusing a bare string.

    Raises:
        ConfigurationError: If ``value`` is a ``str``
    """
    if isinstance(value, str):
        raise ConfigurationError(f"{what} must be a list of strings, not a string")
    return list(value)


def _as_vectors(vectors: Sequence[Any], what: str) -> list[Embedding]:
    """Coerce vectors (lists, tuples, numpy arrays) to lists of Python floats.

    Raises:
        ConfigurationError: If a vector is not a sequence of numbers
    """
    try:
        return [[float(x) for x in vector] for vector in vectors]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{what} must be sequences of numbers: {e}") from e


def _has_filter(value: Optional[FilterLike]) -> bool:
    # An empty mapping would match everything on the server.
    wire = to_wire(value)
    return bool(wire)


class Collection:
    """Handle for one server-side collection.

    A handle only holds the collection's identifying data and a reference
    to the client's shared transport. It caches no server state: every
    method is a fresh round trip, so handles can be shared between tasks
    and discarded at any time.

    Example:
        collection = await client.get_or_create_collection("docs")
        await collection.upsert(
            CollectionEntries(ids=["a", "b"], documents=["cat food", "dog food"]),
            embedding_function=OllamaEmbedding(),
        )
        result = await collection.query(query_texts=["cat"], n_results=1,
                                        embedding_function=OllamaEmbedding())
    """

    def __init__(
        self,
        api: APIClient,
        model: CollectionModel,
        embedding_function: Optional[EmbeddingFunction] = None,
    ):
        """Initialize a collection handle.

        Args:
            api: Shared transport of the owning client
            model: Collection description returned by the server
            embedding_function: Default provider for filling in missing vectors
        """
        self._api = api
        self._model = model
        self.embedding_function = embedding_function

    @property
    def id(self) -> str:
        return self._model.id

    @property
    def name(self) -> str:
        return self._model.name

    @property
    def metadata(self) -> Optional[Metadata]:
        return self._model.metadata

    @property
    def configuration(self) -> Optional[dict[str, Any]]:
        return self._model.configuration

    @property
    def tenant(self) -> str:
        return self._model.tenant or self._api.tenant

    @property
    def database(self) -> str:
        return self._model.database or self._api.database

    def __repr__(self) -> str:
        return f"Collection(id={self.id!r}, name={self.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Collection):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def _path(self, suffix: str = "") -> str:
        return f"/collections/{self.id}{suffix}"

    async def count(self) -> int:
        """Exact number of entries in the collection."""
        count = await self._api.get_database(self._path("/count"))
        if not isinstance(count, int) or isinstance(count, bool):
            raise ProtocolError(f"Expected an integer count, got {count!r}")
        return count

    async def modify(
        self,
        name: Optional[str] = None,
        metadata: Optional[Metadata] = None,
    ) -> "Collection":
        """Rename the collection and/or replace its metadata.

        Metadata is replaced as a whole, not merged; read, modify and write
        it back to merge.

        Args:
            name: New collection name (must be unique within the database)
            metadata: New metadata mapping

        Returns:
            A new handle carrying the updated name and metadata
        """
        if name is None and metadata is None:
            raise ConfigurationError("modify() needs a new name, new metadata, or both")
        if name is not None and not name:
            raise ConfigurationError("Collection name must not be empty")
        if metadata is not None:
            validate_metadata(metadata, "collection metadata")

        body: dict[str, Any] = {}
        if name is not None:
            body["new_name"] = name
        if metadata is not None:
            body["new_metadata"] = dict(metadata)
        await self._api.put_database(self._path(), json=body)

        model = replace(
            self._model,
            name=name if name is not None else self._model.name,
            metadata=dict(metadata) if metadata is not None else self._model.metadata,
        )
        return Collection(self._api, model, self.embedding_function)

    async def _prepare_entries(
        self,
        entries: CollectionEntries,
        require_content: bool,
        embedding_function: Optional[EmbeddingFunction],
    ) -> dict[str, Any]:
        """Validate a batch and fill in missing embeddings.

        Raises:
            ConfigurationError: If the batch is malformed (nothing is sent)
            EmbeddingError: If the provider fails
        """
        ids = _as_list(entries.ids, "ids")
        for entry_id in ids:
            if not isinstance(entry_id, str) or not entry_id:
                raise ConfigurationError(f"IDs must be non-empty strings, got {entry_id!r}")

        duplicates = _find_duplicates(ids)
        if duplicates:
            raise ConfigurationError(
                f"Expected IDs to be unique, found duplicates for: {duplicates}"
            )

        if require_content and entries.embeddings is None and entries.documents is None:
            raise ConfigurationError("Embeddings and documents cannot both be None")

        documents = entries.documents
        uris = entries.uris
        columns: dict[str, Optional[list[Any]]] = {
            "embeddings": None if entries.embeddings is None else list(entries.embeddings),
            "documents": None if documents is None else _as_list(documents, "documents"),
            "metadatas": None if entries.metadatas is None else list(entries.metadatas),
            "uris": None if uris is None else _as_list(uris, "uris"),
        }
        for key, column in columns.items():
            if column is not None and len(column) != len(ids):
                raise ConfigurationError(
                    f"IDs, embeddings, metadatas, documents and uris must all be the same length "
                    f"({key} has {len(column)}, ids has {len(ids)})"
                )
        for metadata in columns["metadatas"] or []:
            if metadata is not None:
                validate_metadata(metadata, "entry metadata")

        embeddings = columns["embeddings"]
        if embeddings is not None:
            embeddings = _as_vectors(embeddings, "embeddings")
        elif columns["documents"] is not None:
            provider = embedding_function or self.embedding_function
            if provider is None:
                raise ConfigurationError(
                    "An embedding function is required when documents are given without embeddings"
                )
            embeddings = await compute_embeddings(provider, columns["documents"])

        columns["embeddings"] = embeddings
        body: dict[str, Any] = {"ids": ids}
        body.update({key: column for key, column in columns.items() if column is not None})
        return body

    async def add(
        self,
        entries: CollectionEntries,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> None:
        """Insert new entries.

        Args:
            entries: Batch to insert; embeddings are computed from documents when absent
            embedding_function: Provider overriding the handle's default

        Raises:
            ConflictError: If any id already exists in the collection
        """
        if not entries.ids:
            return
        body = await self._prepare_entries(entries, True, embedding_function)
        await self._api.post_database(self._path("/add"), json=body)

    async def upsert(
        self,
        entries: CollectionEntries,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> None:
        """Insert entries, replacing any with the same id.

        Args:
            entries: Batch to write; embeddings are computed from documents when absent
            embedding_function: Provider overriding the handle's default
        """
        if not entries.ids:
            return
        body = await self._prepare_entries(entries, True, embedding_function)
        await self._api.post_database(self._path("/upsert"), json=body)

    async def update(
        self,
        entries: CollectionEntries,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> None:
        """Modify existing entries.

        Only the columns given in ``entries`` are changed. The batch is
        all-or-nothing: if any id is unknown the server rejects the whole
        request with NotFound.

        Args:
            entries: Batch of changes keyed by id
            embedding_function: Provider overriding the handle's default
        """
        if not entries.ids:
            return
        body = await self._prepare_entries(entries, False, embedding_function)
        await self._api.post_database(self._path("/update"), json=body)

    async def delete(
        self,
        ids: Optional[Sequence[str]] = None,
        where_metadata: Optional[FilterLike] = None,
        where_document: Optional[FilterLike] = None,
    ) -> None:
        """Delete entries matching the given ids and/or filters.

        Criteria are combined with AND, not OR: when ids and a filter are
        both given, only the listed entries that also match the filter are
        deleted. Call ``delete`` once per criterion to remove the union.

        Calling this with no ids and no filters deletes nothing; it is never
        read as "delete everything". To empty a collection, delete and
        recreate it.

        Args:
            ids: Entry ids to delete
            where_metadata: Metadata filter, e.g. ``{"source": "web"}``
            where_document: Document filter, e.g. ``{"$contains": "draft"}``
        """
        ids = None if ids is None else _as_list(ids, "ids")
        has_metadata_filter = _has_filter(where_metadata)
        has_document_filter = _has_filter(where_document)
        if not ids and not has_metadata_filter and not has_document_filter:
            logger.info("delete() on %s called without ids or filters; nothing deleted", self.name)
            return

        body: dict[str, Any] = {}
        if ids:
            body["ids"] = ids
        if has_metadata_filter:
            body["where"] = to_wire(where_metadata)
        if has_document_filter:
            body["where_document"] = to_wire(where_document)
        await self._api.post_database(self._path("/delete"), json=body)

    async def get(
        self,
        ids: Optional[Sequence[str]] = None,
        where_metadata: Optional[FilterLike] = None,
        where_document: Optional[FilterLike] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        include: Optional[Sequence[str]] = None,
    ) -> GetResult:
        """Fetch entries by id and/or filter.

        With no ids and no filters this returns every entry in the
        collection, paged by ``limit`` and ``offset``.
        Ids and filters that are given are combined with AND.

        Args:
            ids: Entry ids to fetch
            where_metadata: Metadata filter, e.g. ``{"$and": [{"foo": "bar"}, {"n": {"$gte": 4}}]}``
            where_document: Document filter, e.g. ``{"$contains": "hello"}``
            limit: Maximum number of entries to return
            offset: Number of entries to skip (for paging with ``limit``)
            include: Any of "embeddings", "documents", "metadatas", "uris".
                Ids are always included. Defaults to documents and metadatas.

        Returns:
            GetResult; columns that were not included are None
        """
        if limit is not None and limit < 0:
            raise ConfigurationError("limit must be >= 0")
        if offset is not None and offset < 0:
            raise ConfigurationError("offset must be >= 0")
        allowed = [value for value in INCLUDE_VALUES if value != "distances"]
        include_list = _validate_include(include, DEFAULT_GET_INCLUDE, allowed)

        id_list = _as_list(ids, "ids") if ids is not None else []
        body: dict[str, Any] = {
            "ids": id_list or None,
            "where": to_wire(where_metadata) or None,
            "where_document": to_wire(where_document) or None,
            "limit": limit,
            "offset": offset,
            "include": include_list,
        }
        body = {key: value for key, value in body.items() if value is not None}

        data = await self._api.post_database(self._path("/get"), json=body)
        return GetResult.from_response(data, include_list)

    async def peek(self, limit: int = 10) -> GetResult:
        """First ``limit`` entries of the collection."""
        return await self.get(limit=limit)

    async def query(
        self,
        query_embeddings: Optional[Sequence[Embedding]] = None,
        query_texts: Optional[Sequence[str]] = None,
        n_results: int = 10,
        where_metadata: Optional[FilterLike] = None,
        where_document: Optional[FilterLike] = None,
        include: Optional[Sequence[str]] = None,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> QueryResult:
        """Find the ``n_results`` nearest entries for each query.

        Exactly one of ``query_embeddings`` and ``query_texts`` must be
        given. Texts are embedded first, in one provider call.

        Args:
            query_embeddings: Query vectors
            query_texts: Query texts to embed
            n_results: Maximum matches per query
            where_metadata: Metadata filter
            where_document: Document filter
            include: Any of "embeddings", "documents", "metadatas",
                "distances", "uris". Defaults to documents, metadatas and distances.
            embedding_function: Provider overriding the handle's default

        Returns:
            QueryResult with one row per query, closest match first
        """
        if query_embeddings is not None and query_texts is not None:
            raise ConfigurationError("Provide query_embeddings or query_texts, not both")
        if query_embeddings is None and query_texts is None:
            raise ConfigurationError("Provide either query_embeddings or query_texts")
        if isinstance(query_texts, str):
            raise ConfigurationError("query_texts must be a list of strings, not a string")
        if n_results < 1:
            raise ConfigurationError("n_results must be >= 1")
        include_list = _validate_include(include, DEFAULT_QUERY_INCLUDE, INCLUDE_VALUES)

        if query_texts is not None:
            if not query_texts:
                raise ConfigurationError("query_texts must not be empty")
            provider = embedding_function or self.embedding_function
            if provider is None:
                raise ConfigurationError("An embedding function is required to query by text")
            embeddings = await compute_embeddings(provider, query_texts)
        else:
            embeddings = _as_vectors(query_embeddings, "query_embeddings")
            if not embeddings:
                raise ConfigurationError("query_embeddings must not be empty")

        body: dict[str, Any] = {
            "query_embeddings": embeddings,
            "n_results": n_results,
            "where": to_wire(where_metadata) or None,
            "where_document": to_wire(where_document) or None,
            "include": include_list,
        }
        body = {key: value for key, value in body.items() if value is not None}

        data = await self._api.post_database(self._path("/query"), json=body)
        return QueryResult.from_response(data, include_list)
