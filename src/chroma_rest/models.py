"""Entry batches and the record/result model.

The server answers get and query calls column-wise: parallel arrays of ids,
embeddings, documents and metadatas. ``GetResult`` and ``QueryResult`` keep
those columns and reassemble them into per-entry records on demand.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from chroma_rest.errors import ProtocolError

Metadata = dict[str, Union[str, int, float, bool, None]]
Embedding = list[float]

INCLUDE_VALUES = ("embeddings", "documents", "metadatas", "distances", "uris")
DEFAULT_GET_INCLUDE = ("documents", "metadatas")
DEFAULT_QUERY_INCLUDE = ("documents", "metadatas", "distances")

_RECORD_FIELDS = {
    "embeddings": "embedding",
    "documents": "document",
    "metadatas": "metadata",
    "uris": "uri",
}


@dataclass
class CollectionEntries:
    """A batch of entries for add, upsert and update.

    All sequences that are given must have the same length as ``ids``.
    Embeddings may be lists, tuples or numpy arrays; they are sent as floats.
    """

    ids: list[str]
    embeddings: Optional[list[Embedding]] = None
    documents: Optional[list[str]] = None
    metadatas: Optional[list[Metadata]] = None
    uris: Optional[list[str]] = None

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True)
class Record:
    """One entry. Fields that were not requested via ``include`` are None."""

    id: str
    embedding: Optional[Embedding] = None
    document: Optional[str] = None
    metadata: Optional[Metadata] = None
    uri: Optional[str] = None


@dataclass(frozen=True)
class QueryRecord(Record):
    """A query match with its distance to the query vector (smaller is closer)."""

    distance: Optional[float] = None


def _column(data: dict[str, Any], key: str, included: Sequence[str]) -> Optional[list[Any]]:
    if key not in included:
        return None
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ProtocolError(f"Expected '{key}' to be a list, got {type(value).__name__}")
    return value


def _check_length(key: str, column: Optional[list[Any]], expected: int) -> None:
    if column is not None and len(column) != expected:
        raise ProtocolError(f"'{key}' has {len(column)} items but there are {expected} ids")


def _included(data: dict[str, Any], requested: Sequence[str]) -> tuple[str, ...]:
    # Servers echo the include list back; trust it over what was asked for.
    echoed = data.get("include")
    if isinstance(echoed, list):
        return tuple(str(item) for item in echoed)
    return tuple(requested)


@dataclass
class GetResult:
    """Column-oriented result of ``Collection.get``."""

    ids: list[str]
    embeddings: Optional[list[Optional[Embedding]]] = None
    documents: Optional[list[Optional[str]]] = None
    metadatas: Optional[list[Optional[Metadata]]] = None
    uris: Optional[list[Optional[str]]] = None
    included: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_response(cls, data: Any, include: Sequence[str]) -> "GetResult":
        """Parse and validate a get response body.

        Raises:
            ProtocolError: If the body is not the expected shape
        """
        if not isinstance(data, dict) or not isinstance(data.get("ids"), list):
            raise ProtocolError(f"Unexpected get response: {data!r}")

        included = _included(data, include)
        ids = [str(i) for i in data["ids"]]
        columns = {key: _column(data, key, included) for key in _RECORD_FIELDS}
        for key, column in columns.items():
            _check_length(key, column, len(ids))

        return cls(ids=ids, included=included, **columns)

    @property
    def records(self) -> list[Record]:
        """Entries as records, in the order the server returned them."""
        records = []
        for index, entry_id in enumerate(self.ids):
            values = {
                attr: getattr(self, key)[index]
                for key, attr in _RECORD_FIELDS.items()
                if getattr(self, key) is not None
            }
            records.append(Record(id=entry_id, **values))
        return records

    def __len__(self) -> int:
        return len(self.ids)


@dataclass
class QueryResult:
    """Column-oriented result of ``Collection.query``; one row per query vector."""

    ids: list[list[str]]
    embeddings: Optional[list[list[Optional[Embedding]]]] = None
    documents: Optional[list[list[Optional[str]]]] = None
    metadatas: Optional[list[list[Optional[Metadata]]]] = None
    uris: Optional[list[list[Optional[str]]]] = None
    distances: Optional[list[list[Optional[float]]]] = None
    included: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_response(cls, data: Any, include: Sequence[str]) -> "QueryResult":
        """Parse and validate a query response body.

        Raises:
            ProtocolError: If the body is not the expected shape
        """
        if not isinstance(data, dict) or not isinstance(data.get("ids"), list):
            raise ProtocolError(f"Unexpected query response: {data!r}")
        if not all(isinstance(row, list) for row in data["ids"]):
            raise ProtocolError("Expected 'ids' to be a list of lists")

        included = _included(data, include)
        ids = [[str(i) for i in row] for row in data["ids"]]
        columns = {
            key: _column(data, key, included) for key in (*_RECORD_FIELDS, "distances")
        }
        for key, column in columns.items():
            if column is None:
                continue
            _check_length(key, column, len(ids))
            for row_ids, row in zip(ids, column):
                if not isinstance(row, list):
                    raise ProtocolError(f"Expected '{key}' rows to be lists")
                _check_length(key, row, len(row_ids))

        return cls(ids=ids, included=included, **columns)

    @property
    def records(self) -> list[list[QueryRecord]]:
        """Matches per query, closest first as ordered by the server."""
        results = []
        for row, row_ids in enumerate(self.ids):
            matches = []
            for index, entry_id in enumerate(row_ids):
                values = {
                    attr: getattr(self, key)[row][index]
                    for key, attr in (*_RECORD_FIELDS.items(), ("distances", "distance"))
                    if getattr(self, key) is not None
                }
                matches.append(QueryRecord(id=entry_id, **values))
            results.append(matches)
        return results

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True)
class CollectionModel:
    """Collection description as returned by the server."""

    id: str
    name: str
    metadata: Optional[Metadata] = None
    configuration: Optional[dict[str, Any]] = None
    tenant: Optional[str] = None
    database: Optional[str] = None

    @classmethod
    def from_response(cls, data: Any) -> "CollectionModel":
        """Parse a collection body.

        Raises:
            ProtocolError: If id or name is missing
        """
        if not isinstance(data, dict) or "id" not in data or "name" not in data:
            raise ProtocolError(f"Unexpected collection response: {data!r}")
        configuration = data.get("configuration_json")
        if configuration is None:
            configuration = data.get("configuration")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            metadata=data.get("metadata"),
            configuration=configuration,
            tenant=data.get("tenant"),
            database=data.get("database"),
        )
