"""Pytest configuration and shared fixtures."""

import json
import uuid

import httpx
import pytest
import respx

from chroma_rest.client import ChromaClient
from chroma_rest.config.schema import ClientConfig

SERVER_URL = "http://chroma.test:8000"
API_URL = f"{SERVER_URL}/api/v2"
DB_PATH = "/api/v2/tenants/default_tenant/databases/default_database"
DB_URL = f"{SERVER_URL}{DB_PATH}"


class LengthEmbedding:
    """Deterministic 3-d embedding: text length, count of 'a', count of 'd'."""

    def __init__(self):
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [[float(len(t)), float(t.count("a")), float(t.count("d"))] for t in texts]


def _error(status: int, name: str, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": name, "message": message})


def _matches_value(value, condition) -> bool:
    if not isinstance(condition, dict):
        return value == condition
    for op, operand in condition.items():
        if op == "$eq" and not value == operand:
            return False
        if op == "$ne" and not value != operand:
            return False
        if op == "$gt" and not (value is not None and value > operand):
            return False
        if op == "$gte" and not (value is not None and value >= operand):
            return False
        if op == "$lt" and not (value is not None and value < operand):
            return False
        if op == "$lte" and not (value is not None and value <= operand):
            return False
        if op == "$in" and value not in operand:
            return False
        if op == "$nin" and value in operand:
            return False
    return True


def _matches_where(metadata, where) -> bool:
    metadata = metadata or {}
    for key, condition in where.items():
        if key == "$and":
            if not all(_matches_where(metadata, clause) for clause in condition):
                return False
        elif key == "$or":
            if not any(_matches_where(metadata, clause) for clause in condition):
                return False
        elif not _matches_value(metadata.get(key), condition):
            return False
    return True


def _matches_document(document, where_document) -> bool:
    document = document or ""
    for op, operand in where_document.items():
        if op == "$contains" and operand not in document:
            return False
        if op == "$not_contains" and operand in document:
            return False
        if op == "$and" and not all(_matches_document(document, c) for c in operand):
            return False
        if op == "$or" and not any(_matches_document(document, c) for c in operand):
            return False
    return True


class FakeChromaServer:
    """In-memory stand-in for the Chroma v2 HTTP API."""

    def __init__(self):
        self.collections: dict[str, dict] = {}
        self.requests: list[tuple[str, str, dict | None]] = []

    def _by_id(self, collection_id: str) -> dict | None:
        for collection in self.collections.values():
            if collection["id"] == collection_id:
                return collection
        return None

    @staticmethod
    def _describe(collection: dict) -> dict:
        return {
            "id": collection["id"],
            "name": collection["name"],
            "metadata": collection["metadata"],
            "configuration_json": {},
            "tenant": "default_tenant",
            "database": "default_database",
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if path == "/api/v2/heartbeat":
            return httpx.Response(200, json={"nanosecond heartbeat": 1_700_000_000_000_000_000})
        if path == "/api/v2/version":
            return httpx.Response(200, json="1.0.0")
        if not path.startswith(DB_PATH):
            return _error(404, "NotFoundError", f"No route for {path}")

        parts = path[len(DB_PATH):].strip("/").split("/")
        if parts == ["collections_count"]:
            return httpx.Response(200, json=len(self.collections))
        if parts == ["collections"] and request.method == "GET":
            return httpx.Response(200, json=[self._describe(c) for c in self.collections.values()])
        if parts == ["collections"] and request.method == "POST":
            return self._create(body)
        if len(parts) == 2 and request.method == "GET":
            collection = self.collections.get(parts[1])
            if collection is None:
                return _error(404, "NotFoundError", f"Collection {parts[1]} does not exist")
            return httpx.Response(200, json=self._describe(collection))
        if len(parts) == 2 and request.method == "DELETE":
            if self.collections.pop(parts[1], None) is None:
                return _error(404, "NotFoundError", f"Collection {parts[1]} does not exist")
            return httpx.Response(200, json={})

        collection = self._by_id(parts[1])
        if collection is None:
            return _error(404, "NotFoundError", f"Collection {parts[1]} does not exist")
        if len(parts) == 2 and request.method == "PUT":
            return self._modify(collection, body)

        action = parts[2]
        if action == "count":
            return httpx.Response(200, json=len(collection["entries"]))
        handler = getattr(self, f"_{action}")
        return handler(collection, body)

    def _create(self, body: dict) -> httpx.Response:
        name = body["name"]
        if name in self.collections:
            if body.get("get_or_create"):
                return httpx.Response(200, json=self._describe(self.collections[name]))
            return _error(409, "UniqueConstraintError", f"Collection {name} already exists")
        collection = {
            "id": str(uuid.uuid4()),
            "name": name,
            "metadata": body.get("metadata"),
            "entries": {},
        }
        self.collections[name] = collection
        return httpx.Response(200, json=self._describe(collection))

    def _modify(self, collection: dict, body: dict) -> httpx.Response:
        if "new_metadata" in body:
            collection["metadata"] = body["new_metadata"]
        if "new_name" in body:
            self.collections.pop(collection["name"])
            collection["name"] = body["new_name"]
            self.collections[collection["name"]] = collection
        return httpx.Response(200, json={})

    @staticmethod
    def _rows(body: dict) -> list[tuple[str, dict]]:
        rows = []
        for index, entry_id in enumerate(body["ids"]):
            row = {}
            for column, field in (
                ("embeddings", "embedding"),
                ("documents", "document"),
                ("metadatas", "metadata"),
                ("uris", "uri"),
            ):
                if column in body:
                    row[field] = body[column][index]
            rows.append((entry_id, row))
        return rows

    def _add(self, collection: dict, body: dict) -> httpx.Response:
        existing = [i for i in body["ids"] if i in collection["entries"]]
        if existing:
            return _error(409, "DuplicateIDError", f"IDs already exist: {existing}")
        for entry_id, row in self._rows(body):
            collection["entries"][entry_id] = row
        return httpx.Response(201, json={})

    def _upsert(self, collection: dict, body: dict) -> httpx.Response:
        for entry_id, row in self._rows(body):
            collection["entries"][entry_id] = row
        return httpx.Response(200, json={})

    def _update(self, collection: dict, body: dict) -> httpx.Response:
        missing = [i for i in body["ids"] if i not in collection["entries"]]
        if missing:
            return _error(404, "NotFoundError", f"IDs not found: {missing}")
        for entry_id, row in self._rows(body):
            collection["entries"][entry_id].update(row)
        return httpx.Response(200, json={})

    def _select(self, collection: dict, body: dict) -> list[tuple[str, dict]]:
        entries = collection["entries"]
        ids = body.get("ids")
        selected = [(i, entries[i]) for i in entries if ids is None or i in ids]
        if body.get("where"):
            selected = [
                (i, e) for i, e in selected if _matches_where(e.get("metadata"), body["where"])
            ]
        if body.get("where_document"):
            selected = [
                (i, e)
                for i, e in selected
                if _matches_document(e.get("document"), body["where_document"])
            ]
        return selected

    def _get(self, collection: dict, body: dict) -> httpx.Response:
        selected = self._select(collection, body)
        offset = body.get("offset") or 0
        limit = body.get("limit")
        selected = selected[offset:] if limit is None else selected[offset : offset + limit]
        include = body.get("include", ["documents", "metadatas"])
        result = {"ids": [i for i, _ in selected], "include": include}
        for column, field in (
            ("embeddings", "embedding"),
            ("documents", "document"),
            ("metadatas", "metadata"),
            ("uris", "uri"),
        ):
            result[column] = [e.get(field) for _, e in selected] if column in include else None
        return httpx.Response(200, json=result)

    def _query(self, collection: dict, body: dict) -> httpx.Response:
        candidates = self._select(collection, body)
        include = body.get("include", ["documents", "metadatas", "distances"])
        result: dict = {"ids": [], "include": include}
        columns = {"embeddings": [], "documents": [], "metadatas": [], "uris": [], "distances": []}
        for query in body["query_embeddings"]:
            scored = sorted(
                (
                    (sum((a - b) ** 2 for a, b in zip(query, e["embedding"])), i, e)
                    for i, e in candidates
                ),
                key=lambda item: item[0],
            )[: body["n_results"]]
            result["ids"].append([i for _, i, _ in scored])
            columns["embeddings"].append([e.get("embedding") for _, _, e in scored])
            columns["documents"].append([e.get("document") for _, _, e in scored])
            columns["metadatas"].append([e.get("metadata") for _, _, e in scored])
            columns["uris"].append([e.get("uri") for _, _, e in scored])
            columns["distances"].append([d for d, _, _ in scored])
        for column, values in columns.items():
            result[column] = values if column in include else None
        return httpx.Response(200, json=result)

    def _delete(self, collection: dict, body: dict) -> httpx.Response:
        for entry_id, _ in self._select(collection, body):
            del collection["entries"][entry_id]
        return httpx.Response(200, json={})


@pytest.fixture
def config() -> ClientConfig:
    """Provide a configuration pointing at the mocked server."""
    return ClientConfig(url=SERVER_URL)


@pytest.fixture
def client(config) -> ChromaClient:
    """Provide a client bound to the mocked server."""
    return ChromaClient(config)


@pytest.fixture
def fake_server() -> FakeChromaServer:
    return FakeChromaServer()


@pytest.fixture
def mock_server(fake_server):
    """Route every request for the test server into the fake server."""
    with respx.mock(base_url=SERVER_URL, assert_all_called=False) as router:
        router.route().mock(side_effect=fake_server.handle)
        yield fake_server


@pytest.fixture
def embedder() -> LengthEmbedding:
    return LengthEmbedding()
