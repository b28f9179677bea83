"""chroma_rest - Async typed client for the Chroma vector database HTTP API.

Key modules:

- :mod:`chroma_rest.client` - Connection settings and collection lifecycle
- :mod:`chroma_rest.collection` - Add, upsert, update, delete, get and query entries
- :mod:`chroma_rest.models` - Entry batches and column-to-record result parsing
- :mod:`chroma_rest.filters` - Builders for metadata and document filters
- :mod:`chroma_rest.embeddings` - Embedding provider interface (OpenAI, Ollama, local models)
- :mod:`chroma_rest.config` - Pydantic configuration and YAML loading
- :mod:`chroma_rest.errors` - Error taxonomy
"""

from chroma_rest.client import ChromaClient
from chroma_rest.collection import Collection
from chroma_rest.config import BasicAuth, ClientConfig, NoAuth, TokenAuth, load_config
from chroma_rest.embeddings import (
    EmbeddingFunction,
    OllamaEmbedding,
    OpenAIEmbedding,
    SentenceTransformerEmbedding,
)
from chroma_rest.errors import (
    AuthFailureError,
    BadRequestError,
    ChromaError,
    ConfigurationError,
    ConflictError,
    ConnectivityError,
    EmbeddingError,
    NotFoundError,
    ProtocolError,
    ServerError,
)
from chroma_rest.models import (
    CollectionEntries,
    GetResult,
    QueryRecord,
    QueryResult,
    Record,
)

__version__ = "0.1.0"

__all__ = [
    "AuthFailureError",
    "BadRequestError",
    "BasicAuth",
    "ChromaClient",
    "ChromaError",
    "ClientConfig",
    "Collection",
    "CollectionEntries",
    "ConfigurationError",
    "ConflictError",
    "ConnectivityError",
    "EmbeddingError",
    "EmbeddingFunction",
    "GetResult",
    "NoAuth",
    "NotFoundError",
    "OllamaEmbedding",
    "OpenAIEmbedding",
    "ProtocolError",
    "QueryRecord",
    "QueryResult",
    "Record",
    "SentenceTransformerEmbedding",
    "ServerError",
    "TokenAuth",
    "load_config",
]
