"""Embedding provider interface."""

import logging
from collections.abc import Sequence
from typing import Protocol

from chroma_rest.errors import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingFunction(Protocol):
    """Protocol for embedding providers.

    Implementations map texts to vectors one-to-one and in order; they must
    not drop, reorder or deduplicate inputs.
    """

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors (one per input text)
        """
        ...


async def compute_embeddings(
    provider: EmbeddingFunction, texts: Sequence[str]
) -> list[list[float]]:
    """Embed a whole batch with a single provider call.

    Raises:
        EmbeddingError: If the provider fails, returns something that is not a
            sequence of numeric vectors, or returns the wrong number of vectors
    """
    texts = list(texts)
    name = type(provider).__name__
    logger.debug("Embedding %d texts with %s", len(texts), name)
    try:
        raw = await provider.embed(texts)
    except EmbeddingError:
        raise
    except Exception as e:
        raise EmbeddingError(f"Embedding provider {name} failed: {e}") from e

    try:
        embeddings = [[float(x) for x in vector] for vector in raw]
    except (TypeError, ValueError) as e:
        raise EmbeddingError(f"Embedding provider {name} returned malformed vectors: {e}") from e
    if len(embeddings) != len(texts):
        raise EmbeddingError(
            f"Embedding provider returned {len(embeddings)} vectors for {len(texts)} texts"
        )
    return embeddings
