"""Ollama embedding client (local, via Ollama API)."""

import httpx


class OllamaEmbedding:
    """Embedding generation using Ollama's embedding models.

    Uses the batched ``/api/embed`` endpoint, so a whole entry batch costs
    a single HTTP round trip.
    """

    def __init__(
        self,
        model: str = "nomic-embed-text",
        host: str = "http://localhost:11434",
        timeout: int = 30,
    ):
        """Initialize Ollama embedding client.

        Args:
            model: Ollama model name (e.g., "nomic-embed-text")
            host: Ollama server URL
            timeout: Request timeout in seconds
        """
        self._model = model
        self._host = host.rstrip("/")
        self._timeout = timeout
        self._dimension: int | None = None

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors
        """
        if not texts:
            return []

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                f"{self._host}/api/embed",
                json={"model": self._model, "input": texts},
            )
            response.raise_for_status()
            embeddings: list[list[float]] = response.json()["embeddings"]

        if embeddings and self._dimension is None:
            self._dimension = len(embeddings[0])

        return embeddings

    async def embed_single(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        embeddings = await self.embed([text])
        return embeddings[0]

    @property
    def dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            # nomic-embed-text is 768-d; anything else is unknown until the first call
            if "nomic-embed-text" in self._model:
                return 768
            msg = "Dimension unknown until first embedding is generated"
            raise ValueError(msg)
        return self._dimension

    @property
    def model_name(self) -> str:
        """Get the name of the embedding model."""
        return self._model
