"""OpenAI embeddings via the official SDK."""

from openai import AsyncOpenAI

DEFAULT_MODEL = "text-embedding-3-small"

_KNOWN_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedding:
    """Remote embeddings from the OpenAI (or any OpenAI-compatible) API.

    The whole batch is sent in one ``embeddings.create`` call and the result
    is reordered by the ``index`` the API returns for each item.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 60,
        dimensions: int | None = None,
        max_retries: int = 2,
    ) -> None:
        """Initialise the client.

        Args:
            model: Embedding model name.
            api_key: API key; the SDK falls back to ``OPENAI_API_KEY``.
            base_url: Alternative OpenAI-compatible endpoint (must include ``/v1``).
            timeout: Request timeout in seconds.
            dimensions: Requested output size (text-embedding-3 models only).
            max_retries: Retries the SDK performs on rate limits and 5xx.
        """
        self._model = model
        self._dimensions = dimensions
        self.client = AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=max_retries
        )

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts with one API call."""
        if not texts:
            return []

        params: dict = {"model": self._model, "input": texts, "encoding_format": "float"}
        if self._dimensions:
            params["dimensions"] = self._dimensions

        response = await self.client.embeddings.create(**params)
        data = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in data]

    async def embed_single(self, text: str) -> list[float]:
        embeddings = await self.embed([text])
        return embeddings[0]

    @property
    def dimension(self) -> int:
        """Output dimension for the configured model."""
        if self._dimensions:
            return self._dimensions
        if self._model in _KNOWN_DIMENSIONS:
            return _KNOWN_DIMENSIONS[self._model]
        msg = f"Unknown dimension for model {self._model}"
        raise ValueError(msg)

    @property
    def model_name(self) -> str:
        return self._model
