"""Local embeddings from a sentence-transformers model."""

import asyncio
import functools
import logging
from typing import Any

import numpy as np  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


class SentenceTransformerEmbedding:
    """Embed entry batches with a locally loaded sentence-transformers model.

    The model is loaded on the first ``embed`` call. ``encode`` runs in the
    default executor so the event loop keeps serving other requests while
    a large batch is being embedded.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        device: str | None = None,
        cache_dir: str | None = None,
        batch_size: int = 32,
        normalize_embeddings: bool = False,
    ):
        """Configure the provider without loading the model.

        Args:
            model_name: HuggingFace model identifier
            device: "cuda", "mps", "cpu", or None to let the library decide
            cache_dir: Where model weights are stored (None uses the library default)
            batch_size: Texts per forward pass inside one ``embed`` call
            normalize_embeddings: Scale vectors to unit length, which makes L2
                distance rank like cosine distance
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._model_name = model_name
        self._device = device
        self._cache_dir = cache_dir
        self._batch_size = batch_size
        self._normalize = normalize_embeddings
        self._model: Any = None

    def _get_model(self) -> Any:
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer  # type: ignore
            except ImportError as e:
                raise ImportError(
                    "SentenceTransformerEmbedding needs the 'local' extra: "
                    "pip install 'chroma-rest[local]'"
                ) from e
            logger.info("Loading sentence-transformers model %s", self._model_name)
            self._model = SentenceTransformer(
                self._model_name, device=self._device, cache_folder=self._cache_dir
            )
        return self._model

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts, one vector per text in input order."""
        if not texts:
            return []

        model = self._get_model()
        encode = functools.partial(
            model.encode,
            texts,
            batch_size=self._batch_size,
            normalize_embeddings=self._normalize,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        vectors = await asyncio.get_running_loop().run_in_executor(None, encode)
        return np.asarray(vectors, dtype=np.float64).tolist()

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    @property
    def dimension(self) -> int:
        """Vector size reported by the model (loads the model if needed)."""
        return int(self._get_model().get_sentence_embedding_dimension())

    @property
    def model_name(self) -> str:
        return self._model_name
