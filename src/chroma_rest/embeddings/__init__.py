"""Embedding providers used to fill in missing vectors."""

from chroma_rest.embeddings.base import EmbeddingFunction, compute_embeddings
from chroma_rest.embeddings.ollama import OllamaEmbedding
from chroma_rest.embeddings.openai import OpenAIEmbedding
from chroma_rest.embeddings.sentence_transformer import SentenceTransformerEmbedding

__all__ = [
    "EmbeddingFunction",
    "OllamaEmbedding",
    "OpenAIEmbedding",
    "SentenceTransformerEmbedding",
    "compute_embeddings",
]
