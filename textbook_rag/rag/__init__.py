"""Embedding and preparation of chapter chunks."""

from textbook_rag.rag.embeddings import EmbeddingFunction, OpenRouterEmbedder
from textbook_rag.rag.preparer import RAGPreparer, prepare_chapter_context

__all__ = [
    "EmbeddingFunction",
    "OpenRouterEmbedder",
    "RAGPreparer",
    "prepare_chapter_context",
]
