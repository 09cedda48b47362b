"""Chapter ingestion: loading and chunking."""

from textbook_rag.ingestion.chunker import ChapterChunker, chunk_document, count_words
from textbook_rag.ingestion.loader import ChapterLoader

__all__ = ["ChapterChunker", "ChapterLoader", "chunk_document", "count_words"]
