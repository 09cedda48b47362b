"""Data models for the textbook RAG preparation toolkit."""

from textbook_rag.models.chapter import Chapter
from textbook_rag.models.chunk import Chunk
from textbook_rag.models.prepared import (
    ChunkMetadata,
    PreparationSummary,
    PreparedChapter,
    PreparedChunk,
)
from textbook_rag.models.reports import (
    BatchResult,
    BatchSummary,
    ChapterOutcome,
    ChunkQualityReport,
    UploadResult,
)

__all__ = [
    "BatchResult",
    "BatchSummary",
    "Chapter",
    "ChapterOutcome",
    "Chunk",
    "ChunkMetadata",
    "ChunkQualityReport",
    "PreparationSummary",
    "PreparedChapter",
    "PreparedChunk",
    "UploadResult",
]
