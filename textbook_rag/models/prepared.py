"""Data models for embedded, store-ready chapter chunks."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ChunkMetadata(BaseModel):
    """Chapter and position metadata attached to a prepared chunk."""

    chapter_number: str
    chapter_title: str
    chunk_index: int
    total_chunks: int
    start_position: int
    end_position: int
    word_count: int
    contains_code: bool = False
    headings: list[str] = Field(default_factory=list)


class PreparedChunk(BaseModel):
    """A chunk decorated with its embedding vector, ready for upload."""

    id: str
    text: str
    embedding: list[float]
    metadata: ChunkMetadata

    def to_point(self) -> dict[str, Any]:
        """Build the vector store record for this chunk.

        Returns:
            Dict with ``id``, ``vector`` and a ``payload`` holding the text
            and all metadata fields.
        """
        return {
            "id": self.id,
            "vector": self.embedding,
            "payload": {"text": self.text, **self.metadata.model_dump()},
        }


class PreparationSummary(BaseModel):
    """Per-chapter statistics reported after preparation."""

    chapter_number: str
    chapter_title: str
    total_chunks: int
    dropped_chunks: int = 0
    chunk_size: int
    chunk_overlap: int
    average_chunk_size: float = 0.0
    embedding_dimension: int = 0
    contains_code: bool = False
    prepared_at: datetime = Field(default_factory=datetime.now)


class PreparedChapter(BaseModel):
    """The result of preparing one chapter for retrieval."""

    chunks: list[PreparedChunk] = Field(default_factory=list)
    metadata: PreparationSummary
    uploaded: bool = False
