"""Batch, upload and quality report models."""

from pydantic import BaseModel, Field

from textbook_rag.models.prepared import PreparedChapter


class ChapterOutcome(BaseModel):
    """Outcome of preparing a single chapter inside a batch."""

    success: bool
    chapter_number: str
    chapter_title: str = ""
    chunks_generated: int = 0
    error: str | None = None
    prepared: PreparedChapter | None = None


class BatchSummary(BaseModel):
    """Aggregate counts for a batch run."""

    total_chapters: int
    successful_chapters: int
    failed_chapters: int
    total_chunks: int
    average_chunks_per_chapter: float = 0.0


class BatchResult(BaseModel):
    """All chapter outcomes of a batch plus the summary."""

    results: list[ChapterOutcome] = Field(default_factory=list)
    summary: BatchSummary


class UploadResult(BaseModel):
    """Result of pushing prepared chunks to the vector store."""

    success: bool
    uploaded_chunks: int = 0
    collection_name: str = ""
    message: str = ""


class ChunkQualityReport(BaseModel):
    """Word-count distribution of prepared chunks against the target size.

    A chunk is optimal when its word count lies within 70%..130% of the
    target chunk size.
    """

    total_chunks: int
    word_counts: list[int] = Field(default_factory=list)
    code_chunks: int = 0
    average_word_count: float = 0.0
    min_word_count: int = 0
    max_word_count: int = 0
    optimal_chunks: int = 0
    too_short: int = 0
    too_long: int = 0
    quality_score: float = 0.0
