"""Chapter preparation for retrieval: chunk, embed, upload."""

import logging
import time

from textbook_rag.config import AppConfig, ChunkingConfig, PipelineConfig
from textbook_rag.ingestion.chunker import chunk_document, document_has_code
from textbook_rag.models.chapter import Chapter
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
from textbook_rag.rag.embeddings import EmbeddingFunction
from textbook_rag.storage.vector_store import VectorStoreClient

logger = logging.getLogger(__name__)

# Chunks within this fraction of the target size count as optimal.
OPTIMAL_MIN_RATIO = 0.7
OPTIMAL_MAX_RATIO = 1.3


def prepare_chapter_context(
    chapter: Chapter,
    embed: EmbeddingFunction,
    chunk_size: int = 300,
    chunk_overlap: int = 50,
    embedding_delay_seconds: float = 0.0,
    progress_log_interval: int = 10,
    allow_degenerate_overlap: bool = False,
) -> PreparedChapter:
    """Chunk a chapter and embed every chunk.

    Embedding calls run one at a time with ``embedding_delay_seconds``
    between them. A chunk whose embedding call fails is logged and left out;
    the rest of the chapter is still returned.

    Args:
        chapter: The chapter to prepare.
        embed: Function mapping chunk text to a vector.
        chunk_size: Target chunk size in words.
        chunk_overlap: Words carried between consecutive chunks.
        embedding_delay_seconds: Pause between consecutive embedding calls.
        progress_log_interval: Log progress every N chunks.
        allow_degenerate_overlap: Passed through to the chunker.

    Returns:
        PreparedChapter with the embedded chunks and a summary.

    Raises:
        ValueError: If the chapter has no content, title or number, or the
            chunk sizes are invalid.
        TypeError: If embed is not callable.
    """
    if not chapter.content:
        raise ValueError("Chapter content is required")
    if not chapter.title or not chapter.number:
        raise ValueError("Chapter metadata (title, number) is required")
    if not callable(embed):
        raise TypeError("embed must be a callable returning a vector")

    chunks = chunk_document(
        chapter.content,
        target_size=chunk_size,
        overlap=chunk_overlap,
        allow_degenerate_overlap=allow_degenerate_overlap,
    )
    logger.info("Preparing chapter %s: %d chunks generated", chapter.number, len(chunks))

    prepared: list[PreparedChunk] = []
    for i, chunk in enumerate(chunks):
        if i and embedding_delay_seconds:
            time.sleep(embedding_delay_seconds)

        try:
            embedding = [float(value) for value in embed(chunk.text)]
        except Exception:
            logger.exception(
                "Failed to embed chunk %d of chapter %s, skipping",
                chunk.sequence_index,
                chapter.number,
            )
            continue

        prepared.append(
            PreparedChunk(
                id=f"{chapter.number}_chunk_{chunk.sequence_index}",
                text=chunk.text,
                embedding=embedding,
                metadata=ChunkMetadata(
                    chapter_number=chapter.number,
                    chapter_title=chapter.title,
                    chunk_index=chunk.sequence_index,
                    total_chunks=len(chunks),
                    start_position=chunk.start_position,
                    end_position=chunk.end_position,
                    word_count=chunk.word_count,
                    contains_code=chunk.contains_code,
                    headings=chunk.headings,
                ),
            )
        )

        if chunk.sequence_index % progress_log_interval == 0:
            logger.info("Embedded %d/%d chunks...", chunk.sequence_index, len(chunks))

    dropped = len(chunks) - len(prepared)
    if dropped:
        logger.warning(
            "Chapter %s: %d of %d chunks dropped after embedding failures",
            chapter.number,
            dropped,
            len(chunks),
        )

    summary = PreparationSummary(
        chapter_number=chapter.number,
        chapter_title=chapter.title,
        total_chunks=len(prepared),
        dropped_chunks=dropped,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        average_chunk_size=(
            sum(c.metadata.word_count for c in prepared) / len(prepared) if prepared else 0.0
        ),
        embedding_dimension=len(prepared[0].embedding) if prepared else 0,
        contains_code=document_has_code(chapter.content),
    )
    return PreparedChapter(chunks=prepared, metadata=summary)


class RAGPreparer:
    """Prepares chapters and whole books for the vector store.

    The embedding function and vector store client are injected, so any
    provider can be plugged in.

    Args:
        embed: Function mapping chunk text to a vector.
        vector_store: Optional client used for uploads.
        chunking: Default chunk sizes.
        pipeline: Pacing and progress settings.
        collection_name: Vector store collection to write to.
        auto_upload: Upload each prepared chapter right away.
    """

    def __init__(
        self,
        embed: EmbeddingFunction,
        vector_store: VectorStoreClient | None = None,
        chunking: ChunkingConfig | None = None,
        pipeline: PipelineConfig | None = None,
        collection_name: str = "book_content",
        auto_upload: bool = False,
    ) -> None:
        if embed is None:
            raise ValueError("An embedding function is required")
        self._embed = embed
        self._vector_store = vector_store
        self._chunking = chunking or ChunkingConfig()
        self._pipeline = pipeline or PipelineConfig()
        self._collection_name = collection_name
        self._auto_upload = auto_upload

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        embed: EmbeddingFunction,
        vector_store: VectorStoreClient | None = None,
    ) -> "RAGPreparer":
        return cls(
            embed=embed,
            vector_store=vector_store,
            chunking=config.chunking,
            pipeline=config.pipeline,
            collection_name=config.vector_store.collection_name,
            auto_upload=config.vector_store.auto_upload,
        )

    @property
    def uploads_enabled(self) -> bool:
        return self._auto_upload and self._vector_store is not None

    def prepare_chapter(
        self,
        chapter: Chapter,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> PreparedChapter:
        """Prepare one chapter, uploading it when auto-upload is on.

        Args:
            chapter: The chapter to prepare.
            chunk_size: Overrides the configured target size.
            chunk_overlap: Overrides the configured overlap.

        Returns:
            The prepared chapter.
        """
        size = self._chunking.target_words if chunk_size is None else chunk_size
        overlap = self._chunking.overlap_words if chunk_overlap is None else chunk_overlap

        result = prepare_chapter_context(
            chapter,
            self._embed,
            chunk_size=size,
            chunk_overlap=overlap,
            embedding_delay_seconds=self._pipeline.embedding_delay_seconds,
            progress_log_interval=self._pipeline.progress_log_interval,
            allow_degenerate_overlap=self._chunking.allow_degenerate_overlap,
        )
        logger.info(
            "Chapter %s prepared: %d chunks", chapter.number, len(result.chunks)
        )

        if self.uploads_enabled:
            if result.chunks:
                result.uploaded = self.upload_to_vector_store(result.chunks).success
            else:
                logger.warning(
                    "Chapter %s has no embedded chunks, skipping upload", chapter.number
                )

        return result

    def prepare_book_batch(self, chapters: list[Chapter]) -> BatchResult:
        """Prepare several chapters in order.

        A chapter that fails is recorded as a failed outcome and the batch
        moves on to the next one.

        Args:
            chapters: Chapters to prepare.

        Returns:
            BatchResult with one outcome per chapter.
        """
        logger.info("Batch preparing %d chapters", len(chapters))
        results: list[ChapterOutcome] = []

        for i, chapter in enumerate(chapters):
            if i and self._pipeline.chapter_delay_seconds:
                time.sleep(self._pipeline.chapter_delay_seconds)

            try:
                prepared = self.prepare_chapter(chapter)
            except Exception as exc:
                logger.exception("Failed to prepare chapter %s", chapter.number)
                results.append(
                    ChapterOutcome(
                        success=False,
                        chapter_number=chapter.number,
                        chapter_title=chapter.title,
                        error=str(exc),
                    )
                )
                continue

            results.append(
                ChapterOutcome(
                    success=True,
                    chapter_number=chapter.number,
                    chapter_title=chapter.title,
                    chunks_generated=len(prepared.chunks),
                    prepared=prepared,
                )
            )
            logger.info("[%d/%d] Chapter %s processed", i + 1, len(chapters), chapter.number)

        successful = sum(1 for r in results if r.success)
        total_chunks = sum(r.chunks_generated for r in results)
        summary = BatchSummary(
            total_chapters=len(chapters),
            successful_chapters=successful,
            failed_chapters=len(chapters) - successful,
            total_chunks=total_chunks,
            average_chunks_per_chapter=(
                round(total_chunks / successful, 2) if successful else 0.0
            ),
        )
        logger.info(
            "Batch complete: %d/%d chapters, %d chunks",
            successful,
            len(chapters),
            total_chunks,
        )
        return BatchResult(results=results, summary=summary)

    def upload_to_vector_store(self, chunks: list[PreparedChunk]) -> UploadResult:
        """Upsert prepared chunks into the configured collection.

        Args:
            chunks: Prepared chunks to upload.

        Returns:
            UploadResult; ``success`` is False when no store is configured.

        Raises:
            RuntimeError: If the vector store rejects the upload.
        """
        if self._vector_store is None:
            logger.warning("No vector store client configured, skipping upload")
            return UploadResult(success=False, message="No vector store client")

        points = [chunk.to_point() for chunk in chunks]
        try:
            self._vector_store.upsert(self._collection_name, points)
        except Exception as exc:
            raise RuntimeError(f"Failed to upload to vector store: {exc}") from exc

        logger.info("Uploaded %d chunks to %s", len(chunks), self._collection_name)
        return UploadResult(
            success=True,
            uploaded_chunks=len(chunks),
            collection_name=self._collection_name,
        )

    def reindex_content(
        self, chapters: list[Chapter], embed: EmbeddingFunction | None = None
    ) -> BatchResult:
        """Re-run a batch, optionally with a different embedding function.

        The original embedding function is restored afterwards, also when
        the batch raises.
        """
        logger.info("Re-indexing %d chapters", len(chapters))
        original = self._embed
        self._embed = embed or original
        try:
            return self.prepare_book_batch(chapters)
        finally:
            self._embed = original

    def analyze_chunk_quality(self, chunks: list[PreparedChunk]) -> ChunkQualityReport:
        """Measure how close chunk sizes are to the configured target.

        Args:
            chunks: Prepared chunks to analyze.

        Returns:
            ChunkQualityReport with counts and a percentage quality score.
        """
        word_counts = [c.metadata.word_count for c in chunks]
        if not chunks:
            return ChunkQualityReport(total_chunks=0)

        target = self._chunking.target_words
        min_optimal = target * OPTIMAL_MIN_RATIO
        max_optimal = target * OPTIMAL_MAX_RATIO
        optimal = sum(1 for n in word_counts if min_optimal <= n <= max_optimal)

        report = ChunkQualityReport(
            total_chunks=len(chunks),
            word_counts=word_counts,
            code_chunks=sum(1 for c in chunks if c.metadata.contains_code),
            average_word_count=round(sum(word_counts) / len(chunks), 2),
            min_word_count=min(word_counts),
            max_word_count=max(word_counts),
            optimal_chunks=optimal,
            too_short=sum(1 for n in word_counts if n < min_optimal),
            too_long=sum(1 for n in word_counts if n > max_optimal),
            quality_score=round(optimal / len(chunks) * 100, 2),
        )
        logger.info(
            "Chunk quality: %d/%d optimal (%.2f%%), average %.2f words",
            report.optimal_chunks,
            report.total_chunks,
            report.quality_score,
            report.average_word_count,
        )
        return report
