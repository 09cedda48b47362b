"""Command line interface for preparing textbook chapters for retrieval.

Usage:
    textbook-rag chunk docs/01-intro.md            # Dry run, no network
    textbook-rag prepare docs/ --upload --analyze  # Embed, upload, report
    textbook-rag status                            # Show prepared chapters
"""

import argparse
import logging
from pathlib import Path

from textbook_rag.config import AppConfig, load_config
from textbook_rag.ingestion.chunker import ChapterChunker
from textbook_rag.ingestion.loader import ChapterLoader
from textbook_rag.models.chapter import Chapter
from textbook_rag.rag.embeddings import OpenRouterEmbedder
from textbook_rag.rag.preparer import RAGPreparer
from textbook_rag.storage.database import (
    initialize_database,
    list_preparations,
    record_preparation,
)
from textbook_rag.storage.vector_store import QdrantVectorStore

logger = logging.getLogger(__name__)


def _load_chapters(path: str) -> list[Chapter]:
    loader = ChapterLoader()
    if Path(path).is_dir():
        return loader.load_directory(path)
    return [loader.load(path)]


def cmd_chunk(args: argparse.Namespace, config: AppConfig) -> int:
    """Print the chunk layout of each chapter without embedding anything."""
    updates = {}
    if args.target is not None:
        updates["target_words"] = args.target
    if args.overlap is not None:
        updates["overlap_words"] = args.overlap
    chunker = ChapterChunker(config.chunking.model_copy(update=updates))

    for chapter in _load_chapters(args.path):
        print(f"Chapter {chapter.number}: {chapter.title}")
        for chunk in chunker.chunk(chapter):
            code = " code" if chunk.contains_code else ""
            headings = "; ".join(chunk.headings)
            print(
                f"  #{chunk.sequence_index} words {chunk.start_position}-{chunk.end_position}"
                f" ({chunk.word_count}){code} [{headings}]"
            )
    return 0


def cmd_prepare(args: argparse.Namespace, config: AppConfig) -> int:
    """Embed chapters, optionally upload them, and record the results."""
    chapters = _load_chapters(args.path)
    embed = OpenRouterEmbedder.from_config(config.embedding, config.openrouter_api_key)

    store = None
    if args.upload or config.vector_store.auto_upload:
        store = QdrantVectorStore.from_config(config.vector_store, config.qdrant_api_key)
        store.ensure_collection(
            config.vector_store.collection_name, config.embedding.dimensions
        )

    preparer = RAGPreparer(
        embed=embed,
        vector_store=store,
        chunking=config.chunking,
        pipeline=config.pipeline,
        collection_name=config.vector_store.collection_name,
        auto_upload=store is not None,
    )
    batch = preparer.prepare_book_batch(chapters)

    initialize_database(config.storage.sqlite_path)
    prepared_chunks = []
    for outcome in batch.results:
        if outcome.prepared is None:
            print(f"Chapter {outcome.chapter_number}: FAILED ({outcome.error})")
            continue
        record_preparation(
            config.storage.sqlite_path,
            outcome.prepared.metadata,
            uploaded=outcome.prepared.uploaded,
        )
        prepared_chunks.extend(outcome.prepared.chunks)
        print(f"Chapter {outcome.chapter_number}: {outcome.chunks_generated} chunks")

    summary = batch.summary
    print(
        f"{summary.successful_chapters}/{summary.total_chapters} chapters, "
        f"{summary.total_chunks} chunks "
        f"({summary.average_chunks_per_chapter} per chapter)"
    )

    if args.analyze:
        report = preparer.analyze_chunk_quality(prepared_chunks)
        print(
            f"Quality: {report.optimal_chunks}/{report.total_chunks} optimal "
            f"({report.quality_score}%), {report.too_short} too short, "
            f"{report.too_long} too long, average {report.average_word_count} words"
        )

    return 1 if summary.failed_chapters else 0


def cmd_status(args: argparse.Namespace, config: AppConfig) -> int:
    """List chapters recorded in the preparation registry."""
    initialize_database(config.storage.sqlite_path)
    rows = list_preparations(config.storage.sqlite_path)
    if not rows:
        print("No chapters prepared yet.")
    for row in rows:
        uploaded = "uploaded" if row["uploaded"] else "local"
        print(
            f"Chapter {row['chapter_number']}: {row['chapter_title']} - "
            f"{row['chunk_count']} chunks ({row['dropped_chunks']} dropped), "
            f"{uploaded}, {row['prepared_at']}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="textbook-rag",
        description="Prepare textbook chapters for retrieval-augmented generation.",
    )
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    chunk_parser = subparsers.add_parser("chunk", help="Show chunk layout (no network)")
    chunk_parser.add_argument("path", help="Chapter file or directory")
    chunk_parser.add_argument("--target", type=int, help="Target chunk size in words")
    chunk_parser.add_argument("--overlap", type=int, help="Overlap in words")
    chunk_parser.set_defaults(handler=cmd_chunk)

    prepare_parser = subparsers.add_parser("prepare", help="Embed and index chapters")
    prepare_parser.add_argument("path", help="Chapter file or directory")
    prepare_parser.add_argument("--upload", action="store_true", help="Upload to Qdrant")
    prepare_parser.add_argument("--analyze", action="store_true", help="Report chunk quality")
    prepare_parser.set_defaults(handler=cmd_prepare)

    status_parser = subparsers.add_parser("status", help="List prepared chapters")
    status_parser.set_defaults(handler=cmd_status)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        return args.handler(args, config)
    except (ValueError, OSError) as exc:  # requests errors are OSErrors
        logger.error("%s", exc)
        return 1
