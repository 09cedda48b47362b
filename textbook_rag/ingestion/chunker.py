"""Sentence-aware, overlapping word chunker for markdown chapters."""

import logging
import re
from functools import reduce
from typing import NamedTuple

from textbook_rag.config import ChunkingConfig
from textbook_rag.models.chapter import Chapter
from textbook_rag.models.chunk import Chunk

logger = logging.getLogger(__name__)

# Markdown ATX headings: 1-6 '#' followed by whitespace.
HEADING_PATTERN: re.Pattern[str] = re.compile(r"^#{1,6}\s+")

SENTENCE_ENDINGS: tuple[str, ...] = (".", "!", "?")

# A sentence end is an acceptable break point only when its character offset
# in the joined buffer exceeds target_size * BOUNDARY_THRESHOLD. The offset is
# in characters while target_size is in words; existing indexes were built
# with this comparison, so it is kept as is.
BOUNDARY_THRESHOLD = 0.7


def count_words(text: str) -> int:
    """Count whitespace-delimited words in a text.

    Args:
        text: The text to measure.

    Returns:
        Number of words.
    """
    return len(text.split())


def extract_headings(text: str) -> list[str]:
    """Collect markdown heading texts in document order.

    Args:
        text: Raw markdown text.

    Returns:
        Heading strings with the leading '#' marker and surrounding
        whitespace removed.
    """
    return [
        HEADING_PATTERN.sub("", line, count=1).strip()
        for line in text.split("\n")
        if HEADING_PATTERN.match(line)
    ]


def document_has_code(text: str) -> bool:
    """Return True if the text contains a fenced code block delimiter."""
    return "```" in text


class _FoldState(NamedTuple):
    position: int  # words consumed so far
    buffer_start: int  # word index where the current buffer begins
    buffer_size: int  # running word counter for the current buffer
    chunks: list[Chunk]  # appended in place, shared across states


def _validate_sizes(target_size: int, overlap: int, allow_degenerate_overlap: bool) -> None:
    if target_size <= 0:
        raise ValueError(f"target_size must be positive, got {target_size}")
    if overlap < 0:
        raise ValueError(f"overlap must not be negative, got {overlap}")
    if overlap >= target_size and not allow_degenerate_overlap:
        raise ValueError(
            f"overlap ({overlap}) must be smaller than target_size ({target_size})"
        )


def _make_chunk(
    text: str,
    sequence_index: int,
    start_position: int,
    end_position: int,
    headings: list[str],
) -> Chunk:
    return Chunk(
        sequence_index=sequence_index,
        text=text,
        word_count=count_words(text),
        start_position=start_position,
        end_position=end_position,
        # A single backtick also catches ``` fences and inline code.
        contains_code="`" in text,
        headings=headings,
    )


def _cut_chunk(
    buffer: list[str],
    start_position: int,
    position: int,
    target_size: int,
    headings: list[str],
    emitted: int,
) -> Chunk:
    """Finish a full buffer, preferring to end at the last sentence boundary.

    Args:
        buffer: Words buffered for this chunk.
        start_position: Word offset of the first buffered word.
        position: Words consumed from the document so far.
        target_size: Target chunk size in words.
        headings: All headings of the document.
        emitted: Number of chunks finished before this one.

    Returns:
        The finished Chunk.
    """
    candidate = " ".join(buffer)
    boundary = max(candidate.rfind(mark) for mark in SENTENCE_ENDINGS)

    if boundary > target_size * BOUNDARY_THRESHOLD:
        text = candidate[: boundary + 1].strip()
        end_position = start_position + count_words(text)
    else:
        text = candidate.strip()
        end_position = position

    # Approximation: headings are windowed by chunk count, not by where they
    # appear relative to the chunk text. Adjacent chunks may share a heading.
    window = headings[max(0, emitted - 1) : emitted + 1]
    return _make_chunk(text, emitted + 1, start_position, end_position, window)


def chunk_document(
    text: str,
    target_size: int,
    overlap: int,
    allow_degenerate_overlap: bool = False,
) -> list[Chunk]:
    """Split a markdown document into overlapping, sentence-aware chunks.

    Words are accumulated until the buffer holds ``target_size`` words. The
    buffer is then cut at its last sentence end if that lies late enough,
    otherwise it is emitted whole. The next buffer starts with the last
    ``overlap`` words of the untrimmed buffer, so words dropped by the
    sentence trim can reappear at the start of the next chunk. Whatever is
    left buffered at the end (even pure overlap) becomes a final chunk.

    Args:
        text: Raw markdown text of the document.
        target_size: Target chunk size in words.
        overlap: Words carried from the end of one buffer into the next.
        allow_degenerate_overlap: Accept ``overlap >= target_size``. Every
            word after the first cut then emits a chunk and the buffer never
            shrinks.

    Returns:
        Chunks in document order, ``sequence_index`` running from 1.
        Empty or whitespace-only text yields an empty list.

    Raises:
        ValueError: If ``target_size`` is not positive, ``overlap`` is
            negative, or ``overlap >= target_size`` without opting in.
    """
    _validate_sizes(target_size, overlap, allow_degenerate_overlap)

    words = text.split()
    if not words:
        return []

    headings = extract_headings(text)

    def step(state: _FoldState, _word_index: int) -> _FoldState:
        position = state.position + 1
        buffer_size = state.buffer_size + 1
        if buffer_size < target_size:
            return state._replace(position=position, buffer_size=buffer_size)

        buffer = words[state.buffer_start:position]
        chunk = _cut_chunk(
            buffer=buffer,
            start_position=state.buffer_start,
            position=position,
            target_size=target_size,
            headings=headings,
            emitted=len(state.chunks),
        )
        state.chunks.append(chunk)
        carried = min(len(buffer), overlap)
        return _FoldState(
            position=position,
            buffer_start=position - carried,
            buffer_size=overlap,
            chunks=state.chunks,
        )

    final = reduce(step, range(len(words)), _FoldState(0, 0, 0, []))
    chunks = final.chunks

    if final.buffer_start < final.position:
        emitted = len(chunks)
        chunks.append(
            _make_chunk(
                text=" ".join(words[final.buffer_start:final.position]).strip(),
                sequence_index=emitted + 1,
                start_position=final.buffer_start,
                end_position=final.position,
                headings=headings[max(0, emitted - 1) :],
            )
        )

    return chunks


class ChapterChunker:
    """Applies configured chunk sizes to chapters.

    Args:
        config: ChunkingConfig with target_words and overlap_words.
    """

    def __init__(self, config: ChunkingConfig) -> None:
        self._config = config

    def chunk(self, chapter: Chapter) -> list[Chunk]:
        """Split a chapter's content into chunks.

        Args:
            chapter: The chapter to chunk.

        Returns:
            List of Chunk objects in document order.
        """
        chunks = chunk_document(
            chapter.content,
            target_size=self._config.target_words,
            overlap=self._config.overlap_words,
            allow_degenerate_overlap=self._config.allow_degenerate_overlap,
        )
        logger.info(
            "Chapter %s: %d chunks from %d words",
            chapter.number,
            len(chunks),
            count_words(chapter.content),
        )
        return chunks
