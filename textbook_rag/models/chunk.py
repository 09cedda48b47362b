"""Chunk data model."""

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """A word-measured excerpt of a chapter, produced by the chunker.

    Positions are offsets into the chapter's whitespace-delimited word
    sequence. ``end_position`` follows the sentence-boundary trim, so it is
    diagnostic only and may not match ``word_count`` exactly.
    """

    sequence_index: int  # 1-based, contiguous within a chapter
    text: str
    word_count: int
    start_position: int
    end_position: int
    contains_code: bool = False
    headings: list[str] = Field(default_factory=list)
