"""Chunking, embedding and indexing of textbook chapters for retrieval."""

__version__ = "1.0.0"
