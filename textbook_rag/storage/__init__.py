"""Persistence: vector store client and preparation registry."""
