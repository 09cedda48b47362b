"""Entry point for the textbook RAG preparation toolkit."""

import sys

from textbook_rag.cli import main

if __name__ == "__main__":
    sys.exit(main())
