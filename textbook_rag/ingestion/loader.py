"""Markdown chapter loader with front-matter and encoding detection."""

import logging
import re
from pathlib import Path
from typing import Any

import chardet
import yaml

from textbook_rag.ingestion.chunker import extract_headings
from textbook_rag.models.chapter import Chapter

logger = logging.getLogger(__name__)

# Supported file extensions mapped to format identifiers
SUPPORTED_FORMATS: dict[str, str] = {
    ".md": "markdown",
    ".mdx": "markdown",
    ".markdown": "markdown",
    ".txt": "txt",
}

FRONT_MATTER_PATTERN: re.Pattern[str] = re.compile(
    r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)

# Front-matter keys that may carry the chapter number, in priority order.
NUMBER_KEYS: tuple[str, ...] = ("chapter", "sidebar_position")


class ChapterLoader:
    """Loads textbook chapters from markdown files.

    Docusaurus-style YAML front matter is stripped from the content and used
    for the chapter title and number when present.
    """

    def load(self, file_path: str | Path, number: str | None = None) -> Chapter:
        """Load a single chapter file.

        Args:
            file_path: Path to the markdown file.
            number: Optional chapter number overriding any detected one.

        Returns:
            A Chapter with front matter removed from its content.

        Raises:
            FileNotFoundError: If file_path does not exist.
            ValueError: If the file format is not supported.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        file_format = self._detect_format(path)

        raw_text = self._read_text(path)
        if file_format == "markdown":
            front_matter, content = self._split_front_matter(raw_text, path)
        else:
            # Plain text has no front matter; a leading "---" block is content.
            front_matter, content = {}, raw_text.lstrip("\ufeff")

        return Chapter(
            number=number or self._resolve_number(front_matter, path),
            title=self._resolve_title(front_matter, content, path),
            content=content,
            source_path=str(path),
        )

    def load_directory(self, directory: str | Path) -> list[Chapter]:
        """Load every supported chapter file in a directory.

        Args:
            directory: Directory containing chapter files (not searched
                recursively).

        Returns:
            Chapters ordered by numeric chapter number, then by file name.

        Raises:
            NotADirectoryError: If directory is not a directory.
        """
        root = Path(directory)
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        chapters = [
            self.load(path)
            for path in sorted(root.iterdir())
            if path.is_file() and path.suffix.lower() in SUPPORTED_FORMATS
        ]
        chapters.sort(key=_chapter_sort_key)
        logger.info("Loaded %d chapters from %s", len(chapters), root)
        return chapters

    def _detect_format(self, file_path: Path) -> str:
        ext = file_path.suffix.lower()
        if ext not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported file format: '{ext}'. "
                f"Supported: {', '.join(SUPPORTED_FORMATS.keys())}"
            )
        return SUPPORTED_FORMATS[ext]

    def _read_text(self, file_path: Path) -> str:
        """Read a text file, trying UTF-8 before chardet detection.

        Args:
            file_path: Path to the text file.

        Returns:
            The file content as a string.
        """
        try:
            return file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            pass

        raw_bytes = file_path.read_bytes()
        detected = chardet.detect(raw_bytes)
        encoding = detected.get("encoding") or "utf-8"
        confidence = detected.get("confidence", 0)

        if confidence < 0.7:
            logger.warning(
                "Low confidence encoding detection for %s: %s (%.0f%%)",
                file_path,
                encoding,
                confidence * 100,
            )

        try:
            return raw_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.error("Failed to decode file: %s", file_path)
            return raw_bytes.decode("utf-8", errors="replace")

    def _split_front_matter(self, text: str, file_path: Path) -> tuple[dict[str, Any], str]:
        """Separate a leading YAML front-matter block from the body.

        Malformed front matter is left in the body.

        Args:
            text: The raw file content.
            file_path: Source path, for log messages.

        Returns:
            Tuple of (front-matter mapping, body text).
        """
        text = text.lstrip("\ufeff")
        match = FRONT_MATTER_PATTERN.match(text)
        if not match:
            return {}, text

        try:
            data = yaml.safe_load(match.group(1))
        except yaml.YAMLError:
            logger.warning("Ignoring malformed front matter in %s", file_path)
            return {}, text

        if data is None:
            data = {}
        if not isinstance(data, dict):
            logger.warning("Ignoring non-mapping front matter in %s", file_path)
            return {}, text

        return data, text[match.end() :]

    def _resolve_number(self, front_matter: dict[str, Any], file_path: Path) -> str:
        for key in NUMBER_KEYS:
            value = front_matter.get(key)
            if value is not None and str(value).strip():
                return str(value).strip()

        digits = re.search(r"\d+", file_path.stem)
        if digits:
            return str(int(digits.group()))
        return file_path.stem

    def _resolve_title(
        self, front_matter: dict[str, Any], content: str, file_path: Path
    ) -> str:
        title = front_matter.get("title")
        if title is not None and str(title).strip():
            return str(title).strip()

        headings = [h for h in extract_headings(content) if h]
        if headings:
            return headings[0]
        return file_path.stem


def _chapter_sort_key(chapter: Chapter) -> tuple[int, int, str]:
    name = Path(chapter.source_path).name
    if chapter.number.isdigit():
        return (0, int(chapter.number), name)
    return (1, 0, name)
