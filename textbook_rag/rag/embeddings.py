"""Embedding API client for chunk vectors."""

import logging
from collections.abc import Callable

import requests

from textbook_rag.config import EmbeddingConfig

logger = logging.getLogger(__name__)

EmbeddingFunction = Callable[[str], list[float]]


class OpenRouterEmbedder:
    """Calls an OpenAI-compatible ``/embeddings`` endpoint (OpenRouter by default).

    Instances are callables usable as an ``EmbeddingFunction``.

    Args:
        api_key: Bearer token for the API.
        model: Embedding model identifier.
        base_url: API root, without the ``/embeddings`` suffix.
        timeout_seconds: Per-request timeout.
        dimensions: Expected vector length. None skips the check.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str = "https://openrouter.ai/api/v1",
        timeout_seconds: float = 30,
        dimensions: int | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("An API key is required for the embedding service")
        self._api_key = api_key
        self._model = model
        self._endpoint = f"{base_url.rstrip('/')}/embeddings"
        self._timeout = timeout_seconds
        self._dimensions = dimensions

    @classmethod
    def from_config(cls, config: EmbeddingConfig, api_key: str | None) -> "OpenRouterEmbedder":
        """Build an embedder from configuration.

        Raises:
            ValueError: If api_key is missing.
        """
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY is not set")
        return cls(
            api_key=api_key,
            model=config.model,
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            dimensions=config.dimensions,
        )

    def __call__(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: The text to embed.

        Returns:
            The embedding vector.

        Raises:
            requests.HTTPError: If the API responds with an error status.
            ValueError: If the response holds no embedding or one of the
                wrong length.
        """
        response = requests.post(
            self._endpoint,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            json={"model": self._model, "input": text},
            timeout=self._timeout,
        )
        response.raise_for_status()

        data = response.json().get("data") or []
        if not data or "embedding" not in data[0]:
            raise ValueError(f"No embedding returned by {self._endpoint}")

        embedding = [float(value) for value in data[0]["embedding"]]
        if self._dimensions is not None and len(embedding) != self._dimensions:
            raise ValueError(
                f"Expected {self._dimensions}-dimensional embedding, got {len(embedding)}"
            )

        logger.debug("Embedded %d characters with %s", len(text), self._model)
        return embedding
