"""Tests for the embedding API client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from textbook_rag.config import EmbeddingConfig
from textbook_rag.rag.embeddings import OpenRouterEmbedder


def _response(payload: dict, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


class TestOpenRouterEmbedder:
    def test_requires_api_key(self) -> None:
        with pytest.raises(ValueError):
            OpenRouterEmbedder(api_key="")

    def test_posts_model_and_input(self) -> None:
        embedder = OpenRouterEmbedder(
            api_key="key-1", model="embed-small", base_url="https://api.example.com/v1/"
        )
        with patch("textbook_rag.rag.embeddings.requests.post") as mock_post:
            mock_post.return_value = _response({"data": [{"embedding": [0.5, 1, -2]}]})
            vector = embedder("Servo motors hold position.")

        assert vector == [0.5, 1.0, -2.0]
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.example.com/v1/embeddings"
        assert kwargs["json"] == {"model": "embed-small", "input": "Servo motors hold position."}
        assert kwargs["headers"]["Authorization"] == "Bearer key-1"
        assert kwargs["timeout"] == 30

    def test_http_error_propagates(self) -> None:
        embedder = OpenRouterEmbedder(api_key="key-1")
        with patch("textbook_rag.rag.embeddings.requests.post") as mock_post:
            mock_post.return_value = _response({}, status_code=429)
            with pytest.raises(requests.HTTPError):
                embedder("text")

    def test_missing_embedding_raises(self) -> None:
        embedder = OpenRouterEmbedder(api_key="key-1")
        with patch("textbook_rag.rag.embeddings.requests.post") as mock_post:
            mock_post.return_value = _response({"data": []})
            with pytest.raises(ValueError, match="No embedding"):
                embedder("text")

    def test_dimension_mismatch_raises(self) -> None:
        embedder = OpenRouterEmbedder(api_key="key-1", dimensions=4)
        with patch("textbook_rag.rag.embeddings.requests.post") as mock_post:
            mock_post.return_value = _response({"data": [{"embedding": [0.1, 0.2]}]})
            with pytest.raises(ValueError, match="4-dimensional"):
                embedder("text")


class TestFromConfig:
    def test_missing_key(self) -> None:
        with pytest.raises(ValueError, match="OPENROUTER_API_KEY"):
            OpenRouterEmbedder.from_config(EmbeddingConfig(), None)

    def test_uses_config_values(self) -> None:
        config = EmbeddingConfig(model="m", base_url="https://x.test/api", dimensions=2)
        embedder = OpenRouterEmbedder.from_config(config, "key")
        with patch("textbook_rag.rag.embeddings.requests.post") as mock_post:
            mock_post.return_value = _response({"data": [{"embedding": [1.0, 2.0]}]})
            assert embedder("t") == [1.0, 2.0]
        assert mock_post.call_args.args[0] == "https://x.test/api/embeddings"
