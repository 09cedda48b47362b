"""Tests for the Qdrant REST client."""

import uuid
from unittest.mock import MagicMock, patch

import pytest
import requests

from textbook_rag.config import VectorStoreConfig
from textbook_rag.storage.vector_store import QdrantVectorStore, point_uuid


def _response(status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


class TestPointUuid:
    def test_deterministic(self) -> None:
        assert point_uuid("3_chunk_7") == point_uuid("3_chunk_7")
        assert point_uuid("3_chunk_7") != point_uuid("3_chunk_8")

    def test_valid_uuid(self) -> None:
        assert uuid.UUID(point_uuid("1_chunk_1")).version == 5


class TestUpsert:
    def test_puts_points_with_uuid_ids(self) -> None:
        store = QdrantVectorStore("http://qdrant.test:6333/", api_key="secret")
        points = [{"id": "1_chunk_1", "vector": [0.1, 0.2], "payload": {"text": "hello"}}]

        with patch("textbook_rag.storage.vector_store.requests.put") as mock_put:
            mock_put.return_value = _response()
            store.upsert("book_content", points)

        args, kwargs = mock_put.call_args
        assert args[0] == "http://qdrant.test:6333/collections/book_content/points"
        assert kwargs["params"] == {"wait": "true"}
        assert kwargs["headers"] == {"api-key": "secret"}
        sent = kwargs["json"]["points"][0]
        assert sent["id"] == point_uuid("1_chunk_1")
        assert sent["vector"] == [0.1, 0.2]
        assert sent["payload"] == {"text": "hello", "chunk_id": "1_chunk_1"}

    def test_no_api_key_sends_no_header(self) -> None:
        store = QdrantVectorStore("http://localhost:6333")
        with patch("textbook_rag.storage.vector_store.requests.put") as mock_put:
            mock_put.return_value = _response()
            store.upsert("c", [])
        assert mock_put.call_args.kwargs["headers"] == {}

    def test_http_error_propagates(self) -> None:
        store = QdrantVectorStore("http://localhost:6333")
        with patch("textbook_rag.storage.vector_store.requests.put") as mock_put:
            mock_put.return_value = _response(400)
            with pytest.raises(requests.HTTPError):
                store.upsert("c", [{"id": "x", "vector": [1.0], "payload": {}}])


class TestEnsureCollection:
    def test_existing_collection(self) -> None:
        store = QdrantVectorStore("http://localhost:6333")
        with (
            patch("textbook_rag.storage.vector_store.requests.get") as mock_get,
            patch("textbook_rag.storage.vector_store.requests.put") as mock_put,
        ):
            mock_get.return_value = _response(200)
            assert store.ensure_collection("book_content", 1536) is False
        mock_put.assert_not_called()

    def test_creates_missing_collection(self) -> None:
        store = QdrantVectorStore("http://localhost:6333")
        with (
            patch("textbook_rag.storage.vector_store.requests.get") as mock_get,
            patch("textbook_rag.storage.vector_store.requests.put") as mock_put,
        ):
            mock_get.return_value = _response(404)
            mock_put.return_value = _response(200)
            assert store.ensure_collection("book_content", 1536) is True

        args, kwargs = mock_put.call_args
        assert args[0] == "http://localhost:6333/collections/book_content"
        assert kwargs["json"] == {"vectors": {"size": 1536, "distance": "Cosine"}}

    def test_server_error_propagates(self) -> None:
        store = QdrantVectorStore("http://localhost:6333")
        with patch("textbook_rag.storage.vector_store.requests.get") as mock_get:
            mock_get.return_value = _response(500)
            with pytest.raises(requests.HTTPError):
                store.ensure_collection("book_content", 1536)


class TestFromConfig:
    def test_uses_config_url(self) -> None:
        store = QdrantVectorStore.from_config(
            VectorStoreConfig(url="http://vectors:6333"), api_key="k"
        )
        with patch("textbook_rag.storage.vector_store.requests.put") as mock_put:
            mock_put.return_value = _response()
            store.upsert("c", [])
        assert mock_put.call_args.args[0] == "http://vectors:6333/collections/c/points"
        assert mock_put.call_args.kwargs["timeout"] == 30
