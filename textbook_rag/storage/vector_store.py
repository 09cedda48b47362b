"""Qdrant vector store client over the REST API."""

import logging
import uuid
from typing import Any, Protocol

import requests

from textbook_rag.config import VectorStoreConfig

logger = logging.getLogger(__name__)


class VectorStoreClient(Protocol):
    """Anything that can upsert ``{"id", "vector", "payload"}`` points."""

    def upsert(self, collection_name: str, points: list[dict[str, Any]]) -> None: ...


def point_uuid(chunk_id: str) -> str:
    """Map a chunk id such as ``"3_chunk_7"`` to a stable UUID string."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, chunk_id))


class QdrantVectorStore:
    """Minimal Qdrant client for writing chunk points.

    Qdrant only accepts unsigned integers or UUIDs as point ids, so string
    chunk ids are converted with ``point_uuid`` and kept in the payload under
    ``chunk_id``.

    Args:
        url: Qdrant base URL.
        api_key: Optional API key sent in the ``api-key`` header.
        timeout_seconds: Per-request timeout.
    """

    def __init__(
        self, url: str, api_key: str | None = None, timeout_seconds: float = 30
    ) -> None:
        self._url = url.rstrip("/")
        self._headers = {"api-key": api_key} if api_key else {}
        self._timeout = timeout_seconds

    @classmethod
    def from_config(
        cls, config: VectorStoreConfig, api_key: str | None = None
    ) -> "QdrantVectorStore":
        return cls(url=config.url, api_key=api_key, timeout_seconds=config.timeout_seconds)

    def ensure_collection(self, collection_name: str, dimension: int) -> bool:
        """Create a cosine-distance collection if it does not exist yet.

        Args:
            collection_name: Name of the collection.
            dimension: Vector size for a newly created collection.

        Returns:
            True if the collection was created, False if it already existed.

        Raises:
            requests.HTTPError: On any unexpected error status.
        """
        endpoint = f"{self._url}/collections/{collection_name}"
        response = requests.get(endpoint, headers=self._headers, timeout=self._timeout)
        if response.status_code != 404:
            response.raise_for_status()
            return False

        response = requests.put(
            endpoint,
            headers=self._headers,
            json={"vectors": {"size": dimension, "distance": "Cosine"}},
            timeout=self._timeout,
        )
        response.raise_for_status()
        logger.info("Created collection %s (dimension %d)", collection_name, dimension)
        return True

    def upsert(self, collection_name: str, points: list[dict[str, Any]]) -> None:
        """Insert or replace points in a collection.

        Args:
            collection_name: Target collection.
            points: Records with ``id``, ``vector`` and ``payload`` keys.

        Raises:
            requests.HTTPError: If Qdrant rejects the request.
        """
        body = {
            "points": [
                {
                    "id": point_uuid(str(point["id"])),
                    "vector": point["vector"],
                    "payload": {**point.get("payload", {}), "chunk_id": str(point["id"])},
                }
                for point in points
            ]
        }
        response = requests.put(
            f"{self._url}/collections/{collection_name}/points",
            params={"wait": "true"},
            headers=self._headers,
            json=body,
            timeout=self._timeout,
        )
        response.raise_for_status()
        logger.debug("Upserted %d points into %s", len(points), collection_name)
