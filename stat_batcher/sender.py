"""HTTP sender — posts bulk batches to the ingestion API with bounded retry."""

import logging
from typing import Optional

import httpx

from stat_batcher.models import BulkBatch
from stat_batcher.serializer import CONTENT_TYPE, serialize_batch

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://api.stathat.com/ez"


class HTTPSender:
    """Sends serialized bulk batches over HTTP POST.

    Only transport failures (connection refused, timeouts, dropped
    connections) are retried, immediately and up to *max_attempts* in total.
    Any HTTP response ends the attempt loop whatever its status code.
    The underlying ``httpx.Client`` is shared by all flush workers.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        max_attempts: int = 2,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._api_url = api_url
        self._max_attempts = max_attempts
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @property
    def api_url(self) -> str:
        return self._api_url

    def send(self, batch: BulkBatch) -> bool:
        """Serialize and send *batch*. Returns True when the API answered with a 2xx.

        Raises:
            SerializationError: If the batch cannot be encoded; nothing is sent.
        """
        body = serialize_batch(batch)
        return self.post(body, len(batch))

    def post(self, body: bytes, stat_count: int = 0) -> bool:
        """POST an already-serialized body. Returns True on a 2xx response."""
        for attempt in range(1, self._max_attempts + 1):
            try:
                response = self._client.post(
                    self._api_url,
                    content=body,
                    headers={"Content-Type": CONTENT_TYPE},
                )
            except httpx.TransportError as exc:
                if attempt < self._max_attempts:
                    logger.warning(
                        "Error posting stats (attempt %d/%d): %s",
                        attempt,
                        self._max_attempts,
                        exc,
                    )
                else:
                    logger.error(
                        "Dropping %d stats after %d failed attempts: %s",
                        stat_count,
                        self._max_attempts,
                        exc,
                    )
                continue

            if response.is_success:
                logger.debug(
                    "Flushed %d stats: status=%d resp=%s",
                    stat_count,
                    response.status_code,
                    response.text,
                )
                return True

            logger.warning(
                "Ingestion API rejected %d stats: status=%d resp=%s",
                stat_count,
                response.status_code,
                response.text[:200],
            )
            return False

        return False

    def close(self):
        """Close the underlying HTTP client."""
        self._client.close()
