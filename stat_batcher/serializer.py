"""Bulk serializer — encodes a BulkBatch into the ingestion API's JSON envelope."""

import json

from stat_batcher.errors import SerializationError
from stat_batcher.models import BulkBatch

CONTENT_TYPE = "application/json"


def serialize_batch(batch: BulkBatch) -> bytes:
    """Serialize *batch* to UTF-8 JSON bytes.

    The envelope is ``{"ezkey": ..., "data": [{"stat", "count"|"value", "t"}, ...]}``.

    Raises:
        SerializationError: If the batch holds a number JSON cannot carry
            (``inf`` or ``-inf``).
    """
    try:
        payload = json.dumps(batch.to_dict(), allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Cannot encode bulk batch: {exc}") from exc

    return payload.encode("utf-8")


def deserialize_batch(data: bytes) -> dict:
    """Decode bytes produced by *serialize_batch* back to the envelope dict."""
    return json.loads(data)
