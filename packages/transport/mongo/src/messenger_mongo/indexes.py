"""Index definition helpers for the transport collection."""

from __future__ import annotations

from typing import Any

from pymongo import ASCENDING

CLAIM_INDEX_NAME = "queue_name_available_at"


async def ensure_transport_indexes(collection: Any) -> list[str]:
    """Create the indexes the transport queries rely on. Idempotent.

    The compound ``(queue_name, available_at)`` index serves the claim query
    and its ``available_at`` sort. Returns the index names.
    """
    claim = await collection.create_index(
        [("queue_name", ASCENDING), ("available_at", ASCENDING)],
        name=CLAIM_INDEX_NAME,
    )
    return [claim]
