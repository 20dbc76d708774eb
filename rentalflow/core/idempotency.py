"""Idempotency keys for upstream write calls.

The marketplace server deduplicates writes that carry the same key, so a
retried confirm or cancel after a dropped response never applies twice.
"""

import hashlib
import json
from typing import Any
from uuid import UUID

IDEMPOTENCY_HEADER = "Idempotency-Key"


def generate_idempotency_key(
    operation: str,
    entity_id: UUID | str,
    params: dict[str, Any] | None = None,
) -> str:
    """Generate a deterministic idempotency key.

    Args:
        operation: Operation name (e.g., "booking_confirm", "payment_refund")
        entity_id: Primary entity ID
        params: Additional parameters to include in key

    Returns:
        SHA256 hash of operation + entity + params
    """
    key_data = {
        "operation": operation,
        "entity_id": str(entity_id),
        "params": params or {},
    }
    key_str = json.dumps(key_data, sort_keys=True, default=str)
    return hashlib.sha256(key_str.encode()).hexdigest()


def idempotency_headers(
    operation: str,
    entity_id: UUID | str,
    params: dict[str, Any] | None = None,
) -> dict[str, str]:
    """Build the header dict for an idempotent write."""
    return {IDEMPOTENCY_HEADER: generate_idempotency_key(operation, entity_id, params)}
