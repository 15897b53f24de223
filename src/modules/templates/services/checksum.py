import hashlib
import json
from typing import Any


def canonicalize(payload: Any) -> str:
    """Compact JSON with object keys sorted at every nesting level."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_payload_sha256(payload: Any) -> str:
    # Used for publish deduplication only, not as a security primitive.
    return hashlib.sha256(canonicalize(payload).encode("utf-8")).hexdigest()
