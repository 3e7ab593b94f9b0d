"""
Canonical serialization for deterministic hashing and persistence.

Block persistence, transaction bodies and journal records all go through
these functions so the same logical value always produces the same bytes.
"""

import json
from typing import Any, List, Tuple

from .errors import InvalidEncodingError


def canonicalize(obj: Any) -> Any:
    """
    Convert arbitrary nested dict/list to canonical form.

    Rules:
    - dict keys sorted
    - tuples converted to lists
    - bytes converted to lowercase hex strings
    - recursive normalization
    """
    if isinstance(obj, dict):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).hex()
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic JSON bytes for hashing.

    Guarantees:
    - sort_keys=True (secondary safety)
    - separators remove whitespace
    - ensure_ascii=False keeps UTF-8 stable
    - canonical preprocessing via canonicalize()
    """
    canon = canonicalize(obj)
    s = json.dumps(canon, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    """Same guarantees as canonical_json_bytes but returns string."""
    return canonical_json_bytes(obj).decode("utf-8")


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> dict:
    out = {}
    for key, value in pairs:
        if key in out:
            raise InvalidEncodingError(f"duplicate key in encoded object: {key}")
        out[key] = value
    return out


def strict_json_loads(raw: bytes) -> Any:
    """
    Parse JSON bytes, rejecting duplicate object keys.

    Raises:
        InvalidEncodingError: If the input is not valid UTF-8 JSON or repeats a key
    """
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        return json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except (UnicodeDecodeError, ValueError) as ex:
        raise InvalidEncodingError(f"malformed JSON: {ex}") from ex
