"""
Entry Serialization

orjson codec used by stores that hold bytes (Redis). CacheEntry instances and
raw values are tagged so a decode returns the same kind of object that was
stored:

    {"kind": "entry", "value": ..., "tags": [...], "timestamp": 1733...}
    {"kind": "raw", "value": ...}
"""

from typing import Any

import orjson

from readthrough.caching.models import CacheEntry
from readthrough.core.exceptions.cache import CacheSerializationError

_KIND_ENTRY = "entry"
_KIND_RAW = "raw"


def _default(obj: Any) -> Any:
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=repr)
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def encode_value(value: Any) -> bytes:
    """
    Encode a stored value.

    Raises:
        CacheSerializationError: value contains non-serializable data
    """
    if isinstance(value, CacheEntry):
        document = {"kind": _KIND_ENTRY, **value.to_dict()}
    else:
        document = {"kind": _KIND_RAW, "value": value}
    try:
        return orjson.dumps(document, default=_default, option=orjson.OPT_NON_STR_KEYS)
    except (TypeError, orjson.JSONEncodeError) as e:
        raise CacheSerializationError.from_exception(
            e, "Failed to encode cache value", value_type=type(value).__name__
        ) from e


def decode_value(data: bytes | str | None) -> Any:
    """
    Decode a stored value; None stays None.

    Raises:
        CacheSerializationError: data is not a document written by encode_value
    """
    if data is None:
        return None
    try:
        document = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise CacheSerializationError.from_exception(e, "Failed to decode cache value", size=len(data)) from e

    if not isinstance(document, dict) or "kind" not in document:
        raise CacheSerializationError(
            "Cache value has an unknown layout", details={"layout": type(document).__name__}
        )

    if document["kind"] == _KIND_ENTRY:
        return CacheEntry(
            value=document.get("value"),
            tags=tuple(document.get("tags") or ()),
            timestamp=document.get("timestamp") or 0.0,
        )
    return document.get("value")
