"""
Cache Key Manager

Derives deterministic cache keys from a request descriptor, the context fields
of the call and an optional key template.

KEY FORMAT:
-----------
Without a template the key is the colon-joined list of context segments
followed by a content hash of the variable payload::

    tenant:user:locale:service:method:path:hash
    t1:::Catalog:GET:/Books:9b2f...

Missing fields resolve to empty segments. Colons and percent signs inside a
segment are percent-escaped so two different field combinations can never
join into the same key.

With a template, placeholders are substituted instead::

    "{tenant}:{hash}"        -> "t1:9b2f..."
    "books:{params.ID}"      -> "books:42"
    "catalog"                -> "catalog" (every call shares one key)

CONTENT HASH:
-------------
MD5 over the orjson serialization of the payload with sorted keys, so two
payloads that only differ in key order hash identically. MD5 is fast and the
collision risk is acceptable for a cache (worst case: a miss).
"""

import hashlib
import re
from collections.abc import Mapping
from typing import Any

import orjson

from readthrough.core.config.constants import HASH_PLACEHOLDER, KEY_SEPARATOR, Stage
from readthrough.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

DEFAULT_KEY_FIELDS = ("tenant", "user", "locale", "service", "method", "path")

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][\w.]*)\}")
_HASH_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS


def _default(obj: Any) -> Any:
    """orjson fallback for types it cannot serialize natively."""
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=repr)
    if isinstance(obj, Mapping):
        return dict(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    return str(obj)


def lookup_path(source: Any, path: str) -> Any:
    """
    Resolve a dotted path against nested mappings and attributes.

    Returns None when any segment is missing.
    """
    current = source
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, (list, tuple)) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            current = getattr(current, part, None)
    return current


class KeyManager:
    """
    Builds cache keys and content hashes.

    Contract:
    - same inputs -> same key, always
    - different context fields or payload -> different key, unless a template
      explicitly drops them

    Never raises: unserializable payloads fall back to their repr.
    """

    def create_key(
        self,
        descriptor: Any,
        context_fields: Mapping[str, Any] | None = None,
        template: str | None = None,
    ) -> str:
        """
        Create a cache key.

        Args:
            descriptor: Request descriptor (or any object) whose payload is hashed
            context_fields: tenant, user, locale, service, method, path, ...
            template: Optional key template with {placeholders}

        Returns:
            Deterministic cache key
        """
        fields = dict(context_fields or {})
        content_hash = self.create_content_hash(descriptor)

        if template:
            key = self._render(template, fields, content_hash)
        else:
            segments = [self._escape(self._segment(fields.get(name))) for name in DEFAULT_KEY_FIELDS]
            key = KEY_SEPARATOR.join([*segments, content_hash])

        log_stage(logger, Stage.KEY_DERIVATION, "Cache key derived", level="debug", cache_key=key)
        return key

    def create_content_hash(self, descriptor: Any) -> str:
        """
        Hash the variable data of a descriptor.

        Descriptors expose ``payload()``; any other object is hashed as is.
        """
        payload = descriptor.payload() if hasattr(descriptor, "payload") else descriptor
        try:
            serialized = orjson.dumps(payload, default=_default, option=_HASH_OPTIONS)
        except (TypeError, orjson.JSONEncodeError):
            serialized = repr(payload).encode()
        return hashlib.md5(serialized).hexdigest()

    def _render(self, template: str, fields: dict[str, Any], content_hash: str) -> str:
        def substitute(match: re.Match) -> str:
            name = match.group(1)
            if name == HASH_PLACEHOLDER:
                return content_hash
            return self._segment(lookup_path(fields, name))

        return _PLACEHOLDER.sub(substitute, template)

    @staticmethod
    def _segment(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float, bool)):
            return str(value)
        try:
            return orjson.dumps(value, default=_default, option=_HASH_OPTIONS).decode()
        except (TypeError, orjson.JSONEncodeError):
            return repr(value)

    @staticmethod
    def _escape(segment: str) -> str:
        return segment.replace("%", "%25").replace(KEY_SEPARATOR, "%3A")
