import hashlib
import logging
from collections.abc import Sequence

from django.core.cache import cache

logger = logging.getLogger(__name__)


def _cache_key(scope: str, key_parts: Sequence[str]) -> str:
    material = "\x1f".join(str(part or "").strip().lower() for part in key_parts)
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return f"ratelimit:{scope}:{digest}"


def allow_request(*, scope: str, key_parts: Sequence[str], limit: int, window_seconds: int) -> bool:
    """Fixed-window counter. Returns False once ``limit`` requests were seen in the window."""
    if limit <= 0:
        return True

    key = _cache_key(scope, key_parts)
    if cache.add(key, 1, timeout=window_seconds):
        return True

    try:
        count = cache.incr(key)
    except ValueError:
        # The key expired between add() and incr(); start a new window.
        cache.set(key, 1, timeout=window_seconds)
        return True

    # Some backends drop the TTL on incr().
    cache.touch(key, timeout=window_seconds)
    return count <= limit
