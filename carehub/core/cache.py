"""
Read-path caching on top of the Redis client.

Payloads are stored as JSON strings. The cache is opportunistic: when it is
disabled or Redis misbehaves the helpers log the problem and behave like a
miss, so callers always fall back to the database.
"""
from typing import Any, Mapping, Optional, Union
import json
import logging

from redis.exceptions import RedisError

from .config import settings
from .database import get_redis

logger = logging.getLogger(__name__)

DEFAULT_TTL = settings.CACHE_DEFAULT_TTL


def get_cache(key: str) -> Optional[Any]:
    """Return the cached value for ``key`` or None."""
    if not settings.CACHE_ENABLED:
        return None

    try:
        data = get_redis().get(key)
    except RedisError as exc:
        logger.error(f"[Cache] Error getting key {key}: {exc}")
        return None

    if data is None:
        return None

    try:
        return json.loads(data)
    except (TypeError, ValueError) as exc:
        logger.warning(f"[Cache] Discarding undecodable value for {key}: {exc}")
        return None


def set_cache(key: str, data: Any, ttl: int = DEFAULT_TTL) -> bool:
    """Store ``data`` under ``key`` for ``ttl`` seconds."""
    if not settings.CACHE_ENABLED:
        return False

    try:
        get_redis().setex(key, ttl, json.dumps(data, default=str))
        return True
    except RedisError as exc:
        logger.error(f"[Cache] Error setting key {key}: {exc}")
        return False


def delete_cache(key: str) -> bool:
    if not settings.CACHE_ENABLED:
        return False

    try:
        get_redis().delete(key)
        return True
    except RedisError as exc:
        logger.error(f"[Cache] Error deleting key {key}: {exc}")
        return False


def delete_cache_by_pattern(pattern: str) -> int:
    """Delete every key matching a glob ``pattern``; returns how many went."""
    if not settings.CACHE_ENABLED:
        return 0

    client = get_redis()
    try:
        keys = client.keys(pattern)
        if not keys:
            return 0
        client.delete(*keys)
        return len(keys)
    except RedisError as exc:
        logger.error(f"[Cache] Error deleting pattern {pattern}: {exc}")
        return 0


def generate_cache_key(prefix: str, identifier: Union[str, int, Mapping[str, Any]]) -> str:
    """
    Build a cache key.

    Scalars give ``prefix:identifier``. Mappings are flattened with sorted
    keys, e.g. ``generate_cache_key("hospitals", {"state": "", "city": "Pune"})``
    gives ``hospitals:city:Pune|state:``.
    """
    if isinstance(identifier, Mapping):
        key_string = "|".join(
            f"{key}:{'' if identifier[key] is None else identifier[key]}"
            for key in sorted(identifier)
        )
        return f"{prefix}:{key_string}"
    return f"{prefix}:{identifier}"
