"""Match Cache Service - per-user Redis cache of match results."""
import json
import logging
from typing import Dict, Optional
from urllib.parse import urlparse

from pydantic import ValidationError
from redis import Redis

from core.matching.models import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "match_cache:"

MatchCache = Dict[str, CacheEntry]


def sanitize_url(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    try:
        parsed = urlparse(url)
        if parsed.password:
            sanitized = parsed._replace(
                netloc=f"{parsed.username or ''}:*@{parsed.hostname}:{parsed.port or 6379}"
            )
            return sanitized.geturl()
        return url
    except Exception:
        return url


class MatchCacheService:
    """
    Persists a map of job_id -> CacheEntry per user.

    The whole map is read and written in one go under a single key per user.
    There is no expiry and no merge here: save_match_cache() overwrites
    (last writer wins) and staleness policy belongs to the caller.
    """

    def __init__(self, redis_client: Redis, key_prefix: str = DEFAULT_KEY_PREFIX):
        self._redis = redis_client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        redis_url: str = "redis://localhost:6379/0",
        password: Optional[str] = None,
        key_prefix: str = DEFAULT_KEY_PREFIX
    ) -> "MatchCacheService":
        """Build a cache bound to a new Redis connection."""
        client = Redis.from_url(
            redis_url,
            password=password,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )
        logger.info(f"Match cache using Redis at {sanitize_url(redis_url)}")
        return cls(client, key_prefix=key_prefix)

    def _make_key(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    def load_match_cache(self, user_id: Optional[str]) -> MatchCache:
        """Load the user's cache. Absent, corrupt or unreachable -> empty map."""
        if not user_id:
            return {}

        try:
            raw = self._redis.get(self._make_key(user_id))
        except Exception as e:
            logger.warning(f"Error reading match cache for user {user_id}: {e}")
            return {}

        if not raw:
            return {}

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Corrupt match cache for user {user_id}, ignoring: {e}")
            return {}

        if not isinstance(payload, dict):
            logger.warning(f"Unexpected match cache payload for user {user_id}, ignoring")
            return {}

        cache: MatchCache = {}
        for job_id, entry in payload.items():
            try:
                cache[str(job_id)] = CacheEntry.model_validate(entry)
            except ValidationError:
                logger.debug(f"Dropping unreadable cache entry for job {job_id}")
        return cache

    def save_match_cache(self, user_id: Optional[str], cache: MatchCache) -> bool:
        """Overwrite the user's cache with `cache`."""
        if not user_id:
            return False

        try:
            payload = {job_id: entry.model_dump(mode='json') for job_id, entry in cache.items()}
            self._redis.set(self._make_key(user_id), json.dumps(payload))
            logger.debug(f"Saved {len(cache)} cached matches for user {user_id}")
            return True
        except Exception as e:
            logger.warning(f"Error writing match cache for user {user_id}: {e}")
            return False

    def get_cached_match(self, user_id: Optional[str], job_id: str) -> Optional[CacheEntry]:
        return self.load_match_cache(user_id).get(str(job_id))

    def invalidate_job(self, user_id: Optional[str], job_id: str) -> bool:
        """Drop one job from the user's cache (e.g. after the job was edited)."""
        cache = self.load_match_cache(user_id)
        if str(job_id) not in cache:
            return False
        del cache[str(job_id)]
        return self.save_match_cache(user_id, cache)

    def clear_match_cache(self, user_id: Optional[str]) -> bool:
        if not user_id:
            return False

        try:
            self._redis.delete(self._make_key(user_id))
            logger.info(f"Cleared match cache for user {user_id}")
            return True
        except Exception as e:
            logger.warning(f"Error clearing match cache for user {user_id}: {e}")
            return False
