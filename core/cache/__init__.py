"""Cache Module - Caching services."""
from core.cache.match_cache import (
    MatchCacheService,
    MatchCache,
    DEFAULT_KEY_PREFIX
)

__all__ = [
    'MatchCacheService',
    'MatchCache',
    'DEFAULT_KEY_PREFIX'
]
