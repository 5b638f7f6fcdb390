"""Caching layer - cache implementations for reducing Spotify API calls."""

from friendbeats.application.cache.base_cache import BaseCache, CacheEntry, InMemoryCache

__all__ = ["BaseCache", "CacheEntry", "InMemoryCache"]
