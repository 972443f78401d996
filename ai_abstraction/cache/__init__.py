from .response_cache import CacheEntry, ResponseCache, generate_cache_key

__all__ = ["CacheEntry", "ResponseCache", "generate_cache_key"]
