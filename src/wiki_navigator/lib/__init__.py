# ABOUTME: Low-level building blocks with no wiki knowledge
# ABOUTME: Currently the TTL cache shared by every content operation

from .cache import TTLCache, cache_key

__all__ = ["TTLCache", "cache_key"]
