"""
Stale-while-revalidate orchestration.

One generic abstraction, parameterized by cache key, fetcher and TTL,
that every resource read goes through.
"""

from .revalidator import RefreshScope, ResourceState, StaleWhileRevalidate

__all__ = ["RefreshScope", "ResourceState", "StaleWhileRevalidate"]
