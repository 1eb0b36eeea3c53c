"""
Caching package for the attendance client.

Provides the expiring key-value cache every resource read goes through,
and the key builders that name cached resources.
"""

from .expiring_cache import ExpiringCache

__all__ = ["ExpiringCache"]
