"""
User session package.
"""

from .user_session import UserSession

__all__ = ["UserSession"]
