"""
Domain services for the attendance client.

- resources: event list, leaderboard, history and titles via the
  stale-while-revalidate layer
- check_in: scan submission, duplicate-scan gate, cache invalidation
- history_stats / achievements: visit statistics and milestone ladders
- invites: broadcast banner and invite sending
"""

from .resources import AttendanceResources, ResourceTtls
from .check_in import CheckInService, ScanGate
from .invites import InviteBanner, InvitePoller

__all__ = [
    "AttendanceResources",
    "ResourceTtls",
    "CheckInService",
    "ScanGate",
    "InviteBanner",
    "InvitePoller",
]
