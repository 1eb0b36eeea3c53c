"""
Adapters package for the attendance client.

Contains the HTTP client wrapper for the remote attendance endpoint. The
adapter encapsulates:

- The endpoint URL and its action/query conventions
- Timeouts and redirect handling
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .attendance_client import AttendanceApiClient

__all__ = ["AttendanceApiClient"]
