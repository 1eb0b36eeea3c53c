"""
Attendance tracking client.
"""
