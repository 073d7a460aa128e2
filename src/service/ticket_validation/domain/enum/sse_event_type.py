"""
SSE Event Type Enum

Types of Server-Sent Events pushed to the ticket page.
"""

from enum import StrEnum


class SseEventType(StrEnum):
    INITIAL_STATUS = 'initial_status'
    SESSION_UPDATE = 'session_update'
    NOTIFICATION = 'notification'
