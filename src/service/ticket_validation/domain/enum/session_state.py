"""
Validation Session State Enums
"""

from enum import StrEnum


class SessionPhase(StrEnum):
    IDLE = 'idle'
    AWAITING_LOCATION = 'awaiting_location'
    SESSION_ACTIVE = 'session_active'


class SessionEndReason(StrEnum):
    EXPIRED = 'expired'  # Local countdown reached zero
    VALIDATED = 'validated'  # Validation observed via ticket status
    CANCELLED = 'cancelled'
    CLOSED = 'closed'  # Teardown, no refresh


class SessionRejection(StrEnum):
    """Why the server (or the local guard) refused to open a session"""

    OUT_OF_GEOFENCE = 'out_of_geofence'
    NOT_ELIGIBLE = 'not_eligible'
    ALREADY_ACTIVE = 'already_active'
    LOCATION_UNAVAILABLE = 'location_unavailable'
    FAILED = 'failed'


class TicketDisplayState(StrEnum):
    """What the ticket page offers for the current instant"""

    READY = 'ready'
    REENTRY_AVAILABLE = 'reentry_available'
    ALREADY_USED = 'already_used'
    USES_EXHAUSTED = 'uses_exhausted'
    VOTING = 'voting'
    UNAVAILABLE = 'unavailable'
