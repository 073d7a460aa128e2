"""Ticket Validation Domain Enums"""

from src.service.ticket_validation.domain.enum.location_failure_cause import (
    LocationFailureCause,
)
from src.service.ticket_validation.domain.enum.session_state import (
    SessionEndReason,
    SessionPhase,
    SessionRejection,
    TicketDisplayState,
)
from src.service.ticket_validation.domain.enum.sse_event_type import SseEventType
from src.service.ticket_validation.domain.enum.validation_policy import (
    EarlyValidationPolicy,
    ReentryType,
)
from src.service.ticket_validation.domain.enum.window_status import VotingPhase, WindowStatus

__all__ = [
    'EarlyValidationPolicy',
    'LocationFailureCause',
    'ReentryType',
    'SessionEndReason',
    'SessionPhase',
    'SessionRejection',
    'SseEventType',
    'TicketDisplayState',
    'VotingPhase',
    'WindowStatus',
]
