"""Ticket Validation Domain Value Objects"""

from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint, PositionFix
from src.service.ticket_validation.domain.value_object.location_request import LocationRequest
from src.service.ticket_validation.domain.value_object.session_snapshot import (
    SessionSnapshot,
    SessionStartResult,
)
from src.service.ticket_validation.domain.value_object.ticket_detail import (
    RotatingProof,
    SessionDescriptor,
    TicketDetail,
    VoteReceipt,
)
from src.service.ticket_validation.domain.value_object.validity import (
    UseBudget,
    ValidationEligibility,
    ValidityResult,
    VotingWindow,
)

__all__ = [
    'GeoPoint',
    'LocationRequest',
    'PositionFix',
    'RotatingProof',
    'SessionDescriptor',
    'SessionSnapshot',
    'SessionStartResult',
    'TicketDetail',
    'UseBudget',
    'ValidationEligibility',
    'ValidityResult',
    'VoteReceipt',
    'VotingWindow',
]
