from datetime import datetime
from typing import Any, Optional

import attrs

from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.enum.session_state import (
    SessionEndReason,
    SessionPhase,
    SessionRejection,
)
from src.service.ticket_validation.domain.value_object.location_request import LocationRequest
from src.service.ticket_validation.domain.value_object.validity import ValidationEligibility


@attrs.define(frozen=True)
class SessionSnapshot:
    """Immutable view of a controller, published to the ticket page"""

    ticket_id: str
    phase: SessionPhase
    generation: int
    remaining_seconds: Optional[int] = None
    code: Optional[str] = None
    qr_image: Optional[str] = None
    ticket: Optional[TicketState] = None
    eligibility: Optional[ValidationEligibility] = None
    vote_error: Optional[str] = None
    last_end_reason: Optional[SessionEndReason] = None
    location_request: Optional[LocationRequest] = None  # Set while awaiting a position
    captured_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.phase == SessionPhase.SESSION_ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return attrs.asdict(self, recurse=True)


@attrs.define(frozen=True)
class SessionStartResult:
    started: bool
    rejection: Optional[SessionRejection] = None
    message: Optional[str] = None
    distance_meters: Optional[float] = None
