from typing import Optional

import attrs

from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState


@attrs.define(frozen=True)
class TicketDetail:
    ticket: TicketState
    event: Optional[EventTiming] = None


@attrs.define(frozen=True)
class RotatingProof:
    """Short-lived token/code pair shown while a session is active"""

    token: str
    code: str


@attrs.define(frozen=True)
class SessionDescriptor:
    """Server acknowledgement of a session start"""

    session_token: Optional[str] = None
    expires_in_seconds: Optional[int] = None


@attrs.define(frozen=True)
class VoteReceipt:
    accepted: bool
    vote_count: Optional[int] = None
    message: Optional[str] = None
