from typing import Optional

import attrs

from src.service.ticket_validation.domain.enum.session_state import TicketDisplayState
from src.service.ticket_validation.domain.enum.window_status import VotingPhase, WindowStatus


@attrs.define(frozen=True)
class ValidityResult:
    valid: bool
    status: WindowStatus
    reason: Optional[str] = None


@attrs.define(frozen=True)
class VotingWindow:
    is_valid: bool
    phase: VotingPhase
    reason: Optional[str] = None


@attrs.define(frozen=True)
class UseBudget:
    allowed: bool
    display_state: TicketDisplayState
    reason: Optional[str] = None


@attrs.define(frozen=True)
class ValidationEligibility:
    """Composition of window, use budget and voting gates for one instant"""

    display_state: TicketDisplayState
    window: ValidityResult
    can_start_session: bool
    can_vote: bool = False
    voting: Optional[VotingWindow] = None
    reason: Optional[str] = None
