"""
Re-entry Policy Domain

Use-budget rules per re-entry type and their composition with the validity
window and the voting period into a single eligibility answer.
"""

from datetime import datetime
from typing import Optional

from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.enum.session_state import TicketDisplayState
from src.service.ticket_validation.domain.enum.validation_policy import ReentryType
from src.service.ticket_validation.domain.validity_window_domain import evaluate
from src.service.ticket_validation.domain.value_object.validity import (
    UseBudget,
    ValidationEligibility,
)
from src.service.ticket_validation.domain.voting_period_domain import is_voting_open


def assess_use_budget(event: EventTiming, ticket: TicketState) -> UseBudget:
    if event.reentry_type == ReentryType.SINGLE_USE:
        if ticket.is_validated:
            return UseBudget(
                allowed=False,
                display_state=TicketDisplayState.ALREADY_USED,
                reason='This ticket has already been used',
            )
        return UseBudget(allowed=True, display_state=TicketDisplayState.READY)

    if event.reentry_type == ReentryType.PASS:
        if ticket.use_count >= event.max_uses:
            return UseBudget(
                allowed=False,
                display_state=TicketDisplayState.USES_EXHAUSTED,
                reason=f'All {event.max_uses} uses of this pass have been used',
            )
        if ticket.use_count > 0:
            return UseBudget(allowed=True, display_state=TicketDisplayState.REENTRY_AVAILABLE)
        return UseBudget(allowed=True, display_state=TicketDisplayState.READY)

    # No limit
    if ticket.is_validated or ticket.use_count > 0:
        return UseBudget(allowed=True, display_state=TicketDisplayState.REENTRY_AVAILABLE)
    return UseBudget(allowed=True, display_state=TicketDisplayState.READY)


def is_voting_mode(event: EventTiming, ticket: TicketState) -> bool:
    return event.voting_enabled and event.p2p_validation_enabled and ticket.is_validated


@Logger.io
def assess_eligibility(
    event: Optional[EventTiming], ticket: Optional[TicketState], now: datetime
) -> ValidationEligibility:
    window = evaluate(event, now)
    if event is None or ticket is None:
        return ValidationEligibility(
            display_state=TicketDisplayState.UNAVAILABLE,
            window=window,
            can_start_session=False,
            reason=window.reason or 'Ticket data not available',
        )

    # Voting supersedes both the window and the use budget once validated
    if is_voting_mode(event, ticket):
        voting = is_voting_open(event, now)
        return ValidationEligibility(
            display_state=TicketDisplayState.VOTING,
            window=window,
            can_start_session=False,
            can_vote=voting.is_valid,
            voting=voting,
            reason=voting.reason,
        )

    budget = assess_use_budget(event, ticket)
    if not budget.allowed:
        return ValidationEligibility(
            display_state=budget.display_state,
            window=window,
            can_start_session=False,
            reason=budget.reason,
        )

    return ValidationEligibility(
        display_state=budget.display_state,
        window=window,
        can_start_session=window.valid,
        reason=window.reason,
    )
