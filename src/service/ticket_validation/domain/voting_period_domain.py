"""
Voting Period Domain

Peer voting opens at the event start and stays open until the same close
instant the validity window uses.
"""

from datetime import datetime
from typing import Optional

from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.enum.window_status import VotingPhase
from src.service.ticket_validation.domain.validity_window_domain import (
    EVENT_DATA_NOT_AVAILABLE,
    format_instant,
    localize,
)
from src.service.ticket_validation.domain.value_object.validity import VotingWindow


def is_voting_open(event: Optional[EventTiming], now: datetime) -> VotingWindow:
    if event is None:
        return VotingWindow(
            is_valid=False, phase=VotingPhase.NOT_STARTED, reason=EVENT_DATA_NOT_AVAILABLE
        )

    zone = event.tzinfo
    now = localize(now, zone=zone)
    start = event.start_at()
    closes_at = event.closes_at()

    if now < start:
        return VotingWindow(
            is_valid=False,
            phase=VotingPhase.NOT_STARTED,
            reason=f'Voting starts at {format_instant(start, zone=zone)}',
        )
    if now > closes_at:
        return VotingWindow(
            is_valid=False,
            phase=VotingPhase.ENDED,
            reason=f'Voting ended on {format_instant(closes_at, zone=zone)}',
        )
    return VotingWindow(is_valid=True, phase=VotingPhase.ACTIVE)
