"""
Validity Window Domain

Decides whether validation is permitted at a given instant. Pure: the result
is recomputed on every call and no state is kept between calls.
"""

from datetime import datetime, tzinfo
from typing import Optional

from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.enum.validation_policy import EarlyValidationPolicy
from src.service.ticket_validation.domain.enum.window_status import WindowStatus
from src.service.ticket_validation.domain.value_object.validity import ValidityResult


INSTANT_FORMAT = '%Y-%m-%dT%H:%M'
EVENT_DATA_NOT_AVAILABLE = 'Event data not available'

_EARLY_VALIDATION_HINTS: dict[EarlyValidationPolicy, str] = {
    EarlyValidationPolicy.AT_START_TIME: 'at event start',
    EarlyValidationPolicy.ONE_HOUR_BEFORE: '1 hour before event',
    EarlyValidationPolicy.TWO_HOURS_BEFORE: '2 hours before event',
}


def format_instant(instant: datetime, *, zone: tzinfo) -> str:
    return instant.astimezone(zone).strftime(INSTANT_FORMAT)


def localize(now: datetime, *, zone: tzinfo) -> datetime:
    """Naive instants are read in the event's zone"""
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now


def evaluate(event: Optional[EventTiming], now: datetime) -> ValidityResult:
    if event is None:
        return ValidityResult(
            valid=False, status=WindowStatus.UNAVAILABLE, reason=EVENT_DATA_NOT_AVAILABLE
        )

    zone = event.tzinfo
    now = localize(now, zone=zone)
    start = event.start_at()

    opens_at = event.opens_at()
    if opens_at is not None and now < opens_at:
        hint = _EARLY_VALIDATION_HINTS[event.early_validation]
        return ValidityResult(
            valid=False,
            status=WindowStatus.NOT_YET_OPEN,
            reason=f'Validation begins at {format_instant(opens_at, zone=zone)} ({hint})',
        )

    closes_at = event.closes_at()
    if now > closes_at:
        if event.has_configured_end:
            return ValidityResult(
                valid=False,
                status=WindowStatus.ENDED,
                reason=f'Event has ended. It ended on {format_instant(closes_at, zone=zone)}',
            )
        return ValidityResult(
            valid=False,
            status=WindowStatus.EXPIRED,
            reason=(
                f'Ticket has expired. It was valid until {format_instant(closes_at, zone=zone)}, '
                f'24 hours after {format_instant(start, zone=zone)}'
            ),
        )

    return ValidityResult(valid=True, status=WindowStatus.OPEN)
