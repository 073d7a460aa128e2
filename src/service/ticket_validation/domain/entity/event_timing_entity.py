from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import attrs

from src.service.ticket_validation.domain.enum.validation_policy import (
    EarlyValidationPolicy,
    ReentryType,
)


# Validation stays open this long after start when the event has no configured end
DEFAULT_VALIDITY_SPAN = timedelta(hours=24)

EARLY_VALIDATION_OFFSETS: dict[EarlyValidationPolicy, timedelta] = {
    EarlyValidationPolicy.AT_START_TIME: timedelta(0),
    EarlyValidationPolicy.ONE_HOUR_BEFORE: timedelta(hours=1),
    EarlyValidationPolicy.TWO_HOURS_BEFORE: timedelta(hours=2),
}


def _validate_max_uses(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value < 1:
        raise ValueError(f'Event {attribute.name} must be at least 1')


def _validate_timezone(instance: object, attribute: attrs.Attribute, value: str) -> None:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f'Unknown event timezone: {value}') from e


@attrs.define(frozen=True)
class EventTiming:
    """
    Timing and validation capabilities of an event.

    Date/time pairs are naive on the wire and are interpreted in `timezone`.
    """

    start_date: date
    start_time: time
    end_date: Optional[date] = None
    end_time: Optional[time] = None
    timezone: str = attrs.field(default='UTC', validator=_validate_timezone)
    early_validation: EarlyValidationPolicy = EarlyValidationPolicy.ALLOW_ANYTIME
    reentry_type: ReentryType = ReentryType.SINGLE_USE
    max_uses: int = attrs.field(default=1, validator=_validate_max_uses)
    geofence_enabled: bool = False
    geofence_radius_meters: Optional[int] = None
    voting_enabled: bool = False
    p2p_validation_enabled: bool = False
    event_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def has_configured_end(self) -> bool:
        return self.end_date is not None and self.end_time is not None

    def start_at(self) -> datetime:
        return datetime.combine(self.start_date, self.start_time, tzinfo=self.tzinfo)

    def opens_at(self) -> Optional[datetime]:
        """None when validation is allowed at any time before the close"""
        offset = EARLY_VALIDATION_OFFSETS.get(self.early_validation)
        if offset is None:
            return None
        return self.start_at() - offset

    def closes_at(self) -> datetime:
        if self.end_date is not None and self.end_time is not None:
            return datetime.combine(self.end_date, self.end_time, tzinfo=self.tzinfo)
        return self.start_at() + DEFAULT_VALIDITY_SPAN
