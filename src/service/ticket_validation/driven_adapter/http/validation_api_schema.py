"""
Ticketing API payloads

The API speaks camelCase JSON; these models translate it into the domain
entities. Unknown fields are ignored.
"""

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.enum.validation_policy import (
    EarlyValidationPolicy,
    ReentryType,
)
from src.service.ticket_validation.domain.value_object.ticket_detail import (
    RotatingProof,
    SessionDescriptor,
    TicketDetail,
    VoteReceipt,
)


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TicketPayload(_ApiModel):
    id: str
    event_id: Optional[str] = None
    is_validated: bool = False
    validated_at: Optional[datetime] = None
    use_count: int = 0
    validation_code: Optional[str] = None
    vote_count: int = 0

    @field_validator('id', 'event_id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator('use_count', 'vote_count', mode='before')
    @classmethod
    def null_count_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    def to_entity(self) -> TicketState:
        return TicketState(
            ticket_id=self.id,
            event_id=self.event_id,
            is_validated=self.is_validated,
            validated_at=self.validated_at,
            use_count=self.use_count,
            validation_code=self.validation_code,
            vote_count=self.vote_count,
        )


class EventPayload(_ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    start_date: date = Field(validation_alias=AliasChoices('date', 'start_date'))
    start_time: time = Field(validation_alias=AliasChoices('time', 'start_time'))
    end_date: Optional[date] = None
    end_time: Optional[time] = None
    timezone: Optional[str] = None
    early_validation: EarlyValidationPolicy = EarlyValidationPolicy.ALLOW_ANYTIME
    reentry_type: ReentryType = ReentryType.SINGLE_USE
    max_uses: int = 1
    geofence: bool = False
    geofence_radius: Optional[int] = None
    enable_voting: bool = False
    p2p_validation: bool = False

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator('end_date', 'end_time', 'timezone', mode='before')
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator('early_validation', 'reentry_type', 'max_uses', mode='before')
    @classmethod
    def null_is_default(cls, v: Any, info: ValidationInfo) -> Any:
        if _blank_to_none(v) is not None:
            return v
        return cls.model_fields[info.field_name].default

    def to_entity(self, *, default_timezone: str) -> EventTiming:
        return EventTiming(
            event_id=self.id,
            name=self.name,
            start_date=self.start_date,
            start_time=self.start_time,
            end_date=self.end_date,
            end_time=self.end_time,
            timezone=self.timezone or default_timezone,
            early_validation=self.early_validation,
            reentry_type=self.reentry_type,
            max_uses=self.max_uses,
            geofence_enabled=self.geofence,
            geofence_radius_meters=self.geofence_radius,
            voting_enabled=self.enable_voting,
            p2p_validation_enabled=self.p2p_validation,
        )


class TicketDetailPayload(_ApiModel):
    ticket: TicketPayload
    event: Optional[EventPayload] = None

    def to_detail(self, *, default_timezone: str) -> TicketDetail:
        return TicketDetail(
            ticket=self.ticket.to_entity(),
            event=self.event.to_entity(default_timezone=default_timezone) if self.event else None,
        )


class RotatingTokenPayload(_ApiModel):
    token: str
    code: str = ''

    def to_proof(self) -> RotatingProof:
        return RotatingProof(token=self.token, code=self.code)


class SessionPayload(_ApiModel):
    session_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('sessionToken', 'token', 'id')
    )
    expires_in: Optional[int] = None

    @field_validator('session_token', mode='before')
    @classmethod
    def coerce_token(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    def to_descriptor(self) -> SessionDescriptor:
        return SessionDescriptor(session_token=self.session_token, expires_in_seconds=self.expires_in)


class VoteRequestPayload(_ApiModel):
    validation_code: str
    voter_id: str


class VoteResultPayload(_ApiModel):
    message: Optional[str] = None
    vote_count: Optional[int] = None

    def to_receipt(self) -> VoteReceipt:
        return VoteReceipt(accepted=True, vote_count=self.vote_count, message=self.message)


class LocationPayload(_ApiModel):
    lat: float
    lng: float
