from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.service.ticket_validation.domain.enum.session_state import (
    SessionEndReason,
    SessionPhase,
    SessionRejection,
    TicketDisplayState,
)
from src.service.ticket_validation.domain.enum.window_status import VotingPhase, WindowStatus


class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ========== Requests ==========


class LocationFixRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    accuracy_meters: Optional[float] = Field(default=None, ge=0)
    captured_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            'examples': [
                {'lat': 25.0330, 'lng': 121.5654, 'accuracy_meters': 12.5},
            ]
        }


class LocationUnavailableRequest(BaseModel):
    reason: Optional[str] = None


class LocationPermissionRequest(BaseModel):
    granted: bool


class SessionStartRequest(BaseModel):
    """Optional pre-acquired coordinates; omitted means acquire via the device feed"""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class VoteRequest(BaseModel):
    validation_code: str = Field(max_length=32)

    class Config:
        json_schema_extra = {'examples': [{'validation_code': 'AB12'}]}


# ========== Responses ==========


class TicketStateResponse(_FromDomain):
    ticket_id: str
    is_validated: bool
    validated_at: Optional[datetime] = None
    use_count: int
    validation_code: Optional[str] = None
    vote_count: int


class ValidityResponse(_FromDomain):
    valid: bool
    status: WindowStatus
    reason: Optional[str] = None


class VotingWindowResponse(_FromDomain):
    is_valid: bool
    phase: VotingPhase
    reason: Optional[str] = None


class EligibilityResponse(_FromDomain):
    display_state: TicketDisplayState
    window: ValidityResponse
    can_start_session: bool
    can_vote: bool
    voting: Optional[VotingWindowResponse] = None
    reason: Optional[str] = None


class LocationRequestResponse(_FromDomain):
    high_accuracy: bool
    timeout_seconds: float
    maximum_age_seconds: float


class SessionSnapshotResponse(_FromDomain):
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            'example': {
                'ticket_id': '42',
                'phase': 'session_active',
                'generation': 3,
                'remaining_seconds': 172,
                'code': '4821',
                'qr_image': 'data:image/png;base64,iVBORw0KGgo...',
                'vote_error': None,
                'last_end_reason': None,
            }
        },
    )

    ticket_id: str
    phase: SessionPhase
    generation: int
    remaining_seconds: Optional[int] = None
    code: Optional[str] = None
    qr_image: Optional[str] = None
    ticket: Optional[TicketStateResponse] = None
    eligibility: Optional[EligibilityResponse] = None
    vote_error: Optional[str] = None
    last_end_reason: Optional[SessionEndReason] = None
    location_request: Optional[LocationRequestResponse] = None


class SessionStartResponse(_FromDomain):
    started: bool
    rejection: Optional[SessionRejection] = None
    message: Optional[str] = None
    distance_meters: Optional[float] = None


class SessionCancelResponse(BaseModel):
    cancelled: bool


class VoteResponse(BaseModel):
    accepted: bool
    vote_count: Optional[int] = None
    message: Optional[str] = None
    error: Optional[str] = None


class EligibilityPreviewResponse(BaseModel):
    ticket: TicketStateResponse
    eligibility: EligibilityResponse
    event_name: Optional[str] = None
    geofence_enabled: bool = False
    geofence_radius_meters: Optional[int] = None
