from collections.abc import AsyncIterator
from typing import Optional

import anyio
from fastapi import APIRouter, Depends, Response, status
import orjson
from sse_starlette.sse import EventSourceResponse

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.exception.exceptions import ApiError
from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.app.query.get_validation_eligibility_use_case import (
    GetValidationEligibilityUseCase,
)
from src.service.ticket_validation.app.session.validation_session_controller import (
    ValidationSessionController,
)
from src.service.ticket_validation.domain.enum.sse_event_type import SseEventType
from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint
from src.service.ticket_validation.driving_adapter.http_controller.schema.validation_schema import (
    EligibilityPreviewResponse,
    EligibilityResponse,
    SessionCancelResponse,
    SessionSnapshotResponse,
    SessionStartRequest,
    SessionStartResponse,
    TicketStateResponse,
    VoteRequest,
    VoteResponse,
)


router = APIRouter()


async def _controller(ticket_id: str) -> ValidationSessionController:
    return await container.session_registry().get_or_create(ticket_id)


@router.get('/{ticket_id}/validation', response_model=SessionSnapshotResponse)
@Logger.io
async def get_validation_state(ticket_id: str) -> SessionSnapshotResponse:
    """Current session snapshot (phase, countdown, code, QR) with eligibility"""
    controller = await _controller(ticket_id)
    return SessionSnapshotResponse.model_validate(controller.snapshot())


@router.delete('/{ticket_id}/validation', status_code=status.HTTP_204_NO_CONTENT)
@Logger.io
async def close_validation(ticket_id: str) -> None:
    """Page teardown: stop any session without a final refresh and drop the controller"""
    container.session_registry().discard(ticket_id)


@router.post('/{ticket_id}/validation/session', response_model=SessionStartResponse)
@Logger.io
async def start_validation_session(
    ticket_id: str,
    response: Response,
    request: Optional[SessionStartRequest] = None,
) -> SessionStartResponse:
    """
    Start a validation session.

    Without a body the device location feed is used when the event is
    geofenced; with {lat, lng} those coordinates are forwarded as-is.
    Rejections are reported in the body (started=false), never as errors.
    """
    controller = await _controller(ticket_id)
    if request is None:
        result = await controller.start_validation()
    else:
        result = await controller.request_session(GeoPoint(lat=request.lat, lng=request.lng))

    if result.started:
        response.status_code = status.HTTP_201_CREATED
    return SessionStartResponse.model_validate(result)


@router.delete('/{ticket_id}/validation/session', response_model=SessionCancelResponse)
@Logger.io
async def cancel_validation_session(ticket_id: str) -> SessionCancelResponse:
    controller = container.session_registry().get(ticket_id)
    return SessionCancelResponse(cancelled=controller.cancel() if controller else False)


@router.post('/{ticket_id}/validation/refresh', response_model=TicketStateResponse)
@Logger.io
async def refresh_ticket_status(ticket_id: str) -> TicketStateResponse:
    """Re-fetch ticket status (also the "Refresh Vote Count" action)"""
    controller = await _controller(ticket_id)
    ticket = await controller.refresh()
    if ticket is None:
        raise ApiError('Failed to refresh ticket status')
    return TicketStateResponse.model_validate(ticket)


@router.post('/{ticket_id}/validation/vote', response_model=VoteResponse)
@Logger.io
async def submit_peer_vote(ticket_id: str, request: VoteRequest) -> VoteResponse:
    """Vote for another attendee's ticket by its validation code; errors are inline"""
    controller = await _controller(ticket_id)
    receipt = await controller.submit_vote(request.validation_code)
    if receipt is None:
        return VoteResponse(accepted=False, error=controller.vote_error)
    return VoteResponse(accepted=True, vote_count=receipt.vote_count, message=receipt.message)


@router.get('/{ticket_id}/validation/eligibility', response_model=EligibilityPreviewResponse)
@Logger.io
async def preview_eligibility(
    ticket_id: str,
    use_case: GetValidationEligibilityUseCase = Depends(GetValidationEligibilityUseCase.depends),
) -> EligibilityPreviewResponse:
    """Stateless eligibility check; does not open a session controller"""
    detail, eligibility = await use_case.execute(ticket_id=ticket_id)
    return EligibilityPreviewResponse(
        ticket=TicketStateResponse.model_validate(detail.ticket),
        eligibility=EligibilityResponse.model_validate(eligibility),
        event_name=detail.event.name if detail.event else None,
        geofence_enabled=detail.event.geofence_enabled if detail.event else False,
        geofence_radius_meters=detail.event.geofence_radius_meters if detail.event else None,
    )


@router.get('/{ticket_id}/validation/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_validation_session(ticket_id: str) -> EventSourceResponse:
    """
    SSE stream of session snapshots and notifications for one ticket

    Flow:
    1. Client connects, receives the current snapshot as initial_status
    2. session_update on every countdown tick, rotation and status change
    3. notification for one-shot messages (expired, validated, errors)
    """
    controller = await _controller(ticket_id)
    broadcaster = container.session_broadcaster()
    stream = await broadcaster.subscribe(ticket_id=ticket_id)
    Logger.base.info(f'📡 [SSE] Client subscribing to ticket={ticket_id}')

    async def event_generator() -> AsyncIterator[dict[str, str]]:
        try:
            yield {
                'event': SseEventType.INITIAL_STATUS,
                'data': orjson.dumps(controller.snapshot().to_dict()).decode(),
            }
            async for event_data in stream:
                yield {
                    'event': event_data['event_type'],
                    'data': orjson.dumps(event_data['data']).decode(),
                }
        except anyio.get_cancelled_exc_class():
            Logger.base.info(f'🔌 [SSE] Client disconnected: ticket={ticket_id}')
            raise
        finally:
            with anyio.CancelScope(shield=True):
                await broadcaster.unsubscribe(ticket_id=ticket_id, stream=stream)
            container.session_registry().discard_if_idle(ticket_id)

    return EventSourceResponse(event_generator(), ping=settings.SSE_PING_SECONDS)
