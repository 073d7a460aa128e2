"""
Ticketing API Gateway (httpx)

Endpoints:
- POST /api/tickets/{id}/validate-session   body: {lat, lng} when geofenced
- GET  /api/tickets/{id}/validation-token   -> {token, code}
- GET  /api/tickets/{id}                    -> {ticket, event}
- POST /api/validate/p2p-vote               body: {validationCode, voterId}

Error bodies carry {"message": ...}. Transport failures and unexpected
responses become ApiError; session-start and vote rejections become the
domain errors the controller turns into notifications.
"""

import re
import time
from typing import Any, Optional

import httpx
import orjson
from pydantic import ValidationError

from src.platform.exception.exceptions import ApiError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.validation_metrics import metrics
from src.platform.observability.tracing import inject_trace_context
from src.service.ticket_validation.app.interface.i_validation_api_gateway import (
    IValidationApiGateway,
)
from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.validation_errors import (
    NotEligibleError,
    OutOfGeofenceError,
    SessionStartError,
    VoteRejectedError,
)
from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint
from src.service.ticket_validation.domain.value_object.ticket_detail import (
    RotatingProof,
    SessionDescriptor,
    TicketDetail,
    VoteReceipt,
)
from src.service.ticket_validation.driven_adapter.http.validation_api_schema import (
    LocationPayload,
    RotatingTokenPayload,
    SessionPayload,
    TicketDetailPayload,
    TicketPayload,
    VoteRequestPayload,
    VoteResultPayload,
)


_GEOFENCE_MESSAGE = re.compile(r'location|geofence|too far|distance|\bmeters?\b|\bm away\b', re.I)
_DISTANCE_KEYS = ('distance', 'distanceMeters', 'distance_meters')
_NOT_ELIGIBLE_STATUSES = frozenset({400, 403, 404, 409})


class ValidationApiGatewayImpl(IValidationApiGateway):
    def __init__(
        self,
        *,
        base_url: str,
        access_token: str = '',
        timeout_seconds: float = 10.0,
        default_timezone: str = 'UTC',
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {'Accept': 'application/json'}
        if access_token:
            headers['Authorization'] = f'Bearer {access_token}'
        self.default_timezone = default_timezone
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ========== Endpoints ==========

    @Logger.io
    async def start_session(
        self, *, ticket_id: str, location: Optional[GeoPoint] = None
    ) -> SessionDescriptor:
        body = (
            LocationPayload(lat=location.lat, lng=location.lng).model_dump()
            if location is not None
            else None
        )
        response = await self._send(
            'POST',
            f'/api/tickets/{ticket_id}/validate-session',
            operation='start_session',
            json=body,
        )
        if response.is_success:
            return self._parse(SessionPayload, response).to_descriptor()
        raise self._classify_session_error(response)

    async def fetch_rotating_token(self, *, ticket_id: str) -> RotatingProof:
        response = await self._send(
            'GET', f'/api/tickets/{ticket_id}/validation-token', operation='fetch_rotating_token'
        )
        if not response.is_success:
            raise self._api_error(response)
        return self._parse(RotatingTokenPayload, response).to_proof()

    @Logger.io
    async def fetch_ticket_detail(self, *, ticket_id: str) -> TicketDetail:
        response = await self._send(
            'GET', f'/api/tickets/{ticket_id}', operation='fetch_ticket_detail'
        )
        if not response.is_success:
            raise self._api_error(response)
        payload = self._parse(TicketDetailPayload, response)
        try:
            return payload.to_detail(default_timezone=self.default_timezone)
        except ValueError as e:
            raise ApiError(f'Invalid event data from ticketing API: {e}', status_code=502) from e

    async def fetch_ticket_status(self, *, ticket_id: str) -> TicketState:
        response = await self._send(
            'GET', f'/api/tickets/{ticket_id}', operation='fetch_ticket_status'
        )
        if not response.is_success:
            raise self._api_error(response)
        # Status lives under "ticket"; some deployments return the bare ticket
        data = self._decode(response)
        ticket_data = data.get('ticket', data) if isinstance(data, dict) else data
        try:
            return TicketPayload.model_validate(ticket_data).to_entity()
        except ValidationError as e:
            raise ApiError(
                f'Malformed ticket status from ticketing API: {e.error_count()} error(s)',
                status_code=502,
            ) from e

    @Logger.io
    async def submit_vote(self, *, voter_ticket_id: str, validation_code: str) -> VoteReceipt:
        body = VoteRequestPayload(validation_code=validation_code, voter_id=voter_ticket_id)
        response = await self._send(
            'POST',
            '/api/validate/p2p-vote',
            operation='submit_vote',
            json=body.model_dump(by_alias=True),
        )
        if response.is_success:
            return self._parse(VoteResultPayload, response).to_receipt()
        if response.status_code >= 500:
            raise self._api_error(response)
        raise VoteRejectedError(self._payload_message(response) or 'Invalid validation code')

    # ========== Plumbing ==========

    async def _send(
        self, method: str, path: str, *, operation: str, json: Optional[Any] = None
    ) -> httpx.Response:
        headers = inject_trace_context()
        started = time.perf_counter()
        try:
            content = orjson.dumps(json) if json is not None else None
            if content is not None:
                headers['Content-Type'] = 'application/json'
            return await self._client.request(method, path, content=content, headers=headers)
        except httpx.TimeoutException as e:
            raise ApiError(f'Ticketing API timed out ({operation})', status_code=504) from e
        except httpx.RequestError as e:
            raise ApiError(
                f'Ticketing API unreachable ({operation}): {type(e).__name__}', status_code=503
            ) from e
        finally:
            metrics.upstream_request_duration.labels(operation=operation).observe(
                time.perf_counter() - started
            )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return orjson.loads(response.content) if response.content else {}
        except orjson.JSONDecodeError as e:
            raise ApiError(
                f'Ticketing API returned invalid JSON (HTTP {response.status_code})',
                status_code=502,
            ) from e

    def _parse(self, model: Any, response: httpx.Response) -> Any:
        try:
            return model.model_validate(self._decode(response))
        except ValidationError as e:
            raise ApiError(
                f'Malformed {model.__name__} from ticketing API: {e.error_count()} error(s)',
                status_code=502,
            ) from e

    @staticmethod
    def _error_payload(response: httpx.Response) -> dict:
        try:
            data = orjson.loads(response.content) if response.content else {}
        except orjson.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def _payload_message(self, response: httpx.Response) -> Optional[str]:
        message = self._error_payload(response).get('message')
        return message if isinstance(message, str) and message else None

    def _error_message(self, response: httpx.Response) -> str:
        return (
            self._payload_message(response)
            or response.reason_phrase
            or f'HTTP {response.status_code}'
        )

    def _api_error(self, response: httpx.Response) -> ApiError:
        return ApiError(
            self._error_message(response),
            status_code=response.status_code,
            payload=self._error_payload(response),
        )

    def _classify_session_error(self, response: httpx.Response) -> SessionStartError:
        payload = self._error_payload(response)
        message = self._error_message(response)

        distance = next(
            (payload[key] for key in _DISTANCE_KEYS if isinstance(payload.get(key), int | float)),
            None,
        )
        if distance is not None or _GEOFENCE_MESSAGE.search(message):
            if distance is not None and not _GEOFENCE_MESSAGE.search(message):
                message = f'{message} ({distance:.0f}m from the venue)'
            return OutOfGeofenceError(
                message, distance_meters=float(distance) if distance is not None else None
            )
        if response.status_code in _NOT_ELIGIBLE_STATUSES:
            return NotEligibleError(message)
        return SessionStartError(
            message or 'Failed to create validation session', status_code=response.status_code
        )
