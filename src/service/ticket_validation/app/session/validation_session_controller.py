"""
Validation Session Controller

One controller per ticket per client. Phases:

    IDLE -> AWAITING_LOCATION (geofenced events) -> SESSION_ACTIVE -> IDLE

A session ends on countdown exhaustion, on an externally observed validation,
on cancel() and on close(). Every end stops the session scheduler and bumps
the generation so late rotation results are discarded.
"""

from datetime import datetime, timezone
from functools import partial
from typing import Callable, Optional

from anyio.abc import TaskGroup
from opentelemetry import trace

from src.platform.exception.exceptions import ApiError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.validation_metrics import metrics
from src.service.ticket_validation.app.command.submit_peer_vote_use_case import (
    SubmitPeerVoteUseCase,
)
from src.service.ticket_validation.app.interface.i_qr_renderer import IQrRenderer
from src.service.ticket_validation.app.interface.i_session_broadcaster import (
    ISessionBroadcaster,
)
from src.service.ticket_validation.app.interface.i_ticket_status_watcher import (
    ITicketStatusWatcher,
)
from src.service.ticket_validation.app.interface.i_user_notifier import (
    IUserNotifier,
    NotificationLevel,
)
from src.service.ticket_validation.app.interface.i_validation_api_gateway import (
    IValidationApiGateway,
)
from src.service.ticket_validation.app.session.geofence_gate import GeofenceGate
from src.service.ticket_validation.app.session.session_scheduler import SessionScheduler
from src.service.ticket_validation.app.session.session_timing import SessionTiming
from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.entity.validation_session_entity import (
    ValidationSession,
)
from src.service.ticket_validation.domain.enum.session_state import (
    SessionEndReason,
    SessionPhase,
    SessionRejection,
)
from src.service.ticket_validation.domain.enum.sse_event_type import SseEventType
from src.service.ticket_validation.domain.reentry_policy_domain import assess_eligibility
from src.service.ticket_validation.domain.validation_errors import (
    LocationError,
    QrRenderError,
    SessionStartError,
    VoteError,
)
from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint
from src.service.ticket_validation.domain.value_object.session_snapshot import (
    SessionSnapshot,
    SessionStartResult,
)
from src.service.ticket_validation.domain.value_object.ticket_detail import (
    TicketDetail,
    VoteReceipt,
)
from src.service.ticket_validation.domain.value_object.validity import ValidationEligibility


Clock = Callable[[], datetime]

VOTE_SUBMIT_FAILED = 'Failed to submit vote. Please try again.'


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ValidationSessionController:
    def __init__(
        self,
        *,
        ticket_id: str,
        task_group: TaskGroup,
        api_gateway: IValidationApiGateway,
        qr_renderer: IQrRenderer,
        status_watcher: ITicketStatusWatcher,
        geofence_gate: GeofenceGate,
        notifier: IUserNotifier,
        broadcaster: ISessionBroadcaster,
        vote_use_case: SubmitPeerVoteUseCase,
        timing: SessionTiming | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.ticket_id = ticket_id
        self.task_group = task_group
        self.api_gateway = api_gateway
        self.qr_renderer = qr_renderer
        self.status_watcher = status_watcher
        self.geofence_gate = geofence_gate
        self.notifier = notifier
        self.broadcaster = broadcaster
        self.vote_use_case = vote_use_case
        self.timing = timing or SessionTiming()
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

        self._phase = SessionPhase.IDLE
        self._generation = 0
        self._pending_start = False
        self._closed = False
        self._session: Optional[ValidationSession] = None
        self._scheduler: Optional[SessionScheduler] = None
        self._ticket: Optional[TicketState] = None
        self._event: Optional[EventTiming] = None
        self._baseline: Optional[TicketState] = None
        self._vote_error: Optional[str] = None
        self._last_end_reason: Optional[SessionEndReason] = None

    # ========== Read side ==========

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def session(self) -> Optional[ValidationSession]:
        return self._session

    @property
    def ticket(self) -> Optional[TicketState]:
        return self._ticket

    @property
    def event(self) -> Optional[EventTiming]:
        return self._event

    @property
    def vote_error(self) -> Optional[str]:
        return self._vote_error

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_session_active(self) -> bool:
        return self._phase == SessionPhase.SESSION_ACTIVE

    @property
    def is_idle(self) -> bool:
        return self._phase == SessionPhase.IDLE and not self._pending_start

    def eligibility(self) -> ValidationEligibility:
        """Recomputed for the current instant on every call"""
        return assess_eligibility(self._event, self._ticket, self.clock())

    def snapshot(self) -> SessionSnapshot:
        session = self._session
        return SessionSnapshot(
            ticket_id=self.ticket_id,
            phase=self._phase,
            generation=self._generation,
            remaining_seconds=session.remaining_seconds if session else None,
            code=session.current_code if session else None,
            qr_image=session.qr_image if session else None,
            ticket=self._ticket,
            eligibility=self.eligibility(),
            vote_error=self._vote_error,
            last_end_reason=self._last_end_reason,
            location_request=(
                self.geofence_gate.request
                if self._phase == SessionPhase.AWAITING_LOCATION
                else None
            ),
            captured_at=self.clock(),
        )

    # ========== Commands ==========

    @Logger.io
    async def load(self) -> TicketDetail:
        detail = await self.api_gateway.fetch_ticket_detail(ticket_id=self.ticket_id)
        self._ticket = detail.ticket
        self._event = detail.event
        self._publish()
        return detail

    async def refresh(self) -> Optional[TicketState]:
        try:
            ticket = await self.api_gateway.fetch_ticket_status(ticket_id=self.ticket_id)
        except ApiError as e:
            Logger.base.warning(f'🔄 [SESSION] Refresh failed for ticket {self.ticket_id}: {e}')
            return None
        self._ticket = ticket
        self._publish()
        return ticket

    @Logger.io
    async def start_validation(self) -> SessionStartResult:
        """Full flow: eligibility guard, location when geofenced, session start"""
        if rejected := self._guard():
            return rejected

        location: Optional[GeoPoint] = None
        if self._event is not None and self._event.geofence_enabled:
            self._phase = SessionPhase.AWAITING_LOCATION
            self._publish()
            generation = self._generation
            try:
                location = await self.geofence_gate.acquire_location()
            except LocationError as e:
                if generation == self._generation:
                    self._phase = SessionPhase.IDLE
                    self._publish()
                return self._reject(
                    SessionRejection.LOCATION_UNAVAILABLE, e.message, title='Location Error'
                )
            if generation != self._generation:
                return SessionStartResult(
                    started=False,
                    rejection=SessionRejection.FAILED,
                    message='Validation was cancelled',
                )

        return await self._open_session(location)

    @Logger.io
    async def request_session(self, location: Optional[GeoPoint] = None) -> SessionStartResult:
        if rejected := self._guard():
            return rejected
        if self._event is not None and self._event.geofence_enabled and location is None:
            return self._reject(
                SessionRejection.LOCATION_UNAVAILABLE,
                'Location is required to validate this ticket',
                title='Location Error',
            )
        return await self._open_session(location)

    def cancel(self) -> bool:
        """Stop the session and fetch the final ticket state once. No-op when idle."""
        if self.is_idle:
            return False
        self._end(SessionEndReason.CANCELLED, refresh=True)
        return True

    def close(self) -> None:
        """Teardown: like cancel() without the final refresh"""
        self._closed = True
        if not self.is_idle:
            self._end(SessionEndReason.CLOSED, refresh=False)

    @Logger.io
    async def submit_vote(self, code: str) -> Optional[VoteReceipt]:
        self._vote_error = None
        try:
            receipt = await self.vote_use_case.execute(
                ticket=self._ticket, event=self._event, code=code, now=self.clock()
            )
        except VoteError as e:
            self._vote_error = e.message
            self._publish()
            return None
        except ApiError as e:
            Logger.base.warning(f'🗳️ [SESSION] Vote submission failed for {self.ticket_id}: {e}')
            self._vote_error = VOTE_SUBMIT_FAILED
            self._publish()
            return None

        self.notifier.notify(
            ticket_id=self.ticket_id,
            title='Vote Submitted',
            message=receipt.message or 'Your vote has been recorded.',
            level=NotificationLevel.SUCCESS,
        )
        self._publish()
        return receipt

    # ========== Session lifecycle ==========

    def _guard(self) -> Optional[SessionStartResult]:
        if self._closed:
            return self._reject(SessionRejection.FAILED, 'Validation is no longer available')
        if self._phase != SessionPhase.IDLE or self._pending_start:
            return SessionStartResult(
                started=False,
                rejection=SessionRejection.ALREADY_ACTIVE,
                message='A validation session is already active',
            )
        eligibility = self.eligibility()
        if not eligibility.can_start_session:
            return self._reject(
                SessionRejection.NOT_ELIGIBLE,
                eligibility.reason or 'Validation is not available for this ticket',
            )
        return None

    def _reject(
        self,
        rejection: SessionRejection,
        message: str,
        *,
        title: str = 'Validation Unavailable',
        distance_meters: Optional[float] = None,
    ) -> SessionStartResult:
        metrics.sessions_rejected.labels(rejection=rejection).inc()
        self.notifier.notify(
            ticket_id=self.ticket_id, title=title, message=message, level=NotificationLevel.ERROR
        )
        return SessionStartResult(
            started=False, rejection=rejection, message=message, distance_meters=distance_meters
        )

    async def _open_session(self, location: Optional[GeoPoint]) -> SessionStartResult:
        generation = self._generation
        self._pending_start = True
        with self.tracer.start_as_current_span(
            'session.start',
            attributes={'ticket.id': self.ticket_id, 'geofenced': location is not None},
        ):
            try:
                descriptor = await self.api_gateway.start_session(
                    ticket_id=self.ticket_id, location=location
                )
            except (SessionStartError, ApiError) as e:
                if generation == self._generation:
                    self._pending_start = False
                    self._phase = SessionPhase.IDLE
                    self._publish()
                if isinstance(e, SessionStartError):
                    return self._reject(
                        e.rejection,
                        e.message,
                        title='Validation Failed',
                        distance_meters=e.distance_meters,
                    )
                return self._reject(
                    SessionRejection.FAILED,
                    'Failed to start validation session. Please try again.',
                    title='Validation Failed',
                )

        if generation != self._generation:
            # Cancelled or closed while the start request was in flight
            return SessionStartResult(
                started=False, rejection=SessionRejection.FAILED, message='Validation was cancelled'
            )

        self._pending_start = False
        self._generation += 1
        generation = self._generation
        self._baseline = self._ticket
        self._session = ValidationSession(
            generation=generation,
            remaining_seconds=self.timing.duration_seconds,
            started_at=self.clock(),
            session_token=descriptor.session_token,
        )
        self._phase = SessionPhase.SESSION_ACTIVE
        self._last_end_reason = None

        scheduler = SessionScheduler(
            task_group=self.task_group, name=f'session-{self.ticket_id}-{generation}'
        )
        scheduler.every(self.timing.tick_seconds, self._on_countdown_tick, name='countdown')
        scheduler.every(
            self.timing.rotation_seconds,
            partial(self._rotate, generation),
            name='rotation',
            immediate=True,
            detached=True,
        )
        scheduler.alongside(
            partial(
                self.status_watcher.watch,
                ticket_id=self.ticket_id,
                on_status=partial(self._on_ticket_status, generation),
            ),
            name='status-watch',
        )
        self._scheduler = scheduler
        scheduler.start()

        metrics.sessions_started.labels(geofenced=str(location is not None).lower()).inc()
        metrics.active_sessions.inc()
        Logger.base.info(
            f'🎫 [SESSION] Session {generation} started for ticket {self.ticket_id} '
            f'({self.timing.duration_seconds}s)'
        )
        self._publish()
        return SessionStartResult(started=True)

    def _is_current(self, generation: int) -> bool:
        return (
            self._phase == SessionPhase.SESSION_ACTIVE
            and self._session is not None
            and self._session.generation == generation
        )

    def _end(self, reason: SessionEndReason, *, refresh: bool) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            scheduler.stop()

        was_active = self._session is not None
        self._session = None
        self._generation += 1
        self._pending_start = False
        self._phase = SessionPhase.IDLE
        self._last_end_reason = reason

        if was_active:
            metrics.sessions_ended.labels(reason=reason).inc()
            metrics.active_sessions.dec()
            Logger.base.info(f'🎫 [SESSION] Session ended for ticket {self.ticket_id}: {reason}')

        if refresh:
            self.task_group.start_soon(self.refresh, name=f'refresh:{self.ticket_id}')
        self._publish()

    async def _on_countdown_tick(self) -> None:
        session = self._session
        if session is None:
            return
        if session.tick() == 0:
            self.notifier.notify(
                ticket_id=self.ticket_id,
                title='Session Expired',
                message='The validation session has expired. Start a new one when ready.',
                level=NotificationLevel.WARNING,
            )
            self._end(SessionEndReason.EXPIRED, refresh=True)
            return
        self._publish()

    async def _rotate(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        try:
            proof = await self.api_gateway.fetch_rotating_token(ticket_id=self.ticket_id)
            if not self._is_current(generation):
                metrics.token_rotations.labels(result='discarded').inc()
                Logger.base.debug(
                    f'🔁 [SESSION] Discarding token for ended session {generation} '
                    f'of ticket {self.ticket_id}'
                )
                return
            qr_image = self.qr_renderer.render(token=proof.token)
        except (ApiError, QrRenderError) as e:
            # Next rotation tick retries
            metrics.token_rotations.labels(result='failed').inc()
            Logger.base.warning(f'🔁 [SESSION] Token rotation failed for {self.ticket_id}: {e}')
            return

        if self._session is None:
            return
        self._session.apply_proof(token=proof.token, code=proof.code, qr_image=qr_image)
        metrics.token_rotations.labels(result='applied').inc()
        self._publish()

    async def _on_ticket_status(self, generation: int, ticket: TicketState) -> None:
        if not self._is_current(generation):
            return
        self._ticket = ticket
        if self._baseline is not None and ticket.validation_observed_since(self._baseline):
            self.notifier.notify(
                ticket_id=self.ticket_id,
                title='Ticket Validated',
                message='Your ticket has been successfully validated.',
                level=NotificationLevel.SUCCESS,
            )
            self._end(SessionEndReason.VALIDATED, refresh=False)
            return
        self._publish()

    def _publish(self) -> None:
        self.broadcaster.publish(
            ticket_id=self.ticket_id,
            event_data={
                'event_type': SseEventType.SESSION_UPDATE,
                'data': self.snapshot().to_dict(),
            },
        )
