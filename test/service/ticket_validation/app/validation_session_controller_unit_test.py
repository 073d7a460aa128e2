"""
Unit tests for ValidationSessionController

Runs the controller inside a real anyio task group with in-memory ports.
Timers use short intervals where a test needs them to fire.

Covers:
1. Eligibility guard (no network call when refused)
2. Session start, immediate rotation and status watching
3. Teardown: cancel, expiry and observed validation all stop every timer
4. Late rotation results discarded after teardown
5. Geofenced start and location failures
6. Inline vote errors
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import anyio
import attrs
import pytest

from src.platform.exception.exceptions import ApiError
from src.service.ticket_validation.app.command.submit_peer_vote_use_case import (
    SubmitPeerVoteUseCase,
)
from src.service.ticket_validation.app.interface.i_user_notifier import NotificationLevel
from src.service.ticket_validation.app.session.geofence_gate import GeofenceGate
from src.service.ticket_validation.app.session.session_timing import SessionTiming
from src.service.ticket_validation.app.session.validation_session_controller import (
    VOTE_SUBMIT_FAILED,
    ValidationSessionController,
)
from src.service.ticket_validation.domain.enum.session_state import (
    SessionEndReason,
    SessionPhase,
    SessionRejection,
)
from src.service.ticket_validation.domain.enum.validation_policy import ReentryType
from src.service.ticket_validation.domain.validation_errors import (
    LocationPermissionDeniedError,
    OutOfGeofenceError,
    QrRenderError,
)
from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint
from src.service.ticket_validation.domain.value_object.location_request import LocationRequest
from test.service.ticket_validation.fakes import (
    OWN_CODE,
    TICKET_ID,
    FakeLocationProvider,
    FakeQrRenderer,
    FakeStatusWatcher,
    FakeValidationApiGateway,
    RecordingBroadcaster,
    RecordingNotifier,
    fixed_clock,
    make_event,
    make_ticket,
    unreachable_api,
    wait_until,
)


SLOW_TIMING = SessionTiming(duration_seconds=180, tick_seconds=1.0, rotation_seconds=10.0)
FAST_EXPIRY = SessionTiming(duration_seconds=3, tick_seconds=0.01, rotation_seconds=0.02)


@attrs.define
class Harness:
    controller: ValidationSessionController
    gateway: FakeValidationApiGateway
    qr_renderer: FakeQrRenderer
    watcher: FakeStatusWatcher
    notifier: RecordingNotifier
    broadcaster: RecordingBroadcaster
    location_provider: FakeLocationProvider


@asynccontextmanager
async def running_controller(
    gateway: Optional[FakeValidationApiGateway] = None,
    *,
    timing: SessionTiming = SLOW_TIMING,
    location_provider: Optional[FakeLocationProvider] = None,
) -> AsyncIterator[Harness]:
    gateway = gateway or FakeValidationApiGateway()
    location_provider = location_provider or FakeLocationProvider()
    qr_renderer = FakeQrRenderer()
    watcher = FakeStatusWatcher()
    notifier = RecordingNotifier()
    broadcaster = RecordingBroadcaster()

    async with anyio.create_task_group() as tg:
        controller = ValidationSessionController(
            ticket_id=TICKET_ID,
            task_group=tg,
            api_gateway=gateway,
            qr_renderer=qr_renderer,
            status_watcher=watcher,
            geofence_gate=GeofenceGate(
                location_provider=location_provider,
                request=LocationRequest(timeout_seconds=0.2),
            ),
            notifier=notifier,
            broadcaster=broadcaster,
            vote_use_case=SubmitPeerVoteUseCase(api_gateway=gateway),
            timing=timing,
            clock=fixed_clock(),
        )
        await controller.load()
        try:
            yield Harness(
                controller=controller,
                gateway=gateway,
                qr_renderer=qr_renderer,
                watcher=watcher,
                notifier=notifier,
                broadcaster=broadcaster,
                location_provider=location_provider,
            )
        finally:
            controller.close()
            tg.cancel_scope.cancel()


@pytest.mark.unit
class TestSessionStart:
    @pytest.mark.asyncio
    async def test_starts_with_immediate_rotation(self):
        async with running_controller() as h:
            # Act
            result = await h.controller.request_session()

            # Assert
            assert result.started is True
            assert h.controller.phase == SessionPhase.SESSION_ACTIVE
            assert h.controller.session.remaining_seconds == 180

            await wait_until(lambda: h.controller.session.current_code is not None)
            snapshot = h.controller.snapshot()
            assert snapshot.code == '1001'
            assert snapshot.qr_image == 'data:image/png;base64,token-1'
            assert h.gateway.rotation_calls == 1
            assert h.qr_renderer.rendered == ['token-1']

            await wait_until(lambda: h.watcher.is_watching)
            assert h.watcher.watching == [TICKET_ID]

    @pytest.mark.asyncio
    async def test_publishes_session_snapshots(self):
        async with running_controller() as h:
            await h.controller.request_session()

            last = h.broadcaster.last_snapshot
            assert h.broadcaster.events[-1]['event_type'] == 'session_update'
            assert last['phase'] == SessionPhase.SESSION_ACTIVE
            assert last['remaining_seconds'] == 180
            assert last['ticket_id'] == TICKET_ID

    @pytest.mark.asyncio
    async def test_exhausted_pass_refused_without_network_call(self):
        # Arrange: pass with every use spent, window open
        gateway = FakeValidationApiGateway(
            ticket=make_ticket(is_validated=True, use_count=3),
            event=make_event(reentry_type=ReentryType.PASS, max_uses=3),
        )

        async with running_controller(gateway) as h:
            assert h.controller.eligibility().window.valid is True

            # Act
            result = await h.controller.start_validation()

            # Assert
            assert result.started is False
            assert result.rejection == SessionRejection.NOT_ELIGIBLE
            assert result.message == 'All 3 uses of this pass have been used'
            assert h.gateway.start_calls == []
            assert h.gateway.rotation_calls == 0
            assert h.controller.phase == SessionPhase.IDLE
            assert h.notifier.titles == ['Validation Unavailable']

    @pytest.mark.asyncio
    async def test_second_start_is_refused_while_active(self):
        async with running_controller() as h:
            await h.controller.request_session()

            result = await h.controller.request_session()

            assert result.started is False
            assert result.rejection == SessionRejection.ALREADY_ACTIVE
            assert len(h.gateway.start_calls) == 1

    @pytest.mark.asyncio
    async def test_server_rejection_returns_to_idle(self):
        gateway = FakeValidationApiGateway()
        gateway.start_error = OutOfGeofenceError(
            'You must be within 300m of the venue', distance_meters=850.0
        )

        async with running_controller(gateway) as h:
            result = await h.controller.request_session()

            assert result.started is False
            assert result.rejection == SessionRejection.OUT_OF_GEOFENCE
            assert result.distance_meters == 850.0
            assert h.controller.phase == SessionPhase.IDLE
            assert h.notifier.notifications == [
                (
                    'Validation Failed',
                    'You must be within 300m of the venue',
                    NotificationLevel.ERROR,
                )
            ]

    @pytest.mark.asyncio
    async def test_api_failure_is_reported_not_raised(self):
        gateway = FakeValidationApiGateway()
        gateway.start_error = unreachable_api()

        async with running_controller(gateway) as h:
            result = await h.controller.request_session()

            assert result.started is False
            assert result.rejection == SessionRejection.FAILED
            assert result.message == 'Failed to start validation session. Please try again.'
            assert h.controller.phase == SessionPhase.IDLE

    @pytest.mark.asyncio
    async def test_cancel_while_start_in_flight(self):
        gateway = FakeValidationApiGateway()
        gateway.start_gate = anyio.Event()
        results = []

        async with running_controller(gateway) as h:

            async def start() -> None:
                results.append(await h.controller.request_session())

            async with anyio.create_task_group() as tg:
                tg.start_soon(start)
                await wait_until(lambda: len(gateway.start_calls) == 1)

                assert h.controller.cancel() is True
                gateway.start_gate.set()

            assert results[0].started is False
            assert results[0].message == 'Validation was cancelled'
            assert h.controller.phase == SessionPhase.IDLE
            assert h.controller.session is None
            assert gateway.rotation_calls == 0


@pytest.mark.unit
class TestSessionTeardown:
    @pytest.mark.asyncio
    async def test_late_rotation_discarded_and_restart_is_clean(self):
        gateway = FakeValidationApiGateway()
        gateway.rotation_gate = anyio.Event()

        async with running_controller(gateway) as h:
            # Arrange: first rotation fetch is in flight
            await h.controller.request_session()
            await wait_until(lambda: gateway.rotation_calls == 1)

            # Act: cancel, then let the fetch resolve
            assert h.controller.cancel() is True
            assert h.controller.cancel() is False
            gateway.rotation_gate.set()
            await wait_until(lambda: gateway.rotation_completed == 1)
            await anyio.sleep(0.02)

            # Assert: nothing resurrected
            snapshot = h.controller.snapshot()
            assert snapshot.phase == SessionPhase.IDLE
            assert snapshot.code is None
            assert snapshot.qr_image is None
            assert snapshot.last_end_reason == SessionEndReason.CANCELLED
            assert h.qr_renderer.rendered == []
            assert h.watcher.is_watching is False
            await wait_until(lambda: gateway.status_calls == 1)

            # Act: start again
            gateway.rotation_gate = None
            result = await h.controller.request_session()

            # Assert: fresh countdown and exactly one new immediate fetch
            assert result.started is True
            assert h.controller.session.remaining_seconds == 180
            assert h.controller.session.current_code is None
            await wait_until(lambda: h.controller.session.current_code is not None)
            assert gateway.rotation_calls == 2
            assert h.controller.session.current_code == '1002'
            assert h.qr_renderer.rendered == ['token-2']

    @pytest.mark.asyncio
    async def test_countdown_exhaustion_cleans_up_once(self):
        async with running_controller(timing=FAST_EXPIRY) as h:
            # Act
            await h.controller.request_session()
            await wait_until(lambda: h.controller.phase == SessionPhase.IDLE)

            # Assert: timers stopped and display cleared
            rotations_at_end = h.gateway.rotation_calls
            snapshot = h.controller.snapshot()
            assert snapshot.last_end_reason == SessionEndReason.EXPIRED
            assert snapshot.code is None
            assert snapshot.qr_image is None
            assert snapshot.remaining_seconds is None
            assert 'Session Expired' in h.notifier.titles

            # Assert: exactly one final status refresh, no more rotations
            await wait_until(lambda: h.gateway.status_calls == 1)
            await anyio.sleep(0.1)
            assert h.gateway.status_calls == 1
            assert h.gateway.rotation_calls == rotations_at_end

    @pytest.mark.asyncio
    async def test_countdown_ticks_down(self):
        timing = SessionTiming(duration_seconds=180, tick_seconds=0.01, rotation_seconds=10.0)

        async with running_controller(timing=timing) as h:
            await h.controller.request_session()

            await wait_until(lambda: h.controller.session.remaining_seconds <= 175)
            assert h.controller.phase == SessionPhase.SESSION_ACTIVE

    @pytest.mark.asyncio
    async def test_observed_validation_ends_session_without_refresh(self):
        async with running_controller() as h:
            await h.controller.request_session()
            await wait_until(lambda: h.watcher.is_watching)

            # Act
            await h.watcher.emit(make_ticket(is_validated=True, use_count=1))

            # Assert
            assert h.controller.phase == SessionPhase.IDLE
            assert h.controller.snapshot().last_end_reason == SessionEndReason.VALIDATED
            assert h.controller.ticket.is_validated is True
            assert h.notifier.notifications[-1] == (
                'Ticket Validated',
                'Your ticket has been successfully validated.',
                NotificationLevel.SUCCESS,
            )
            await anyio.sleep(0.02)
            assert h.gateway.status_calls == 0

    @pytest.mark.asyncio
    async def test_unchanged_status_keeps_session(self):
        async with running_controller() as h:
            await h.controller.request_session()
            await wait_until(lambda: h.watcher.is_watching)

            await h.watcher.emit(make_ticket(vote_count=2))

            assert h.controller.phase == SessionPhase.SESSION_ACTIVE
            assert h.controller.ticket.vote_count == 2

    @pytest.mark.asyncio
    async def test_rotation_failure_keeps_session_active(self):
        gateway = FakeValidationApiGateway()
        gateway.rotation_error = unreachable_api()

        async with running_controller(gateway) as h:
            await h.controller.request_session()
            await wait_until(lambda: gateway.rotation_completed == 1)

            assert h.controller.phase == SessionPhase.SESSION_ACTIVE
            assert h.controller.session.current_code is None
            assert h.qr_renderer.rendered == []

    @pytest.mark.asyncio
    async def test_render_failure_keeps_session_active(self):
        gateway = FakeValidationApiGateway()

        async with running_controller(gateway) as h:
            h.qr_renderer.error = QrRenderError('Token too long for a QR code (8000 chars)')
            await h.controller.request_session()
            await wait_until(lambda: gateway.rotation_completed == 1)

            assert h.controller.phase == SessionPhase.SESSION_ACTIVE
            assert h.controller.session.current_code is None
            assert h.controller.snapshot().qr_image is None

    @pytest.mark.asyncio
    async def test_close_ends_session_without_refresh(self):
        async with running_controller() as h:
            await h.controller.request_session()

            h.controller.close()
            h.controller.close()

            assert h.controller.is_closed is True
            assert h.controller.snapshot().last_end_reason == SessionEndReason.CLOSED
            await anyio.sleep(0.02)
            assert h.gateway.status_calls == 0

            result = await h.controller.request_session()
            assert result.started is False
            assert result.message == 'Validation is no longer available'

    @pytest.mark.asyncio
    async def test_cancel_when_idle_is_noop(self):
        async with running_controller() as h:
            assert h.controller.cancel() is False
            await anyio.sleep(0.01)
            assert h.gateway.status_calls == 0


@pytest.mark.unit
class TestGeofencedStart:
    @pytest.mark.asyncio
    async def test_location_is_sent_with_session_start(self):
        gateway = FakeValidationApiGateway(event=make_event(geofence_enabled=True))
        provider = FakeLocationProvider(point=GeoPoint(lat=25.04, lng=121.56))

        async with running_controller(gateway, location_provider=provider) as h:
            result = await h.controller.start_validation()

            assert result.started is True
            assert gateway.start_calls == [GeoPoint(lat=25.04, lng=121.56)]

    @pytest.mark.asyncio
    async def test_permission_denied_is_notified(self):
        gateway = FakeValidationApiGateway(event=make_event(geofence_enabled=True))
        provider = FakeLocationProvider(error=LocationPermissionDeniedError())

        async with running_controller(gateway, location_provider=provider) as h:
            result = await h.controller.start_validation()

            assert result.started is False
            assert result.rejection == SessionRejection.LOCATION_UNAVAILABLE
            assert h.controller.phase == SessionPhase.IDLE
            assert gateway.start_calls == []
            title, message, level = h.notifier.notifications[-1]
            assert title == 'Location Error'
            assert message.startswith('Location permission denied.')
            assert level == NotificationLevel.ERROR

    @pytest.mark.asyncio
    async def test_location_timeout(self):
        gateway = FakeValidationApiGateway(event=make_event(geofence_enabled=True))
        provider = FakeLocationProvider()
        provider.hang = True

        async with running_controller(gateway, location_provider=provider) as h:
            result = await h.controller.start_validation()

            assert result.rejection == SessionRejection.LOCATION_UNAVAILABLE
            assert result.message == 'Location request timed out. Please try again.'
            assert h.controller.phase == SessionPhase.IDLE

    @pytest.mark.asyncio
    async def test_pending_location_request_is_published(self):
        gateway = FakeValidationApiGateway(event=make_event(geofence_enabled=True))
        provider = FakeLocationProvider()
        provider.hang = True

        async with running_controller(gateway, location_provider=provider) as h:
            assert h.controller.snapshot().location_request is None

            async with anyio.create_task_group() as tg:
                tg.start_soon(h.controller.start_validation)
                await wait_until(lambda: h.controller.phase == SessionPhase.AWAITING_LOCATION)

                # The page needs the request options to query the device
                assert h.broadcaster.last_snapshot['location_request'] == {
                    'high_accuracy': True,
                    'timeout_seconds': 0.2,
                    'maximum_age_seconds': 0.0,
                }
                assert provider.requests == [LocationRequest(timeout_seconds=0.2)]

            assert h.controller.phase == SessionPhase.IDLE
            assert h.broadcaster.last_snapshot['location_request'] is None

    @pytest.mark.asyncio
    async def test_request_without_location_is_refused(self):
        gateway = FakeValidationApiGateway(event=make_event(geofence_enabled=True))

        async with running_controller(gateway) as h:
            result = await h.controller.request_session()

            assert result.rejection == SessionRejection.LOCATION_UNAVAILABLE
            assert gateway.start_calls == []

    @pytest.mark.asyncio
    async def test_request_with_reported_location(self):
        gateway = FakeValidationApiGateway(event=make_event(geofence_enabled=True))

        async with running_controller(gateway) as h:
            result = await h.controller.request_session(GeoPoint(lat=1.0, lng=2.0))

            assert result.started is True
            assert gateway.start_calls == [GeoPoint(lat=1.0, lng=2.0)]


@pytest.mark.unit
class TestPeerVote:
    @pytest.fixture
    def voting_gateway(self) -> FakeValidationApiGateway:
        return FakeValidationApiGateway(
            ticket=make_ticket(is_validated=True, use_count=1),
            event=make_event(voting_enabled=True, p2p_validation_enabled=True),
        )

    @pytest.mark.asyncio
    async def test_self_vote_is_inline_error(self, voting_gateway):
        async with running_controller(voting_gateway) as h:
            receipt = await h.controller.submit_vote(OWN_CODE.lower())

            assert receipt is None
            assert h.controller.vote_error == "You can't vote for yourself."
            assert voting_gateway.vote_calls == []
            assert h.controller.phase == SessionPhase.IDLE

    @pytest.mark.asyncio
    async def test_successful_vote_notifies(self, voting_gateway):
        async with running_controller(voting_gateway) as h:
            receipt = await h.controller.submit_vote('ZZ99')

            assert receipt.accepted is True
            assert h.controller.vote_error is None
            assert h.notifier.notifications[-1] == (
                'Vote Submitted',
                'Vote recorded',
                NotificationLevel.SUCCESS,
            )

    @pytest.mark.asyncio
    async def test_api_failure_is_inline_error(self, voting_gateway):
        voting_gateway.vote_error = ApiError('boom', status_code=503)

        async with running_controller(voting_gateway) as h:
            receipt = await h.controller.submit_vote('ZZ99')

            assert receipt is None
            assert h.controller.vote_error == VOTE_SUBMIT_FAILED

    @pytest.mark.asyncio
    async def test_next_vote_clears_previous_error(self, voting_gateway):
        async with running_controller(voting_gateway) as h:
            await h.controller.submit_vote(OWN_CODE)
            await h.controller.submit_vote('ZZ99')

            assert h.controller.vote_error is None


@pytest.mark.unit
class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_updates_ticket(self):
        gateway = FakeValidationApiGateway()

        async with running_controller(gateway) as h:
            gateway.status = make_ticket(vote_count=7)

            ticket = await h.controller.refresh()

            assert ticket.vote_count == 7
            assert h.controller.ticket.vote_count == 7

    @pytest.mark.asyncio
    async def test_refresh_failure_returns_none(self):
        gateway = FakeValidationApiGateway()
        gateway.status_error = unreachable_api()

        async with running_controller(gateway) as h:
            assert await h.controller.refresh() is None
            assert h.controller.ticket is not None
