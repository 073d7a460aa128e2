"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.service.ticket_validation.app.command.submit_peer_vote_use_case import (
    SubmitPeerVoteUseCase,
)
from src.service.ticket_validation.app.session.geofence_gate import GeofenceGate
from src.service.ticket_validation.app.session.session_registry import SessionRegistry
from src.service.ticket_validation.app.session.session_timing import SessionTiming
from src.service.ticket_validation.app.session.validation_session_controller import (
    ValidationSessionController,
)
from src.service.ticket_validation.domain.value_object.location_request import LocationRequest
from src.service.ticket_validation.driven_adapter.broadcaster.in_memory_session_broadcaster_impl import (
    InMemorySessionBroadcasterImpl,
)
from src.service.ticket_validation.driven_adapter.http.validation_api_gateway_impl import (
    ValidationApiGatewayImpl,
)
from src.service.ticket_validation.driven_adapter.location.reported_location_provider_impl import (
    ReportedLocationProviderImpl,
)
from src.service.ticket_validation.driven_adapter.notifier.broadcast_user_notifier_impl import (
    BroadcastUserNotifierImpl,
)
from src.service.ticket_validation.driven_adapter.qr.qr_renderer_impl import QrRendererImpl
from src.service.ticket_validation.driven_adapter.watcher.polling_ticket_status_watcher_impl import (
    PollingTicketStatusWatcherImpl,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Ticketing API (one pooled httpx client per process)
    validation_api_gateway = providers.Singleton(
        ValidationApiGatewayImpl,
        base_url=config_service.provided.API_BASE_URL,
        access_token=config_service.provided.API_ACCESS_TOKEN.get_secret_value.call(),
        timeout_seconds=config_service.provided.API_TIMEOUT_SECONDS,
        default_timezone=config_service.provided.EVENT_TIMEZONE,
    )

    # Rendering and device capabilities
    qr_renderer = providers.Singleton(
        QrRendererImpl,
        box_size=config_service.provided.QR_BOX_SIZE,
        border=config_service.provided.QR_BORDER,
    )
    location_provider = providers.Singleton(ReportedLocationProviderImpl)
    location_request = providers.Singleton(LocationRequest.from_settings, config_service)
    geofence_gate = providers.Singleton(
        GeofenceGate, location_provider=location_provider, request=location_request
    )

    # Ticket status observation (polling; replaceable by a push channel)
    status_watcher = providers.Singleton(
        PollingTicketStatusWatcherImpl,
        api_gateway=validation_api_gateway,
        interval_seconds=config_service.provided.STATUS_POLL_SECONDS,
    )

    # SSE fan-out and one-shot notifications
    session_broadcaster = providers.Singleton(InMemorySessionBroadcasterImpl)
    user_notifier = providers.Singleton(BroadcastUserNotifierImpl, broadcaster=session_broadcaster)

    # Use cases
    submit_peer_vote_use_case = providers.Factory(
        SubmitPeerVoteUseCase, api_gateway=validation_api_gateway
    )

    # Session controllers (ticket_id and task_group are supplied by the registry)
    session_timing = providers.Singleton(SessionTiming.from_settings, config_service)
    validation_session_controller = providers.Factory(
        ValidationSessionController,
        api_gateway=validation_api_gateway,
        qr_renderer=qr_renderer,
        status_watcher=status_watcher,
        geofence_gate=geofence_gate,
        notifier=user_notifier,
        broadcaster=session_broadcaster,
        vote_use_case=submit_peer_vote_use_case,
        timing=session_timing,
    )
    session_registry = providers.Singleton(
        SessionRegistry,
        controller_factory=validation_session_controller.provider,
        broadcaster=session_broadcaster,
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
