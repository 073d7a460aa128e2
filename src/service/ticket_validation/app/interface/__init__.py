"""Application layer interfaces (Ports)"""

from src.service.ticket_validation.app.interface.i_location_provider import ILocationProvider
from src.service.ticket_validation.app.interface.i_qr_renderer import IQrRenderer
from src.service.ticket_validation.app.interface.i_session_broadcaster import (
    ISessionBroadcaster,
)
from src.service.ticket_validation.app.interface.i_ticket_status_watcher import (
    ITicketStatusWatcher,
    TicketStatusCallback,
)
from src.service.ticket_validation.app.interface.i_user_notifier import (
    IUserNotifier,
    NotificationLevel,
)
from src.service.ticket_validation.app.interface.i_validation_api_gateway import (
    IValidationApiGateway,
)

__all__ = [
    'ILocationProvider',
    'IQrRenderer',
    'ISessionBroadcaster',
    'ITicketStatusWatcher',
    'IUserNotifier',
    'IValidationApiGateway',
    'NotificationLevel',
    'TicketStatusCallback',
]
