from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.app.interface.i_session_broadcaster import (
    ISessionBroadcaster,
)
from src.service.ticket_validation.app.interface.i_user_notifier import (
    IUserNotifier,
    NotificationLevel,
)
from src.service.ticket_validation.domain.enum.sse_event_type import SseEventType


class BroadcastUserNotifierImpl(IUserNotifier):
    """Delivers one-shot notifications (toasts) over the session SSE stream"""

    def __init__(self, *, broadcaster: ISessionBroadcaster) -> None:
        self.broadcaster = broadcaster

    def notify(
        self,
        *,
        ticket_id: str,
        title: str,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
    ) -> None:
        log = Logger.base.warning if level == NotificationLevel.ERROR else Logger.base.info
        log(f'🔔 [NOTIFY] ticket={ticket_id} {title}: {message}')
        self.broadcaster.publish(
            ticket_id=ticket_id,
            event_data={
                'event_type': SseEventType.NOTIFICATION,
                'data': {'title': title, 'message': message, 'level': level},
            },
        )
