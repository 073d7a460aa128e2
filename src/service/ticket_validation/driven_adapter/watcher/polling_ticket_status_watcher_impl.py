import anyio

from src.platform.exception.exceptions import ApiError
from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.app.interface.i_ticket_status_watcher import (
    ITicketStatusWatcher,
    TicketStatusCallback,
)
from src.service.ticket_validation.app.interface.i_validation_api_gateway import (
    IValidationApiGateway,
)


class PollingTicketStatusWatcherImpl(ITicketStatusWatcher):
    """
    Polls the ticket every `interval_seconds` while a session is active.

    Stands behind ITicketStatusWatcher so a push channel can replace it
    without touching the session controller.
    """

    def __init__(self, *, api_gateway: IValidationApiGateway, interval_seconds: float = 2.0) -> None:
        self.api_gateway = api_gateway
        self.interval_seconds = interval_seconds

    async def watch(self, *, ticket_id: str, on_status: TicketStatusCallback) -> None:
        Logger.base.debug(
            f'👀 [WATCHER] Polling ticket {ticket_id} every {self.interval_seconds}s'
        )
        while True:
            await anyio.sleep(self.interval_seconds)
            try:
                ticket = await self.api_gateway.fetch_ticket_status(ticket_id=ticket_id)
            except ApiError as e:
                # Next poll retries
                Logger.base.warning(f'👀 [WATCHER] Status poll failed for {ticket_id}: {e}')
                continue
            await on_status(ticket)
