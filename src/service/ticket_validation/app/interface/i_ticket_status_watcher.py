from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState


TicketStatusCallback = Callable[[TicketState], Awaitable[None]]


class ITicketStatusWatcher(ABC):
    """
    Notifies the session controller whenever the server-side ticket state
    is observed. Runs until its task is cancelled.
    """

    @abstractmethod
    async def watch(self, *, ticket_id: str, on_status: TicketStatusCallback) -> None:
        pass
