from typing import Callable, Optional

from anyio.abc import TaskGroup

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.app.interface.i_session_broadcaster import (
    ISessionBroadcaster,
)
from src.service.ticket_validation.app.session.validation_session_controller import (
    ValidationSessionController,
)


ControllerFactory = Callable[..., ValidationSessionController]


class SessionRegistry:
    """
    Keeps one controller per ticket for this client, which is what enforces
    at most one active validation session per ticket.

    The registry must be bound to the application's task group (lifespan)
    before controllers can be created; their timers run inside it.

    Controllers holding no session and watched by no SSE client are evicted
    when their last subscriber leaves, and swept before a new one is created.
    """

    def __init__(
        self,
        *,
        controller_factory: ControllerFactory,
        broadcaster: Optional[ISessionBroadcaster] = None,
    ) -> None:
        self.controller_factory = controller_factory
        self.broadcaster = broadcaster
        self._task_group: Optional[TaskGroup] = None
        self._controllers: dict[str, ValidationSessionController] = {}

    @property
    def is_bound(self) -> bool:
        return self._task_group is not None

    @property
    def controller_count(self) -> int:
        return len(self._controllers)

    def bind(self, task_group: TaskGroup) -> None:
        self._task_group = task_group

    def get(self, ticket_id: str) -> Optional[ValidationSessionController]:
        return self._controllers.get(ticket_id)

    @Logger.io
    async def get_or_create(self, ticket_id: str) -> ValidationSessionController:
        if controller := self._controllers.get(ticket_id):
            return controller
        if self._task_group is None:
            raise CustomBaseError('Session registry is not running', 503)

        self.evict_idle()
        controller = self.controller_factory(ticket_id=ticket_id, task_group=self._task_group)
        await controller.load()
        # Another request may have created one while this one was loading
        if existing := self._controllers.get(ticket_id):
            controller.close()
            return existing
        self._controllers[ticket_id] = controller
        Logger.base.info(f'🗂️ [REGISTRY] Controller created for ticket {ticket_id}')
        return controller

    def discard(self, ticket_id: str) -> bool:
        if controller := self._controllers.pop(ticket_id, None):
            controller.close()
            return True
        return False

    def discard_if_idle(self, ticket_id: str) -> bool:
        controller = self._controllers.get(ticket_id)
        if controller is None or not controller.is_idle or self._is_watched(ticket_id):
            return False
        self.discard(ticket_id)
        Logger.base.info(f'🗂️ [REGISTRY] Evicted idle controller for ticket {ticket_id}')
        return True

    def evict_idle(self) -> int:
        return sum(self.discard_if_idle(ticket_id) for ticket_id in list(self._controllers))

    def close_all(self) -> None:
        for controller in self._controllers.values():
            controller.close()
        Logger.base.info(f'🗂️ [REGISTRY] Closed {len(self._controllers)} controller(s)')
        self._controllers.clear()
        self._task_group = None

    def _is_watched(self, ticket_id: str) -> bool:
        if self.broadcaster is None:
            return False
        return self.broadcaster.subscriber_count(ticket_id=ticket_id) > 0
