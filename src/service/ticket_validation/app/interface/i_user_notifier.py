from abc import ABC, abstractmethod
from enum import StrEnum


class NotificationLevel(StrEnum):
    INFO = 'info'
    SUCCESS = 'success'
    WARNING = 'warning'
    ERROR = 'error'


class IUserNotifier(ABC):
    """One-shot, user-facing notifications (toasts)"""

    @abstractmethod
    def notify(
        self,
        *,
        ticket_id: str,
        title: str,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
    ) -> None:
        pass
