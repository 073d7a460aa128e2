from abc import ABC, abstractmethod
from typing import Optional

from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint
from src.service.ticket_validation.domain.value_object.ticket_detail import (
    RotatingProof,
    SessionDescriptor,
    TicketDetail,
    VoteReceipt,
)


class IValidationApiGateway(ABC):
    """
    Ticketing API endpoints the validation core relies on.

    Implementations raise ApiError for transport failures and non-2xx
    responses; start_session raises SessionStartError for rejections and
    submit_vote raises VoteRejectedError for refused votes.
    """

    @abstractmethod
    async def start_session(
        self, *, ticket_id: str, location: Optional[GeoPoint] = None
    ) -> SessionDescriptor:
        pass

    @abstractmethod
    async def fetch_rotating_token(self, *, ticket_id: str) -> RotatingProof:
        """Fresh token/code pair; never cached"""
        pass

    @abstractmethod
    async def fetch_ticket_detail(self, *, ticket_id: str) -> TicketDetail:
        pass

    @abstractmethod
    async def fetch_ticket_status(self, *, ticket_id: str) -> TicketState:
        pass

    @abstractmethod
    async def submit_vote(self, *, voter_ticket_id: str, validation_code: str) -> VoteReceipt:
        pass

    async def aclose(self) -> None:
        """Release pooled connections"""
        return None
