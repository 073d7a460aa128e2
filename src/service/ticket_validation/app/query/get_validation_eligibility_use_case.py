from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.app.interface.i_validation_api_gateway import (
    IValidationApiGateway,
)
from src.service.ticket_validation.domain.reentry_policy_domain import assess_eligibility
from src.service.ticket_validation.domain.value_object.ticket_detail import TicketDetail
from src.service.ticket_validation.domain.value_object.validity import ValidationEligibility


class GetValidationEligibilityUseCase:
    """
    Stateless eligibility preview for a ticket.

    Fetches the ticket with its event and composes window, use budget and
    voting gates for the given instant without opening a controller.
    """

    def __init__(self, *, api_gateway: IValidationApiGateway) -> None:
        self.api_gateway = api_gateway
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        api_gateway: IValidationApiGateway = Depends(Provide[Container.validation_api_gateway]),
    ) -> Self:
        return cls(api_gateway=api_gateway)

    @Logger.io
    async def execute(
        self, *, ticket_id: str, now: Optional[datetime] = None
    ) -> tuple[TicketDetail, ValidationEligibility]:
        with self.tracer.start_as_current_span(
            'use_case.get_validation_eligibility',
            attributes={'ticket.id': ticket_id},
        ):
            detail = await self.api_gateway.fetch_ticket_detail(ticket_id=ticket_id)
            eligibility = assess_eligibility(
                detail.event, detail.ticket, now or datetime.now(timezone.utc)
            )
            return detail, eligibility
