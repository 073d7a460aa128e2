from datetime import datetime
from typing import Optional

from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.validation_metrics import metrics
from src.service.ticket_validation.app.interface.i_validation_api_gateway import (
    IValidationApiGateway,
)
from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.reentry_policy_domain import is_voting_mode
from src.service.ticket_validation.domain.validation_errors import (
    VoteRejectedError,
    VotingClosedError,
    VotingUnavailableError,
)
from src.service.ticket_validation.domain.value_object.ticket_detail import VoteReceipt
from src.service.ticket_validation.domain.vote_code_domain import (
    ensure_not_self_vote,
    normalize_vote_code,
)
from src.service.ticket_validation.domain.voting_period_domain import is_voting_open


class SubmitPeerVoteUseCase:
    """
    Submit a peer vote for another attendee's ticket.

    Flow:
    1. Normalise the typed code (trim, upper-case, 4-5 letters/digits)
    2. Reject self-votes locally (no network call)
    3. Check the ticket is in voting mode and the voting period is active
    4. Submit the vote to the ticketing API

    Dependencies:
    - api_gateway: For the peer vote endpoint
    """

    def __init__(self, *, api_gateway: IValidationApiGateway) -> None:
        self.api_gateway = api_gateway
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self,
        *,
        ticket: Optional[TicketState],
        event: Optional[EventTiming],
        code: str,
        now: datetime,
    ) -> VoteReceipt:
        if ticket is None or event is None:
            raise VotingUnavailableError('Ticket data not available')

        with self.tracer.start_as_current_span(
            'use_case.submit_peer_vote',
            attributes={'ticket.id': ticket.ticket_id},
        ):
            validation_code = normalize_vote_code(code)
            ensure_not_self_vote(validation_code, ticket.validation_code)

            if not is_voting_mode(event, ticket):
                raise VotingUnavailableError('Peer voting is not available for this ticket')

            window = is_voting_open(event, now)
            if not window.is_valid:
                raise VotingClosedError(window.reason or 'Voting is closed')

            try:
                receipt = await self.api_gateway.submit_vote(
                    voter_ticket_id=ticket.ticket_id, validation_code=validation_code
                )
            except VoteRejectedError:
                metrics.peer_votes.labels(result='rejected').inc()
                raise

            metrics.peer_votes.labels(result='accepted').inc()
            Logger.base.info(
                f'🗳️ [VOTE] Ticket {ticket.ticket_id} voted for code {validation_code}'
            )
            return receipt
