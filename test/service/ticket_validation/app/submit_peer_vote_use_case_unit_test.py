"""
Unit tests for SubmitPeerVoteUseCase

Local checks (code format, self-vote, voting mode, voting period) must
short-circuit before the ticketing API is called.
"""

from datetime import timedelta

import pytest

from src.service.ticket_validation.app.command.submit_peer_vote_use_case import (
    SubmitPeerVoteUseCase,
)
from src.service.ticket_validation.domain.validation_errors import (
    InvalidVoteCodeError,
    SelfVoteError,
    VoteRejectedError,
    VotingClosedError,
    VotingUnavailableError,
)
from test.service.ticket_validation.fakes import (
    DURING_EVENT,
    OWN_CODE,
    TICKET_ID,
    FakeValidationApiGateway,
    make_event,
    make_ticket,
)


@pytest.fixture
def gateway() -> FakeValidationApiGateway:
    return FakeValidationApiGateway()


@pytest.fixture
def use_case(gateway: FakeValidationApiGateway) -> SubmitPeerVoteUseCase:
    return SubmitPeerVoteUseCase(api_gateway=gateway)


@pytest.fixture
def voting_event():
    return make_event(voting_enabled=True, p2p_validation_enabled=True)


@pytest.fixture
def validated_ticket():
    return make_ticket(is_validated=True, use_count=1)


@pytest.mark.unit
class TestSubmitPeerVoteUseCase:
    @pytest.mark.asyncio
    async def test_submits_normalized_code(
        self, use_case, gateway, voting_event, validated_ticket
    ):
        # Act
        receipt = await use_case.execute(
            ticket=validated_ticket, event=voting_event, code=' xy98 ', now=DURING_EVENT
        )

        # Assert
        assert receipt.accepted is True
        assert gateway.vote_calls == [(TICKET_ID, 'XY98')]

    @pytest.mark.asyncio
    @pytest.mark.parametrize('code', [OWN_CODE, OWN_CODE.lower(), f' {OWN_CODE} '])
    async def test_self_vote_rejected_without_network_call(
        self, use_case, gateway, voting_event, validated_ticket, code
    ):
        with pytest.raises(SelfVoteError):
            await use_case.execute(
                ticket=validated_ticket, event=voting_event, code=code, now=DURING_EVENT
            )

        assert gateway.network_calls == 0

    @pytest.mark.asyncio
    async def test_malformed_code_rejected_locally(
        self, use_case, gateway, voting_event, validated_ticket
    ):
        with pytest.raises(InvalidVoteCodeError):
            await use_case.execute(
                ticket=validated_ticket, event=voting_event, code='x', now=DURING_EVENT
            )

        assert gateway.vote_calls == []

    @pytest.mark.asyncio
    async def test_unvalidated_ticket_cannot_vote(self, use_case, gateway, voting_event):
        with pytest.raises(VotingUnavailableError):
            await use_case.execute(
                ticket=make_ticket(), event=voting_event, code='XY98', now=DURING_EVENT
            )

        assert gateway.vote_calls == []

    @pytest.mark.asyncio
    async def test_missing_ticket_data(self, use_case, voting_event):
        with pytest.raises(VotingUnavailableError):
            await use_case.execute(ticket=None, event=voting_event, code='XY98', now=DURING_EVENT)

    @pytest.mark.asyncio
    async def test_voting_closed_outside_period(
        self, use_case, gateway, voting_event, validated_ticket
    ):
        with pytest.raises(VotingClosedError, match='Voting ended on'):
            await use_case.execute(
                ticket=validated_ticket,
                event=voting_event,
                code='XY98',
                now=DURING_EVENT + timedelta(days=3),
            )

        assert gateway.vote_calls == []

    @pytest.mark.asyncio
    async def test_rejection_from_api_propagates(
        self, use_case, gateway, voting_event, validated_ticket
    ):
        gateway.vote_error = VoteRejectedError('Invalid validation code')

        with pytest.raises(VoteRejectedError, match='Invalid validation code'):
            await use_case.execute(
                ticket=validated_ticket, event=voting_event, code='XY98', now=DURING_EVENT
            )

        assert len(gateway.vote_calls) == 1
