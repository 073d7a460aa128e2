"""
Unit tests for the re-entry policy and eligibility composition

Eligibility answers "can a session start now?" from three gates:
use budget (re-entry type), validity window and, once validated with
peer voting enabled, the voting period.
"""

from datetime import timedelta

import pytest

from src.service.ticket_validation.domain.enum.session_state import TicketDisplayState
from src.service.ticket_validation.domain.enum.validation_policy import (
    EarlyValidationPolicy,
    ReentryType,
)
from src.service.ticket_validation.domain.enum.window_status import VotingPhase, WindowStatus
from src.service.ticket_validation.domain.reentry_policy_domain import (
    assess_eligibility,
    assess_use_budget,
    is_voting_mode,
)
from test.service.ticket_validation.fakes import DURING_EVENT, make_event, make_ticket


@pytest.mark.unit
class TestUseBudget:
    def test_single_use_ready_before_first_validation(self):
        budget = assess_use_budget(make_event(), make_ticket())

        assert budget.allowed is True
        assert budget.display_state == TicketDisplayState.READY

    def test_single_use_refused_once_validated(self):
        budget = assess_use_budget(make_event(), make_ticket(is_validated=True, use_count=1))

        assert budget.allowed is False
        assert budget.display_state == TicketDisplayState.ALREADY_USED
        assert budget.reason == 'This ticket has already been used'

    def test_pass_allows_reentry_below_max_uses(self):
        event = make_event(reentry_type=ReentryType.PASS, max_uses=3)

        budget = assess_use_budget(event, make_ticket(is_validated=True, use_count=2))

        assert budget.allowed is True
        assert budget.display_state == TicketDisplayState.REENTRY_AVAILABLE

    def test_pass_exhausted_at_max_uses(self):
        event = make_event(reentry_type=ReentryType.PASS, max_uses=3)

        budget = assess_use_budget(event, make_ticket(is_validated=True, use_count=3))

        assert budget.allowed is False
        assert budget.display_state == TicketDisplayState.USES_EXHAUSTED
        assert budget.reason == 'All 3 uses of this pass have been used'

    def test_no_limit_always_allows(self):
        event = make_event(reentry_type=ReentryType.NO_LIMIT)

        budget = assess_use_budget(event, make_ticket(is_validated=True, use_count=40))

        assert budget.allowed is True
        assert budget.display_state == TicketDisplayState.REENTRY_AVAILABLE

    def test_max_uses_must_be_positive(self):
        with pytest.raises(ValueError, match='max_uses'):
            make_event(reentry_type=ReentryType.PASS, max_uses=0)


@pytest.mark.unit
class TestEligibility:
    def test_exhausted_pass_refused_even_inside_window(self):
        # Arrange
        event = make_event(reentry_type=ReentryType.PASS, max_uses=3)
        ticket = make_ticket(is_validated=True, use_count=3)

        # Act
        eligibility = assess_eligibility(event, ticket, DURING_EVENT)

        # Assert
        assert eligibility.window.valid is True
        assert eligibility.can_start_session is False
        assert eligibility.display_state == TicketDisplayState.USES_EXHAUSTED

    def test_window_closed_blocks_fresh_ticket(self):
        event = make_event(early_validation=EarlyValidationPolicy.AT_START_TIME)

        eligibility = assess_eligibility(event, make_ticket(), DURING_EVENT - timedelta(hours=2))

        assert eligibility.can_start_session is False
        assert eligibility.window.status == WindowStatus.NOT_YET_OPEN
        assert eligibility.reason.startswith('Validation begins at')

    def test_ready_inside_window(self):
        eligibility = assess_eligibility(make_event(), make_ticket(), DURING_EVENT)

        assert eligibility.can_start_session is True
        assert eligibility.display_state == TicketDisplayState.READY
        assert eligibility.reason is None

    def test_missing_data_is_unavailable(self):
        eligibility = assess_eligibility(None, make_ticket(), DURING_EVENT)

        assert eligibility.can_start_session is False
        assert eligibility.display_state == TicketDisplayState.UNAVAILABLE

    def test_voting_mode_replaces_session_start(self):
        event = make_event(voting_enabled=True, p2p_validation_enabled=True)
        ticket = make_ticket(is_validated=True, use_count=1)

        eligibility = assess_eligibility(event, ticket, DURING_EVENT)

        assert is_voting_mode(event, ticket) is True
        assert eligibility.display_state == TicketDisplayState.VOTING
        assert eligibility.can_start_session is False
        assert eligibility.can_vote is True
        assert eligibility.voting.phase == VotingPhase.ACTIVE

    def test_voting_mode_requires_validated_ticket(self):
        event = make_event(voting_enabled=True, p2p_validation_enabled=True)

        eligibility = assess_eligibility(event, make_ticket(), DURING_EVENT)

        assert eligibility.display_state == TicketDisplayState.READY
        assert eligibility.can_vote is False

    def test_voting_closed_after_event(self):
        event = make_event(voting_enabled=True, p2p_validation_enabled=True)
        ticket = make_ticket(is_validated=True, use_count=1)

        eligibility = assess_eligibility(event, ticket, DURING_EVENT + timedelta(days=2))

        assert eligibility.can_vote is False
        assert eligibility.voting.phase == VotingPhase.ENDED
