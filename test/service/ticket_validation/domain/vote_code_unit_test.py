import pytest

from src.service.ticket_validation.domain.validation_errors import (
    InvalidVoteCodeError,
    SelfVoteError,
)
from src.service.ticket_validation.domain.vote_code_domain import (
    ensure_not_self_vote,
    is_self_vote,
    normalize_vote_code,
)


@pytest.mark.unit
class TestVoteCode:
    @pytest.mark.parametrize(
        ('raw', 'expected'),
        [('ab12', 'AB12'), ('  7k9q2 ', '7K9Q2'), ('1234', '1234')],
    )
    def test_normalize(self, raw: str, expected: str):
        assert normalize_vote_code(raw) == expected

    @pytest.mark.parametrize('raw', ['', 'abc', 'ABCDEF', 'AB-1', None])
    def test_normalize_rejects_malformed(self, raw):
        with pytest.raises(InvalidVoteCodeError) as exc_info:
            normalize_vote_code(raw)

        assert exc_info.value.message == 'Enter the 4-5 character code shown on the ticket'

    def test_self_vote_is_case_insensitive(self):
        assert is_self_vote('AB12', 'ab12') is True
        assert is_self_vote('AB13', 'AB12') is False

    def test_ticket_without_code_never_self_votes(self):
        assert is_self_vote('AB12', None) is False
        ensure_not_self_vote('AB12', None)

    def test_ensure_not_self_vote_raises(self):
        with pytest.raises(SelfVoteError, match="You can't vote for yourself."):
            ensure_not_self_vote('AB12', 'AB12')
