"""
Vote Code Domain

Peer vote targets are the stable per-ticket validation codes: 4-5 letters or
digits, compared case-insensitively.
"""

import re
from typing import Optional

from src.service.ticket_validation.domain.validation_errors import (
    InvalidVoteCodeError,
    SelfVoteError,
)


VOTE_CODE_PATTERN = re.compile(r'^[0-9A-Z]{4,5}$')


def normalize_vote_code(raw: str) -> str:
    code = (raw or '').strip().upper()
    if not VOTE_CODE_PATTERN.fullmatch(code):
        raise InvalidVoteCodeError()
    return code


def is_self_vote(code: str, own_code: Optional[str]) -> bool:
    return bool(own_code) and code.strip().upper() == own_code.strip().upper()


def ensure_not_self_vote(code: str, own_code: Optional[str]) -> None:
    if is_self_vote(code, own_code):
        raise SelfVoteError()
