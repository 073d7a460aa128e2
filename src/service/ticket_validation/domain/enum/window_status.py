from enum import StrEnum


class WindowStatus(StrEnum):
    """Outcome of a validity window evaluation"""

    OPEN = 'open'
    NOT_YET_OPEN = 'not_yet_open'
    ENDED = 'ended'  # Configured end instant has passed
    EXPIRED = 'expired'  # No end configured and start + 24h has passed
    UNAVAILABLE = 'unavailable'  # Event data missing


class VotingPhase(StrEnum):
    NOT_STARTED = 'not_started'
    ACTIVE = 'active'
    ENDED = 'ended'
