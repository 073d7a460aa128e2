"""
Ticket Validation Errors

Location and vote errors carry a user-facing message; the session
controller turns them into notifications or an inline vote error.
"""

from typing import Optional

from src.platform.exception.exceptions import DomainError
from src.service.ticket_validation.domain.enum.location_failure_cause import (
    LocationFailureCause,
)
from src.service.ticket_validation.domain.enum.session_state import SessionRejection


# ========== Location ==========


class LocationError(DomainError):
    cause: LocationFailureCause = LocationFailureCause.POSITION_UNAVAILABLE
    remediation: str = 'Location information is unavailable. Please try again.'

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.remediation, 400)


class LocationPermissionDeniedError(LocationError):
    cause = LocationFailureCause.PERMISSION_DENIED
    remediation = (
        'Location permission denied. Please enable location access in your browser settings.'
    )


class LocationUnavailableError(LocationError):
    cause = LocationFailureCause.POSITION_UNAVAILABLE
    remediation = 'Location information is unavailable. Please try again.'


class LocationTimeoutError(LocationError):
    cause = LocationFailureCause.TIMEOUT
    remediation = 'Location request timed out. Please try again.'


class LocationUnsupportedError(LocationError):
    cause = LocationFailureCause.UNSUPPORTED
    remediation = "Your browser doesn't support location services"


# ========== Session start ==========


class SessionStartError(DomainError):
    def __init__(
        self,
        message: str,
        *,
        rejection: SessionRejection = SessionRejection.FAILED,
        distance_meters: Optional[float] = None,
        status_code: int = 400,
    ) -> None:
        self.rejection = rejection
        self.distance_meters = distance_meters
        super().__init__(message, status_code)


class OutOfGeofenceError(SessionStartError):
    def __init__(self, message: str, *, distance_meters: Optional[float] = None) -> None:
        super().__init__(
            message,
            rejection=SessionRejection.OUT_OF_GEOFENCE,
            distance_meters=distance_meters,
            status_code=403,
        )


class SessionAlreadyActiveError(SessionStartError):
    def __init__(self, message: str = 'A validation session is already active') -> None:
        super().__init__(message, rejection=SessionRejection.ALREADY_ACTIVE, status_code=409)


class NotEligibleError(SessionStartError):
    def __init__(self, message: str) -> None:
        super().__init__(message, rejection=SessionRejection.NOT_ELIGIBLE, status_code=400)


# ========== Peer voting ==========


class VoteError(DomainError):
    pass


class SelfVoteError(VoteError):
    def __init__(self, message: str = "You can't vote for yourself.") -> None:
        super().__init__(message, 400)


class InvalidVoteCodeError(VoteError):
    def __init__(self, message: str = 'Enter the 4-5 character code shown on the ticket') -> None:
        super().__init__(message, 400)


class VotingClosedError(VoteError):
    pass


class VotingUnavailableError(VoteError):
    pass


class VoteRejectedError(VoteError):
    """The ticketing API refused the vote (unknown code, duplicate vote, ...)"""


# ========== Rendering ==========


class QrRenderError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 500)
