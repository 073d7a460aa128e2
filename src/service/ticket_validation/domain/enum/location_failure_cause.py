from enum import StrEnum


class LocationFailureCause(StrEnum):
    PERMISSION_DENIED = 'permission_denied'
    POSITION_UNAVAILABLE = 'position_unavailable'
    TIMEOUT = 'timeout'
    UNSUPPORTED = 'unsupported'
