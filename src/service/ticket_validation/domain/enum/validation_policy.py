"""
Validation Policy Enums - Domain Value Objects

Wire values are the exact strings the ticketing API stores on an event.
"""

from enum import StrEnum


class EarlyValidationPolicy(StrEnum):
    """How long before the event start validation may begin"""

    ALLOW_ANYTIME = 'Allow at Anytime'
    AT_START_TIME = 'At Start Time'
    ONE_HOUR_BEFORE = 'One Hour Before'
    TWO_HOURS_BEFORE = 'Two Hours Before'


class ReentryType(StrEnum):
    """How many times a ticket may be validated"""

    SINGLE_USE = 'No Reentry (Single Use)'
    PASS = 'Pass (Multiple Use)'
    NO_LIMIT = 'No Limit'
