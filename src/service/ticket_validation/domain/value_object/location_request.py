import attrs

from src.platform.config.core_setting import Settings


@attrs.define(frozen=True)
class LocationRequest:
    """Options for one position request, mirrored to the device that answers it"""

    high_accuracy: bool = True
    timeout_seconds: float = 10.0
    maximum_age_seconds: float = 0.0  # Zero rejects any cached fix

    @classmethod
    def from_settings(cls, settings: Settings) -> 'LocationRequest':
        return cls(
            high_accuracy=settings.LOCATION_HIGH_ACCURACY,
            timeout_seconds=settings.LOCATION_TIMEOUT_SECONDS,
            maximum_age_seconds=settings.LOCATION_MAXIMUM_AGE_SECONDS,
        )
