import attrs

from src.platform.config.core_setting import Settings


@attrs.define(frozen=True)
class SessionTiming:
    duration_seconds: int = 180
    tick_seconds: float = 1.0
    rotation_seconds: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> 'SessionTiming':
        return cls(
            duration_seconds=settings.VALIDATION_SESSION_SECONDS,
            tick_seconds=settings.COUNTDOWN_TICK_SECONDS,
            rotation_seconds=settings.TOKEN_ROTATION_SECONDS,
        )
