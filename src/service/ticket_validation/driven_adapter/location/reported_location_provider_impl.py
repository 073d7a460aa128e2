"""
Device-reported Location Provider

The device (browser page, kiosk agent) pushes its position fixes and
permission state in; current_position() hands out the next fix that is fresh
enough for the request. Timeouts are enforced by the GeofenceGate.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import anyio

from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.app.interface.i_location_provider import ILocationProvider
from src.service.ticket_validation.domain.validation_errors import (
    LocationError,
    LocationPermissionDeniedError,
    LocationUnavailableError,
    LocationUnsupportedError,
)
from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint, PositionFix
from src.service.ticket_validation.domain.value_object.location_request import LocationRequest


class ReportedLocationProviderImpl(ILocationProvider):
    def __init__(
        self,
        *,
        supported: bool = True,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.supported = supported
        self.clock = clock
        self._permission_granted: Optional[bool] = None  # None until the device answers
        self._latest: Optional[PositionFix] = None
        self._failure: Optional[tuple[datetime, LocationError]] = None
        self._changed: Optional[anyio.Event] = None

    @property
    def latest(self) -> Optional[PositionFix]:
        return self._latest

    def set_permission(self, *, granted: bool) -> None:
        self._permission_granted = granted
        if not granted:
            self._latest = None
        Logger.base.info(f'📍 [LOCATION] Permission {"granted" if granted else "denied"}')
        self._notify()

    def report_fix(
        self,
        *,
        lat: float,
        lng: float,
        accuracy_meters: Optional[float] = None,
        captured_at: Optional[datetime] = None,
    ) -> PositionFix:
        fix = PositionFix(
            point=GeoPoint(lat=lat, lng=lng),
            captured_at=captured_at or self.clock(),
            accuracy_meters=accuracy_meters,
        )
        self._latest = fix
        self._failure = None
        self._permission_granted = True
        self._notify()
        return fix

    def report_unavailable(self, *, reason: Optional[str] = None) -> None:
        error = LocationUnavailableError(reason) if reason else LocationUnavailableError()
        self._failure = (self.clock(), error)
        self._notify()

    async def current_position(self, *, request: LocationRequest) -> GeoPoint:
        if not self.supported:
            raise LocationUnsupportedError()

        requested_at = self.clock()
        while True:
            if self._permission_granted is False:
                raise LocationPermissionDeniedError()
            # Only failures reported since this request started apply to it
            if self._failure is not None and self._failure[0] >= requested_at:
                raise self._failure[1]
            if self._latest is not None and self._is_fresh(
                self._latest, request=request, requested_at=requested_at
            ):
                return self._latest.point

            # Wait for the device to report something new
            await self._change_signal().wait()

    def _is_fresh(
        self, fix: PositionFix, *, request: LocationRequest, requested_at: datetime
    ) -> bool:
        # A zero maximum age only accepts fixes captured after the request
        if request.maximum_age_seconds <= 0:
            return fix.captured_at >= requested_at
        return fix.captured_at >= requested_at - timedelta(seconds=request.maximum_age_seconds)

    def _change_signal(self) -> anyio.Event:
        # Shared by every pending request until the next notify
        if self._changed is None:
            self._changed = anyio.Event()
        return self._changed

    def _notify(self) -> None:
        changed, self._changed = self._changed, None
        if changed is not None:
            changed.set()
