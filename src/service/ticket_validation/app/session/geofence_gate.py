import anyio

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.validation_metrics import metrics
from src.service.ticket_validation.app.interface.i_location_provider import ILocationProvider
from src.service.ticket_validation.domain.enum.location_failure_cause import (
    LocationFailureCause,
)
from src.service.ticket_validation.domain.validation_errors import (
    LocationError,
    LocationTimeoutError,
)
from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint
from src.service.ticket_validation.domain.value_object.location_request import LocationRequest


class GeofenceGate:
    """
    Obtains the device position before a geofenced session may be requested.

    The gate only plumbs coordinates through; the ticketing API decides
    whether they are close enough to the venue.
    """

    def __init__(
        self, *, location_provider: ILocationProvider, request: LocationRequest | None = None
    ) -> None:
        self.location_provider = location_provider
        self.request = request or LocationRequest()

    @Logger.io
    async def acquire_location(self) -> GeoPoint:
        try:
            with anyio.fail_after(self.request.timeout_seconds):
                point = await self.location_provider.current_position(request=self.request)
        except TimeoutError as e:
            metrics.location_failures.labels(cause=LocationFailureCause.TIMEOUT).inc()
            raise LocationTimeoutError() from e
        except LocationError as e:
            metrics.location_failures.labels(cause=e.cause).inc()
            raise

        Logger.base.info(f'📍 [GEOFENCE] Position acquired ({point.lat:.5f}, {point.lng:.5f})')
        return point
