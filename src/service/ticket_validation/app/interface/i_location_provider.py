from abc import ABC, abstractmethod

from src.service.ticket_validation.domain.value_object.geo_point import GeoPoint
from src.service.ticket_validation.domain.value_object.location_request import LocationRequest


class ILocationProvider(ABC):
    """One-shot device position capability"""

    @abstractmethod
    async def current_position(self, *, request: LocationRequest) -> GeoPoint:
        """
        Raises:
            LocationPermissionDeniedError, LocationUnavailableError,
            LocationTimeoutError or LocationUnsupportedError
        """
        pass
