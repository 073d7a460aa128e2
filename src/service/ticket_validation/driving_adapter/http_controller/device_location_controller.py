from fastapi import APIRouter, status

from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.service.ticket_validation.driving_adapter.http_controller.schema.validation_schema import (
    LocationFixRequest,
    LocationPermissionRequest,
    LocationUnavailableRequest,
)


router = APIRouter()


@router.post('/location', status_code=status.HTTP_202_ACCEPTED)
@Logger.io
async def report_location(request: LocationFixRequest) -> dict[str, str]:
    """Device position feed consumed by the geofence gate"""
    container.location_provider().report_fix(
        lat=request.lat,
        lng=request.lng,
        accuracy_meters=request.accuracy_meters,
        captured_at=request.captured_at,
    )
    return {'status': 'accepted'}


@router.post('/location/unavailable', status_code=status.HTTP_202_ACCEPTED)
@Logger.io
async def report_location_unavailable(request: LocationUnavailableRequest) -> dict[str, str]:
    container.location_provider().report_unavailable(reason=request.reason)
    return {'status': 'accepted'}


@router.put('/location/permission', status_code=status.HTTP_200_OK)
@Logger.io
async def set_location_permission(request: LocationPermissionRequest) -> dict[str, bool]:
    container.location_provider().set_permission(granted=request.granted)
    return {'granted': request.granted}
