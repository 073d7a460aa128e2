from datetime import datetime
from typing import Optional

import attrs


def _validate_latitude(instance: object, attribute: attrs.Attribute, value: float) -> None:
    if not -90.0 <= value <= 90.0:
        raise ValueError(f'{attribute.name} must be between -90 and 90, got {value}')


def _validate_longitude(instance: object, attribute: attrs.Attribute, value: float) -> None:
    if not -180.0 <= value <= 180.0:
        raise ValueError(f'{attribute.name} must be between -180 and 180, got {value}')


@attrs.define(frozen=True)
class GeoPoint:
    lat: float = attrs.field(validator=_validate_latitude)
    lng: float = attrs.field(validator=_validate_longitude)


@attrs.define(frozen=True)
class PositionFix:
    """A device-reported position with its accuracy and capture instant"""

    point: GeoPoint
    captured_at: datetime
    accuracy_meters: Optional[float] = None
