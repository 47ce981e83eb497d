"""
Protocol Module: Value types exchanged with the location source and consumers.
"""

from .location_sample import (
    GeoPoint,
    LocationSample,
    create_sample,
)
from .trip_summary import (
    DistanceUnit,
    TripSummary,
    MILES_FACTOR,
)

__all__ = [
    'GeoPoint',
    'LocationSample',
    'create_sample',
    'DistanceUnit',
    'TripSummary',
    'MILES_FACTOR',
]
