"""
Location Sample Schema.

Defines the raw reading delivered by the location source (coordinate,
timestamp, horizontal accuracy) and the plain coordinate value used for
path points.
"""

from dataclasses import dataclass
import math

from track_core.errors import InvalidSampleError


@dataclass(frozen=True)
class GeoPoint:
    """
    Geographic coordinate.

    Attributes:
        lat: Latitude in degrees [-90, 90]
        lon: Longitude in degrees [-180, 180]
    """

    lat: float
    lon: float

    def __post_init__(self):
        """Validate coordinate."""
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise InvalidSampleError(f"Non-finite coordinate: ({self.lat}, {self.lon})")

        if not -90.0 <= self.lat <= 90.0:
            raise InvalidSampleError(f"Latitude out of range: {self.lat}")

        if not -180.0 <= self.lon <= 180.0:
            raise InvalidSampleError(f"Longitude out of range: {self.lon}")

    def as_tuple(self):
        """(lat, lon) tuple for rendering consumers."""
        return (self.lat, self.lon)


@dataclass(frozen=True)
class LocationSample:
    """
    Raw location reading from the GPS source.

    Attributes:
        point: Reported coordinate
        timestamp: Reading time in seconds (epoch or monotonic, same clock as the gate)
        horizontal_accuracy: Horizontal accuracy radius in meters (smaller is better)

    Notes:
        - Timestamps are not assumed to be strictly increasing
        - Accuracy of 0 is valid (simulated/perfect fix)
    """

    point: GeoPoint
    timestamp: float
    horizontal_accuracy: float

    def __post_init__(self):
        """Validate sample."""
        if not math.isfinite(self.timestamp):
            raise InvalidSampleError(f"Non-finite timestamp: {self.timestamp}")

        if not math.isfinite(self.horizontal_accuracy):
            raise InvalidSampleError(f"Non-finite accuracy: {self.horizontal_accuracy}")

        if self.horizontal_accuracy < 0:
            raise InvalidSampleError(
                f"Horizontal accuracy cannot be negative: {self.horizontal_accuracy}"
            )

    @property
    def lat(self) -> float:
        return self.point.lat

    @property
    def lon(self) -> float:
        return self.point.lon


def create_sample(lat: float, lon: float, timestamp: float, accuracy: float) -> LocationSample:
    """
    Build a LocationSample from plain values.

    Args:
        lat: Latitude (degrees)
        lon: Longitude (degrees)
        timestamp: Reading time (s)
        accuracy: Horizontal accuracy (m)

    Returns:
        Validated LocationSample

    Raises:
        InvalidSampleError: If any value is malformed
    """
    return LocationSample(
        point=GeoPoint(lat=float(lat), lon=float(lon)),
        timestamp=float(timestamp),
        horizontal_accuracy=float(accuracy),
    )
