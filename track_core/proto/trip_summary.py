"""
Trip summary output schema.

Aggregate distance and time over all tracked segments, for display.
"""

from dataclasses import dataclass
from enum import Enum


# Conversion factor applied to the meter total when miles are requested
MILES_FACTOR = 0.621371


class DistanceUnit(Enum):
    """Unit for reported trip distance."""

    METERS = "meters"
    MILES = "miles"


@dataclass
class TripSummary:
    """
    Summary of a tracking session.

    Attributes:
        distance_m: Total accepted distance (m)
        distance_mi: Total distance converted with MILES_FACTOR
        elapsed_s: Total tracking time over all segments (s)
        num_segments: Number of segments started
        num_points: Number of points over all segments
        is_tracking: True while a segment is open
    """

    distance_m: float
    distance_mi: float
    elapsed_s: float
    num_segments: int
    num_points: int
    is_tracking: bool = False

    def format_elapsed(self) -> str:
        """Elapsed time as H:MM:SS."""
        total = int(self.elapsed_s)
        hours, rem = divmod(total, 3600)
        minutes, seconds = divmod(rem, 60)
        return f"{hours}:{minutes:02d}:{seconds:02d}"
