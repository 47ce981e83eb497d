"""
Path Ledger.

Owns the ordered collection of path segments with per-segment length
accumulators and start/end timestamps.

Point capture and distance accounting are separate operations: the gate
appends every accepted point but only records displacements that pass
its min_distance check.
"""

from typing import Callable, List, Optional, Tuple
from dataclasses import dataclass, field
import logging
import time

from track_core.errors import NoOpenSegmentError
from track_core.proto.location_sample import GeoPoint
from track_core.proto.trip_summary import DistanceUnit, MILES_FACTOR
from track_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class PathSegment:
    """
    One contiguous tracked path.

    Attributes:
        points: Points in traversal order
        length: Accumulated accepted distance (m)
    """

    points: List[GeoPoint] = field(default_factory=list)
    length: float = 0.0

    @property
    def num_points(self) -> int:
        return len(self.points)

    @property
    def start_point(self) -> Optional[GeoPoint]:
        """First point (start marker), None for an empty segment."""
        return self.points[0] if self.points else None

    @property
    def end_point(self) -> Optional[GeoPoint]:
        """Last point (end marker), None for an empty segment."""
        return self.points[-1] if self.points else None

    def copy(self) -> 'PathSegment':
        return PathSegment(points=list(self.points), length=self.length)


@dataclass
class TrackingSession:
    """
    Segments with their parallel start/end times.

    Invariants:
        len(segments) == len(start_times)
        len(end_times) <= len(start_times)
        Only the last segment may lack an end time
    """

    segments: List[PathSegment] = field(default_factory=list)
    start_times: List[float] = field(default_factory=list)
    end_times: List[float] = field(default_factory=list)

    @property
    def has_open_segment(self) -> bool:
        return len(self.end_times) < len(self.start_times)


class PathLedger:
    """
    Append-only store of tracked path segments.

    Usage:
        ledger = PathLedger()
        ledger.begin_segment()
        ledger.append_point(point)
        ledger.record_distance(12.5)
        ledger.end_segment()

        print(ledger.total_distance(DistanceUnit.MILES))
    """

    def __init__(
        self,
        session: Optional[TrackingSession] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize ledger.

        Args:
            session: Existing session to operate on (new empty one if None)
            clock: Time source for segment start/end times (seconds)
        """
        self.session = session if session is not None else TrackingSession()
        self._clock = clock
        self.metrics = get_metrics()

    @property
    def segment_count(self) -> int:
        return len(self.session.segments)

    @property
    def is_open(self) -> bool:
        """True if the last segment has no end time yet."""
        return self.session.has_open_segment

    def begin_segment(self, seed_point: Optional[GeoPoint] = None) -> int:
        """
        Start a new segment.

        Args:
            seed_point: Optional first point (continuing a track without a gap)

        Returns:
            Index of the new segment
        """
        segment = PathSegment()
        if seed_point is not None:
            segment.points.append(seed_point)

        self.session.segments.append(segment)
        self.session.start_times.append(self._clock())

        index = len(self.session.segments) - 1
        self.metrics.increment('segments_started')
        logger.info("Segment %d started (seeded=%s)", index, seed_point is not None)
        return index

    def _last_segment(self) -> PathSegment:
        if not self.session.segments:
            raise NoOpenSegmentError("No segment has been started")
        return self.session.segments[-1]

    def append_point(self, point: GeoPoint):
        """
        Append a point to the last segment.

        Raises:
            NoOpenSegmentError: If no segment exists
        """
        self._last_segment().points.append(point)

    def replace_first_point(self, point: GeoPoint):
        """
        Overwrite the first point of the last segment.

        A provisional seed point is replaced once an accurate fix arrives.
        An empty segment receives the point as its first point.

        Raises:
            NoOpenSegmentError: If no segment exists
        """
        segment = self._last_segment()
        if segment.points:
            segment.points[0] = point
        else:
            segment.points.append(point)

    def record_distance(self, delta: float):
        """
        Add an accepted displacement to the last segment's length.

        Args:
            delta: Distance in meters (>= 0)

        Raises:
            ValueError: If delta is negative
            NoOpenSegmentError: If no segment exists
        """
        if delta < 0:
            raise ValueError(f"Distance delta cannot be negative: {delta}")
        self._last_segment().length += delta

    def end_segment(self) -> bool:
        """
        Record the end time of the open segment.

        Returns:
            True if an end time was recorded, False if nothing was open
        """
        if not self.session.has_open_segment:
            return False

        self.session.end_times.append(self._clock())
        self.metrics.increment('segments_ended')
        logger.info("Segment %d ended", len(self.session.end_times) - 1)
        return True

    def total_elapsed_time(self, now: Optional[float] = None) -> float:
        """
        Total tracked time over all segments.

        Args:
            now: Reference time for the open segment (clock() if None)

        Returns:
            Seconds: closed segment durations plus the open segment so far
        """
        start_times = self.session.start_times
        end_times = self.session.end_times

        elapsed = 0.0
        for start, end in zip(start_times, end_times):
            elapsed += end - start

        if self.session.has_open_segment:
            if now is None:
                now = self._clock()
            elapsed += now - start_times[-1]

        return elapsed

    def total_distance(self, unit: DistanceUnit = DistanceUnit.METERS) -> float:
        """
        Sum of all segment lengths.

        Args:
            unit: METERS or MILES (meters * MILES_FACTOR)

        Returns:
            Total distance in the requested unit
        """
        distance = sum(segment.length for segment in self.session.segments)

        if unit == DistanceUnit.MILES:
            distance = distance * MILES_FACTOR

        return distance

    def total_points(self) -> int:
        return sum(segment.num_points for segment in self.session.segments)

    def last_point(self) -> Optional[GeoPoint]:
        """Last point of the last segment, if any."""
        if not self.session.segments:
            return None
        return self.session.segments[-1].end_point

    def all_segments(self) -> Tuple[PathSegment, ...]:
        """Snapshot copies of all segments, for rendering."""
        return tuple(segment.copy() for segment in self.session.segments)

    def reset(self):
        """Clear all segments, lengths and times."""
        self.session.segments.clear()
        self.session.start_times.clear()
        self.session.end_times.clear()
        logger.info("Path ledger reset")
