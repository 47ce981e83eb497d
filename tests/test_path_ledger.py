"""
Unit tests for PathLedger.

Tests cover:
- Segment begin/end bookkeeping and the start/end time invariants
- Point capture vs distance accounting
- Elapsed time with open and closed segments
- Distance units
- Snapshots and reset
"""

import pytest

from track_core.errors import NoOpenSegmentError
from track_core.proto import DistanceUnit, GeoPoint, MILES_FACTOR
from track_core.tracking import PathLedger, TrackingSession
from tests.conftest import offset_north


class TestSegments:
    """Tests for begin_segment / end_segment."""

    def test_empty_ledger(self, ledger):
        """Test initial state."""
        assert ledger.segment_count == 0
        assert not ledger.is_open
        assert ledger.total_distance() == 0
        assert ledger.total_elapsed_time() == 0
        assert ledger.all_segments() == ()
        assert ledger.last_point() is None

    def test_begin_segment_without_seed(self, ledger, clock):
        """Test new segment is empty with zero length."""
        index = ledger.begin_segment()

        assert index == 0
        assert ledger.segment_count == 1
        assert ledger.is_open
        segment = ledger.all_segments()[0]
        assert segment.points == []
        assert segment.length == 0.0
        assert ledger.session.start_times == [clock.now]

    def test_begin_segment_with_seed(self, ledger, origin):
        """Test seed point becomes the first point."""
        ledger.begin_segment(origin)

        segment = ledger.all_segments()[0]
        assert segment.points == [origin]
        assert segment.start_point == origin
        assert segment.end_point == origin

    def test_end_segment_records_time(self, ledger, clock):
        """Test end time uses the clock."""
        ledger.begin_segment()
        clock.advance(30.0)

        assert ledger.end_segment() is True
        assert ledger.session.end_times == [clock.now]
        assert not ledger.is_open

    def test_end_segment_twice_is_noop(self, ledger):
        """Test second end does not add an end time."""
        ledger.begin_segment()
        ledger.end_segment()

        assert ledger.end_segment() is False
        assert len(ledger.session.end_times) == 1

    def test_end_without_segment_is_noop(self, ledger):
        """Test end on empty ledger."""
        assert ledger.end_segment() is False
        assert ledger.session.end_times == []

    def test_invariants_over_sessions(self, ledger):
        """Test len(end_times) <= len(start_times) == len(segments)."""
        for _ in range(3):
            ledger.begin_segment()
            ledger.end_segment()
            ledger.end_segment()
        ledger.begin_segment()

        session = ledger.session
        assert len(session.segments) == len(session.start_times) == 4
        assert len(session.end_times) == 3


class TestPointsAndDistance:
    """Tests for append_point / replace_first_point / record_distance."""

    def test_append_requires_segment(self, ledger, origin):
        """Test append on empty ledger raises."""
        with pytest.raises(NoOpenSegmentError):
            ledger.append_point(origin)

    def test_record_distance_requires_segment(self, ledger):
        with pytest.raises(NoOpenSegmentError):
            ledger.record_distance(1.0)

    def test_replace_first_requires_segment(self, ledger, origin):
        with pytest.raises(NoOpenSegmentError):
            ledger.replace_first_point(origin)

    def test_append_does_not_change_length(self, ledger, origin):
        """Test point capture is separate from distance accounting."""
        ledger.begin_segment()
        ledger.append_point(origin)
        ledger.append_point(offset_north(origin, 100.0))

        segment = ledger.all_segments()[0]
        assert segment.num_points == 2
        assert segment.length == 0.0

    def test_record_distance_accumulates_on_last_segment(self, ledger):
        """Test distance goes to the last segment only."""
        ledger.begin_segment()
        ledger.record_distance(10.0)
        ledger.end_segment()
        ledger.begin_segment()
        ledger.record_distance(2.5)
        ledger.record_distance(2.5)

        segments = ledger.all_segments()
        assert segments[0].length == 10.0
        assert segments[1].length == 5.0

    def test_negative_distance_rejected(self, ledger):
        """Test negative delta raises and leaves length unchanged."""
        ledger.begin_segment()
        with pytest.raises(ValueError):
            ledger.record_distance(-1.0)
        assert ledger.total_distance() == 0.0

    def test_replace_first_point(self, ledger, origin):
        """Test provisional seed is overwritten."""
        seed = offset_north(origin, 500.0)
        ledger.begin_segment(seed)
        ledger.replace_first_point(origin)

        assert ledger.all_segments()[0].points == [origin]

    def test_replace_first_point_on_empty_segment_appends(self, ledger, origin):
        """Test empty segment receives the point."""
        ledger.begin_segment()
        ledger.replace_first_point(origin)

        assert ledger.all_segments()[0].points == [origin]


class TestElapsedTime:
    """Tests for total_elapsed_time."""

    def test_single_open_segment(self, ledger, clock):
        """Test open segment counts up to now."""
        ledger.begin_segment()
        clock.advance(12.0)

        assert ledger.total_elapsed_time() == pytest.approx(12.0)
        assert ledger.total_elapsed_time(now=clock.now + 3.0) == pytest.approx(15.0)

    def test_closed_segments_sum(self, ledger, clock):
        """Test two closed segments."""
        ledger.begin_segment()
        clock.advance(10.0)
        ledger.end_segment()
        clock.advance(100.0)  # gap not counted
        ledger.begin_segment()
        clock.advance(5.0)
        ledger.end_segment()
        clock.advance(50.0)

        assert ledger.total_elapsed_time() == pytest.approx(15.0)

    def test_closed_plus_open(self, ledger, clock):
        """Test closed durations plus running open segment."""
        ledger.begin_segment()
        clock.advance(10.0)
        ledger.end_segment()
        clock.advance(20.0)
        ledger.begin_segment()
        clock.advance(4.0)

        assert ledger.total_elapsed_time() == pytest.approx(14.0)


class TestTotals:
    """Tests for total_distance and reset."""

    def test_miles_conversion_exact(self, ledger):
        """Test miles is meters times the fixed factor."""
        ledger.begin_segment()
        ledger.record_distance(1234.5)
        ledger.begin_segment()
        ledger.record_distance(42.0)

        meters = ledger.total_distance(DistanceUnit.METERS)
        assert meters == 1276.5
        assert ledger.total_distance(DistanceUnit.MILES) == meters * MILES_FACTOR

    def test_snapshot_is_detached(self, ledger, origin):
        """Test mutating a snapshot does not touch the ledger."""
        ledger.begin_segment(origin)
        snapshot = ledger.all_segments()
        snapshot[0].points.append(GeoPoint(0.0, 0.0))
        snapshot[0].length = 99.0

        segment = ledger.all_segments()[0]
        assert segment.points == [origin]
        assert segment.length == 0.0

    def test_reset(self, ledger, origin):
        """Test reset returns to the empty state."""
        ledger.begin_segment(origin)
        ledger.record_distance(5.0)
        ledger.end_segment()
        ledger.reset()

        assert ledger.segment_count == 0
        assert ledger.session.start_times == []
        assert ledger.session.end_times == []
        assert ledger.total_distance() == 0

    def test_shared_session(self, clock):
        """Test ledger operates on a supplied session."""
        session = TrackingSession()
        ledger = PathLedger(session=session, clock=clock)
        ledger.begin_segment()

        assert len(session.segments) == 1
        assert session.has_open_segment
