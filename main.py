"""
Track replay tool.

Replays recorded GPS samples (CSV: lat,lon,timestamp,accuracy) through the
tracking gate and prints the resulting trip summary.
"""

import sys
import logging
import argparse
from functools import partial

import config
from track_core.errors import TrackingError
from track_core.io import SampleFeed, load_samples
from track_core.localization import EstimatorConfig, KalmanLocationEstimator
from track_core.metrics import get_metrics
from track_core.proto import DistanceUnit
from track_core.tracking import TrackingService, create_gate_config

logging.basicConfig(
    level=getattr(logging, config.LOGGING_CONFIG["level"]),
    format=config.LOGGING_CONFIG["format"]
)
logger = logging.getLogger(__name__)


class ReplayClock:
    """Clock that follows the timestamps of replayed samples."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


def build_service(args, clock: ReplayClock) -> TrackingService:
    """Create the tracking service from config.py and CLI overrides."""
    gate_settings = dict(config.GATE_CONFIG)
    if args.kalman:
        gate_settings["estimator_enabled"] = True
    if args.max_accuracy is not None:
        gate_settings["max_accuracy"] = args.max_accuracy
    if args.min_distance is not None:
        gate_settings["min_distance"] = args.min_distance
    if args.min_window is not None:
        gate_settings["min_time_window"] = args.min_window
    if args.max_window is not None:
        gate_settings["max_time_window"] = args.max_window

    estimator_config = EstimatorConfig(**config.ESTIMATOR_CONFIG)
    factory = partial(KalmanLocationEstimator, config=estimator_config)

    return TrackingService(
        config=create_gate_config(gate_settings),
        estimator_factory=factory,
        clock=clock,
    )


def replay(args) -> int:
    """Run one replay; returns the process exit code."""
    try:
        samples = load_samples(args.csv_file)
    except (OSError, TrackingError) as e:
        logger.error(f"Failed to load samples: {e}")
        return 1

    if not samples:
        logger.error("No samples in input")
        return 1

    clock = ReplayClock(samples[0].timestamp)
    service = build_service(args, clock)

    warnings = []
    service.add_warning_listener(lambda: warnings.append(clock.now))

    def deliver(sample):
        # Clock advances on the consumer thread, with the sample being processed
        clock.now = max(clock.now, sample.timestamp)
        return service.on_sample(sample)

    feed = SampleFeed(deliver, **config.FEED_CONFIG)

    service.start_tracking()
    feed.start()
    for sample in samples:
        feed.push(sample, block=True)
    feed.stop(drain=True)
    service.end_tracking()

    unit = DistanceUnit.MILES if args.miles else DistanceUnit.METERS
    summary = service.summary()

    print("=" * 60)
    print("               TRIP SUMMARY")
    print("=" * 60)
    print(f"Samples:        {len(samples)}")
    print(f"Accepted:       {get_metrics().snapshot().samples_accepted}")
    print(f"Segments:       {summary.num_segments}")
    print(f"Points:         {summary.num_points}")
    print(f"Distance:       {service.tracking_distance(unit):.2f} {unit.value}")
    print(f"Elapsed:        {summary.format_elapsed()}")
    print(f"Warnings:       {len(warnings)}")

    if config.OUTPUT_CONFIG["print_segments"]:
        for i, segment in enumerate(service.segments()):
            print(f"  segment {i}: {segment.num_points} points, {segment.length:.2f} m")
    print("=" * 60)

    if config.OUTPUT_CONFIG["print_metrics"]:
        get_metrics().print_summary()

    return 0


def main(argv=None) -> int:
    """Entry point."""
    parser = argparse.ArgumentParser(description='Replay GPS samples through the tracking gate')
    parser.add_argument('csv_file', type=str,
                        help='CSV file with lat,lon,timestamp,accuracy columns')
    parser.add_argument('--kalman', '-k', action='store_true',
                        help='Smooth samples with the Kalman estimator')
    parser.add_argument('--max-accuracy', type=float, default=None,
                        help='Max accepted horizontal accuracy (m)')
    parser.add_argument('--min-distance', type=float, default=None,
                        help='Min displacement counted as distance (m)')
    parser.add_argument('--min-window', type=float, default=None,
                        help='Min seconds between estimator updates')
    parser.add_argument('--max-window', type=float, default=None,
                        help='Seconds without a fix before a low-accuracy warning')
    parser.add_argument('--miles', action='store_true',
                        help='Report distance in miles')
    parser.add_argument('--debug', '-d', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    return replay(args)


if __name__ == "__main__":
    sys.exit(main())
