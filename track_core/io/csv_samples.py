"""
CSV sample loading.

Reads recorded location samples for replay. Expected header:
    lat,lon,timestamp,accuracy
Extra columns are ignored.
"""

import csv
import logging
from pathlib import Path
from typing import Iterator, List, Union

from track_core.errors import InvalidSampleError
from track_core.proto.location_sample import LocationSample, create_sample

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('lat', 'lon', 'timestamp', 'accuracy')


def iter_samples(csv_path: Union[str, Path]) -> Iterator[LocationSample]:
    """
    Yield samples from a CSV file.

    Args:
        csv_path: Path to the CSV file

    Yields:
        LocationSample per data row

    Raises:
        InvalidSampleError: Missing columns, or a row that does not parse
            (message carries the line number)
    """
    path = Path(csv_path)
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or []

        missing = [c for c in REQUIRED_COLUMNS if c not in fieldnames]
        if missing:
            raise InvalidSampleError(f"{path}: missing columns {missing}, found {fieldnames}")

        for row in reader:
            try:
                yield create_sample(
                    lat=row['lat'].strip(),
                    lon=row['lon'].strip(),
                    timestamp=row['timestamp'].strip(),
                    accuracy=row['accuracy'].strip(),
                )
            except (ValueError, AttributeError) as e:
                # InvalidSampleError is a ValueError too
                raise InvalidSampleError(f"{path}:{reader.line_num}: {e}") from e


def load_samples(csv_path: Union[str, Path]) -> List[LocationSample]:
    """Load all samples into memory."""
    samples = list(iter_samples(csv_path))
    logger.info("Loaded %d samples from %s", len(samples), csv_path)
    return samples
