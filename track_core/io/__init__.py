"""
I/O Module: Sample ingress.

- SampleFeed: bounded single-consumer queue in front of the tracking service
- load_samples / iter_samples: recorded samples from CSV
"""

from .sample_feed import SampleFeed
from .csv_samples import iter_samples, load_samples, REQUIRED_COLUMNS

__all__ = [
    'SampleFeed',
    'iter_samples',
    'load_samples',
    'REQUIRED_COLUMNS',
]
