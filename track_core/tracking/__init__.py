"""
Tracking Module: Path accounting and per-sample gating.

Key classes:
- PathLedger: Segments, lengths, start/end times
- LocationGate: Accept/discard/warn state machine
- GateConfig: Time-window, accuracy and distance thresholds
- TrackingService: Thread-safe facade over gate and ledger
"""

from .path_ledger import (
    PathLedger,
    PathSegment,
    TrackingSession,
)
from .gate_config import (
    GateConfig,
    create_gate_config,
)
from .location_gate import (
    LocationGate,
    GateState,
    GateOutcome,
    LOW_ACCURACY_WARNING,
)
from .tracking_service import TrackingService

__all__ = [
    'PathLedger',
    'PathSegment',
    'TrackingSession',
    'GateConfig',
    'create_gate_config',
    'LocationGate',
    'GateState',
    'GateOutcome',
    'LOW_ACCURACY_WARNING',
    'TrackingService',
]
