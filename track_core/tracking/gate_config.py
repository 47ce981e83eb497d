"""
Gate configuration.

Tunable parameters read by LocationGate on every sample. Changes made
through update() take effect from the next processed sample.
"""

from dataclasses import dataclass, fields, replace
import math

from track_core.errors import InvalidConfigError


@dataclass
class GateConfig:
    """
    Configuration for location gating.

    Attributes:
        min_time_window: Minimum time since last accepted sample before the
            estimator processes another one (s)
        max_time_window: Time without an accepted sample after which a
            low-accuracy warning is raised (s)
        max_accuracy: Samples with horizontal accuracy at or above this are
            rejected by the filtered path (m)
        min_distance: Displacements below this add no distance (m)
        estimator_enabled: Smooth samples through the estimator
    """

    min_time_window: float = 0.5
    max_time_window: float = 8.0
    max_accuracy: float = 25.0
    min_distance: float = 0.1
    estimator_enabled: bool = False

    def __post_init__(self):
        """Validate configuration."""
        self.validate()

    def validate(self):
        """
        Check parameter consistency.

        Raises:
            InvalidConfigError: If any parameter is out of range
        """
        for name in ('min_time_window', 'max_time_window', 'max_accuracy', 'min_distance'):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidConfigError(f"{name} must be finite: {value}")

        if self.min_time_window < 0:
            raise InvalidConfigError(f"min_time_window cannot be negative: {self.min_time_window}")

        if self.min_time_window > self.max_time_window:
            raise InvalidConfigError(
                f"min_time_window ({self.min_time_window}) must not exceed "
                f"max_time_window ({self.max_time_window})"
            )

        if self.max_accuracy <= 0:
            raise InvalidConfigError(f"max_accuracy must be positive: {self.max_accuracy}")

        if self.min_distance < 0:
            raise InvalidConfigError(f"min_distance cannot be negative: {self.min_distance}")

    def update(self, **changes):
        """
        Apply new values atomically.

        Args:
            **changes: Field names and new values

        Raises:
            InvalidConfigError: If a name is unknown or the result is invalid;
                the config is left unchanged
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise InvalidConfigError(f"Unknown gate parameters: {sorted(unknown)}")

        # Validates in __post_init__
        candidate = replace(self, **changes)

        for name in changes:
            setattr(self, name, getattr(candidate, name))


def create_gate_config(settings: dict) -> GateConfig:
    """
    Build a GateConfig from a settings dictionary (e.g. config.GATE_CONFIG).

    Unknown keys are rejected.
    """
    config = GateConfig()
    config.update(**settings)
    return config
