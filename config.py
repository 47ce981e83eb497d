"""
Track replay configuration.
"""

# Gate configuration (defaults for GateConfig)
GATE_CONFIG = {
    "min_time_window": 0.5,       # Min seconds between estimator updates
    "max_time_window": 8.0,       # Seconds without a fix before warning
    "max_accuracy": 25.0,         # Max accepted horizontal accuracy (m)
    "min_distance": 0.1,          # Min displacement counted as distance (m)
    "estimator_enabled": False,   # Smooth samples with the Kalman estimator
}

# Estimator configuration
ESTIMATOR_CONFIG = {
    "q_pos": 0.25,                # Position process noise (m²/s)
    "q_vel": 2.25,                # Velocity process noise (m²/s³)
    "initial_vel_std_m_s": 5.0,   # Initial velocity uncertainty (m/s)
    "min_accuracy_m": 1.0,        # Floor on measurement noise (m)
}

# Sample feed configuration
FEED_CONFIG = {
    "max_size": 1000,             # Bounded queue capacity
    "poll_interval_s": 0.1,       # Consumer wake-up interval (s)
}

# Output configuration
OUTPUT_CONFIG = {
    "print_segments": True,       # Print per-segment lengths
    "print_metrics": True,        # Print metrics summary after replay
}

# Logging configuration
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
