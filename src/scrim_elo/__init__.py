"""Exactly-once Elo rating updates for completed two-team scrims."""

__version__ = "0.1.0"
