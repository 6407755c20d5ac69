"""State management module."""

from .models import LogEntry, LotStats, MotionState, Spot, SpotCategory, SpotStatus, Vehicle
from .spot_manager import SpotManager, generate_grid, seed_layout

__all__ = [
    "LogEntry",
    "LotStats",
    "MotionState",
    "Spot",
    "SpotCategory",
    "SpotStatus",
    "Vehicle",
    "SpotManager",
    "generate_grid",
    "seed_layout",
]
