"""Vehicle simulation and session scheduling."""

from .physics import Direction, parse_keys, step
from .session import ClassificationOutcome, Session

__all__ = ["Direction", "parse_keys", "step", "ClassificationOutcome", "Session"]
