"""Navigation guidance and spot selection."""

from .guide import Arrived, Command, GuidanceOutcome, GuidancePhase, Instruction, NavigationGuide, NoOp
from .spot_finder import find_nearest

__all__ = [
    "Arrived",
    "Command",
    "GuidanceOutcome",
    "GuidancePhase",
    "Instruction",
    "NavigationGuide",
    "NoOp",
    "find_nearest",
]
