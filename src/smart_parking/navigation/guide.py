"""Turn-by-turn guidance toward an assigned parking spot."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union

from ..config import NavigationConfig
from ..metrics import record_arrival, record_instruction
from ..state.models import MotionState, Spot, Vehicle
from .geometry import angle_difference, bearing, distance

logger = logging.getLogger(__name__)


class GuidancePhase(str, Enum):
    """Guide lifecycle for the current target: idle -> guiding -> arrived."""

    IDLE = "idle"
    GUIDING = "guiding"
    ARRIVED = "arrived"


class Command(str, Enum):
    """Discrete steering command."""

    STRAIGHT = "straight"
    LEFT = "left"
    RIGHT = "right"
    TURN_AROUND = "turn_around"
    SPOT_LEFT = "spot_left"
    SPOT_RIGHT = "spot_right"
    SPOT_AHEAD = "spot_ahead"


@dataclass(frozen=True)
class Arrived:
    spot_id: str
    text: str


@dataclass(frozen=True)
class Instruction:
    text: str
    command: Command
    spot_id: str
    distance: float


@dataclass(frozen=True)
class NoOp:
    reason: str


GuidanceOutcome = Union[Arrived, Instruction, NoOp]


class SpotLookup(Protocol):
    def get_spot(self, spot_id: str) -> Optional[Spot]: ...


def steering_command(angle_diff: float, dist: float, config: NavigationConfig) -> Command:
    """
    Map the signed angle to the target and the remaining distance to a command.

    Args:
        angle_diff: Signed angle from heading to target bearing, (-180, 180]
        dist: Distance to the target in normalized units
        config: Guidance thresholds

    Returns:
        Command for the driver
    """
    if dist < config.near_distance:
        if angle_diff > 0:
            return Command.SPOT_RIGHT
        if angle_diff < 0:
            return Command.SPOT_LEFT
        return Command.SPOT_AHEAD

    if abs(angle_diff) > config.reverse_angle:
        return Command.TURN_AROUND
    if angle_diff > config.turn_angle:
        return Command.RIGHT
    if angle_diff < -config.turn_angle:
        return Command.LEFT
    return Command.STRAIGHT


def instruction_text(command: Command, spot_id: str, dist: float) -> str:
    """Human readable text for a command."""
    units = round(dist)
    if command == Command.TURN_AROUND:
        return f"Turn around, spot {spot_id} is behind you ({units} units)."
    if command == Command.RIGHT:
        return f"Turn right toward spot {spot_id} ({units} units)."
    if command == Command.LEFT:
        return f"Turn left toward spot {spot_id} ({units} units)."
    if command == Command.STRAIGHT:
        return f"Drive straight to spot {spot_id} ({units} units)."
    if command == Command.SPOT_RIGHT:
        return f"Spot {spot_id} is on your right."
    if command == Command.SPOT_LEFT:
        return f"Spot {spot_id} is on your left."
    return f"Spot {spot_id} is directly ahead."


class NavigationGuide:
    """
    Rate-limited guidance state machine for a single vehicle.

    The vehicle's ``target_spot_id`` is resolved through the lot on every
    update. An id that no longer resolves yields ``NoOp`` and the guide keeps
    guiding until the caller clears the target.

    Instructions are not repeated within ``cooldown_seconds`` unless the
    vehicle has moved more than ``reissue_distance`` since the last one.
    """

    def __init__(self, config: Optional[NavigationConfig] = None):
        self.config = config or NavigationConfig()
        self.phase = GuidancePhase.IDLE
        self.last_time: Optional[float] = None
        self.last_position: Optional[tuple[float, float]] = None

    def assign(self, vehicle: Vehicle, spot_id: str) -> None:
        """Start guiding ``vehicle`` toward ``spot_id``."""
        vehicle.target_spot_id = spot_id
        vehicle.state = MotionState.DRIVING
        self.phase = GuidancePhase.GUIDING
        self._reset_rate_limit()
        logger.info(f"Guiding vehicle {vehicle.id} to spot {spot_id}")

    def clear(self, vehicle: Vehicle) -> None:
        """Drop the current target and return to idle."""
        vehicle.target_spot_id = None
        self.phase = GuidancePhase.IDLE
        self._reset_rate_limit()

    def update(
        self,
        vehicle: Vehicle,
        lot: SpotLookup,
        now: Optional[float] = None,
    ) -> GuidanceOutcome:
        """
        Advance the guide for the vehicle's current pose.

        Args:
            vehicle: Vehicle with current position, heading and target
            lot: Owner of the spot collection used to resolve the target
            now: Monotonic timestamp in seconds (defaults to time.monotonic())

        Returns:
            Arrived, Instruction or NoOp
        """
        if now is None:
            now = time.monotonic()

        if self.phase == GuidancePhase.ARRIVED:
            return NoOp("arrived")
        if self.phase == GuidancePhase.IDLE:
            return NoOp("idle")

        spot_id = vehicle.target_spot_id
        if spot_id is None:
            self.phase = GuidancePhase.IDLE
            return NoOp("no target")

        spot = lot.get_spot(spot_id)
        if spot is None:
            logger.debug(f"Target spot {spot_id} not found, waiting for caller to clear it")
            return NoOp("unresolved target")

        position = vehicle.position
        target = (spot.x, spot.y)
        dist = distance(position, target)

        if dist < self.config.arrival_distance:
            vehicle.state = MotionState.PARKED
            vehicle.target_spot_id = None
            self.phase = GuidancePhase.ARRIVED
            record_arrival()
            logger.info(f"Vehicle {vehicle.id} arrived at spot {spot_id}")
            return Arrived(spot_id=spot_id, text=f"You have arrived at spot {spot_id}.")

        if not self._may_emit(position, now):
            return NoOp("rate limited")

        diff = angle_difference(bearing(position, target), vehicle.heading)
        command = steering_command(diff, dist, self.config)
        text = instruction_text(command, spot_id, dist)

        self.last_time = now
        self.last_position = position
        record_instruction(command.value)

        return Instruction(text=text, command=command, spot_id=spot_id, distance=dist)

    def _may_emit(self, position: tuple[float, float], now: float) -> bool:
        if self.last_time is None or self.last_position is None:
            return True
        if now - self.last_time >= self.config.cooldown_seconds:
            return True
        return distance(position, self.last_position) > self.config.reissue_distance

    def _reset_rate_limit(self) -> None:
        self.last_time = None
        self.last_position = None
