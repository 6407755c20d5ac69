"""Fixed-timestep vehicle motion from pressed directions."""

import math
from collections.abc import Iterable
from enum import Enum

from ..config import SimulationConfig
from ..state.models import MotionState, Vehicle
from ..navigation.geometry import normalize_heading


class Direction(str, Enum):
    FORWARD = "forward"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"


KEY_BINDINGS: dict[str, Direction] = {
    "arrowup": Direction.FORWARD,
    "w": Direction.FORWARD,
    "arrowdown": Direction.BACK,
    "s": Direction.BACK,
    "arrowleft": Direction.LEFT,
    "a": Direction.LEFT,
    "arrowright": Direction.RIGHT,
    "d": Direction.RIGHT,
}


DIRECTION_NAMES = {d.value for d in Direction}


def parse_keys(keys: Iterable[str]) -> set[Direction]:
    """
    Map key names or direction names to directions.

    Unknown keys are ignored.
    """
    directions = set()
    for key in keys:
        name = key.strip().lower()
        if name in KEY_BINDINGS:
            directions.add(KEY_BINDINGS[name])
        elif name in DIRECTION_NAMES:
            directions.add(Direction(name))
    return directions


def step(vehicle: Vehicle, pressed: set[Direction], config: SimulationConfig) -> bool:
    """
    Advance the vehicle by one physics tick.

    Rotation is applied before translation. Position is clamped into the lot.

    Returns:
        True if the pose changed
    """
    if vehicle.state == MotionState.PARKED or not pressed:
        return False

    heading = vehicle.heading
    if Direction.LEFT in pressed:
        heading -= config.turn_rate
    if Direction.RIGHT in pressed:
        heading += config.turn_rate

    rad = math.radians(heading)
    x, y = vehicle.x, vehicle.y
    if Direction.FORWARD in pressed:
        x += math.cos(rad) * config.forward_speed
        y += math.sin(rad) * config.forward_speed
    if Direction.BACK in pressed:
        x -= math.cos(rad) * config.reverse_speed
        y -= math.sin(rad) * config.reverse_speed

    before = (vehicle.x, vehicle.y, vehicle.heading)
    vehicle.heading = normalize_heading(heading)
    # Model validators clamp into [0, 100]
    vehicle.x = x
    vehicle.y = y

    return before != (vehicle.x, vehicle.y, vehicle.heading)
