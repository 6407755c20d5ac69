"""
Guidance, geometry and spot selection tests
"""

import pytest

from smart_parking.config import NavigationConfig
from smart_parking.navigation.geometry import angle_difference, bearing, distance
from smart_parking.navigation.guide import (
    Arrived,
    Command,
    GuidancePhase,
    Instruction,
    NavigationGuide,
    NoOp,
    steering_command,
)
from smart_parking.navigation.spot_finder import find_nearest
from smart_parking.state.models import MotionState, Spot, SpotCategory, SpotStatus, Vehicle
from smart_parking.state.spot_manager import SpotManager


@pytest.fixture
def lot():
    return SpotManager([
        Spot(id="T", x=52, y=51),
        Spot(id="FAR", x=90, y=50),
        Spot(id="UP", x=50, y=10),
    ])


@pytest.fixture
def guide():
    return NavigationGuide(NavigationConfig())


# ============================================================================
# Geometry
# ============================================================================

def test_distance():
    assert distance((50, 50), (52, 51)) == pytest.approx(2.236, abs=1e-3)


def test_bearing_axes():
    assert bearing((0, 0), (10, 0)) == pytest.approx(0)
    assert bearing((0, 0), (0, 10)) == pytest.approx(90)
    assert bearing((0, 0), (-10, 0)) == pytest.approx(180)


def test_angle_difference_wraps():
    """Heading 170, bearing -170 is 20 degrees clockwise, not -340"""
    assert angle_difference(-170, 170) == pytest.approx(20)
    assert angle_difference(190, 170) == pytest.approx(20)
    assert angle_difference(170, -170) == pytest.approx(-20)


def test_angle_difference_range():
    for target in range(-720, 721, 15):
        for heading in (-400, -90, 0, 45, 359, 725):
            diff = angle_difference(target, heading)
            assert -180 < diff <= 180


def test_angle_difference_exactly_behind():
    assert angle_difference(180, 0) == 180


# ============================================================================
# Steering
# ============================================================================

@pytest.mark.parametrize(
    "diff,expected",
    [
        (0, Command.STRAIGHT),
        (20, Command.STRAIGHT),
        (25, Command.STRAIGHT),
        (26, Command.RIGHT),
        (-25, Command.STRAIGHT),
        (-26, Command.LEFT),
        (130, Command.RIGHT),
        (131, Command.TURN_AROUND),
        (-131, Command.TURN_AROUND),
        (180, Command.TURN_AROUND),
    ],
)
def test_steering_thresholds(diff, expected):
    assert steering_command(diff, 50, NavigationConfig()) == expected


def test_near_target_reports_side():
    config = NavigationConfig()
    assert steering_command(90, 4.5, config) == Command.SPOT_RIGHT
    assert steering_command(-90, 4.5, config) == Command.SPOT_LEFT
    assert steering_command(0, 4.5, config) == Command.SPOT_AHEAD


# ============================================================================
# NavigationGuide
# ============================================================================

def test_idle_without_target(guide, lot):
    outcome = guide.update(Vehicle(x=10, y=10), lot, now=0.0)
    assert isinstance(outcome, NoOp)
    assert guide.phase == GuidancePhase.IDLE


def test_arrival_is_terminal(guide, lot):
    vehicle = Vehicle(x=50, y=50)
    guide.assign(vehicle, "T")

    outcome = guide.update(vehicle, lot, now=0.0)
    assert isinstance(outcome, Arrived)
    assert outcome.spot_id == "T"
    assert vehicle.state == MotionState.PARKED
    assert vehicle.target_spot_id is None
    assert guide.phase == GuidancePhase.ARRIVED

    again = guide.update(vehicle, lot, now=10.0)
    assert isinstance(again, NoOp)


def test_turn_right_instruction(guide, lot):
    """Target straight down with heading +x is a right turn (y grows downward)"""
    vehicle = Vehicle(x=50, y=10, heading=0)
    lot.spots["DOWN"] = Spot(id="DOWN", x=50, y=60)
    guide.assign(vehicle, "DOWN")

    outcome = guide.update(vehicle, lot, now=0.0)
    assert isinstance(outcome, Instruction)
    assert outcome.command == Command.RIGHT
    assert "DOWN" in outcome.text
    assert outcome.distance == pytest.approx(50)


def test_turn_around_instruction(guide, lot):
    vehicle = Vehicle(x=60, y=50, heading=0)
    lot.spots["BEHIND"] = Spot(id="BEHIND", x=10, y=50)
    guide.assign(vehicle, "BEHIND")

    outcome = guide.update(vehicle, lot, now=0.0)
    assert outcome.command == Command.TURN_AROUND


def test_rate_limited_when_stationary(guide, lot):
    vehicle = Vehicle(x=10, y=50)
    guide.assign(vehicle, "FAR")

    first = guide.update(vehicle, lot, now=0.0)
    second = guide.update(vehicle, lot, now=0.5)

    assert isinstance(first, Instruction)
    assert isinstance(second, NoOp)


def test_reissued_after_moving(guide, lot):
    vehicle = Vehicle(x=10, y=50)
    guide.assign(vehicle, "FAR")

    first = guide.update(vehicle, lot, now=0.0)
    vehicle.x = 16
    second = guide.update(vehicle, lot, now=0.5)

    assert isinstance(first, Instruction)
    assert isinstance(second, Instruction)


def test_reissued_after_cooldown(guide, lot):
    vehicle = Vehicle(x=10, y=50)
    guide.assign(vehicle, "FAR")

    guide.update(vehicle, lot, now=0.0)
    assert isinstance(guide.update(vehicle, lot, now=2.9), NoOp)
    assert isinstance(guide.update(vehicle, lot, now=3.0), Instruction)


def test_unresolved_target_is_noop(guide, lot):
    vehicle = Vehicle(x=10, y=50)
    guide.assign(vehicle, "GONE")

    outcome = guide.update(vehicle, lot, now=0.0)
    assert isinstance(outcome, NoOp)
    assert guide.phase == GuidancePhase.GUIDING
    assert vehicle.target_spot_id == "GONE"

    guide.clear(vehicle)
    assert guide.phase == GuidancePhase.IDLE
    assert vehicle.target_spot_id is None


def test_reassign_after_arrival(guide, lot):
    vehicle = Vehicle(x=50, y=50)
    guide.assign(vehicle, "T")
    guide.update(vehicle, lot, now=0.0)

    guide.assign(vehicle, "FAR")
    assert vehicle.state == MotionState.DRIVING
    assert isinstance(guide.update(vehicle, lot, now=0.1), Instruction)


# ============================================================================
# find_nearest
# ============================================================================

def test_find_nearest_empty():
    assert find_nearest([], (50, 50)) is None


def test_find_nearest_skips_unavailable():
    spots = [
        Spot(id="A", x=51, y=50, status=SpotStatus.OCCUPIED),
        Spot(id="B", x=55, y=50, status=SpotStatus.RESERVED),
        Spot(id="C", x=70, y=50),
    ]
    assert find_nearest(spots, (50, 50)).id == "C"


def test_find_nearest_none_available():
    spots = [Spot(id="A", x=51, y=50, status=SpotStatus.OCCUPIED)]
    assert find_nearest(spots, (50, 50)) is None


def test_find_nearest_tie_keeps_first():
    spots = [Spot(id="LEFT", x=40, y=50), Spot(id="RIGHT", x=60, y=50)]
    assert find_nearest(spots, (50, 50)).id == "LEFT"
    assert find_nearest(list(reversed(spots)), (50, 50)).id == "RIGHT"


def test_find_nearest_by_category():
    spots = [
        Spot(id="S", x=51, y=50),
        Spot(id="EV", x=90, y=50, category=SpotCategory.EV),
    ]
    assert find_nearest(spots, (50, 50), SpotCategory.EV).id == "EV"
    assert find_nearest(spots, (50, 50), SpotCategory.VIP) is None
