"""Data models for lot and vehicle state."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


def clamp_coordinate(value: float) -> float:
    """Clamp a normalized coordinate into [0, 100]."""
    return max(0.0, min(100.0, float(value)))


class SpotCategory(str, Enum):
    """Kind of parking spot."""

    STANDARD = "standard"
    COMPACT = "compact"
    ACCESSIBLE = "accessible"
    EV = "ev"
    VIP = "vip"


class SpotStatus(str, Enum):
    """Occupancy status of a parking spot."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"


class MotionState(str, Enum):
    """Whether the vehicle is still moving toward a spot."""

    DRIVING = "driving"
    PARKED = "parked"


class Spot(BaseModel):
    """A parking spot positioned in normalized lot coordinates."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    category: SpotCategory = SpotCategory.STANDARD
    status: SpotStatus = SpotStatus.AVAILABLE
    x: float
    y: float
    aisle: str = ""

    @field_validator("x", "y", mode="before")
    @classmethod
    def clamp(cls, v: float) -> float:
        return clamp_coordinate(v)


class Vehicle(BaseModel):
    """The driver's vehicle.

    ``target_spot_id`` is a weak reference: it is resolved through the lot on
    every use and may point at a spot that no longer exists.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = "user"
    x: float = 5.0
    y: float = 50.0
    heading: float = 0.0  # Degrees, 0 faces +x, positive turns clockwise
    state: MotionState = MotionState.DRIVING
    target_spot_id: Optional[str] = None

    @field_validator("x", "y", mode="before")
    @classmethod
    def clamp(cls, v: float) -> float:
        return clamp_coordinate(v)

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)


class LogStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERSTAY = "overstay"


class LogEntry(BaseModel):
    """An activity log entry shown to operators."""

    id: str
    plate: str
    entry_time: datetime
    duration: str = ""
    status: LogStatus = LogStatus.ACTIVE
    spot_id: Optional[str] = None


class LotStats(BaseModel):
    """Aggregate lot statistics."""

    total: int
    available: int
    occupied: int
    reserved: int
    occupancy_rate: float
    revenue: float = 0.0
    avg_search_time_seconds: float = 0.0
