"""API request and response schemas."""

from typing import Optional

from pydantic import BaseModel

from ..state.models import LogEntry, LotStats, Spot, Vehicle


class StatusResponse(BaseModel):
    """Response schema for overall lot status."""

    stats: LotStats
    spots: list[Spot]
    target_spot_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    simulation_running: bool
    uptime_seconds: float


class InputRequest(BaseModel):
    """Currently pressed keys (e.g. ArrowUp, w) or direction names."""

    keys: list[str]


class VehicleResponse(BaseModel):
    vehicle: Vehicle
    pressed: list[str]
    instruction: str


class NavigationResponse(BaseModel):
    """Outcome of a spot assignment request."""

    assigned: bool
    spot: Optional[Spot] = None
    instruction: str


class InstructionResponse(BaseModel):
    instruction: str
    phase: str
    target_spot_id: Optional[str] = None


class RegionResponse(BaseModel):
    """Per-spot classifier diagnostics."""

    spot_id: str
    box: tuple[int, int, int, int]
    occupied: bool
    rule: Optional[str] = None
    avg_luma: Optional[float] = None
    luma_std: Optional[float] = None
    avg_chroma: Optional[float] = None
    max_chroma: Optional[float] = None
    dark_fraction: Optional[float] = None


class ClassificationResponse(BaseModel):
    upload_id: int
    applied: bool
    occupied: list[str]
    changed: list[str]


class InsightResponse(BaseModel):
    summary: str
    stats: LotStats


class LogResponse(BaseModel):
    entries: list[LogEntry]
