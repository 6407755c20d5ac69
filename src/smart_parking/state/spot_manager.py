"""Parking lot state management."""

import logging
import string
from collections.abc import Iterable
from typing import Optional

from ..errors import SpotNotFoundError, SpotUnavailableError
from ..metrics import record_spot_change, update_spot_counts, update_spot_status
from .models import LotStats, Spot, SpotCategory, SpotStatus

logger = logging.getLogger(__name__)

SEED_LAYOUT: list[dict] = [
    {"id": "A1", "category": "standard", "x": 15, "y": 15, "aisle": "A"},
    {"id": "A2", "category": "standard", "x": 30, "y": 15, "aisle": "A"},
    {"id": "A3", "category": "standard", "x": 45, "y": 15, "aisle": "A"},
    {"id": "A4", "category": "ev", "x": 60, "y": 15, "aisle": "A"},
    {"id": "A5", "category": "accessible", "x": 75, "y": 15, "aisle": "A"},
    {"id": "B1", "category": "standard", "x": 15, "y": 85, "aisle": "B"},
    {"id": "B2", "category": "standard", "x": 30, "y": 85, "aisle": "B"},
    {"id": "B3", "category": "standard", "x": 45, "y": 85, "aisle": "B"},
    {"id": "B4", "category": "vip", "x": 60, "y": 85, "aisle": "B"},
    {"id": "B5", "category": "standard", "x": 75, "y": 85, "aisle": "B"},
]


def seed_layout() -> list[Spot]:
    """The fixed ten-spot demo lot: aisle A on top, aisle B at the bottom."""
    return [Spot(**spot) for spot in SEED_LAYOUT]


def generate_grid(rows: int, cols: int, margin: float = 15.0) -> list[Spot]:
    """
    Generate an evenly spaced grid of standard spots.

    Each row is an aisle lettered A, B, C...; spot ids are aisle + column
    number starting at 1.
    """
    if rows < 1 or cols < 1:
        raise ValueError("Grid needs at least one row and one column")
    if rows > len(string.ascii_uppercase):
        raise ValueError(f"At most {len(string.ascii_uppercase)} aisles supported")

    span = 100.0 - 2 * margin

    def axis(i: int, n: int) -> float:
        return 50.0 if n == 1 else margin + span * i / (n - 1)

    spots = []
    for r in range(rows):
        aisle = string.ascii_uppercase[r]
        for c in range(cols):
            spots.append(
                Spot(id=f"{aisle}{c + 1}", x=axis(c, cols), y=axis(r, rows), aisle=aisle)
            )
    return spots


class SpotManager:
    """
    Sole owner of the spot collection.

    Other components refer to spots by id and resolve them here on every use.
    Classification results replace all statuses in a single swap so readers
    never see a half-updated lot.
    """

    def __init__(self, spots: Iterable[Spot]):
        self.spots: dict[str, Spot] = {}
        for spot in spots:
            if spot.id in self.spots:
                raise ValueError(f"Duplicate spot id: {spot.id}")
            self.spots[spot.id] = spot

        self._refresh_metrics()
        logger.info(f"Initialized SpotManager with {len(self.spots)} spots")

    def apply_classification(self, occupied_ids: Iterable[str]) -> list[str]:
        """
        Apply a classifier result to the lot.

        Every non-reserved spot becomes occupied if its id is in
        ``occupied_ids`` and available otherwise. Reserved spots are left alone.

        Args:
            occupied_ids: Ids the classifier decided are occupied

        Returns:
            List of spot IDs that changed state
        """
        occupied = set(occupied_ids)
        unknown = occupied - self.spots.keys()
        if unknown:
            logger.warning(f"Unknown spot IDs in classification result: {sorted(unknown)}")

        new_spots: dict[str, Spot] = {}
        changed_spots = []

        for spot_id, spot in self.spots.items():
            if spot.status == SpotStatus.RESERVED:
                new_spots[spot_id] = spot
                continue

            detected = SpotStatus.OCCUPIED if spot_id in occupied else SpotStatus.AVAILABLE
            if detected != spot.status:
                changed_spots.append(spot_id)
                logger.info(f"Spot '{spot_id}' changed: {spot.status.value} -> {detected.value}")
                record_spot_change(spot_id, detected.value)
            new_spots[spot_id] = spot.model_copy(update={"status": detected})

        self.spots = new_spots
        self._refresh_metrics()

        return changed_spots

    def reserve(self, spot_id: str) -> Spot:
        """Mark an available spot as reserved."""
        spot = self._require(spot_id)
        if spot.status != SpotStatus.AVAILABLE:
            raise SpotUnavailableError(spot_id, spot.status.value)

        spot.status = SpotStatus.RESERVED
        record_spot_change(spot_id, SpotStatus.RESERVED.value)
        self._refresh_metrics()
        logger.info(f"Spot '{spot_id}' reserved")
        return spot

    def release(self, spot_id: str) -> Spot:
        """Return a reserved spot to available."""
        spot = self._require(spot_id)
        if spot.status != SpotStatus.RESERVED:
            raise SpotUnavailableError(spot_id, spot.status.value)

        spot.status = SpotStatus.AVAILABLE
        record_spot_change(spot_id, SpotStatus.AVAILABLE.value)
        self._refresh_metrics()
        logger.info(f"Spot '{spot_id}' released")
        return spot

    def get_spot(self, spot_id: str) -> Optional[Spot]:
        """Get a specific spot, or None if it does not exist."""
        return self.spots.get(spot_id)

    def list_spots(self) -> list[Spot]:
        return list(self.spots.values())

    def count(self, status: SpotStatus) -> int:
        return sum(1 for s in self.spots.values() if s.status == status)

    def get_stats(self, revenue: float = 0.0, avg_search_time_seconds: float = 0.0) -> LotStats:
        """Aggregate counts and occupancy rate."""
        total = len(self.spots)
        occupied = self.count(SpotStatus.OCCUPIED)
        return LotStats(
            total=total,
            available=self.count(SpotStatus.AVAILABLE),
            occupied=occupied,
            reserved=self.count(SpotStatus.RESERVED),
            occupancy_rate=occupied / total if total else 0.0,
            revenue=revenue,
            avg_search_time_seconds=avg_search_time_seconds,
        )

    def _require(self, spot_id: str) -> Spot:
        spot = self.spots.get(spot_id)
        if spot is None:
            raise SpotNotFoundError(spot_id)
        return spot

    def _refresh_metrics(self) -> None:
        for spot_id, spot in self.spots.items():
            update_spot_status(
                spot_id=spot_id,
                category=spot.category.value,
                is_occupied=(spot.status == SpotStatus.OCCUPIED),
            )
        update_spot_counts(
            total=len(self.spots),
            available=self.count(SpotStatus.AVAILABLE),
            occupied=self.count(SpotStatus.OCCUPIED),
            reserved=self.count(SpotStatus.RESERVED),
        )


def category_from_value(value: Optional[str]) -> Optional[SpotCategory]:
    """Parse an optional category name, accepting the enum value case-insensitively."""
    if value is None or value == "":
        return None
    return SpotCategory(value.lower())
