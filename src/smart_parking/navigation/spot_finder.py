"""Nearest available spot selection."""

from collections.abc import Iterable
from typing import Optional

from ..state.models import Spot, SpotCategory, SpotStatus
from .geometry import distance


def find_nearest(
    spots: Iterable[Spot],
    position: tuple[float, float],
    category: Optional[SpotCategory] = None,
) -> Optional[Spot]:
    """
    Find the closest available spot to ``position``.

    Args:
        spots: Candidate spots in lot order
        position: Normalized (x, y) of the vehicle
        category: Only consider spots of this category when given

    Returns:
        The nearest matching spot, the first one in ``spots`` on a tie, or
        None when nothing is available
    """
    best: Optional[Spot] = None
    best_distance = float("inf")

    for spot in spots:
        if spot.status != SpotStatus.AVAILABLE:
            continue
        if category is not None and spot.category != category:
            continue

        d = distance(position, (spot.x, spot.y))
        # Strict comparison keeps the earlier spot on ties
        if d < best_distance:
            best = spot
            best_distance = d

    return best
