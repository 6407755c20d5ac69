"""Render a stylized demo lot image for trying out the occupancy classifier."""

import sys
from collections.abc import Iterable
from pathlib import Path

import cv2
import numpy as np

from smart_parking.state.models import Spot, SpotCategory
from smart_parking.state.spot_manager import seed_layout

ASPHALT = (60, 60, 60)  # BGR
PAINT = (235, 235, 235)
ACCESSIBLE_BLUE = (200, 120, 30)

# Car body colours, cycled per occupied spot
CAR_COLORS = [
    (40, 40, 220),
    (220, 120, 30),
    (40, 180, 240),
    (90, 160, 40),
]


def render_demo_lot(
    spots: Iterable[Spot],
    occupied_ids: Iterable[str],
    width: int = 800,
    height: int = 600,
) -> np.ndarray:
    """
    Draw a top-down lot: asphalt, painted bays, and flat-coloured cars.

    Args:
        spots: Spots to draw bays for
        occupied_ids: Spots that get a car drawn in them
        width, height: Output image size in pixels

    Returns:
        BGR image as numpy array
    """
    occupied = set(occupied_ids)
    image = np.full((height, width, 3), ASPHALT, dtype=np.uint8)

    bay_w = int(width * 0.07)
    bay_h = int(height * 0.15)
    car_w = int(width * 0.055)
    car_h = int(height * 0.12)

    for i, spot in enumerate(spots):
        cx = int(spot.x / 100.0 * width)
        cy = int(spot.y / 100.0 * height)

        # Bay outline
        cv2.rectangle(
            image,
            (cx - bay_w // 2, cy - bay_h // 2),
            (cx + bay_w // 2, cy + bay_h // 2),
            PAINT,
            2,
        )

        if spot.category == SpotCategory.ACCESSIBLE and spot.id not in occupied:
            # Marker painted near the bay mouth, outside the sampled centre
            cv2.circle(image, (cx, cy + bay_h // 2 - 10), 6, ACCESSIBLE_BLUE, -1)

        if spot.id in occupied:
            color = CAR_COLORS[i % len(CAR_COLORS)]
            x1, y1 = cx - car_w // 2, cy - car_h // 2
            x2, y2 = cx + car_w // 2, cy + car_h // 2
            cv2.rectangle(image, (x1, y1), (x2, y2), color, -1)
            # Windshield
            cv2.rectangle(image, (x1 + 4, y1 + 6), (x2 - 4, y1 + car_h // 4), (30, 30, 30), -1)

    return image


def main():
    """CLI entry point: write a demo lot image with some spots taken."""
    if len(sys.argv) < 2:
        print("Usage: python -m lot_tool.demo_lot <output_path> [occupied_id ...]")
        print("\nExample:")
        print("  python -m lot_tool.demo_lot demo_lot.png A2 A4 B1")
        sys.exit(1)

    output = Path(sys.argv[1])
    occupied = sys.argv[2:]

    image = render_demo_lot(seed_layout(), occupied)
    output.parent.mkdir(parents=True, exist_ok=True)

    if not cv2.imwrite(str(output), image):
        print(f"Error: could not write {output}")
        sys.exit(1)

    print(f"Demo lot saved to: {output} (occupied: {', '.join(occupied) or 'none'})")


if __name__ == "__main__":
    main()
