"""Lot overlay drawing for the admin view."""

from typing import Optional

import cv2
import numpy as np

from ..state.models import Spot, SpotStatus
from .occupancy_classifier import RegionResult

# BGR
STATUS_COLORS = {
    SpotStatus.AVAILABLE: (129, 185, 16),
    SpotStatus.OCCUPIED: (68, 68, 239),
    SpotStatus.RESERVED: (0, 200, 255),
}
TARGET_COLOR = (246, 130, 59)


def annotate_lot(
    image: np.ndarray,
    spots: list[Spot],
    regions: Optional[list[RegionResult]] = None,
    target_spot_id: Optional[str] = None,
) -> np.ndarray:
    """
    Draw sample boxes and status labels over a lot image.

    Args:
        image: BGR image as numpy array
        spots: Spots to draw, with their current status
        regions: Last classification diagnostics (for the sample boxes)
        target_spot_id: Spot the vehicle is navigating to, drawn highlighted

    Returns:
        Annotated image copy
    """
    annotated = image.copy()
    height, width = annotated.shape[:2]
    boxes = {r.spot_id: r.box for r in regions or []}

    for spot in spots:
        color = TARGET_COLOR if spot.id == target_spot_id else STATUS_COLORS[spot.status]
        thickness = 3 if spot.id == target_spot_id else 2

        box = boxes.get(spot.id)
        if box is not None:
            x1, y1, x2, y2 = box.x1, box.y1, box.x2, box.y2
        else:
            cx = int(spot.x / 100.0 * width)
            cy = int(spot.y / 100.0 * height)
            x1, y1, x2, y2 = cx - 20, cy - 35, cx + 20, cy + 35

        cv2.rectangle(annotated, (x1, y1), (x2, y2), color, thickness)

        # Semi-transparent fill
        overlay = annotated.copy()
        cv2.rectangle(overlay, (x1, y1), (x2, y2), color, -1)
        cv2.addWeighted(overlay, 0.2, annotated, 0.8, 0, annotated)

        label = f"{spot.id}: {spot.status.value}"
        font_scale = 0.35
        label_size, _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1)

        label_x = x1
        label_y = max(label_size[1] + 2, y1 - 4)

        # Background for label
        cv2.rectangle(
            annotated,
            (label_x - 2, label_y - label_size[1] - 2),
            (label_x + label_size[0] + 2, label_y + 4),
            (0, 0, 0),
            -1,
        )
        cv2.putText(
            annotated,
            label,
            (label_x, label_y),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            1,
        )

    return annotated


def encode_jpeg(image: np.ndarray) -> bytes:
    """Encode a BGR image as JPEG bytes."""
    ok, buffer = cv2.imencode(".jpg", image)
    if not ok:
        raise ValueError("Failed to encode image")
    return buffer.tobytes()
