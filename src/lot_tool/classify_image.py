"""Classify a lot image from the command line and show why each spot was decided."""

import sys
from pathlib import Path

import cv2

from smart_parking.config import get_config_path, load_config, AppConfig
from smart_parking.detection.annotate import annotate_lot
from smart_parking.detection.occupancy_classifier import OccupancyClassifier, RegionResult
from smart_parking.state.models import SpotStatus
from smart_parking.state.spot_manager import seed_layout


def format_result(result: RegionResult) -> str:
    """One table row for a region."""
    verdict = "OCCUPIED" if result.occupied else "available"
    if result.stats is None:
        return f"  {result.spot_id:<6} {verdict:<10} (sample box outside image)"

    s = result.stats
    return (
        f"  {result.spot_id:<6} {verdict:<10} {result.rule:<18} "
        f"luma={s.avg_luma:6.1f} std={s.luma_std:5.1f} "
        f"chroma={s.avg_chroma:5.1f}/{s.max_chroma:5.1f} dark={s.dark_fraction:.2f}"
    )


def classify_file(image_path: str, annotated_path: str | None = None) -> list[RegionResult]:
    """
    Classify the seed layout spots in an image file.

    Args:
        image_path: Lot image on disk
        annotated_path: Where to write the overlay image, if wanted

    Returns:
        Per-spot results
    """
    image = cv2.imread(image_path)
    if image is None:
        raise ValueError(f"Could not load image: {image_path}")

    config_path = get_config_path()
    config = load_config(config_path) if config_path.exists() else AppConfig()

    spots = seed_layout()
    results = OccupancyClassifier(config.classifier).classify_detailed(image, spots)

    if annotated_path:
        by_id = {r.spot_id: r for r in results}
        for spot in spots:
            spot.status = SpotStatus.OCCUPIED if by_id[spot.id].occupied else SpotStatus.AVAILABLE
        Path(annotated_path).parent.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(annotated_path, annotate_lot(image, spots, results))

    return results


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: python -m lot_tool.classify_image <image_path> [annotated_output]")
        sys.exit(1)

    annotated = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        results = classify_file(sys.argv[1], annotated)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"\nClassified {len(results)} spot(s):")
    for result in results:
        print(format_result(result))

    occupied = sum(1 for r in results if r.occupied)
    print(f"\n{occupied} occupied, {len(results) - occupied} available")
    if annotated:
        print(f"Annotated image saved to: {annotated}")


if __name__ == "__main__":
    main()
