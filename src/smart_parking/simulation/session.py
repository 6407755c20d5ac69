"""Driving session: owns vehicle, lot and guide, and runs the periodic ticks."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np

from ..config import AppConfig
from ..detection.occupancy_classifier import OccupancyClassifier, RegionResult, decode_image
from ..errors import ImageDecodeError, SpotNotFoundError, SpotUnavailableError
from ..metrics import record_classification_latency, record_classification_outcome
from ..navigation.guide import Arrived, GuidanceOutcome, Instruction, NavigationGuide
from ..navigation.spot_finder import find_nearest
from ..services.insight import InsightService
from ..services.speech import SpeechService
from ..state.models import LogEntry, LogStatus, LotStats, MotionState, Spot, SpotCategory, SpotStatus, Vehicle
from ..state.spot_manager import SpotManager
from .physics import Direction, parse_keys, step

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 50


@dataclass
class ClassificationOutcome:
    """Result of one image upload."""

    upload_id: int
    applied: bool
    occupied: set[str] = field(default_factory=set)
    changed: list[str] = field(default_factory=list)


class Session:
    """
    One simulated driving session.

    All state lives on the event loop thread. Image decoding and
    classification run in a worker thread and their result is applied back
    on the loop, only if no newer upload arrived in the meantime.
    """

    def __init__(
        self,
        config: AppConfig,
        lot: SpotManager,
        speech: Optional[SpeechService] = None,
        insight: Optional[InsightService] = None,
        classifier: Optional[OccupancyClassifier] = None,
    ):
        self.config = config
        self.lot = lot
        self.speech = speech or SpeechService(None)
        self.insight_service = insight or InsightService(None, fallback=config.services.insight_fallback)
        self.classifier = classifier or OccupancyClassifier(config.classifier)
        self.guide = NavigationGuide(config.navigation)

        self.vehicle = self._new_vehicle()
        self.pressed: set[Direction] = set()
        self.instruction = "Control car with Arrow Keys."
        self.last_audio: Optional[bytes] = None
        self.log: list[LogEntry] = []

        self.last_image: Optional[np.ndarray] = None
        self.last_regions: list[RegionResult] = []
        self._upload_seq = 0
        self._latest_upload = 0

        self._search_started: Optional[float] = None
        self._search_times: list[float] = []
        self._revenue = 0.0
        self._background: set[asyncio.Task] = set()

    def _new_vehicle(self) -> Vehicle:
        sim = self.config.simulation
        return Vehicle(x=sim.start_x, y=sim.start_y, heading=sim.start_heading)

    # Input and physics

    def set_input(self, keys: list[str]) -> set[Direction]:
        """Replace the pressed direction set from key or direction names."""
        self.pressed = parse_keys(keys)
        return self.pressed

    def physics_tick(self) -> bool:
        return step(self.vehicle, self.pressed, self.config.simulation)

    def reset_vehicle(self) -> Vehicle:
        """Put the vehicle back at the lot entrance with no target."""
        self.guide.clear(self.vehicle)
        self.vehicle = self._new_vehicle()
        self.pressed = set()
        self._search_started = None
        self.instruction = "Control car with Arrow Keys."
        return self.vehicle

    # Guidance

    def guidance_tick(self, now: Optional[float] = None) -> GuidanceOutcome:
        """Run the guide once and publish its outcome."""
        outcome = self.guide.update(self.vehicle, self.lot, now)

        if isinstance(outcome, Instruction):
            self.instruction = outcome.text
            self._announce(outcome.text, outcome.distance)
        elif isinstance(outcome, Arrived):
            self.instruction = outcome.text
            self._record_arrival(outcome.spot_id)
            self._announce(outcome.text, 0.0)

        return outcome

    def assign_target(self, spot_id: str) -> Spot:
        """
        Navigate to a specific spot.

        Raises:
            SpotNotFoundError: If the spot does not exist
            SpotUnavailableError: If the spot is occupied
        """
        spot = self.lot.get_spot(spot_id)
        if spot is None:
            raise SpotNotFoundError(spot_id)
        if spot.status == SpotStatus.OCCUPIED:
            raise SpotUnavailableError(spot_id, spot.status.value)

        self._start_navigation(spot)
        return spot

    def assign_nearest(self, category: Optional[SpotCategory] = None) -> Optional[Spot]:
        """
        Navigate to the nearest available spot.

        Returns:
            The assigned spot, or None if no spot matches
        """
        spot = find_nearest(self.lot.list_spots(), self.vehicle.position, category)
        if spot is None:
            self.instruction = "No available spots found for your criteria."
            logger.info(f"No available spot (category: {category.value if category else 'any'})")
            return None

        self._start_navigation(spot)
        return spot

    def clear_target(self) -> None:
        self.guide.clear(self.vehicle)
        self._search_started = None

    def _start_navigation(self, spot: Spot) -> None:
        self._complete_active_entries()
        self.guide.assign(self.vehicle, spot.id)
        self._search_started = time.monotonic()
        self.instruction = f"Navigating to {spot.category.value} spot {spot.id}."
        self._announce(self.instruction, None)

    def _announce(self, text: str, distance: Optional[float]) -> None:
        if not self.speech.enabled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop outside the server (scripts, tests): stay silent
            return
        task = loop.create_task(self._speak(text, distance))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _speak(self, text: str, distance: Optional[float]) -> None:
        audio = await self.speech.synthesize(text, distance)
        if audio is not None:
            self.last_audio = audio

    # Activity log

    def _record_arrival(self, spot_id: str) -> None:
        if self._search_started is not None:
            self._search_times.append(time.monotonic() - self._search_started)
            self._search_started = None

        self._revenue += self.config.simulation.parking_fee
        self._append_log(
            LogEntry(
                id=uuid.uuid4().hex[:8],
                plate=self.vehicle.id.upper(),
                entry_time=datetime.now(),
                status=LogStatus.ACTIVE,
                spot_id=spot_id,
            )
        )

    def _complete_active_entries(self) -> None:
        now = datetime.now()
        for entry in self.log:
            if entry.status == LogStatus.ACTIVE:
                minutes = int((now - entry.entry_time).total_seconds() // 60)
                entry.status = LogStatus.COMPLETED
                entry.duration = f"{minutes}m"

    def _append_log(self, entry: LogEntry) -> None:
        self.log.append(entry)
        del self.log[:-MAX_LOG_ENTRIES]

    # Classification

    async def submit_image(self, image_bytes: bytes) -> ClassificationOutcome:
        """
        Decode and classify an uploaded lot image.

        The newest upload wins: if another upload starts while this one is
        being classified, this result is discarded.

        Raises:
            ImageDecodeError: If the upload is not a decodable image; spot
                statuses are left unchanged
        """
        self._upload_seq += 1
        upload_id = self._upload_seq
        self._latest_upload = upload_id
        regions = [spot.model_copy() for spot in self.lot.list_spots()]

        start = time.perf_counter()
        try:
            image, results = await asyncio.to_thread(self._decode_and_classify, image_bytes, regions)
        except ImageDecodeError:
            record_classification_outcome("decode_error")
            logger.warning(f"Upload {upload_id} could not be decoded, keeping current statuses")
            raise
        record_classification_latency(time.perf_counter() - start)

        if upload_id != self._latest_upload:
            record_classification_outcome("stale")
            logger.debug(f"Discarding stale classification for upload {upload_id}")
            return ClassificationOutcome(upload_id=upload_id, applied=False)

        occupied = {r.spot_id for r in results if r.occupied}
        changed = self.lot.apply_classification(occupied)
        self.last_image = image
        self.last_regions = results
        record_classification_outcome("applied")

        open_spots = self.lot.count(SpotStatus.AVAILABLE)
        self.instruction = f"Lot scan complete. Found {open_spots} open spots."
        logger.info(f"Upload {upload_id}: {len(occupied)} occupied, {len(changed)} changed")

        return ClassificationOutcome(upload_id=upload_id, applied=True, occupied=occupied, changed=changed)

    def _decode_and_classify(
        self, image_bytes: bytes, regions: list[Spot]
    ) -> tuple[np.ndarray, list[RegionResult]]:
        image = decode_image(image_bytes)
        return image, self.classifier.classify_detailed(image, regions)

    # Insight

    async def insight(self) -> str:
        """Operator summary from the insight service, or its fallback."""
        return await self.insight_service.summarize(self.stats(), self.log[-10:])

    def stats(self) -> LotStats:
        avg_search = sum(self._search_times) / len(self._search_times) if self._search_times else 0.0
        return self.lot.get_stats(revenue=self._revenue, avg_search_time_seconds=avg_search)

    # Periodic drivers

    async def run_physics_loop(self) -> None:
        """Advance the vehicle at the configured physics rate."""
        interval = self.config.simulation.physics_interval_ms / 1000.0
        logger.info(f"Starting physics loop (interval: {interval * 1000:.0f}ms)")

        while True:
            try:
                self.physics_tick()
            except Exception as e:
                logger.error(f"Physics tick error: {e}")
            await asyncio.sleep(interval)

    async def run_guidance_loop(self) -> None:
        """Run the navigation guide at the configured guidance rate."""
        interval = self.config.simulation.guidance_interval_ms / 1000.0
        logger.info(f"Starting guidance loop (interval: {interval * 1000:.0f}ms)")

        while True:
            try:
                self.guidance_tick()
            except Exception as e:
                logger.error(f"Guidance tick error: {e}")
            await asyncio.sleep(interval)

    async def shutdown(self) -> None:
        """Cancel in-flight speech requests."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()

    @property
    def is_parked(self) -> bool:
        return self.vehicle.state == MotionState.PARKED
