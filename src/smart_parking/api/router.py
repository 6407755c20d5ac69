"""FastAPI route definitions."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, File, HTTPException, Response, UploadFile

from ..detection.annotate import annotate_lot, encode_jpeg
from ..errors import ImageDecodeError, SpotNotFoundError, SpotUnavailableError
from ..metrics import get_metrics
from ..simulation.session import Session
from ..state.models import Spot
from ..state.spot_manager import category_from_value
from .schemas import (
    ClassificationResponse,
    HealthResponse,
    InputRequest,
    InsightResponse,
    InstructionResponse,
    LogResponse,
    NavigationResponse,
    RegionResponse,
    StatusResponse,
    VehicleResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Dependencies injected at startup
_session: Optional[Session] = None
_start_time: datetime = datetime.now()


def init_router(session: Session) -> None:
    """
    Initialize router with dependencies.

    Args:
        session: Driving session that owns lot and vehicle state
    """
    global _session, _start_time

    _session = session
    _start_time = datetime.now()

    logger.info("API router initialized")


def _require_session() -> Session:
    if _session is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return _session


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns basic health information about the service.
    """
    uptime = (datetime.now() - _start_time).total_seconds()

    return HealthResponse(
        status="healthy",
        simulation_running=_session is not None,
        uptime_seconds=uptime,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status() -> StatusResponse:
    """
    Get overall lot status.

    Returns every spot with its status plus aggregate counts.
    """
    session = _require_session()

    return StatusResponse(
        stats=session.stats(),
        spots=session.lot.list_spots(),
        target_spot_id=session.vehicle.target_spot_id,
    )


@router.get("/spots/{spot_id}", response_model=Spot)
async def get_spot(spot_id: str) -> Spot:
    """
    Get a specific parking spot.

    Args:
        spot_id: The ID of the parking spot to query
    """
    session = _require_session()

    spot = session.lot.get_spot(spot_id)
    if spot is None:
        raise HTTPException(status_code=404, detail=f"Spot '{spot_id}' not found")

    return spot


@router.post("/spots/{spot_id}/reserve", response_model=Spot)
async def reserve_spot(spot_id: str) -> Spot:
    """Reserve an available spot. Reserved spots are never overwritten by image scans."""
    session = _require_session()

    try:
        return session.lot.reserve(spot_id)
    except SpotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SpotUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/spots/{spot_id}/reserve", response_model=Spot)
async def release_spot(spot_id: str) -> Spot:
    """Release a reservation."""
    session = _require_session()

    try:
        return session.lot.release(spot_id)
    except SpotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SpotUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/vehicle", response_model=VehicleResponse)
async def get_vehicle() -> VehicleResponse:
    session = _require_session()
    return VehicleResponse(
        vehicle=session.vehicle,
        pressed=sorted(d.value for d in session.pressed),
        instruction=session.instruction,
    )


@router.put("/vehicle/input", response_model=VehicleResponse)
async def set_input(request: InputRequest) -> VehicleResponse:
    """
    Replace the set of pressed keys.

    The physics loop applies the new intent on its next tick.
    """
    session = _require_session()
    session.set_input(request.keys)
    return await get_vehicle()


@router.post("/vehicle/reset", response_model=VehicleResponse)
async def reset_vehicle() -> VehicleResponse:
    session = _require_session()
    session.reset_vehicle()
    return await get_vehicle()


@router.post("/navigation/nearest", response_model=NavigationResponse)
async def navigate_nearest(category: Optional[str] = None) -> NavigationResponse:
    """
    Assign the nearest available spot, optionally of one category.

    Finding no spot is a normal outcome (``assigned`` is false), not an error.
    """
    session = _require_session()

    try:
        wanted = category_from_value(category)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown spot category: {category}")

    spot = session.assign_nearest(wanted)
    return NavigationResponse(assigned=spot is not None, spot=spot, instruction=session.instruction)


@router.post("/navigation/target/{spot_id}", response_model=NavigationResponse)
async def navigate_to(spot_id: str) -> NavigationResponse:
    session = _require_session()

    try:
        spot = session.assign_target(spot_id)
    except SpotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SpotUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return NavigationResponse(assigned=True, spot=spot, instruction=session.instruction)


@router.delete("/navigation/target", response_model=InstructionResponse)
async def clear_target() -> InstructionResponse:
    session = _require_session()
    session.clear_target()
    return await get_instruction()


@router.get("/navigation/instruction", response_model=InstructionResponse)
async def get_instruction() -> InstructionResponse:
    """Latest guidance text. Text is authoritative even when audio is unavailable."""
    session = _require_session()
    return InstructionResponse(
        instruction=session.instruction,
        phase=session.guide.phase.value,
        target_spot_id=session.vehicle.target_spot_id,
    )


@router.get("/navigation/audio")
async def get_audio() -> Response:
    """Most recent synthesized instruction audio, if the speech service produced any."""
    session = _require_session()
    if session.last_audio is None:
        return Response(status_code=204)
    return Response(content=session.last_audio, media_type="application/octet-stream")


@router.post("/lot/image", response_model=ClassificationResponse)
async def upload_lot_image(file: UploadFile = File(...)) -> ClassificationResponse:
    """
    Upload a lot photograph and classify every spot from it.

    A newer upload supersedes this one; in that case ``applied`` is false.
    """
    session = _require_session()
    image_bytes = await file.read()

    try:
        outcome = await session.submit_image(image_bytes)
    except ImageDecodeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ClassificationResponse(
        upload_id=outcome.upload_id,
        applied=outcome.applied,
        occupied=sorted(outcome.occupied),
        changed=outcome.changed,
    )


@router.get("/lot/classification", response_model=list[RegionResponse])
async def get_classification() -> list[RegionResponse]:
    """Per-spot statistics and matched rule from the last applied upload."""
    session = _require_session()

    regions = []
    for r in session.last_regions:
        stats = r.stats
        regions.append(
            RegionResponse(
                spot_id=r.spot_id,
                box=(r.box.x1, r.box.y1, r.box.x2, r.box.y2),
                occupied=r.occupied,
                rule=r.rule,
                avg_luma=stats.avg_luma if stats else None,
                luma_std=stats.luma_std if stats else None,
                avg_chroma=stats.avg_chroma if stats else None,
                max_chroma=stats.max_chroma if stats else None,
                dark_fraction=stats.dark_fraction if stats else None,
            )
        )
    return regions


@router.get("/lot/image/annotated")
async def get_annotated_image() -> Response:
    """
    Get the last uploaded lot image with spot overlays.

    Sample boxes are drawn green for available, red for occupied, amber for
    reserved, and blue for the current navigation target.
    """
    session = _require_session()
    if session.last_image is None:
        raise HTTPException(status_code=404, detail="No lot image uploaded")

    try:
        annotated = annotate_lot(
            session.last_image,
            session.lot.list_spots(),
            session.last_regions,
            session.vehicle.target_spot_id,
        )
        return Response(content=encode_jpeg(annotated), media_type="image/jpeg")
    except Exception as e:
        logger.error(f"Failed to create annotated image: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create annotated image: {e}")


@router.get("/insight", response_model=InsightResponse)
async def get_insight() -> InsightResponse:
    """Short operator summary. Falls back to a static message if the service is down."""
    session = _require_session()
    summary = await session.insight()
    return InsightResponse(summary=summary, stats=session.stats())


@router.get("/logs", response_model=LogResponse)
async def get_logs() -> LogResponse:
    session = _require_session()
    return LogResponse(entries=list(reversed(session.log)))


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics."""
    return Response(content=get_metrics(), media_type="text/plain; version=0.0.4")
