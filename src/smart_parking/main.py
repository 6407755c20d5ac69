"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from .api.router import init_router, router
from .config import AppConfig, get_config_path, load_config
from .services.insight import InsightService
from .services.speech import SpeechService
from .simulation.session import Session
from .state.models import Spot
from .state.spot_manager import SpotManager, generate_grid, seed_layout

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global state
session: Session | None = None
physics_task: asyncio.Task | None = None
guidance_task: asyncio.Task | None = None


def load_app_config(path: Path | None = None) -> AppConfig:
    """Load configuration, falling back to defaults when no file exists."""
    config_path = path or get_config_path()
    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}, using defaults")
        return AppConfig()

    logger.info(f"Loaded configuration from {config_path}")
    return load_config(config_path)


def build_lot(config: AppConfig) -> list[Spot]:
    """Create the initial spot layout."""
    sim = config.simulation
    if sim.layout == "grid":
        logger.info(f"Generating {sim.grid_rows}x{sim.grid_cols} spot grid")
        return generate_grid(sim.grid_rows, sim.grid_cols)
    if sim.layout != "seed":
        logger.warning(f"Unknown layout '{sim.layout}', using seed layout")
    return seed_layout()


def build_session(config: AppConfig) -> Session:
    """Wire the lot, collaborators and session from configuration."""
    services = config.services
    return Session(
        config=config,
        lot=SpotManager(build_lot(config)),
        speech=SpeechService(services.speech_url, services.api_key, services.timeout_seconds),
        insight=InsightService(
            services.insight_url,
            services.api_key,
            services.timeout_seconds,
            fallback=services.insight_fallback,
        ),
    )


async def _cancel(task: asyncio.Task | None) -> None:
    if task:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global session, physics_task, guidance_task

    logger.info("Starting Smart Parking simulator...")

    config = load_app_config()
    session = build_session(config)
    init_router(session)

    physics_task = asyncio.create_task(session.run_physics_loop())
    guidance_task = asyncio.create_task(session.run_guidance_loop())
    logger.info("Simulation loops started")

    logger.info(f"Smart Parking ready on http://{config.api.host}:{config.api.port}")

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down...")

    await _cancel(physics_task)
    await _cancel(guidance_task)
    await session.shutdown()

    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Smart Parking",
    description="Simulated smart parking: lot occupancy from images and turn-by-turn guidance",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


def main():
    """Run the application."""
    config_path = get_config_path()
    if config_path.exists():
        cfg = load_config(config_path)
        host = cfg.api.host
        port = cfg.api.port
    else:
        host = "0.0.0.0"
        port = 8000

    uvicorn.run(
        "smart_parking.main:app",
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    main()
