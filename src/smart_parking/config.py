"""Configuration models and loading utilities."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, field_validator


class ClassifierConfig(BaseModel):
    """Pixel-statistics occupancy classifier thresholds.

    The right values depend on the image set, so every cutoff is exposed here.
    Luminance and chroma are on a 0-255 scale.
    """

    box_width_fraction: float = 0.045  # Sample box width relative to image width
    box_height_fraction: float = 0.09  # Sample box height relative to image height
    dark_luma: float = 55.0  # Pixels below this count as shadow
    chroma_avg: float = 12.0  # "Colorful" if average chroma exceeds this
    chroma_max: float = 45.0  # ...or if any pixel's chroma exceeds this
    texture_std: float = 9.5  # "Textured" if luminance std exceeds this
    shadow_fraction: float = 0.08
    signage_luma: float = 165.0
    signage_std: float = 13.0
    signage_chroma: float = 10.0
    near_white_luma: float = 235.0
    busy_std: float = 22.0


class NavigationConfig(BaseModel):
    """Guidance thresholds (normalized lot units and seconds)."""

    arrival_distance: float = 4.0
    near_distance: float = 5.0
    cooldown_seconds: float = 3.0
    reissue_distance: float = 5.0
    turn_angle: float = 25.0
    reverse_angle: float = 130.0


class SimulationConfig(BaseModel):
    """Tick rates and vehicle dynamics."""

    physics_interval_ms: int = 20
    guidance_interval_ms: int = 1000
    turn_rate: float = 3.0  # Degrees per physics tick
    forward_speed: float = 1.2  # Units per physics tick
    reverse_speed: float = 0.8
    start_x: float = 5.0
    start_y: float = 50.0
    start_heading: float = 0.0
    parking_fee: float = 5.0  # Revenue credited per arrival
    layout: str = "seed"  # "seed" or "grid"
    grid_rows: int = 2
    grid_cols: int = 5


class ServicesConfig(BaseModel):
    """External speech and insight collaborators."""

    speech_url: Optional[str] = None
    insight_url: Optional[str] = None
    api_key: str = ""
    timeout_seconds: float = 10.0
    insight_fallback: str = "Insight unavailable. Lot operating normally."

    @field_validator("api_key", mode="before")
    @classmethod
    def resolve_env_var(cls, v: str) -> str:
        """Resolve environment variable references like ${VAR_NAME}."""
        if isinstance(v, str) and v.startswith("${") and v.endswith("}"):
            env_var = v[2:-1]
            return os.environ.get(env_var, "")
        return v


class APIConfig(BaseModel):
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Main application configuration."""

    classifier: ClassifierConfig = ClassifierConfig()
    navigation: NavigationConfig = NavigationConfig()
    simulation: SimulationConfig = SimulationConfig()
    services: ServicesConfig = ServicesConfig()
    api: APIConfig = APIConfig()


def load_config(path: str | Path) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(**data)


def get_config_path() -> Path:
    """Get the default configuration file path."""
    env_path = os.environ.get("SMART_PARKING_CONFIG")
    if env_path:
        return Path(env_path)

    local_config = Path("config/config.yaml")
    if local_config.exists():
        return local_config

    # Docker layout
    parent_config = Path("/app/config/config.yaml")
    if parent_config.exists():
        return parent_config

    return local_config
