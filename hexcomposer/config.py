"""Configuration for the hex composition pipeline."""

import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

# Paths
HEXCOMPOSER_ROOT = Path(__file__).parent
DEFINITIONS_DIR = HEXCOMPOSER_ROOT / "definitions"

# Band lookup tables (inclusive ranges)
AREA_BANDS: dict[str, tuple[int, int]] = {
    "small": (1, 3),
    "medium": (3, 7),
    "large": (7, 15),
    "wide": (15, 30),
}
FLOW_WIDTH_BANDS: dict[str, tuple[int, int]] = {
    "small": (2, 4),
    "medium": (4, 6),
    "large": (6, 10),
}

# Placement
DEFAULT_PRIORITY = 5
DEFAULT_MAX_RETRIES = 30
MANDATORY_PRIORITY = 5  # features above this must place
ANGLE_JITTER = 30  # degrees either side of the canonical angle

# Line deviation weights
TENDENCY_WEIGHTS: dict[str, float] = {
    "none": 0.0,
    "slight": 0.2,
    "moderate": 0.4,
    "strong": 0.6,
}

# Filler
REGION_MARGIN = 2
OCEAN_RING = 1
MOUNTAIN_NEIGHBOR_THRESHOLD = 2

# Routing
MAX_ROUTE_LENGTH = 100

# Flow defaults
ROAD_LEVEL = 95
ROAD_TYPE = "cobblestone"
RIVER_DEPTH = 3
RIVER_LEVEL = 85
WALL_HEIGHT = 10
WALL_MATERIAL = "stone"

# Side wall defaults (distance and minimum are in blocks)
SIDEWALL_WIDTH = 3
SIDEWALL_LEVEL = 95
SIDEWALL_DISTANCE = 5
SIDEWALL_MINIMUM = 0

# World-space size of one hex, used by overlays
HEX_SIZE = 32.0

# Per-biome payload handed to terrain builders
BIOME_PARAMETERS: dict[str, dict[str, str]] = {
    "mountains": {"g_builder": "mountain", "g_offset": "30", "g_roughness": "0.8"},
    "forest": {
        "g_builder": "mountain",
        "g_offset": "2",
        "g_flora": "forest",
        "flora_density": "0.8",
    },
    "plains": {"g_builder": "mountain", "g_offset": "1"},
    "desert": {
        "g_builder": "mountain",
        "g_offset": "5",
        "g_flora": "desert",
        "cactus_density": "0.3",
    },
    "swamp": {"g_builder": "coast", "g_offset": "1", "g_water": "true"},
    "coast": {"g_builder": "coast"},
    "island": {"g_builder": "island"},
    "ocean": {"g_builder": "ocean"},
}

# Builder used for each filler category
FILLER_BUILDERS: dict[str, str] = {
    "ocean": "ocean",
    "coast": "coast",
    "land": "mountain",
    "lowland": "mountain",
    "mountain": "mountain",
    "continent": "mountain",
}


class ComposerSettings(BaseModel):
    """Tunables for one composition run."""

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    mandatory_priority: int = Field(default=MANDATORY_PRIORITY, ge=0, le=10)
    angle_jitter: int = Field(default=ANGLE_JITTER, ge=0, le=180)
    region_margin: int = Field(default=REGION_MARGIN, ge=0)
    ocean_ring: int = Field(default=OCEAN_RING, ge=0)
    land_radius: Optional[int] = Field(default=None, ge=0)
    mountain_neighbor_threshold: int = Field(default=MOUNTAIN_NEIGHBOR_THRESHOLD, ge=1, le=6)
    max_route_length: int = Field(default=MAX_ROUTE_LENGTH, ge=1)
    hex_size: float = Field(default=HEX_SIZE, gt=0)


def load_settings(path: Optional[str | Path] = None) -> ComposerSettings:
    """Load settings from a TOML file.

    Keys live under a ``[composer]`` table; missing keys keep their defaults.
    """
    if path is None:
        return ComposerSettings()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return ComposerSettings.model_validate(data.get("composer", {}))
