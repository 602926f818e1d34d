"""Base enums for hexcomposer schemas."""

from enum import Enum

from hexcomposer import config


class SizeBand(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    WIDE = "wide"

    @property
    def bounds(self) -> tuple[int, int]:
        return config.AREA_BANDS[self.value]


class FlowWidth(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def bounds(self) -> tuple[int, int]:
        return config.FLOW_WIDTH_BANDS[self.value]


class Shape(str, Enum):
    CIRCLE = "circle"
    LINE = "line"
    RECTANGLE = "rectangle"


class BiomeType(str, Enum):
    PLAINS = "plains"
    FOREST = "forest"
    DESERT = "desert"
    SWAMP = "swamp"
    MOUNTAINS = "mountains"
    OCEAN = "ocean"
    COAST = "coast"
    ISLAND = "island"

    @property
    def is_water(self) -> bool:
        return self in WATER_BIOMES


WATER_BIOMES = frozenset({BiomeType.OCEAN, BiomeType.COAST})


class StructureType(str, Enum):
    VILLAGE = "village"
    TOWN = "town"


class FlowKind(str, Enum):
    RIVER = "river"
    ROAD = "road"
    WALL = "wall"


class Tendency(str, Enum):
    """How strongly a line drifts to one side."""
    NONE = "none"
    SLIGHT = "slight"
    MODERATE = "moderate"
    STRONG = "strong"

    @property
    def weight(self) -> float:
        return config.TENDENCY_WEIGHTS[self.value]


class FillerCategory(str, Enum):
    OCEAN = "ocean"
    LAND = "land"
    COAST = "coast"
    MOUNTAIN = "mountain"
    LOWLAND = "lowland"
    CONTINENT = "continent"


class SnapMode(str, Enum):
    """Which cells of its host a point may sit on."""
    INSIDE = "inside"
    EDGE = "edge"


class PartType(str, Enum):
    FROM = "from"  # flow enters the cell
    TO = "to"  # flow leaves the cell
    SIDE = "side"  # wall runs along the cell side
