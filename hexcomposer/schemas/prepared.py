"""Resolved counterparts of the authored features.

Every band has been turned into a concrete integer range and every anchor
name into a feature id. Prepared objects carry the authored feature id and
never point back at the authored model.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from hexcomposer.hex_coords import Direction, Side
from .base import BiomeType, FlowKind, Shape, SnapMode, StructureType


@dataclass(frozen=True)
class PreparedPosition:
    direction: Direction
    angle: int
    distance_from: int
    distance_to: int
    anchor: Optional[str]
    priority: int


@dataclass(frozen=True)
class PreparedArea:
    feature_id: str
    name: str
    kind: str  # "biome" or "structure"
    shape: Shape
    size_from: int
    size_to: int
    positions: tuple[PreparedPosition, ...]
    priority: int
    biome_type: Optional[BiomeType] = None
    structure_type: Optional[StructureType] = None
    continent: Optional[str] = None
    deviation_left: float = 0.0
    deviation_right: float = 0.0
    parameters: dict[str, str] = field(default_factory=dict)

    @property
    def is_water(self) -> bool:
        return self.biome_type is not None and self.biome_type.is_water

    @property
    def is_mountain(self) -> bool:
        return self.biome_type == BiomeType.MOUNTAINS


@dataclass(frozen=True)
class PreparedFlow:
    feature_id: str
    name: str
    flow_type: FlowKind
    waypoints: tuple[str, ...]
    width: int
    level: Optional[int] = None
    depth: Optional[int] = None
    height: Optional[int] = None
    material: Optional[str] = None
    road_type: Optional[str] = None
    merge_to_id: Optional[str] = None
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PreparedPoint:
    feature_id: str
    name: str
    host: Optional[str]
    mode: SnapMode = SnapMode.INSIDE
    avoid: tuple[str, ...] = ()
    prefer_near: tuple[str, ...] = ()
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PreparedSideWall:
    feature_id: str
    name: str
    target: str
    sides: tuple[Side, ...]
    width: int
    height: int
    level: int
    distance: int
    minimum: int
    material: str
    parameters: dict[str, str] = field(default_factory=dict)


PreparedFeature = Union[PreparedArea, PreparedFlow, PreparedPoint, PreparedSideWall]


@dataclass(frozen=True)
class PreparedComposition:
    """Output of the resolver: areas in placement order, then the rest."""

    areas: tuple[PreparedArea, ...]
    flows: tuple[PreparedFlow, ...]
    points: tuple[PreparedPoint, ...] = ()
    side_walls: tuple[PreparedSideWall, ...] = ()

    @property
    def features(self) -> tuple[PreparedFeature, ...]:
        return self.areas + self.flows + self.points + self.side_walls
