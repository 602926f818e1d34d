"""Authoring-time feature schemas.

A world definition is a flat list of features. Areas (biomes and
structures) are placed relative to the origin or to each other; flows
(rivers, roads, walls) connect placed features through waypoints.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from hexcomposer import config
from hexcomposer.hex_coords import Direction, Side
from .base import (
    BiomeType,
    FlowKind,
    FlowWidth,
    Shape,
    SizeBand,
    SnapMode,
    StructureType,
    Tendency,
)


class RelativePosition(BaseModel):
    """Where an area sits relative to an anchor (or the origin)."""

    direction: Direction = Direction.N
    distance: Optional[SizeBand] = None
    distance_from: Optional[int] = Field(default=None, ge=0)
    distance_to: Optional[int] = Field(default=None, ge=0)
    anchor: Optional[str] = Field(default=None, description="Feature id; None = origin")
    priority: int = Field(default=config.DEFAULT_PRIORITY, ge=1, le=10)

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, v):
        # accepts NORTH, north_east, etc.
        if isinstance(v, str) and not isinstance(v, Direction):
            return Direction(v)
        return v

    @property
    def effective_distance_from(self) -> int:
        if self.distance_from is not None:
            return self.distance_from
        if self.distance is not None:
            return self.distance.bounds[0]
        return 0

    @property
    def effective_distance_to(self) -> int:
        if self.distance_to is not None:
            upper = self.distance_to
        elif self.distance is not None:
            upper = self.distance.bounds[1]
        else:
            upper = 0
        return max(upper, self.effective_distance_from)


class FeatureBase(BaseModel):
    id: str = Field(min_length=1)
    name: Optional[str] = None
    title: Optional[str] = None
    parameters: dict[str, str] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.title or self.name or self.id


class AreaFeature(FeatureBase):
    """Shared fields of biomes and structures."""

    shape: Shape = Shape.CIRCLE
    size: Optional[SizeBand] = None
    size_from: Optional[int] = Field(default=None, ge=1)
    size_to: Optional[int] = Field(default=None, ge=1)
    positions: list[RelativePosition] = Field(default_factory=list)
    tend_left: Tendency = Tendency.NONE
    tend_right: Tendency = Tendency.NONE

    @property
    def effective_size_from(self) -> int:
        if self.size_from is not None:
            return self.size_from
        if self.size is not None:
            return self.size.bounds[0]
        return 1

    @property
    def effective_size_to(self) -> int:
        if self.size_to is not None:
            upper = self.size_to
        elif self.size is not None:
            upper = self.size.bounds[1]
        else:
            upper = self.effective_size_from
        return max(upper, self.effective_size_from)


class Biome(AreaFeature):
    kind: Literal["biome"] = "biome"
    biome_type: BiomeType = BiomeType.PLAINS
    continent: Optional[str] = None


class Structure(AreaFeature):
    kind: Literal["structure"] = "structure"
    structure_type: StructureType = StructureType.VILLAGE


class Flow(FeatureBase):
    """River, road or wall routed through waypoints."""

    kind: Literal["flow"] = "flow"
    flow_type: FlowKind
    waypoints: list[str] = Field(min_length=2, description="Feature ids or 'q:r' cells")
    width: Optional[FlowWidth] = None
    width_value: Optional[int] = Field(default=None, ge=1)
    level: Optional[int] = None
    depth: Optional[int] = Field(default=None, ge=0)
    height: Optional[int] = Field(default=None, ge=0)
    material: Optional[str] = None
    road_type: Optional[str] = None
    merge_to_id: Optional[str] = None

    @model_validator(mode="after")
    def _no_self_merge(self) -> "Flow":
        if self.merge_to_id is not None and self.merge_to_id == self.id:
            raise ValueError(f"Flow {self.id} cannot merge into itself")
        return self


class Snap(BaseModel):
    """Which cells of the host area a point may take."""

    mode: SnapMode = SnapMode.INSIDE
    target: Optional[str] = Field(default=None, description="Host area id")
    avoid: list[str] = Field(default_factory=list)
    prefer_near: list[str] = Field(default_factory=list)


class Point(FeatureBase):
    """A named cell inside a placed area, usable as a flow waypoint.

    The host is ``snap.target``, or the anchor of the first position.
    """

    kind: Literal["point"] = "point"
    snap: Snap = Field(default_factory=Snap)
    positions: list[RelativePosition] = Field(default_factory=list)

    @property
    def host(self) -> Optional[str]:
        if self.snap.target is not None:
            return self.snap.target
        if self.positions:
            return self.positions[0].anchor
        return None


class SideWall(FeatureBase):
    """Wall along chosen boundary sides of an area or point.

    An empty ``sides`` list walls every side.
    """

    kind: Literal["sidewall"] = "sidewall"
    target: str = Field(min_length=1)
    sides: list[Side] = Field(default_factory=list)
    width_value: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=0)
    level: Optional[int] = None
    distance: Optional[int] = Field(default=None, ge=0)
    minimum: Optional[int] = Field(default=None, ge=0)
    material: Optional[str] = None

    @field_validator("sides", mode="before")
    @classmethod
    def parse_sides(cls, v):
        if isinstance(v, (list, tuple)):
            return [Side(s) if isinstance(s, str) and not isinstance(s, Side) else s for s in v]
        return v


Feature = Annotated[
    Union[Biome, Structure, Flow, Point, SideWall], Field(discriminator="kind")
]


class WorldDefinition(BaseModel):
    """A complete region definition."""

    id: str = Field(default="world", min_length=1)
    name: Optional[str] = None
    features: list[Feature] = Field(default_factory=list)

    @field_validator("features")
    @classmethod
    def unique_ids(cls, v: list) -> list:
        seen = set()
        for feature in v:
            if feature.id in seen:
                raise ValueError(f"Duplicate feature id: {feature.id}")
            seen.add(feature.id)
        return v

    @property
    def areas(self) -> list[Union[Biome, Structure]]:
        return [f for f in self.features if isinstance(f, (Biome, Structure))]

    @property
    def flows(self) -> list[Flow]:
        return [f for f in self.features if isinstance(f, Flow)]

    @property
    def points(self) -> list[Point]:
        return [f for f in self.features if isinstance(f, Point)]

    @property
    def side_walls(self) -> list[SideWall]:
        return [f for f in self.features if isinstance(f, SideWall)]
