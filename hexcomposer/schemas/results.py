"""Immutable stage results.

Each stage accumulates its counters locally and freezes them into one of
these objects when it finishes.
"""

from dataclasses import dataclass, field
from typing import Optional

from hexcomposer.errors import FailureKind
from hexcomposer.hex_coords import HexCoord, Side, coords_to_key
from .base import FillerCategory, FlowKind, PartType
from .prepared import (
    PreparedArea,
    PreparedComposition,
    PreparedFlow,
    PreparedPoint,
    PreparedPosition,
    PreparedSideWall,
)


@dataclass(frozen=True)
class FeatureFailure:
    """A feature that could not be placed or routed."""
    feature_id: str
    kind: FailureKind
    message: str
    priority: int = 0
    attempts: int = 0


@dataclass(frozen=True)
class PlacedFeature:
    """A prepared area with its committed footprint."""
    area: PreparedArea
    center: HexCoord
    footprint: frozenset[HexCoord]
    size: int
    attempts: int
    position: PreparedPosition

    @property
    def feature_id(self) -> str:
        return self.area.feature_id

    @property
    def retries(self) -> int:
        return max(self.attempts - 1, 0)


@dataclass(frozen=True)
class BiomePlacementResult:
    prepared: PreparedComposition
    placed: tuple[PlacedFeature, ...]
    failures: tuple[FeatureFailure, ...]
    total_retries: int
    success: bool
    error: Optional[str] = None

    def by_id(self) -> dict[str, PlacedFeature]:
        return {p.feature_id: p for p in self.placed}

    def owner_map(self) -> dict[HexCoord, PlacedFeature]:
        """Cell -> owning feature."""
        owners = {}
        for placed in self.placed:
            for cell in placed.footprint:
                owners[cell] = placed
        return owners


@dataclass(frozen=True)
class FilledHexGrid:
    """Final state of one cell: owned xor filler."""
    coord: HexCoord
    owner: Optional[PlacedFeature] = None
    filler: Optional[FillerCategory] = None
    parameters: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if (self.owner is None) == (self.filler is None):
            raise ValueError(f"Cell {coords_to_key(self.coord)} must be owned or filler, not both or neither")

    @property
    def is_filler(self) -> bool:
        return self.owner is None


@dataclass(frozen=True)
class HexGridFillResult:
    cells: tuple[FilledHexGrid, ...]
    counts: dict[str, int]
    center: Optional[HexCoord]
    success: bool
    error: Optional[str] = None

    def cell_map(self) -> dict[HexCoord, FilledHexGrid]:
        return {c.coord: c for c in self.cells}

    def count(self, category: FillerCategory) -> int:
        return self.counts.get(category.value, 0)


@dataclass(frozen=True)
class FlowConfigPart:
    """One side of one cell crossed by a flow."""
    coord: HexCoord
    part_type: PartType
    side: Side
    flow_id: str
    flow_type: FlowKind
    width: int
    level: Optional[int] = None
    depth: Optional[int] = None
    height: Optional[int] = None
    material: Optional[str] = None
    road_type: Optional[str] = None
    merge_group: Optional[str] = None
    distance: Optional[int] = None
    minimum: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "side": self.side.value,
            "type": self.part_type.value,
            "flowId": self.flow_id,
            "width": self.width,
        }
        optional = {
            "level": self.level,
            "depth": self.depth,
            "height": self.height,
            "material": self.material,
            "roadType": self.road_type,
            "groupId": self.merge_group,
            "distance": self.distance,
            "minimum": self.minimum,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass(frozen=True)
class RoutedFlow:
    flow: PreparedFlow
    path: tuple[HexCoord, ...]
    parts: tuple[FlowConfigPart, ...]
    merge_group: Optional[str] = None

    @property
    def feature_id(self) -> str:
        return self.flow.feature_id


@dataclass(frozen=True)
class RoutedSideWall:
    wall: PreparedSideWall
    cells: tuple[HexCoord, ...]
    parts: tuple[FlowConfigPart, ...]

    @property
    def feature_id(self) -> str:
        return self.wall.feature_id


@dataclass(frozen=True)
class FlowRoutingResult:
    routes: tuple[RoutedFlow, ...]
    failures: tuple[FeatureFailure, ...]
    warnings: tuple[str, ...] = ()
    side_walls: tuple[RoutedSideWall, ...] = ()

    @property
    def success(self) -> bool:
        return not self.failures

    def all_parts(self) -> list[FlowConfigPart]:
        parts = [p for route in self.routes for p in route.parts]
        parts.extend(p for wall in self.side_walls for p in wall.parts)
        return parts

    def parts_at(self, coord: HexCoord) -> list[FlowConfigPart]:
        return [p for p in self.all_parts() if p.coord == coord]


@dataclass(frozen=True)
class PlacedPoint:
    point: PreparedPoint
    coord: HexCoord
    host: str

    @property
    def feature_id(self) -> str:
        return self.point.feature_id


@dataclass(frozen=True)
class PointPlacementResult:
    placed: tuple[PlacedPoint, ...]
    failures: tuple[FeatureFailure, ...]

    @property
    def success(self) -> bool:
        return not self.failures

    def by_id(self) -> dict[str, PlacedPoint]:
        return {p.feature_id: p for p in self.placed}


@dataclass(frozen=True)
class ResolvedFeature:
    """Final outcome for one authored feature, keyed by its id."""
    feature_id: str
    kind: str
    center: Optional[HexCoord] = None
    footprint: tuple[HexCoord, ...] = ()
    parts: tuple[FlowConfigPart, ...] = ()
    failure: Optional[FeatureFailure] = None

    @property
    def resolved(self) -> bool:
        return self.failure is None


_PART_KEYS = {
    FlowKind.RIVER: "rivers",
    FlowKind.ROAD: "roads",
    FlowKind.WALL: "walls",
}


@dataclass(frozen=True)
class CompositionResult:
    seed: int
    success: bool
    error: Optional[str] = None
    prepared: Optional[PreparedComposition] = None
    placement: Optional[BiomePlacementResult] = None
    fill: Optional[HexGridFillResult] = None
    points: Optional[PointPlacementResult] = None
    routing: Optional[FlowRoutingResult] = None
    resolved: dict[str, ResolvedFeature] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    def cell_configs(self) -> dict[str, dict]:
        """Per-cell payload for terrain builders, keyed by "q:r".

        A pure function of the result; calling it twice gives equal output.
        Parts on cells outside the filled region are left out; the composer
        reports those as warnings.
        """
        if self.fill is None:
            return {}

        configs: dict[str, dict] = {}
        for cell in self.fill.cells:
            entry: dict = {"q": cell.coord.q, "r": cell.coord.r}
            entry["parameters"] = dict(cell.parameters)
            if cell.owner is not None:
                entry["owner"] = cell.owner.feature_id
            else:
                entry["filler"] = cell.filler.value
            configs[coords_to_key(cell.coord)] = entry

        if self.points is not None:
            for placed in self.points.placed:
                entry = configs.get(coords_to_key(placed.coord))
                if entry is not None:
                    entry.setdefault("points", []).append(placed.feature_id)

        if self.routing is not None:
            for part in self.routing.all_parts():
                entry = configs.get(coords_to_key(part.coord))
                if entry is None:
                    continue
                if part.part_type == PartType.SIDE:
                    key = "sidewalls"
                else:
                    key = _PART_KEYS[part.flow_type]
                entry.setdefault(key, []).append(part.to_dict())
        return configs
