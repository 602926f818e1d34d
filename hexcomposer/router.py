"""Route rivers, roads and walls across cell sides."""

import logging
import re
from typing import Optional, Sequence

from hexcomposer.config import ComposerSettings
from hexcomposer.errors import FailureKind, TargetNotPlaced, UnreachableWaypoint
from hexcomposer.hex_coords import (
    HexCoord,
    determine_side,
    distance,
    key_to_coords,
    step_toward,
)
from hexcomposer.schemas import (
    BiomePlacementResult,
    FeatureFailure,
    FlowConfigPart,
    FlowKind,
    FlowRoutingResult,
    PartType,
    PointPlacementResult,
    PreparedFlow,
    PreparedSideWall,
    RoutedFlow,
    RoutedSideWall,
)

logger = logging.getLogger(__name__)

COORD_PATTERN = re.compile(r"^-?\d+:-?\d+$")


class MergeGroups:
    """Union-find over flows linked by ``merge_to_id``.

    The group id is the id of the flow everything ultimately merges into.
    """

    def __init__(self, flows: Sequence[PreparedFlow]):
        self._parent = {flow.feature_id: flow.feature_id for flow in flows}
        self.warnings: list[str] = []

        for flow in flows:
            target = flow.merge_to_id
            if target is None:
                continue
            if target not in self._parent:
                self.warnings.append(
                    f"Flow {flow.feature_id} merges into unknown flow '{target}'"
                )
                continue
            root_flow, root_target = self.find(flow.feature_id), self.find(target)
            if root_flow != root_target:
                self._parent[root_flow] = root_target

        sizes: dict[str, int] = {}
        for flow_id in self._parent:
            root = self.find(flow_id)
            sizes[root] = sizes.get(root, 0) + 1
        self._sizes = sizes

    def find(self, flow_id: str) -> str:
        root = flow_id
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[flow_id] != root:
            self._parent[flow_id], flow_id = root, self._parent[flow_id]
        return root

    def group_of(self, flow_id: str) -> Optional[str]:
        """Group id, or None for a flow that merges with nothing."""
        if flow_id not in self._parent:
            return None
        root = self.find(flow_id)
        return root if self._sizes[root] > 1 else None


class FlowRouter:
    """Walk each flow's waypoints and emit FROM/TO parts per cell."""

    def __init__(self, settings: Optional[ComposerSettings] = None):
        self.settings = settings or ComposerSettings()

    def route(
        self,
        flows: Sequence[PreparedFlow],
        placement: Optional[BiomePlacementResult] = None,
        points: Optional[PointPlacementResult] = None,
        side_walls: Sequence[PreparedSideWall] = (),
    ) -> FlowRoutingResult:
        """Route every flow and side wall.

        Args:
            flows: Prepared rivers, roads and walls.
            placement: Placed areas; their centers resolve area waypoints.
            points: Placed points; their cells resolve point waypoints.
            side_walls: Walls along the sides of placed areas or points.

        Returns:
            FlowRoutingResult with one route per reachable flow, one entry
            per side wall with a placed target, and a failure for the rest.
        """
        centers: dict[str, HexCoord] = {}
        footprints: dict[str, frozenset[HexCoord]] = {}
        if placement is not None:
            for placed in placement.placed:
                centers[placed.feature_id] = placed.center
                footprints[placed.feature_id] = placed.footprint
        if points is not None:
            for placed_point in points.placed:
                centers[placed_point.feature_id] = placed_point.coord
                footprints[placed_point.feature_id] = frozenset({placed_point.coord})

        groups = MergeGroups(flows)
        for warning in groups.warnings:
            logger.warning(warning)

        paths: dict[str, list[HexCoord]] = {}
        failures: list[FeatureFailure] = []
        for flow in flows:
            try:
                paths[flow.feature_id] = self.flow_path(flow, centers)
            except UnreachableWaypoint as e:
                logger.warning(f"Could not route {flow.feature_id}: {e}")
                failures.append(FeatureFailure(
                    feature_id=flow.feature_id,
                    kind=FailureKind.UNREACHABLE_WAYPOINT,
                    message=str(e),
                ))

        shared = self._shared_cells(paths, groups)

        routes = []
        for flow in flows:
            path = paths.get(flow.feature_id)
            if path is None:
                continue
            group = groups.group_of(flow.feature_id)
            merge_cells = shared.get(group, set()) if group else set()
            parts = self.build_parts(flow, path, group, merge_cells)
            routes.append(RoutedFlow(
                flow=flow, path=tuple(path), parts=tuple(parts), merge_group=group
            ))

        walls = []
        for wall in side_walls:
            try:
                walls.append(self.build_side_wall(wall, footprints))
            except TargetNotPlaced as e:
                logger.warning(f"Could not build {wall.feature_id}: {e}")
                failures.append(FeatureFailure(
                    feature_id=wall.feature_id,
                    kind=FailureKind.TARGET_NOT_PLACED,
                    message=str(e),
                ))

        logger.info(
            f"Routed {len(routes)}/{len(flows)} flows, "
            f"{len(walls)}/{len(side_walls)} side walls"
        )
        return FlowRoutingResult(
            routes=tuple(routes),
            failures=tuple(failures),
            warnings=tuple(groups.warnings),
            side_walls=tuple(walls),
        )

    def build_side_wall(
        self,
        wall: PreparedSideWall,
        footprints: dict[str, frozenset[HexCoord]],
    ) -> RoutedSideWall:
        """SIDE parts on every boundary cell side the wall covers.

        A side is a boundary side when the neighbor across it is outside the
        target's footprint.
        """
        footprint = footprints.get(wall.target)
        if footprint is None:
            raise TargetNotPlaced(
                f"Side wall {wall.feature_id}: target '{wall.target}' was not placed",
                wall.feature_id,
            )

        parts = []
        for cell in sorted(footprint):
            for side in wall.sides:
                if cell.neighbor(side) in footprint:
                    continue
                parts.append(FlowConfigPart(
                    coord=cell,
                    part_type=PartType.SIDE,
                    side=side,
                    flow_id=wall.feature_id,
                    flow_type=FlowKind.WALL,
                    width=wall.width,
                    level=wall.level,
                    height=wall.height,
                    material=wall.material,
                    distance=wall.distance,
                    minimum=wall.minimum,
                ))

        cells = tuple(dict.fromkeys(p.coord for p in parts))
        return RoutedSideWall(wall=wall, cells=cells, parts=tuple(parts))

    def resolve_waypoint(self, waypoint: str, centers: dict[str, HexCoord]) -> HexCoord:
        if waypoint in centers:
            return centers[waypoint]
        if COORD_PATTERN.match(waypoint):
            return key_to_coords(waypoint)
        raise UnreachableWaypoint(f"Unknown waypoint '{waypoint}'")

    def walk(self, start: HexCoord, end: HexCoord) -> list[HexCoord]:
        """Side-adjacent chain of cells from ``start`` to ``end``.

        Args:
            start: First cell of the walk.
            end: Last cell of the walk.

        Returns:
            The cells visited, both ends included.

        Raises:
            UnreachableWaypoint: if ``end`` is further than
                ``max_route_length`` steps away.
        """
        if distance(start, end) > self.settings.max_route_length:
            raise UnreachableWaypoint(
                f"{end} is {distance(start, end)} steps from {start}, "
                f"limit is {self.settings.max_route_length}"
            )

        path = [start]
        current = start
        for _ in range(self.settings.max_route_length):
            if current == end:
                break
            current = step_toward(current, end)
            path.append(current)
        if current != end:
            raise UnreachableWaypoint(f"No path from {start} to {end}")
        return path

    def flow_path(self, flow: PreparedFlow, centers: dict[str, HexCoord]) -> list[HexCoord]:
        points = [self.resolve_waypoint(w, centers) for w in flow.waypoints]
        path = [points[0]]
        for start, end in zip(points, points[1:]):
            path.extend(self.walk(start, end)[1:])
        return path

    def build_parts(
        self,
        flow: PreparedFlow,
        path: Sequence[HexCoord],
        group: Optional[str] = None,
        merge_cells: Optional[set[HexCoord]] = None,
    ) -> list[FlowConfigPart]:
        """TO part on the exiting cell, FROM part on the entering cell."""
        merge_cells = merge_cells or set()
        parts = []
        for a, b in zip(path, path[1:]):
            side = determine_side(a, b)
            parts.append(self._part(flow, a, PartType.TO, side, group, merge_cells))
            parts.append(self._part(flow, b, PartType.FROM, side.opposite, group, merge_cells))
        return parts

    def _part(self, flow, coord, part_type, side, group, merge_cells) -> FlowConfigPart:
        return FlowConfigPart(
            coord=coord,
            part_type=part_type,
            side=side,
            flow_id=flow.feature_id,
            flow_type=flow.flow_type,
            width=flow.width,
            level=flow.level,
            depth=flow.depth,
            height=flow.height,
            material=flow.material,
            road_type=flow.road_type,
            merge_group=group if coord in merge_cells else None,
        )

    def _shared_cells(
        self,
        paths: dict[str, list[HexCoord]],
        groups: MergeGroups,
    ) -> dict[str, set[HexCoord]]:
        """Cells crossed by at least two flows of the same merge group."""
        seen: dict[str, dict[HexCoord, set[str]]] = {}
        for flow_id, path in paths.items():
            group = groups.group_of(flow_id)
            if group is None:
                continue
            cells = seen.setdefault(group, {})
            for cell in path:
                cells.setdefault(cell, set()).add(flow_id)

        return {
            group: {cell for cell, flow_ids in cells.items() if len(flow_ids) > 1}
            for group, cells in seen.items()
        }
