"""Resolve authored features into concrete, placement-ready values."""

import logging
from typing import Mapping, Optional, Sequence

from hexcomposer import config
from hexcomposer.errors import UnresolvedAnchorError
from hexcomposer.hex_coords import ORIGIN, HexCoord, Side
from hexcomposer.schemas import (
    AreaFeature,
    Biome,
    Flow,
    FlowKind,
    Point,
    PreparedArea,
    PreparedComposition,
    PreparedFlow,
    PreparedPoint,
    PreparedPosition,
    PreparedSideWall,
    RelativePosition,
    SideWall,
    Structure,
    WorldDefinition,
)

logger = logging.getLogger(__name__)

DEFAULT_POSITION = RelativePosition(distance_from=0, distance_to=0)


class PositionResolver:
    """Turn bands, names and directions into concrete ranges and angles.

    Pure and deterministic: no randomness, no mutation of the definition.
    """

    def prepare(self, definition: WorldDefinition) -> PreparedComposition:
        """Prepare every feature and sort areas into placement order.

        Raises:
            UnresolvedAnchorError: if an anchor is unknown or is not placed
                before the feature that references it.
        """
        aliases = self._build_aliases(definition)

        areas = [self.prepare_area(area, aliases) for area in definition.areas]
        order = self.placement_order(areas)
        self.check_anchor_order(order)

        flows = [self.prepare_flow(flow, aliases) for flow in definition.flows]
        points = [self.prepare_point(point, aliases) for point in definition.points]
        walls = [self.prepare_side_wall(wall, aliases) for wall in definition.side_walls]

        logger.info(
            f"Prepared {len(order)} areas, {len(flows)} flows, "
            f"{len(points)} points and {len(walls)} side walls"
        )
        return PreparedComposition(
            areas=tuple(order),
            flows=tuple(flows),
            points=tuple(points),
            side_walls=tuple(walls),
        )

    def prepare_position(
        self,
        position: RelativePosition,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> PreparedPosition:
        anchor = position.anchor
        if anchor is not None and aliases:
            anchor = aliases.get(anchor, anchor)

        return PreparedPosition(
            direction=position.direction,
            angle=position.direction.angle,
            distance_from=position.effective_distance_from,
            distance_to=position.effective_distance_to,
            anchor=anchor,
            priority=position.priority,
        )

    def prepare_area(
        self,
        area: AreaFeature,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> PreparedArea:
        positions = area.positions or [DEFAULT_POSITION]
        prepared = [self.prepare_position(p, aliases) for p in positions]
        # Highest priority first; stable for equal priorities
        prepared.sort(key=lambda p: -p.priority)

        biome_type = area.biome_type if isinstance(area, Biome) else None
        structure_type = area.structure_type if isinstance(area, Structure) else None
        continent = area.continent if isinstance(area, Biome) else None

        return PreparedArea(
            feature_id=area.id,
            name=area.display_name,
            kind=area.kind,
            shape=area.shape,
            size_from=area.effective_size_from,
            size_to=area.effective_size_to,
            positions=tuple(prepared),
            priority=prepared[0].priority,
            biome_type=biome_type,
            structure_type=structure_type,
            continent=continent,
            deviation_left=area.tend_left.weight,
            deviation_right=area.tend_right.weight,
            parameters=dict(area.parameters),
        )

    def prepare_flow(
        self,
        flow: Flow,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> PreparedFlow:
        aliases = aliases or {}

        if flow.width_value is not None:
            width = flow.width_value
        else:
            low, high = flow.width.bounds if flow.width is not None else config.FLOW_WIDTH_BANDS["small"]
            width = (low + high) // 2

        level, depth, height, material, road_type = (
            flow.level, flow.depth, flow.height, flow.material, flow.road_type
        )
        if flow.flow_type == FlowKind.RIVER:
            level = config.RIVER_LEVEL if level is None else level
            depth = config.RIVER_DEPTH if depth is None else depth
        elif flow.flow_type == FlowKind.ROAD:
            level = config.ROAD_LEVEL if level is None else level
            road_type = road_type or config.ROAD_TYPE
        elif flow.flow_type == FlowKind.WALL:
            height = config.WALL_HEIGHT if height is None else height
            material = material or config.WALL_MATERIAL

        merge_to = flow.merge_to_id
        if merge_to is not None:
            merge_to = aliases.get(merge_to, merge_to)

        return PreparedFlow(
            feature_id=flow.id,
            name=flow.display_name,
            flow_type=flow.flow_type,
            waypoints=tuple(aliases.get(w, w) for w in flow.waypoints),
            width=width,
            level=level,
            depth=depth,
            height=height,
            material=material,
            road_type=road_type,
            merge_to_id=merge_to,
            parameters=dict(flow.parameters),
        )

    def prepare_point(
        self,
        point: Point,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> PreparedPoint:
        aliases = aliases or {}
        host = point.host
        if host is not None:
            host = aliases.get(host, host)

        return PreparedPoint(
            feature_id=point.id,
            name=point.display_name,
            host=host,
            mode=point.snap.mode,
            avoid=tuple(aliases.get(a, a) for a in point.snap.avoid),
            prefer_near=tuple(aliases.get(p, p) for p in point.snap.prefer_near),
            parameters=dict(point.parameters),
        )

    def prepare_side_wall(
        self,
        wall: SideWall,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> PreparedSideWall:
        aliases = aliases or {}
        return PreparedSideWall(
            feature_id=wall.id,
            name=wall.display_name,
            target=aliases.get(wall.target, wall.target),
            sides=tuple(dict.fromkeys(wall.sides)) if wall.sides else tuple(Side),
            width=wall.width_value if wall.width_value is not None else config.SIDEWALL_WIDTH,
            height=wall.height if wall.height is not None else config.WALL_HEIGHT,
            level=wall.level if wall.level is not None else config.SIDEWALL_LEVEL,
            distance=wall.distance if wall.distance is not None else config.SIDEWALL_DISTANCE,
            minimum=wall.minimum if wall.minimum is not None else config.SIDEWALL_MINIMUM,
            material=wall.material or config.WALL_MATERIAL,
            parameters=dict(wall.parameters),
        )

    def placement_order(self, areas: Sequence[PreparedArea]) -> list[PreparedArea]:
        """Priority descending, declaration order for ties."""
        indexed = list(enumerate(areas))
        indexed.sort(key=lambda item: (-item[1].priority, item[0]))
        return [area for _, area in indexed]

    def check_anchor_order(self, order: Sequence[PreparedArea]) -> None:
        """Every anchor must be an area placed earlier in ``order``."""
        known = {area.feature_id for area in order}
        earlier: set[str] = set()

        for area in order:
            for position in area.positions:
                anchor = position.anchor
                if anchor is None or anchor in earlier:
                    continue
                if anchor not in known:
                    raise UnresolvedAnchorError(
                        f"{area.feature_id} references unknown anchor '{anchor}'",
                        feature_id=area.feature_id,
                    )
                raise UnresolvedAnchorError(
                    f"{area.feature_id} anchors to '{anchor}' which is not placed before it "
                    f"(give the anchor a higher priority)",
                    feature_id=area.feature_id,
                )
            earlier.add(area.feature_id)

    def _build_aliases(self, definition: WorldDefinition) -> dict[str, str]:
        """Map ids and names to ids; ids win over names."""
        aliases = {}
        for feature in definition.features:
            if feature.name and feature.name not in aliases:
                aliases[feature.name] = feature.id
        for feature in definition.features:
            aliases[feature.id] = feature.id
        return aliases


def resolve_anchor(position: PreparedPosition, anchors: Mapping[str, HexCoord]) -> HexCoord:
    """Resolved center of a position's anchor (origin when it has none)."""
    if position.anchor is None:
        return ORIGIN
    try:
        return anchors[position.anchor]
    except KeyError:
        raise UnresolvedAnchorError(
            f"Anchor '{position.anchor}' has no resolved center"
        ) from None
