"""Run the full composition pipeline.

resolve -> place -> fill -> points -> route. Only fatal failures (an
unresolved anchor or an empty region) stop the pipeline; everything else is
recorded on the result.
"""

import logging
from typing import Optional

from hexcomposer.config import ComposerSettings
from hexcomposer.errors import UnresolvedAnchorError
from hexcomposer.filler import CellFiller
from hexcomposer.hex_coords import hex_to_world
from hexcomposer.overlay import DebugOverlay
from hexcomposer.placement import PlacementEngine
from hexcomposer.points import PointPlacer
from hexcomposer.resolver import PositionResolver
from hexcomposer.router import FlowRouter
from hexcomposer.schemas import (
    BiomePlacementResult,
    CompositionResult,
    FlowRoutingResult,
    HexGridFillResult,
    PointPlacementResult,
    PreparedComposition,
    ResolvedFeature,
    WorldDefinition,
)

logger = logging.getLogger(__name__)


def outside_region_warnings(routing: FlowRoutingResult, fill: HexGridFillResult) -> list[str]:
    """One warning per flow or side wall with parts off the filled region."""
    cells = fill.cell_map()
    outside: dict[str, int] = {}
    for part in routing.all_parts():
        if part.coord not in cells:
            outside[part.flow_id] = outside.get(part.flow_id, 0) + 1

    warnings = []
    for flow_id, count in outside.items():
        message = f"{flow_id}: {count} route parts fall outside the filled region"
        logger.warning(message)
        warnings.append(message)
    return warnings


class HexComposer:
    """Compose a world definition onto the hex grid."""

    def __init__(
        self,
        settings: Optional[ComposerSettings] = None,
        overlay: Optional[DebugOverlay] = None,
    ):
        self.settings = settings or ComposerSettings()
        self.overlay = overlay or DebugOverlay()
        self.resolver = PositionResolver()

    def compose(
        self,
        definition: WorldDefinition,
        seed: int,
        max_retries: Optional[int] = None,
    ) -> CompositionResult:
        settings = self.settings
        if max_retries is not None:
            settings = settings.model_copy(update={"max_retries": max_retries})

        logger.info(f"Composing {definition.id} (seed={seed}, features={len(definition.features)})")

        try:
            prepared = self.resolver.prepare(definition)
        except UnresolvedAnchorError as e:
            logger.error(f"Composition aborted: {e}")
            return CompositionResult(seed=seed, success=False, error=str(e))

        placement = PlacementEngine(settings).place(prepared, seed)
        warnings = [f.message for f in placement.failures]

        fill = CellFiller(settings).fill(placement)
        if not fill.success:
            return CompositionResult(
                seed=seed,
                success=False,
                error=fill.error,
                prepared=prepared,
                placement=placement,
                fill=fill,
                resolved=self._resolve(prepared, placement, None, None),
                warnings=tuple(warnings),
            )

        points = PointPlacer().place(prepared.points, placement)
        warnings.extend(f.message for f in points.failures)

        routing = FlowRouter(settings).route(
            prepared.flows, placement, points, prepared.side_walls
        )
        warnings.extend(routing.warnings)
        warnings.extend(f.message for f in routing.failures)
        warnings.extend(outside_region_warnings(routing, fill))

        for placed in placement.placed:
            self.overlay.mark_cross(
                hex_to_world(placed.center, settings.hex_size), placed.area.name
            )
        for placed_point in points.placed:
            self.overlay.mark_cross(
                hex_to_world(placed_point.coord, settings.hex_size), placed_point.point.name
            )

        return CompositionResult(
            seed=seed,
            success=placement.success,
            error=placement.error,
            prepared=prepared,
            placement=placement,
            fill=fill,
            points=points,
            routing=routing,
            resolved=self._resolve(prepared, placement, points, routing),
            warnings=tuple(warnings),
        )

    def _resolve(
        self,
        prepared: PreparedComposition,
        placement: BiomePlacementResult,
        points: Optional[PointPlacementResult],
        routing: Optional[FlowRoutingResult],
    ) -> dict[str, ResolvedFeature]:
        """One-way map from authored id to what composition made of it."""
        resolved = {}

        placed = placement.by_id()
        area_failures = {f.feature_id: f for f in placement.failures}
        for area in prepared.areas:
            hit = placed.get(area.feature_id)
            resolved[area.feature_id] = ResolvedFeature(
                feature_id=area.feature_id,
                kind=area.kind,
                center=hit.center if hit else None,
                footprint=tuple(sorted(hit.footprint)) if hit else (),
                failure=area_failures.get(area.feature_id),
            )

        placed_points = {}
        point_failures = {}
        if points is not None:
            placed_points = points.by_id()
            point_failures = {f.feature_id: f for f in points.failures}
        for point in prepared.points:
            hit = placed_points.get(point.feature_id)
            resolved[point.feature_id] = ResolvedFeature(
                feature_id=point.feature_id,
                kind="point",
                center=hit.coord if hit else None,
                footprint=(hit.coord,) if hit else (),
                failure=point_failures.get(point.feature_id),
            )

        routes = {}
        walls = {}
        routing_failures = {}
        if routing is not None:
            routes = {r.feature_id: r for r in routing.routes}
            walls = {w.feature_id: w for w in routing.side_walls}
            routing_failures = {f.feature_id: f for f in routing.failures}
        for flow in prepared.flows:
            route = routes.get(flow.feature_id)
            resolved[flow.feature_id] = ResolvedFeature(
                feature_id=flow.feature_id,
                kind="flow",
                footprint=route.path if route else (),
                parts=route.parts if route else (),
                failure=routing_failures.get(flow.feature_id),
            )
        for wall in prepared.side_walls:
            built = walls.get(wall.feature_id)
            resolved[wall.feature_id] = ResolvedFeature(
                feature_id=wall.feature_id,
                kind="sidewall",
                footprint=built.cells if built else (),
                parts=built.parts if built else (),
                failure=routing_failures.get(wall.feature_id),
            )
        return resolved
