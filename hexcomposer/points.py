"""Pick a cell inside its host area for every point feature."""

import logging
from typing import Optional, Sequence

from hexcomposer.errors import CompositionError, NoValidCell, TargetNotPlaced
from hexcomposer.hex_coords import HexCoord, distance
from hexcomposer.schemas import (
    BiomePlacementResult,
    FeatureFailure,
    PlacedFeature,
    PlacedPoint,
    PointPlacementResult,
    PreparedPoint,
    SnapMode,
)

logger = logging.getLogger(__name__)


def edge_cells(footprint: frozenset[HexCoord]) -> list[HexCoord]:
    """Cells of ``footprint`` with at least one neighbor outside it."""
    return sorted(
        cell for cell in footprint
        if any(n not in footprint for n in cell.neighbors())
    )


class PointPlacer:
    """Snap points onto the cells of already placed areas.

    No randomness: the chosen cell depends only on the placement result.
    """

    def place(
        self,
        points: Sequence[PreparedPoint],
        placement: BiomePlacementResult,
    ) -> PointPlacementResult:
        """Place every point inside its host area.

        Args:
            points: Prepared points in declaration order.
            placement: Placed areas the points can sit in.

        Returns:
            PointPlacementResult with one PlacedPoint per success and a
            recorded failure for every point without a usable cell.
        """
        areas = placement.by_id()
        placed: list[PlacedPoint] = []
        failures: list[FeatureFailure] = []

        for point in points:
            try:
                host = self._host(point, areas)
                coord = self.choose_cell(point, host, areas)
            except CompositionError as e:
                logger.warning(f"Could not place point {point.feature_id}: {e}")
                failures.append(FeatureFailure(
                    feature_id=point.feature_id, kind=e.kind, message=str(e)
                ))
                continue

            placed.append(PlacedPoint(point=point, coord=coord, host=host.feature_id))
            logger.debug(f"Placed point {point.feature_id} at {coord} in {host.feature_id}")

        logger.info(f"Placed {len(placed)}/{len(points)} points")
        return PointPlacementResult(placed=tuple(placed), failures=tuple(failures))

    def _host(self, point: PreparedPoint, areas: dict[str, PlacedFeature]) -> PlacedFeature:
        if point.host is None:
            raise TargetNotPlaced(f"Point {point.feature_id} has no host area", point.feature_id)
        host = areas.get(point.host)
        if host is None:
            raise TargetNotPlaced(
                f"Point {point.feature_id}: host '{point.host}' was not placed",
                point.feature_id,
            )
        return host

    def choose_cell(
        self,
        point: PreparedPoint,
        host: PlacedFeature,
        areas: Optional[dict[str, PlacedFeature]] = None,
    ) -> HexCoord:
        """Filter the host's cells by snap mode and avoid list, then pick one.

        With ``prefer_near`` the candidate closest to any preferred area
        wins; otherwise the host center, or the first candidate in
        q-then-r order when the center was filtered out.
        """
        areas = areas or {}
        if point.mode == SnapMode.EDGE:
            candidates = edge_cells(host.footprint)
        else:
            candidates = sorted(host.footprint)

        blocked: set[HexCoord] = set()
        for avoid_id in point.avoid:
            avoided = areas.get(avoid_id)
            if avoided is None:
                continue
            for cell in avoided.footprint:
                blocked.add(cell)
                blocked.update(cell.neighbors())
        candidates = [c for c in candidates if c not in blocked]

        if not candidates:
            raise NoValidCell(
                f"Point {point.feature_id}: no {point.mode.value} cell of "
                f"{host.feature_id} is clear",
                point.feature_id,
            )

        preferred = [
            cell
            for prefer_id in point.prefer_near
            if prefer_id in areas
            for cell in sorted(areas[prefer_id].footprint)
        ]
        if preferred:
            return min(candidates, key=lambda c: min(distance(c, p) for p in preferred))

        if host.center in candidates:
            return host.center
        return candidates[0]
