"""Place area footprints on the hex grid."""

import logging
import random
from typing import Optional

from hexcomposer.config import ComposerSettings
from hexcomposer.errors import FailureKind, PlacementExhausted, UnresolvedAnchorError
from hexcomposer.hex_coords import (
    HexCoord,
    Side,
    centroid,
    hex_disc,
    polar_to_hex,
)
from hexcomposer.resolver import resolve_anchor
from hexcomposer.schemas import (
    BiomePlacementResult,
    FeatureFailure,
    PlacedFeature,
    PreparedArea,
    PreparedComposition,
    PreparedPosition,
    Shape,
)

logger = logging.getLogger(__name__)


class OccupancyMap:
    """Cells committed so far, with their owners."""

    def __init__(self):
        self._owners: dict[HexCoord, str] = {}
        self._committed = 0

    def is_free(self, footprint: frozenset[HexCoord]) -> bool:
        return self._owners.keys().isdisjoint(footprint)

    def owner(self, cell: HexCoord) -> Optional[str]:
        return self._owners.get(cell)

    def commit(self, feature_id: str, footprint: frozenset[HexCoord]) -> None:
        clashes = [cell for cell in footprint if cell in self._owners]
        if clashes:
            raise ValueError(
                f"{feature_id} overlaps {self._owners[clashes[0]]} at {clashes[0]}"
            )
        for cell in footprint:
            self._owners[cell] = feature_id
        self._committed += len(footprint)

        # No cell may be owned twice
        if len(self._owners) != self._committed:
            raise RuntimeError("Occupancy map lost track of committed cells")

    def __len__(self) -> int:
        return len(self._owners)


def circle_footprint(center: HexCoord, radius: int) -> frozenset[HexCoord]:
    """Disc of cells within ``radius`` of ``center``."""
    return frozenset(hex_disc(center, radius))


def line_footprint(
    center: HexCoord,
    length: int,
    angle: float,
    rng: random.Random,
    deviation_left: float = 0.0,
    deviation_right: float = 0.0,
) -> frozenset[HexCoord]:
    """Run of ``length`` cells starting at ``center`` heading along ``angle``.

    Each step may turn one side left or right with the given probabilities.
    Turns can bring the run back over itself, so the footprint may hold
    fewer than ``length`` cells.
    """
    cells = [center]
    heading = Side.nearest(angle).ordinal
    current = center

    for _ in range(1, length):
        roll = rng.random()
        if roll < deviation_left:
            heading = (heading - 1) % 6
        elif roll < deviation_left + deviation_right:
            heading = (heading + 1) % 6
        current = current.neighbor(list(Side)[heading])
        cells.append(current)

    return frozenset(cells)


def rectangle_footprint(center: HexCoord, width: int, height: int) -> frozenset[HexCoord]:
    """Block of ``width`` columns by ``height`` rows centered on ``center``.

    Columns are offset (odd-q) so the block reads as a rectangle in a
    flat-top layout.
    """
    cells = []
    for col in range(width):
        c = col - width // 2
        for row in range(height):
            rr = row - height // 2 - (c - (c & 1)) // 2
            cells.append(HexCoord(center.q + c, center.r + rr))
    return frozenset(cells)


class PlacementEngine:
    """Assign non-overlapping footprints to prepared areas.

    Areas are processed in the order the resolver produced. Each area tries
    its positions by descending priority, resampling up to ``max_retries``
    times per position before giving up on it.
    """

    def __init__(self, settings: Optional[ComposerSettings] = None):
        self.settings = settings or ComposerSettings()

    def place(self, prepared: PreparedComposition, seed: int) -> BiomePlacementResult:
        """Place every prepared area in placement order.

        Args:
            prepared: Resolver output; areas are already sorted by priority.
            seed: Seed for the one random generator used by this run.

        Returns:
            BiomePlacementResult holding the placed footprints, a failure per
            area that exhausted its retries, and the total retry count.
        """
        rng = random.Random(seed)
        occupancy = OccupancyMap()
        centers: dict[str, HexCoord] = {}
        placed: list[PlacedFeature] = []
        failures: list[FeatureFailure] = []
        total_retries = 0

        for area in prepared.areas:
            try:
                result = self._place_area(area, centers, occupancy, rng)
            except PlacementExhausted as e:
                logger.warning(f"Could not place {area.feature_id}: {e}")
                total_retries += max(e.attempts - 1, 0)
                failures.append(FeatureFailure(
                    feature_id=area.feature_id,
                    kind=FailureKind.PLACEMENT_EXHAUSTED,
                    message=str(e),
                    priority=area.priority,
                    attempts=e.attempts,
                ))
                continue
            except UnresolvedAnchorError as e:
                logger.warning(f"Skipping {area.feature_id}: {e}")
                failures.append(FeatureFailure(
                    feature_id=area.feature_id,
                    kind=FailureKind.ANCHOR_NOT_PLACED,
                    message=str(e),
                    priority=area.priority,
                ))
                continue

            centers[area.feature_id] = result.center
            placed.append(result)
            total_retries += result.retries
            logger.debug(
                f"Placed {area.feature_id} at {result.center} "
                f"({len(result.footprint)} cells, {result.attempts} attempts)"
            )

        mandatory = [
            f for f in failures if f.priority > self.settings.mandatory_priority
        ]
        error = None
        if mandatory:
            error = "Mandatory features not placed: " + ", ".join(
                f.feature_id for f in mandatory
            )

        logger.info(
            f"Placed {len(placed)}/{len(prepared.areas)} areas "
            f"({total_retries} retries, {len(failures)} failures)"
        )
        return BiomePlacementResult(
            prepared=prepared,
            placed=tuple(placed),
            failures=tuple(failures),
            total_retries=total_retries,
            success=not mandatory,
            error=error,
        )

    def _place_area(
        self,
        area: PreparedArea,
        centers: dict[str, HexCoord],
        occupancy: OccupancyMap,
        rng: random.Random,
    ) -> PlacedFeature:
        attempts = 0
        missing_anchors = []

        for position in area.positions:
            try:
                anchor_center = resolve_anchor(position, centers)
            except UnresolvedAnchorError:
                missing_anchors.append(position.anchor)
                continue

            for _ in range(self.settings.max_retries):
                attempts += 1
                center, angle = self.sample_center(anchor_center, position, rng)
                footprint, size = self.footprint(area, center, angle, rng)
                if occupancy.is_free(footprint):
                    occupancy.commit(area.feature_id, footprint)
                    return PlacedFeature(
                        area=area,
                        center=centroid(footprint),
                        footprint=footprint,
                        size=size,
                        attempts=attempts,
                        position=position,
                    )

        if missing_anchors and len(missing_anchors) == len(area.positions):
            raise UnresolvedAnchorError(
                f"Anchor(s) {', '.join(missing_anchors)} failed to place",
                feature_id=area.feature_id,
            )
        raise PlacementExhausted(
            f"{area.feature_id} overlaps after {attempts} attempts",
            feature_id=area.feature_id,
            attempts=attempts,
        )

    def sample_center(
        self,
        anchor_center: HexCoord,
        position: PreparedPosition,
        rng: random.Random,
    ) -> tuple[HexCoord, float]:
        """Draw a candidate center inside the position's direction cone."""
        jitter = self.settings.angle_jitter
        angle = position.angle + rng.randint(-jitter, jitter)
        dist = rng.randint(position.distance_from, position.distance_to)
        offset = polar_to_hex(angle, dist)
        return anchor_center.offset_by(offset.q, offset.r), angle

    def footprint(
        self,
        area: PreparedArea,
        center: HexCoord,
        angle: float,
        rng: random.Random,
    ) -> tuple[frozenset[HexCoord], int]:
        """Cells covered by ``area`` at ``center`` and the sampled size."""
        size = rng.randint(area.size_from, area.size_to)

        if area.shape == Shape.CIRCLE:
            return circle_footprint(center, size), size
        if area.shape == Shape.LINE:
            cells = line_footprint(
                center, size, angle, rng, area.deviation_left, area.deviation_right
            )
            return cells, size
        if area.shape == Shape.RECTANGLE:
            height = rng.randint(area.size_from, size)
            return rectangle_footprint(center, size, height), size
        raise TypeError(f"Unknown shape: {area.shape}")
