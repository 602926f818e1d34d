"""Classify every unowned cell of the bounding region."""

import logging
from dataclasses import dataclass
from typing import Optional

from hexcomposer import config
from hexcomposer.config import ComposerSettings
from hexcomposer.errors import EmptyRegion
from hexcomposer.hex_coords import HexCoord, centroid, distance
from hexcomposer.schemas import (
    BiomePlacementResult,
    FillerCategory,
    FilledHexGrid,
    HexGridFillResult,
    PlacedFeature,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HexRegion:
    """Hexagon bounded by min/max of each cube coordinate."""
    q_min: int
    q_max: int
    r_min: int
    r_max: int
    s_min: int
    s_max: int

    @classmethod
    def covering(cls, cells, margin: int = 0) -> "HexRegion":
        cells = list(cells)
        if not cells:
            raise EmptyRegion("No placed features to derive a region from")
        qs = [c.q for c in cells]
        rs = [c.r for c in cells]
        ss = [c.s for c in cells]
        return cls(
            min(qs) - margin, max(qs) + margin,
            min(rs) - margin, max(rs) + margin,
            min(ss) - margin, max(ss) + margin,
        )

    def __contains__(self, cell: HexCoord) -> bool:
        return (
            self.q_min <= cell.q <= self.q_max
            and self.r_min <= cell.r <= self.r_max
            and self.s_min <= cell.s <= self.s_max
        )

    def cells(self) -> list[HexCoord]:
        """All cells, ordered by q then r."""
        result = []
        for q in range(self.q_min, self.q_max + 1):
            for r in range(self.r_min, self.r_max + 1):
                if self.s_min <= -q - r <= self.s_max:
                    result.append(HexCoord(q, r))
        return result

    def depth(self, cell: HexCoord) -> int:
        """Steps from the cell to the region border (0 on the border)."""
        return min(
            cell.q - self.q_min, self.q_max - cell.q,
            cell.r - self.r_min, self.r_max - cell.r,
            cell.s - self.s_min, self.s_max - cell.s,
        )


class CellFiller:
    """Two-pass filler classifier plus a mountain/lowland pass.

    Pass 1 labels each cell from raw adjacency only, so the result does not
    depend on iteration order. Pass 2 promotes LAND cells that border both
    ocean and land to COAST. Pass 3 turns LAND next to mountain biomes into
    MOUNTAIN or LOWLAND filler.
    """

    def __init__(self, settings: Optional[ComposerSettings] = None):
        self.settings = settings or ComposerSettings()

    def fill(self, placement: BiomePlacementResult) -> HexGridFillResult:
        """Give every cell of the covering region an owner or a filler.

        Args:
            placement: Placed areas; their footprints bound the region.

        Returns:
            HexGridFillResult with one cell per region hex and counts per
            filler category. When nothing was placed, ``success`` is False
            and ``error`` explains why.
        """
        owners = placement.owner_map()
        try:
            region = HexRegion.covering(owners, self.settings.region_margin)
        except EmptyRegion as e:
            logger.error(f"Fill failed: {e}")
            return HexGridFillResult(
                cells=(), counts={}, center=None, success=False, error=str(e)
            )

        center = centroid(owners)
        land_radius = self.settings.land_radius
        if land_radius is None:
            land_radius = max(distance(center, cell) for cell in owners)

        hulls = self._continent_hulls(placement.placed)
        region_cells = region.cells()

        first = {
            cell: self._classify(cell, region, owners, hulls, center, land_radius)
            for cell in region_cells
            if cell not in owners
        }
        second = {
            cell: self._resolve_coast(cell, category, first, owners, region)
            for cell, category in first.items()
        }
        final = {
            cell: self._resolve_mountain(cell, category, owners)
            for cell, category in second.items()
        }

        cells = []
        counts = {category.value: 0 for category in FillerCategory}
        counts["owned"] = 0
        for cell in region_cells:
            owner = owners.get(cell)
            if owner is not None:
                counts["owned"] += 1
                cells.append(FilledHexGrid(
                    coord=cell, owner=owner, parameters=self.owner_parameters(owner)
                ))
            else:
                category = final[cell]
                counts[category.value] += 1
                cells.append(FilledHexGrid(
                    coord=cell, filler=category, parameters=self.filler_parameters(category)
                ))

        logger.info(
            f"Filled {len(cells)} cells around {center}: "
            + ", ".join(f"{k}={v}" for k, v in counts.items() if v)
        )
        return HexGridFillResult(
            cells=tuple(cells), counts=counts, center=center, success=True
        )

    def _classify(
        self,
        cell: HexCoord,
        region: HexRegion,
        owners: dict[HexCoord, PlacedFeature],
        hulls: list[HexRegion],
        center: HexCoord,
        land_radius: int,
    ) -> FillerCategory:
        if region.depth(cell) < self.settings.ocean_ring:
            return FillerCategory.OCEAN

        if any(cell in hull for hull in hulls):
            return FillerCategory.CONTINENT

        neighbours = [owners[n] for n in cell.neighbors() if n in owners]
        if neighbours:
            if all(owner.area.is_water for owner in neighbours):
                return FillerCategory.OCEAN
            return FillerCategory.LAND

        if distance(cell, center) <= land_radius:
            return FillerCategory.LAND
        return FillerCategory.OCEAN

    def _resolve_coast(
        self,
        cell: HexCoord,
        category: FillerCategory,
        first: dict[HexCoord, FillerCategory],
        owners: dict[HexCoord, PlacedFeature],
        region: HexRegion,
    ) -> FillerCategory:
        if category != FillerCategory.LAND:
            return category

        touches_ocean = False
        touches_land = False
        for n in cell.neighbors():
            if n not in region:
                continue
            owner = owners.get(n)
            if owner is not None:
                if owner.area.is_water:
                    touches_ocean = True
                else:
                    touches_land = True
            elif first[n] == FillerCategory.OCEAN:
                touches_ocean = True
            elif first[n] in (FillerCategory.LAND, FillerCategory.CONTINENT):
                touches_land = True

        if touches_ocean and touches_land:
            return FillerCategory.COAST
        return category

    def _resolve_mountain(
        self,
        cell: HexCoord,
        category: FillerCategory,
        owners: dict[HexCoord, PlacedFeature],
    ) -> FillerCategory:
        if category != FillerCategory.LAND:
            return category

        mountains = sum(
            1 for n in cell.neighbors()
            if n in owners and owners[n].area.is_mountain
        )
        if mountains >= self.settings.mountain_neighbor_threshold:
            return FillerCategory.MOUNTAIN
        if mountains:
            return FillerCategory.LOWLAND
        return category

    def _continent_hulls(self, placed: tuple[PlacedFeature, ...]) -> list[HexRegion]:
        by_continent: dict[str, list[HexCoord]] = {}
        for feature in placed:
            if feature.area.continent:
                by_continent.setdefault(feature.area.continent, []).extend(feature.footprint)
        return [
            HexRegion.covering(by_continent[name])
            for name in sorted(by_continent)
        ]

    def owner_parameters(self, owner: PlacedFeature) -> dict[str, str]:
        area = owner.area
        params: dict[str, str] = {}
        if area.biome_type is not None:
            params.update(config.BIOME_PARAMETERS.get(area.biome_type.value, {}))
            params["biomeType"] = area.biome_type.value
        if area.structure_type is not None:
            params["structure"] = area.structure_type.value
        params["biome"] = area.name
        params.update(area.parameters)
        return params

    def filler_parameters(self, category: FillerCategory) -> dict[str, str]:
        return {
            "g_builder": config.FILLER_BUILDERS[category.value],
            "biome": category.value,
            "filler": "true",
            "fillerType": category.value,
        }
