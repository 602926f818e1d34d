"""Tests for point placement."""
import pytest

from hexcomposer.errors import FailureKind
from hexcomposer.hex_coords import ORIGIN, HexCoord, distance, hex_disc
from hexcomposer.points import PointPlacer, edge_cells
from hexcomposer.resolver import PositionResolver
from hexcomposer.schemas import (
    Biome,
    BiomePlacementResult,
    PlacedFeature,
    Point,
    PreparedComposition,
    Snap,
    SnapMode,
)


def _placed(area_id, center, radius):
    area = PositionResolver().prepare_area(Biome(id=area_id))
    footprint = frozenset(hex_disc(center, radius))
    return PlacedFeature(
        area=area, center=center, footprint=footprint,
        size=radius, attempts=1, position=area.positions[0],
    )


def _placement(*placed):
    prepared = PreparedComposition(areas=tuple(p.area for p in placed), flows=())
    return BiomePlacementResult(
        prepared=prepared, placed=tuple(placed), failures=(), total_retries=0, success=True,
    )


def _point(point_id, **snap):
    return PositionResolver().prepare_point(Point(id=point_id, snap=Snap(**snap)))


@pytest.fixture
def town():
    return _placed("town", ORIGIN, 2)


class TestEdgeCells:
    def test_ring_of_disc(self):
        footprint = frozenset(hex_disc(ORIGIN, 2))
        edges = edge_cells(footprint)
        assert len(edges) == 12
        assert all(distance(ORIGIN, c) == 2 for c in edges)

    def test_single_cell_is_its_own_edge(self):
        assert edge_cells(frozenset({ORIGIN})) == [ORIGIN]


class TestPointPlacer:
    def test_inside_takes_host_center(self, town):
        result = PointPlacer().place([_point("well", target="town")], _placement(town))
        assert result.success
        placed = result.by_id()["well"]
        assert placed.coord == ORIGIN
        assert placed.host == "town"

    def test_edge_mode(self, town):
        point = _point("gate", target="town", mode=SnapMode.EDGE)
        coord = PointPlacer().place([point], _placement(town)).placed[0].coord
        assert distance(ORIGIN, coord) == 2
        assert coord in town.footprint

    def test_avoid_keeps_one_cell_gap(self, town):
        lake = _placed("lake", HexCoord(4, -1), 1)
        point = _point("jetty", target="town", avoid=["lake"], prefer_near=["lake"])
        coord = PointPlacer().place([point], _placement(town, lake)).placed[0].coord
        assert coord in town.footprint
        gaps = [distance(coord, c) for c in lake.footprint]
        assert min(gaps) == 2

    def test_prefer_near(self, town):
        hill = _placed("hill", HexCoord(0, -6), 1)
        point = _point("lookout", target="town", prefer_near=["hill"])
        coord = PointPlacer().place([point], _placement(town, hill)).placed[0].coord
        assert coord == HexCoord(0, -2)

    def test_host_from_position_anchor(self, town):
        point = PositionResolver().prepare_point(
            Point(id="well", positions=[{"anchor": "town"}])
        )
        assert point.host == "town"
        assert PointPlacer().place([point], _placement(town)).success

    def test_missing_host_recorded(self, town):
        result = PointPlacer().place([_point("well", target="ghost")], _placement(town))
        assert result.placed == ()
        assert result.failures[0].kind == FailureKind.TARGET_NOT_PLACED

    def test_no_valid_cell_recorded(self):
        hut = _placed("hut", ORIGIN, 0)
        yard = _placed("yard", HexCoord(1, 0), 0)
        point = _point("well", target="hut", avoid=["yard"])
        result = PointPlacer().place([point], _placement(hut, yard))
        assert not result.success
        assert result.failures[0].kind == FailureKind.NO_VALID_CELL

    def test_one_failure_does_not_stop_others(self, town):
        points = [_point("lost", target="ghost"), _point("well", target="town")]
        result = PointPlacer().place(points, _placement(town))
        assert [p.feature_id for p in result.placed] == ["well"]
        assert [f.feature_id for f in result.failures] == ["lost"]
