"""Integration tests for the composition pipeline."""
import json

import pytest

from hexcomposer.composer import HexComposer
from hexcomposer.config import ComposerSettings
from hexcomposer.errors import FailureKind
from hexcomposer.hex_coords import ORIGIN, Direction, HexCoord, coords_to_key
from hexcomposer.overlay import RecordingOverlay
from hexcomposer.schemas import (
    Biome,
    BiomeType,
    Flow,
    FlowKind,
    Point,
    RelativePosition,
    SideWall,
    SizeBand,
    Snap,
    SnapMode,
    Structure,
    WorldDefinition,
)


def _at(direction, dist, priority=5, anchor=None):
    return RelativePosition(
        direction=direction, distance_from=dist, distance_to=dist, priority=priority, anchor=anchor,
    )


@pytest.fixture
def valley():
    return WorldDefinition(id="valley", features=[
        Biome(id="peaks", biome_type=BiomeType.MOUNTAINS, size=SizeBand.SMALL,
              positions=[RelativePosition(direction=Direction.N, distance=SizeBand.MEDIUM, priority=9)]),
        Biome(id="woods", biome_type=BiomeType.FOREST, size=SizeBand.SMALL,
              positions=[RelativePosition(direction=Direction.SE, distance=SizeBand.MEDIUM, priority=8)]),
        Structure(id="mill", size_from=1, size_to=1,
                  positions=[RelativePosition(anchor="woods", direction=Direction.E,
                                              distance=SizeBand.MEDIUM, priority=4)]),
        Flow(id="brook", flow_type=FlowKind.RIVER, waypoints=["peaks", "woods"]),
    ])


@pytest.fixture
def crossing():
    """River A-B-C and road D-B-E meeting at structure B."""
    return WorldDefinition(id="crossing", features=[
        Structure(id="B", positions=[_at(Direction.N, 0, priority=10)]),
        Structure(id="A", positions=[_at(Direction.N, 6, priority=9)]),
        Structure(id="C", positions=[_at(Direction.SE, 6, priority=9)]),
        Structure(id="D", positions=[_at(Direction.S, 6, priority=9)]),
        Structure(id="E", positions=[_at(Direction.NE, 6, priority=9)]),
        Flow(id="river", flow_type=FlowKind.RIVER, waypoints=["A", "B", "C"]),
        Flow(id="road", flow_type=FlowKind.ROAD, waypoints=["D", "B", "E"], merge_to_id="river"),
    ])


class TestCompose:
    def test_success(self, valley):
        result = HexComposer().compose(valley, seed=42)
        assert result.success
        assert result.error is None
        assert result.fill.success
        assert set(result.resolved) == {"peaks", "woods", "mill", "brook"}

    def test_filler_totality(self, valley):
        result = HexComposer().compose(valley, seed=42)
        coords = [c.coord for c in result.fill.cells]
        assert len(coords) == len(set(coords))
        owned = {cell for p in result.placement.placed for cell in p.footprint}
        assert owned == {c.coord for c in result.fill.cells if c.owner is not None}

    def test_same_seed_same_output(self, valley):
        first = HexComposer().compose(valley, seed=5).cell_configs()
        second = HexComposer().compose(valley, seed=5).cell_configs()
        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)

    def test_cell_configs_cover_region(self, valley):
        result = HexComposer().compose(valley, seed=42)
        configs = result.cell_configs()
        assert len(configs) == len(result.fill.cells)
        assert result.cell_configs() == configs

    def test_river_parts_in_cell_configs(self, valley):
        result = HexComposer().compose(valley, seed=42)
        brook = result.resolved["brook"]
        assert brook.resolved
        configs = result.cell_configs()
        start = coords_to_key(brook.footprint[0])
        assert configs[start]["rivers"][0]["type"] == "to"

    def test_authored_definition_unchanged(self, valley):
        before = valley.model_dump()
        HexComposer().compose(valley, seed=42)
        assert valley.model_dump() == before


class TestMergeScenario:
    def test_shared_group_at_junction(self, crossing):
        composer = HexComposer(ComposerSettings(angle_jitter=0))
        result = composer.compose(crossing, seed=1)
        assert result.success
        junction = result.resolved["B"].center
        assert junction == ORIGIN

        parts = result.routing.parts_at(junction)
        assert {p.flow_id for p in parts} == {"river", "road"}
        assert {p.merge_group for p in parts} == {"river"}

        config = result.cell_configs()[coords_to_key(junction)]
        assert config["rivers"][0]["groupId"] == "river"
        assert config["roads"][0]["groupId"] == "river"


class TestFailures:
    def test_unresolved_anchor_is_fatal(self):
        definition = WorldDefinition(features=[
            Biome(id="a", positions=[_at(Direction.N, 3, priority=2)]),
            Biome(id="b", positions=[_at(Direction.SE, 3, priority=8, anchor="a")]),
        ])
        result = HexComposer().compose(definition, seed=1)
        assert not result.success
        assert "not placed before" in result.error
        assert result.placement is None
        assert result.cell_configs() == {}

    def test_empty_region_is_fatal(self):
        definition = WorldDefinition(features=[
            Flow(id="r", flow_type=FlowKind.RIVER, waypoints=["0:0", "0:4"]),
        ])
        result = HexComposer().compose(definition, seed=1)
        assert not result.success
        assert result.routing is None
        assert "No placed features" in result.error

    def test_max_retries_override(self):
        definition = WorldDefinition(features=[
            Biome(id="a", positions=[_at(Direction.N, 0, priority=9)]),
            Biome(id="b", positions=[_at(Direction.N, 0, priority=3)]),
        ])
        result = HexComposer().compose(definition, seed=1, max_retries=3)
        failure = result.resolved["b"].failure
        assert failure.kind == FailureKind.PLACEMENT_EXHAUSTED
        assert failure.attempts == 3
        # b is optional, so the run still succeeds
        assert result.success
        assert result.warnings

    def test_unreachable_waypoint_is_recorded(self):
        definition = WorldDefinition(features=[
            Structure(id="town"),
            Flow(id="road", flow_type=FlowKind.ROAD, waypoints=["town", "nowhere"]),
        ])
        result = HexComposer().compose(definition, seed=1)
        assert result.success
        assert result.resolved["road"].failure.kind == FailureKind.UNREACHABLE_WAYPOINT


class TestOverlay:
    def test_marks_each_placed_feature(self, valley):
        overlay = RecordingOverlay()
        result = HexComposer(overlay=overlay).compose(valley, seed=42)
        assert len(overlay.markers) == len(result.placement.placed)
        assert {m.label for m in overlay.markers} <= {"peaks", "woods", "mill"}

    def test_overlay_does_not_change_result(self, valley):
        plain = HexComposer().compose(valley, seed=42)
        marked = HexComposer(overlay=RecordingOverlay()).compose(valley, seed=42)
        assert plain.cell_configs() == marked.cell_configs()


@pytest.fixture
def walled_town():
    """A town with a gate point, a road to the gate and a wall on its north sides."""
    return WorldDefinition(id="walled", features=[
        Structure(id="town", size_from=2, size_to=2, positions=[_at(Direction.N, 0, priority=10)]),
        Structure(id="farm", positions=[_at(Direction.S, 6, priority=8)]),
        Point(id="gate", snap=Snap(target="town", mode=SnapMode.EDGE, prefer_near=["farm"])),
        Flow(id="lane", flow_type=FlowKind.ROAD, waypoints=["farm", "gate"]),
        SideWall(id="rampart", target="town", sides=["N", "NE", "NW"]),
    ])


class TestPointsAndSideWalls:
    def test_point_used_as_waypoint(self, walled_town):
        result = HexComposer(ComposerSettings(angle_jitter=0)).compose(walled_town, seed=3)
        assert result.success
        gate = result.resolved["gate"]
        assert gate.resolved
        assert gate.center in result.resolved["town"].footprint
        assert result.resolved["lane"].footprint[-1] == gate.center
        assert "gate" in result.cell_configs()[coords_to_key(gate.center)]["points"]

    def test_side_wall_in_cell_configs(self, walled_town):
        result = HexComposer(ComposerSettings(angle_jitter=0)).compose(walled_town, seed=3)
        rampart = result.resolved["rampart"]
        assert rampart.resolved
        assert rampart.kind == "sidewall"
        configs = result.cell_configs()
        for cell in rampart.footprint:
            sides = configs[coords_to_key(cell)]["sidewalls"]
            assert {s["side"] for s in sides} <= {"N", "NE", "NW"}
            assert all(s["type"] == "side" for s in sides)

    def test_side_wall_on_missing_target_is_recorded(self):
        definition = WorldDefinition(features=[
            Structure(id="town"),
            SideWall(id="rampart", target="castle"),
        ])
        result = HexComposer().compose(definition, seed=1)
        assert result.success
        assert result.resolved["rampart"].failure.kind == FailureKind.TARGET_NOT_PLACED

    def test_overlay_marks_points(self, walled_town):
        overlay = RecordingOverlay()
        HexComposer(overlay=overlay).compose(walled_town, seed=3)
        assert "gate" in {m.label for m in overlay.markers}


class TestOutsideRegion:
    def test_parts_outside_region_are_reported(self):
        definition = WorldDefinition(features=[
            Structure(id="town"),
            Flow(id="long_road", flow_type=FlowKind.ROAD, waypoints=["town", "0:20"]),
        ])
        result = HexComposer().compose(definition, seed=1)
        assert result.success
        assert result.resolved["long_road"].resolved
        warning = next(w for w in result.warnings if w.startswith("long_road:"))
        assert "outside the filled region" in warning

        configs = result.cell_configs()
        assert coords_to_key(HexCoord(0, 20)) not in configs

    def test_no_warning_when_route_stays_inside(self, crossing):
        result = HexComposer(ComposerSettings(angle_jitter=0)).compose(crossing, seed=1)
        assert not any("outside the filled region" in w for w in result.warnings)
