"""Stage entry points document their arguments and results."""
import pytest

from hexcomposer.filler import CellFiller
from hexcomposer.placement import PlacementEngine
from hexcomposer.points import PointPlacer
from hexcomposer.router import FlowRouter


@pytest.mark.parametrize("method", [
    PlacementEngine.place,
    CellFiller.fill,
    PointPlacer.place,
    FlowRouter.route,
    FlowRouter.walk,
])
def test_args_and_returns_sections(method):
    doc = method.__doc__ or ""
    assert "Args:" in doc
    assert "Returns:" in doc
