"""Debug markers requested during composition.

Overlays are a side channel: they never change the composition result.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Marker:
    x: float
    y: float
    label: str
    shape: str = "cross"


class DebugOverlay:
    """Overlay that drops every marker."""

    def mark_cross(self, point: tuple[float, float], label: str = "") -> None:
        pass


class RecordingOverlay(DebugOverlay):
    """Overlay that keeps markers for later rendering."""

    def __init__(self):
        self.markers: list[Marker] = []

    def mark_cross(self, point: tuple[float, float], label: str = "") -> None:
        self.markers.append(Marker(x=point[0], y=point[1], label=label))

    def to_dicts(self) -> list[dict]:
        return [
            {"x": m.x, "y": m.y, "label": m.label, "shape": m.shape}
            for m in self.markers
        ]
