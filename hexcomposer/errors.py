"""Error kinds raised inside composition stages."""

from enum import Enum


class FailureKind(str, Enum):
    UNRESOLVED_ANCHOR = "unresolved_anchor"
    PLACEMENT_EXHAUSTED = "placement_exhausted"
    ANCHOR_NOT_PLACED = "anchor_not_placed"
    UNREACHABLE_WAYPOINT = "unreachable_waypoint"
    EMPTY_REGION = "empty_region"
    TARGET_NOT_PLACED = "target_not_placed"
    NO_VALID_CELL = "no_valid_cell"


class CompositionError(Exception):
    """Base class for composition failures."""

    kind: FailureKind
    fatal = False

    def __init__(self, message: str, feature_id: str | None = None):
        super().__init__(message)
        self.feature_id = feature_id


class UnresolvedAnchorError(CompositionError):
    """A position references an anchor that is not resolved before it."""

    kind = FailureKind.UNRESOLVED_ANCHOR
    fatal = True


class PlacementExhausted(CompositionError):
    """A feature could not clear overlaps within its retry budget."""

    kind = FailureKind.PLACEMENT_EXHAUSTED

    def __init__(self, message: str, feature_id: str | None = None, attempts: int = 0):
        super().__init__(message, feature_id)
        self.attempts = attempts


class UnreachableWaypoint(CompositionError):
    """A flow waypoint is unknown or too far to route to."""

    kind = FailureKind.UNREACHABLE_WAYPOINT


class TargetNotPlaced(CompositionError):
    """A point's host or a side wall's target has no placed cells."""

    kind = FailureKind.TARGET_NOT_PLACED


class NoValidCell(CompositionError):
    """Snap and avoid rules leave no cell of the host for a point."""

    kind = FailureKind.NO_VALID_CELL


class EmptyRegion(CompositionError):
    """Nothing was placed, so no bounding region exists."""

    kind = FailureKind.EMPTY_REGION
    fatal = True
