"""Axial hex coordinate utilities (flat-top layout).

Sides are numbered clockwise from North:
    Side 0: N   ( 0, -1)    0 deg
    Side 1: NE  (+1, -1)   60 deg
    Side 2: SE  (+1,  0)  120 deg
    Side 3: S   ( 0, +1)  180 deg
    Side 4: SW  (-1, +1)  240 deg
    Side 5: NW  (-1,  0)  300 deg

A flat-top grid has no pure east/west neighbour; the opposite of side ``i``
is always side ``(i + 3) % 6``.

Authoring directions are a separate set of six labels, N, NE, E, SE, S, SW,
at 0, 60, ..., 300 degrees.
"""

import math
from enum import Enum
from typing import Iterable, NamedTuple

SQRT3 = math.sqrt(3)


class HexOffset(NamedTuple):
    """Offset for hex neighbor lookup."""
    dq: int
    dr: int


class HexCoord(NamedTuple):
    """One grid cell in axial coordinates."""
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def neighbor(self, side: "Side") -> "HexCoord":
        offset = side.offset
        return HexCoord(self.q + offset.dq, self.r + offset.dr)

    def neighbors(self) -> list["HexCoord"]:
        return [self.neighbor(side) for side in Side]

    def distance_to(self, other: "HexCoord") -> int:
        return distance(self, other)

    def offset_by(self, dq: int, dr: int) -> "HexCoord":
        return HexCoord(self.q + dq, self.r + dr)


ORIGIN = HexCoord(0, 0)

# Neighbor offsets indexed by side number (clockwise from N)
HEX_NEIGHBOR_OFFSETS: list[HexOffset] = [
    HexOffset( 0, -1),  # Side 0: N
    HexOffset(+1, -1),  # Side 1: NE
    HexOffset(+1,  0),  # Side 2: SE
    HexOffset( 0, +1),  # Side 3: S
    HexOffset(-1, +1),  # Side 4: SW
    HexOffset(-1,  0),  # Side 5: NW
]


class Side(str, Enum):
    """Cell boundary a flow crosses."""
    N = "N"
    NE = "NE"
    SE = "SE"
    S = "S"
    SW = "SW"
    NW = "NW"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_").replace("_", "")
            key = _SIDE_ALIASES.get(key, key)
            for member in cls:
                if member.value == key:
                    return member
        return None

    @property
    def ordinal(self) -> int:
        return _SIDE_ORDER.index(self)

    @property
    def angle(self) -> int:
        """Angle of the outward normal in degrees, 0 = north, clockwise."""
        return self.ordinal * 60

    @property
    def offset(self) -> HexOffset:
        return HEX_NEIGHBOR_OFFSETS[self.ordinal]

    @property
    def opposite(self) -> "Side":
        return _SIDE_ORDER[(self.ordinal + 3) % 6]

    @classmethod
    def from_offset(cls, dq: int, dr: int) -> "Side":
        """Side whose neighbor offset is (dq, dr)."""
        try:
            return _SIDE_ORDER[HEX_NEIGHBOR_OFFSETS.index(HexOffset(dq, dr))]
        except ValueError:
            raise ValueError(f"({dq}, {dr}) is not a neighbor offset") from None

    @classmethod
    def nearest(cls, angle: float) -> "Side":
        """Side closest to an angle in degrees."""
        return _SIDE_ORDER[round((angle % 360) / 60) % 6]


_SIDE_ORDER: list[Side] = list(Side)

_SIDE_ALIASES = {
    "NORTH": "N",
    "NORTHEAST": "NE",
    "SOUTHEAST": "SE",
    "SOUTH": "S",
    "SOUTHWEST": "SW",
    "NORTHWEST": "NW",
}

# W and NW fold onto the 0 and 60 degree sectors
_DIRECTION_ALIASES = {
    "NORTH": "N",
    "NORTH_EAST": "NE",
    "NORTHEAST": "NE",
    "EAST": "E",
    "SOUTH_EAST": "SE",
    "SOUTHEAST": "SE",
    "SOUTH": "S",
    "SOUTH_WEST": "SW",
    "SOUTHWEST": "SW",
    "W": "N",
    "WEST": "N",
    "NW": "NE",
    "NORTH_WEST": "NE",
    "NORTHWEST": "NE",
}


class Direction(str, Enum):
    """Authoring direction of a relative position.

    Each label names a 60 degree sector by its canonical angle (0 = north,
    clockwise). Placement samples a cone around that angle.
    """
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            key = _DIRECTION_ALIASES.get(key, key)
            for member in cls:
                if member.value == key:
                    return member
        return None

    @property
    def angle(self) -> int:
        """Canonical angle in degrees."""
        return _DIRECTION_ORDER.index(self) * 60

    @property
    def side(self) -> Side:
        """Cell side facing the canonical angle."""
        return Side.nearest(self.angle)


_DIRECTION_ORDER: list[Direction] = list(Direction)


def get_opposite_side(side: Side) -> Side:
    """Get the side on the opposite edge of the hex (N <-> S, etc.)."""
    return side.opposite


def determine_side(from_cell: HexCoord, to_cell: HexCoord) -> Side:
    """Side of ``from_cell`` shared with its neighbor ``to_cell``."""
    return Side.from_offset(to_cell.q - from_cell.q, to_cell.r - from_cell.r)


def distance(a: HexCoord, b: HexCoord) -> int:
    """Calculate hex distance between two coordinates."""
    return (abs(a.q - b.q) + abs(a.q + a.r - b.q - b.r) + abs(a.r - b.r)) // 2


def cube_round(fq: float, fr: float) -> HexCoord:
    """Round fractional axial coordinates to the containing hex."""
    fs = -fq - fr
    q, r, s = round(fq), round(fr), round(fs)
    dq, dr, ds = abs(q - fq), abs(r - fr), abs(s - fs)
    if dq > dr and dq > ds:
        q = -r - s
    elif dr > ds:
        r = -q - s
    return HexCoord(int(q), int(r))


def polar_to_hex(angle: float, dist: float) -> HexCoord:
    """Convert a polar offset (degrees from north, hex steps) to the nearest hex.

    One hex step is the center-to-center spacing (sqrt(3) for unit size).
    """
    rad = math.radians(angle)
    x = dist * SQRT3 * math.sin(rad)
    y = -dist * SQRT3 * math.cos(rad)
    fq = x * 2 / 3
    fr = y / SQRT3 - fq / 2
    return cube_round(fq, fr)


def hex_to_world(coord: HexCoord, size: float = 1.0) -> tuple[float, float]:
    """World-space center of a hex (x east, y south)."""
    x = size * 1.5 * coord.q
    y = size * SQRT3 * (coord.r + coord.q / 2)
    return (x, y)


def hex_disc(center: HexCoord, radius: int) -> list[HexCoord]:
    """All cells within ``radius`` of ``center``, in stable q-then-r order."""
    cells = []
    for dq in range(-radius, radius + 1):
        for dr in range(max(-radius, -dq - radius), min(radius, -dq + radius) + 1):
            cells.append(HexCoord(center.q + dq, center.r + dr))
    return cells


def hex_ring(center: HexCoord, radius: int) -> list[HexCoord]:
    """Cells at exactly ``radius`` from ``center``."""
    if radius == 0:
        return [center]
    return [c for c in hex_disc(center, radius) if distance(center, c) == radius]


def centroid(cells: Iterable[HexCoord]) -> HexCoord:
    """Rounded mean of a set of cells."""
    cells = list(cells)
    if not cells:
        raise ValueError("centroid of an empty footprint")
    fq = sum(c.q for c in cells) / len(cells)
    fr = sum(c.r for c in cells) / len(cells)
    return cube_round(fq, fr)


def step_toward(current: HexCoord, target: HexCoord) -> HexCoord:
    """One neighbor step from ``current`` toward ``target``.

    Moves along the dominant cube axis (ties: q, r, s) and compensates on
    the larger of the remaining two (ties: r before s), so every step
    reduces the distance by exactly one.

    Args:
        current: Cell to step from.
        target: Cell to step toward.

    Returns:
        The neighbor of ``current`` one step closer, or ``current`` itself
        when it already is the target.
    """
    deltas = {
        "q": target.q - current.q,
        "r": target.r - current.r,
        "s": target.s - current.s,
    }
    if not any(deltas.values()):
        return current
    dominant = max("qrs", key=lambda axis: abs(deltas[axis]))
    others = [axis for axis in "qrs" if axis != dominant]
    secondary = max(others, key=lambda axis: abs(deltas[axis]))

    sign = 1 if deltas[dominant] > 0 else -1
    step = {"q": 0, "r": 0, "s": 0}
    step[dominant] = sign
    step[secondary] = -sign
    return HexCoord(current.q + step["q"], current.r + step["r"])


def coords_to_key(coord: HexCoord) -> str:
    """Convert coordinates to string key for dict lookups."""
    return f"{coord.q}:{coord.r}"


def key_to_coords(key: str) -> HexCoord:
    """Convert string key back to coordinates."""
    q, r = key.split(":")
    return HexCoord(int(q), int(r))
