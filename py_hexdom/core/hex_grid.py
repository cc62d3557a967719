"""Hexagonal grid used as the adjacency provider for domain analysis."""

import numpy as np
from scipy.spatial import cKDTree
from typing import List, NamedTuple, Optional, Tuple
from dataclasses import dataclass, field
import structlog

logger = structlog.get_logger()

Coord = Tuple[float, float]

# Neighbour directions. Hexes are pointy-topped, so E and W neighbours share
# a vertical edge.
NEIGHBOUR_E = 0
NEIGHBOUR_NE = 1
NEIGHBOUR_NW = 2
NEIGHBOUR_W = 3
NEIGHBOUR_SW = 4
NEIGHBOUR_SE = 5

NEIGHBOUR_NAMES = ("E", "NE", "NW", "W", "SW", "SE")

# Hex-vertex k lies between neighbour k and neighbour k+1.
VERTEX_NAMES = ("NE", "N", "NW", "SW", "S", "SE")

NO_CELL = -1

# Axial (ri, gi) offsets for each neighbour direction
_AXIAL_STEPS = ((1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1), (1, -1))

_VERTEX_ANGLES = np.radians(30.0 + 60.0 * np.arange(6))


class GridConfig(NamedTuple):
    """Configuration for grid generation.

    ``shape`` is "hexagon" (uses ``rings``) or "parallelogram" (uses
    ``width`` and ``height``, counted in cells).
    """
    d: float = 1.0
    shape: str = "hexagon"
    rings: int = 5
    width: int = 0
    height: int = 0


@dataclass
class HexGrid:
    """Arena of hexagonal cells addressed by integer index.

    Neighbour references are indices into the arena (``NO_CELL`` where the
    grid has no neighbour), so the grid can be shared read-only.
    """
    d: float
    axial: np.ndarray        # (n, 2) int, ri and gi lattice indices
    points: np.ndarray       # (n, 2) float, cell centres
    neighbours: np.ndarray   # (n, 6) int, NO_CELL where absent
    boundary_flags: np.ndarray  # 1 if the cell lacks any neighbour
    _tree: Optional[cKDTree] = field(default=None, repr=False, compare=False)

    @property
    def num(self) -> int:
        return len(self.points)

    @property
    def long_radius(self) -> float:
        """Distance from a cell centre to any of its six vertices."""
        return self.d / np.sqrt(3.0)

    @property
    def vertex_tolerance(self) -> float:
        return self.d * 1e-3

    def has_neighbour(self, vi: int, direction: int) -> bool:
        return self.neighbours[vi, direction % 6] != NO_CELL

    def neighbour(self, vi: int, direction: int) -> int:
        """Index of the neighbour in ``direction``. Only valid if it exists."""
        nb = int(self.neighbours[vi, direction % 6])
        if nb == NO_CELL:
            raise ValueError(
                f"Cell {vi} has no neighbour to the {NEIGHBOUR_NAMES[direction % 6]}"
            )
        return nb

    def present_neighbours(self, vi: int) -> List[int]:
        return [int(n) for n in self.neighbours[vi] if n != NO_CELL]

    def is_boundary(self, vi: int) -> bool:
        return bool(self.boundary_flags[vi])

    def centre(self, vi: int) -> Coord:
        x, y = self.points[vi]
        return (float(x), float(y))

    def vertex_coord(self, vi: int, direction: int) -> Coord:
        """Coordinate of hex-vertex ``direction`` of cell ``vi``."""
        angle = _VERTEX_ANGLES[direction % 6]
        lr = self.long_radius
        x, y = self.points[vi]
        return (float(x + lr * np.cos(angle)), float(y + lr * np.sin(angle)))

    def compare_vertex_coord(self, vi: int, direction: int, coord: Coord,
                             tolerance: Optional[float] = None) -> bool:
        return coords_match(self.vertex_coord(vi, direction), coord,
                            tolerance if tolerance is not None else self.vertex_tolerance)

    def compare_coord(self, vi: int, coord: Coord,
                      tolerance: Optional[float] = None) -> bool:
        return coords_match(self.centre(vi), coord,
                            tolerance if tolerance is not None else self.vertex_tolerance)

    def vertex_direction(self, vi: int, coord: Coord) -> Optional[int]:
        """Which of cell ``vi``'s hex-vertices lies at ``coord``, if any."""
        for direction in range(6):
            if self.compare_vertex_coord(vi, direction, coord):
                return direction
        return None

    def find_cell(self, x: float, y: float) -> int:
        """Index of the cell whose centre is nearest to (x, y)."""
        if self._tree is None:
            self._tree = cKDTree(self.points)
        _, idx = self._tree.query([x, y])
        return int(idx)


def coords_match(a: Coord, b: Coord, tolerance: float) -> bool:
    return abs(a[0] - b[0]) <= tolerance and abs(a[1] - b[1]) <= tolerance


def hexagon_axial(rings: int) -> List[Tuple[int, int]]:
    """Axial indices of a hexagon-shaped patch, ``rings`` rings around (0, 0).

    rings=0 produces a single hex, rings=1 produces 7 hexes, and so on.
    """
    if rings < 0:
        raise ValueError("rings must be >= 0")
    coords = []
    for gi in range(-rings, rings + 1):
        r1 = max(-rings, -gi - rings)
        r2 = min(rings, -gi + rings)
        for ri in range(r1, r2 + 1):
            coords.append((ri, gi))
    return coords


def parallelogram_axial(width: int, height: int) -> List[Tuple[int, int]]:
    if width < 1 or height < 1:
        raise ValueError("width and height must be >= 1")
    return [(ri, gi) for gi in range(height) for ri in range(width)]


def build_neighbour_table(axial: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the six-direction neighbour table and boundary flags.

    Args:
        axial: (n, 2) array of ri, gi lattice indices

    Returns:
        Tuple of (neighbours, boundary_flags)
    """
    index = {(int(ri), int(gi)): i for i, (ri, gi) in enumerate(axial)}
    neighbours = np.full((len(axial), 6), NO_CELL, dtype=np.int64)

    for i, (ri, gi) in enumerate(axial):
        for direction, (dr, dg) in enumerate(_AXIAL_STEPS):
            neighbours[i, direction] = index.get((int(ri) + dr, int(gi) + dg), NO_CELL)

    boundary_flags = np.any(neighbours == NO_CELL, axis=1).astype(np.uint8)
    return neighbours, boundary_flags


def generate_hex_grid(config: GridConfig) -> HexGrid:
    """
    Generate a hexagonal grid.

    Cell centres are at ``x = d * (ri + gi / 2)``, ``y = d * gi * sqrt(3) / 2``.

    Args:
        config: Grid configuration

    Returns:
        HexGrid with neighbour table and boundary flags populated
    """
    if config.d <= 0:
        raise ValueError("Hex spacing d must be positive")

    if config.shape == "hexagon":
        coords = hexagon_axial(config.rings)
    elif config.shape == "parallelogram":
        coords = parallelogram_axial(config.width, config.height)
    else:
        raise ValueError(f"Unknown grid shape: {config.shape}")

    axial = np.array(coords, dtype=np.int64)
    points = np.empty((len(axial), 2), dtype=np.float64)
    points[:, 0] = config.d * (axial[:, 0] + axial[:, 1] / 2.0)
    points[:, 1] = config.d * axial[:, 1] * (np.sqrt(3.0) / 2.0)

    neighbours, boundary_flags = build_neighbour_table(axial)

    logger.info("Hex grid generated", shape=config.shape, cells=len(points),
                boundary_cells=int(boundary_flags.sum()), d=config.d)

    return HexGrid(
        d=config.d,
        axial=axial,
        points=points,
        neighbours=neighbours,
        boundary_flags=boundary_flags,
    )
