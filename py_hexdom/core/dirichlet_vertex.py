"""
Dirichlet vertex detection.

A Dirichlet vertex is a hex-lattice vertex where three different identities
meet, or where two meet on the outer edge of the grid.
"""

import numpy as np
from typing import List, Tuple
from dataclasses import dataclass
import structlog

from .hex_grid import Coord, HexGrid, coords_match

logger = structlog.get_logger()

# Identity of the virtual domain outside the grid
NO_NEIGHBOUR = -1.0


@dataclass(frozen=True)
class DomainVertex:
    """A candidate vertex of the domain with identity ``f``.

    ``neighb`` holds the identities of the two other domains meeting here.
    Looking out from the owning cell and turning anticlockwise, ``neighb[1]``
    comes first and ``neighb[0]`` second. The domain boundary is traced
    anticlockwise, leaving this vertex along the edge shared with
    ``neighb[0]``.
    """
    coord: Coord
    f: float
    neighb: Tuple[float, float]
    cell: int
    on_boundary: bool = False

    def __post_init__(self):
        if self.neighb[0] == self.neighb[1] and self.neighb[0] != NO_NEIGHBOUR:
            raise ValueError(f"Vertex neighbours must differ, got {self.neighb}")

    def compare(self, coord: Coord, tolerance: float) -> bool:
        return coords_match(self.coord, coord, tolerance)

    def matches(self, other: "DomainVertex", tolerance: float) -> bool:
        """Same geometric vertex with the same identity triple."""
        return (self.f == other.f and self.neighb == other.neighb
                and self.compare(other.coord, tolerance))


def vertex_test(grid: HexGrid, identities: np.ndarray, vi: int) -> List[DomainVertex]:
    """
    Test cell ``vi`` for Dirichlet vertices.

    No deduplication: a vertex shared by three cells may be reported by each.

    Args:
        grid: HexGrid the identities are defined on
        identities: Identity field
        vi: Cell to test

    Returns:
        The vertices hosted by this cell, possibly empty
    """
    f = identities[vi]
    n_ids = {f}
    for direction in range(6):
        if grid.has_neighbour(vi, direction):
            n_ids.add(identities[grid.neighbour(vi, direction)])

    boundary = grid.is_boundary(vi)
    if not ((boundary and len(n_ids) >= 2) or (not boundary and len(n_ids) >= 3)):
        return []

    vertices = []

    if boundary:
        # Where a differing neighbour sits next to a missing one, the vertex
        # between them is on the grid edge.
        for ni in range(6):
            if not grid.has_neighbour(vi, ni):
                continue
            other = identities[grid.neighbour(vi, ni)]
            if other == f:
                continue

            nii = (ni + 1) % 6
            if not grid.has_neighbour(vi, nii):
                vertices.append(DomainVertex(
                    coord=grid.vertex_coord(vi, ni),
                    f=float(f),
                    neighb=(NO_NEIGHBOUR, float(other)),
                    cell=vi,
                    on_boundary=True,
                ))
                continue

            nii = (ni - 1) % 6
            if not grid.has_neighbour(vi, nii):
                vertices.append(DomainVertex(
                    coord=grid.vertex_coord(vi, nii),
                    f=float(f),
                    neighb=(float(other), NO_NEIGHBOUR),
                    cell=vi,
                    on_boundary=True,
                ))

    # Internal vertices: neighbours ni and ni+1 differ from this cell and
    # from each other. Test all six, no breaking.
    for ni in range(6):
        if not grid.has_neighbour(vi, ni):
            continue
        f1 = identities[grid.neighbour(vi, ni)]
        if f1 == f:
            continue

        nii = (ni + 1) % 6
        if not grid.has_neighbour(vi, nii):
            continue
        f2 = identities[grid.neighbour(vi, nii)]
        if f2 != f and f2 != f1:
            vertices.append(DomainVertex(
                coord=grid.vertex_coord(vi, ni),
                f=float(f),
                neighb=(float(f2), float(f1)),
                cell=vi,
            ))

    return vertices


def detect_vertices(grid: HexGrid, identities: np.ndarray) -> List[DomainVertex]:
    """
    Find every candidate Dirichlet vertex on the grid, in cell order.

    Args:
        grid: HexGrid the identities are defined on
        identities: Identity field, one value per cell

    Returns:
        Unordered pool of candidate vertices, with duplicates
    """
    identities = np.asarray(identities)
    if len(identities) != grid.num:
        raise ValueError(
            f"Identity field has {len(identities)} values for {grid.num} cells"
        )

    vertices = []
    for vi in range(grid.num):
        vertices.extend(vertex_test(grid, identities, vi))

    logger.info("Dirichlet vertices detected", candidates=len(vertices),
                boundary=sum(1 for v in vertices if v.on_boundary))
    return vertices
