"""
Edge walking between two Dirichlet domains.

An edge is the run of hex edges separating two domains, from one Dirichlet
vertex to the next. The walker follows it one hex edge at a time, keeping the
first domain's cells on its left, until a third identity or the grid edge is
reached.
"""

import numpy as np
from typing import List, Optional, Tuple
from dataclasses import dataclass
import structlog

from .hex_grid import Coord, HexGrid, NEIGHBOUR_NAMES, VERTEX_NAMES
from .dirichlet_vertex import DomainVertex, NO_NEIGHBOUR
from .exceptions import StructuralInconsistency, WalkBudgetExceeded

logger = structlog.get_logger()


@dataclass(frozen=True)
class WalkResult:
    """Outcome of one edge walk."""
    start: Coord
    end: Coord
    path: Tuple[Coord, ...]  # vertices after start; the last one is end
    edgedoms: Tuple[float, float]
    next_domain: float  # identity found at the end, NO_NEIGHBOUR at the grid edge
    next_cell: Optional[int] = None
    next_cell_coord: Optional[Coord] = None
    steps: int = 0

    @property
    def reached_grid_edge(self) -> bool:
        return self.next_domain == NO_NEIGHBOUR


class EdgeWalker:
    """Walks edges between domains of an identity field on a HexGrid."""

    def __init__(self, grid: HexGrid, identities: np.ndarray,
                 max_steps: Optional[int] = None):
        """
        Initialize the walker.

        Args:
            grid: HexGrid the identities are defined on
            identities: Identity field, one value per cell
            max_steps: Hex edges a single walk may cover. Defaults to six
                per cell, which no simple edge can exceed.
        """
        self.grid = grid
        self.identities = np.asarray(identities)
        if len(self.identities) != grid.num:
            raise ValueError(
                f"Identity field has {len(self.identities)} values for {grid.num} cells"
            )
        self.max_steps = max_steps if max_steps is not None else 6 * grid.num

    def cells_at_vertex(self, vertex: DomainVertex) -> List[int]:
        """
        Cells whose corner is at the vertex coordinate.

        The owning cell comes first, then those of its neighbours whose
        centre lies one long radius from the vertex.
        """
        grid = self.grid
        vx, vy = vertex.coord
        lr = grid.long_radius
        cells = [vertex.cell]
        for direction in range(6):
            if not grid.has_neighbour(vertex.cell, direction):
                continue
            nb = grid.neighbour(vertex.cell, direction)
            cx, cy = grid.centre(nb)
            distance = np.hypot(cx - vx, cy - vy)
            if abs(distance - lr) < grid.vertex_tolerance:
                cells.append(nb)
        return cells

    def _find_start(self, vertex: DomainVertex, edgedoms: Tuple[float, float],
                    hint: Optional[Coord]) -> Tuple[int, int]:
        """
        Find the pair of cells straddling the first hex edge of the walk.

        Returns:
            (left cell, direction from left cell to right cell)
        """
        grid = self.grid
        f = self.identities
        first, second = edgedoms

        for left in self.cells_at_vertex(vertex):
            if f[left] != first:
                continue
            i = grid.vertex_direction(left, vertex.coord)
            if i is None:
                raise StructuralInconsistency(
                    f"Cell {left} does not have a corner at {vertex.coord}"
                )
            # Going anticlockwise, vertex i is followed by the edge shared
            # with neighbour i+1.
            right_dir = (i + 1) % 6
            if not grid.has_neighbour(left, right_dir):
                continue
            right = grid.neighbour(left, right_dir)
            if f[right] != second:
                continue
            if hint is not None and not grid.compare_coord(right, hint):
                logger.debug("Putative neighbour cell not at hinted location",
                             cell=right, hint=hint)
                continue

            logger.debug("Walk start found", vertex=vertex.coord,
                         vertex_dirn=VERTEX_NAMES[i], left=left, right=right,
                         right_dirn=NEIGHBOUR_NAMES[right_dir])
            return left, right_dir

        raise StructuralInconsistency(
            f"Failed to find the cell with identity {second} associated with "
            f"the initial vertex at {vertex.coord} (edgedoms {edgedoms})"
        )

    def walk(self, vertex: DomainVertex, edgedoms: Tuple[float, float],
             hint: Optional[Coord] = None) -> WalkResult:
        """
        Walk the edge between domains ``edgedoms`` starting at ``vertex``.

        Args:
            vertex: Dirichlet vertex the edge starts at
            edgedoms: (left identity, right identity) of the edge to trace
            hint: Centre of the cell expected on the right at the start.
                Breaks ties when two same-identity cells adjoin the vertex.

        Returns:
            WalkResult with the path to the vertex where the edge ends

        Raises:
            StructuralInconsistency: the edge cannot be found or followed
            WalkBudgetExceeded: the walk exceeded ``max_steps``
        """
        grid = self.grid
        f = self.identities
        first, second = edgedoms

        logger.debug("Walk called", start=vertex.coord, edgedoms=edgedoms, hint=hint)

        left, right_dir = self._find_start(vertex, edgedoms, hint)
        path = []

        for step in range(1, self.max_steps + 1):
            right = grid.neighbour(left, right_dir)
            # The current hex edge ends at the vertex shared with the cell ahead
            ahead_dir = (right_dir + 1) % 6
            coord = grid.vertex_coord(left, right_dir)
            path.append(coord)

            if not grid.has_neighbour(left, ahead_dir):
                logger.debug("Edge ends at the grid boundary", end=coord, steps=step)
                return WalkResult(
                    start=vertex.coord, end=coord, path=tuple(path),
                    edgedoms=(float(first), float(second)),
                    next_domain=NO_NEIGHBOUR, steps=step,
                )

            ahead = grid.neighbour(left, ahead_dir)
            if f[ahead] == second:
                right_dir = ahead_dir
            elif f[ahead] == first:
                # The edge turns; carry on round the cell ahead. Seen from
                # there, the right-hand cell is one step clockwise.
                pivot_dir = (right_dir - 1) % 6
                if (not grid.has_neighbour(ahead, pivot_dir)
                        or grid.neighbour(ahead, pivot_dir) != right):
                    raise StructuralInconsistency(
                        f"Cell {right} is not in direction "
                        f"{NEIGHBOUR_NAMES[pivot_dir]} of cell {ahead}"
                    )
                left, right_dir = ahead, pivot_dir
            else:
                next_domain = float(f[ahead])
                logger.debug("Edge ends at a third domain", end=coord,
                             next_domain=next_domain, steps=step)
                return WalkResult(
                    start=vertex.coord, end=coord, path=tuple(path),
                    edgedoms=(float(first), float(second)),
                    next_domain=next_domain, next_cell=ahead,
                    next_cell_coord=grid.centre(ahead), steps=step,
                )

        raise WalkBudgetExceeded(self.max_steps, edgedoms)

    def walk_to_next(self, vertex: DomainVertex,
                     hint: Optional[Coord] = None) -> WalkResult:
        """Walk from ``vertex`` to the next vertex of its own domain."""
        return self.walk(vertex, (vertex.f, vertex.neighb[0]), hint)

    def walk_to_neighbour(self, vertex: DomainVertex,
                          hint: Optional[Coord] = None) -> Optional[WalkResult]:
        """
        Walk out along the edge between the two other domains at ``vertex``.

        Boundary vertices have no such edge; None is returned for them.
        """
        if NO_NEIGHBOUR in vertex.neighb:
            return None
        return self.walk(vertex, vertex.neighb, hint)
