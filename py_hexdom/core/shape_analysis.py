"""
Dirichlet domain assembly.

Stitches candidate Dirichlet vertices into closed domain outlines by walking
from vertex to vertex along domain edges. Only domains that do not touch the
grid boundary close; the rest are reported as failures.
"""

import numpy as np
from typing import Dict, Iterator, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from enum import Enum
import structlog

from .hex_grid import Coord, HexGrid, coords_match
from .dirichlet_vertex import DomainVertex, detect_vertices
from .edge_walker import EdgeWalker, WalkResult
from .exceptions import StructuralInconsistency, UnmatchedVertex, WalkBudgetExceeded

logger = structlog.get_logger()


class DomainState(Enum):
    """States of a single domain assembly."""
    START = "start"
    WALKING = "walking"
    CLOSED = "closed"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why a domain assembly failed."""
    UNMATCHED_VERTEX = "unmatched_vertex"
    BOUNDARY_TERMINATION = "boundary_termination"
    STRUCTURAL_INCONSISTENCY = "structural_inconsistency"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass
class DomainAnalysisOptions:
    """Options for domain analysis."""
    max_walk_steps: Optional[int] = None  # per edge walk, default six per cell
    max_domain_vertices: Optional[int] = None  # per domain, default pool size
    coord_tolerance: float = 1e-3  # fraction of the hex spacing
    trace_neighbour_paths: bool = False

    @classmethod
    def from_settings(cls, settings=None) -> "DomainAnalysisOptions":
        if settings is None:
            from ..config import settings
        return cls(
            max_walk_steps=settings.max_walk_steps,
            max_domain_vertices=settings.max_domain_vertices,
            coord_tolerance=settings.coord_tolerance,
            trace_neighbour_paths=settings.trace_neighbour_paths,
        )


def compute_polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates
    """
    if len(vertices) < 3:
        return np.mean(vertices, axis=0)

    x = vertices[:, 0]
    y = vertices[:, 1]
    xn = np.roll(x, -1)
    yn = np.roll(y, -1)
    a = x * yn - xn * y
    area = a.sum() * 0.5

    if abs(area) < 1e-12:
        return np.mean(vertices, axis=0)

    cx = ((x + xn) * a).sum() / (6.0 * area)
    cy = ((y + yn) * a).sum() / (6.0 * area)
    return np.array([cx, cy])


def polygon_signed_area(vertices: np.ndarray) -> float:
    """Shoelace area, positive for anticlockwise vertex order."""
    if len(vertices) < 3:
        return 0.0
    x = vertices[:, 0]
    y = vertices[:, 1]
    return float(0.5 * (x * np.roll(y, -1) - np.roll(x, -1) * y).sum())


@dataclass
class Domain:
    """A closed Dirichlet domain.

    ``paths_to_next[i]`` runs from ``vertices[i]`` to ``vertices[i + 1]``;
    the last path returns to ``vertices[0]``.
    """
    f: float
    vertices: List[DomainVertex]
    paths_to_next: List[Tuple[Coord, ...]]
    paths_to_neighbour: List[Optional[Tuple[Coord, ...]]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[DomainVertex]:
        return iter(self.vertices)

    def perimeter(self) -> np.ndarray:
        """Outline coordinates, anticlockwise, without repeating the first point."""
        coords = [self.vertices[0].coord]
        for path in self.paths_to_next:
            coords.extend(path)
        return np.array(coords[:-1])

    @property
    def area(self) -> float:
        return abs(polygon_signed_area(self.perimeter()))

    @property
    def centroid(self) -> np.ndarray:
        return compute_polygon_centroid(self.perimeter())

    def vertex_coords(self) -> List[Coord]:
        return [v.coord for v in self.vertices]


@dataclass
class DomainFailure:
    """A domain assembly that did not close."""
    first_vertex: DomainVertex
    reason: FailureReason
    vertices_visited: int
    message: str = ""

    @property
    def f(self) -> float:
        return self.first_vertex.f


@dataclass
class DomainAnalysis:
    """Result of a full domain analysis run."""
    domains: List[Domain]
    failures: List[DomainFailure]
    vertices: List[DomainVertex]
    skipped_boundary: int = 0

    def failure_counts(self) -> Dict[FailureReason, int]:
        counts: Dict[FailureReason, int] = {}
        for failure in self.failures:
            counts[failure.reason] = counts.get(failure.reason, 0) + 1
        return counts


class ShapeAnalysis:
    """Finds closed Dirichlet domains in an identity field on a HexGrid."""

    def __init__(self, grid: HexGrid, identities: Sequence[float],
                 options: Optional[DomainAnalysisOptions] = None):
        """
        Initialize shape analysis.

        Args:
            grid: HexGrid the identities are defined on
            identities: Identity field, one value per cell (see dominant_identity)
            options: Analysis options
        """
        self.grid = grid
        self.identities = np.asarray(identities, dtype=np.float64)
        self.options = options or DomainAnalysisOptions()
        self.walker = EdgeWalker(grid, self.identities, self.options.max_walk_steps)
        self.tolerance = self.options.coord_tolerance * grid.d

    def analyse(self, vertices: Optional[List[DomainVertex]] = None) -> DomainAnalysis:
        """
        Discover all closed domains.

        Args:
            vertices: Candidate vertex pool. Detected from the identity
                field when not given.

        Returns:
            DomainAnalysis with closed domains and failed assemblies
        """
        if vertices is None:
            vertices = detect_vertices(self.grid, self.identities)

        # Closed flags belong to this run only, the pool itself is never changed
        closed = np.zeros(len(vertices), dtype=bool)
        # Vertices used by assemblies that ran into the grid boundary
        boundary_hit = np.zeros(len(vertices), dtype=bool)
        domains = []
        failures = []
        skipped_boundary = 0

        for index, vertex in enumerate(vertices):
            if closed[index]:
                continue
            if self.grid.is_boundary(vertex.cell):
                logger.debug("Not processing vertex on a boundary hex", coord=vertex.coord)
                closed[index] = True
                skipped_boundary += 1
                continue

            outcome = self._assemble(index, vertices, closed, boundary_hit)
            if isinstance(outcome, Domain):
                domains.append(outcome)
            else:
                failures.append(outcome)

        logger.info("Domain analysis completed", candidates=len(vertices),
                    domains=len(domains), failures=len(failures),
                    skipped_boundary=skipped_boundary)

        return DomainAnalysis(
            domains=domains,
            failures=failures,
            vertices=vertices,
            skipped_boundary=skipped_boundary,
        )

    def _assemble(self, start: int, vertices: List[DomainVertex],
                  closed: np.ndarray, boundary_hit: np.ndarray):
        """
        Walk round one domain starting from ``vertices[start]``.

        Returns:
            Domain on success, DomainFailure otherwise
        """
        first_vtx = vertices[start]
        max_vertices = self.options.max_domain_vertices
        if max_vertices is None:
            max_vertices = len(vertices)

        state = DomainState.START
        current = start
        hint: Optional[Coord] = None
        visited: List[int] = []
        domain_vertices: List[DomainVertex] = []
        paths: List[Tuple[Coord, ...]] = []
        failure: Optional[DomainFailure] = None

        while True:
            if state is DomainState.START:
                logger.debug("Mark first vertex", coord=first_vtx.coord,
                             f=first_vtx.f, neighb=first_vtx.neighb)
                closed[current] = True
                visited.append(current)
                domain_vertices.append(first_vtx)
                state = DomainState.WALKING

            elif state is DomainState.WALKING:
                if len(domain_vertices) > max_vertices:
                    failure = self._failure(first_vtx, FailureReason.BUDGET_EXCEEDED,
                                            domain_vertices,
                                            f"Domain exceeded {max_vertices} vertices")
                    state = DomainState.FAILED
                    continue

                vertex = vertices[current]
                try:
                    result = self.walker.walk_to_next(vertex, hint)
                except WalkBudgetExceeded as e:
                    failure = self._failure(first_vtx, FailureReason.BUDGET_EXCEEDED,
                                            domain_vertices, str(e))
                    state = DomainState.FAILED
                    continue
                except StructuralInconsistency as e:
                    failure = self._failure(first_vtx, FailureReason.STRUCTURAL_INCONSISTENCY,
                                            domain_vertices, str(e))
                    state = DomainState.FAILED
                    continue

                paths.append(result.path)

                if coords_match(result.end, first_vtx.coord, self.tolerance):
                    logger.debug("Walk to next arrived back at the first vertex",
                                 f=first_vtx.f, vertices=len(domain_vertices))
                    state = DomainState.CLOSED
                    continue

                expected = self._expected_vertex(vertex, result)
                match = self._match_next(expected, vertices, closed)
                if match is None:
                    if self._ends_on_boundary(expected, result, vertices, boundary_hit):
                        failure = self._failure(first_vtx, FailureReason.BOUNDARY_TERMINATION,
                                                domain_vertices,
                                                "Walk ended where the domain meets the grid boundary")
                    else:
                        e = UnmatchedVertex(expected.coord, expected.f, expected.neighb)
                        failure = self._failure(first_vtx, FailureReason.UNMATCHED_VERTEX,
                                                domain_vertices, str(e))
                    state = DomainState.FAILED
                    continue

                closed[match] = True
                visited.append(match)
                domain_vertices.append(vertices[match])
                current = match
                hint = result.next_cell_coord

                if vertices[match].on_boundary or self.grid.is_boundary(vertices[match].cell):
                    failure = self._failure(first_vtx, FailureReason.BOUNDARY_TERMINATION,
                                            domain_vertices,
                                            "Arrived at a boundary vertex")
                    state = DomainState.FAILED

            elif state is DomainState.CLOSED:
                domain = Domain(f=first_vtx.f, vertices=domain_vertices,
                                paths_to_next=paths)
                if self.options.trace_neighbour_paths:
                    domain.paths_to_neighbour = self._neighbour_paths(domain_vertices)
                logger.info("Domain closed", f=domain.f, vertices=len(domain),
                            area=domain.area)
                return domain

            else:
                if failure.reason is FailureReason.BOUNDARY_TERMINATION:
                    boundary_hit[visited] = True
                return failure

    @staticmethod
    def _expected_vertex(vertex: DomainVertex, result: WalkResult) -> DomainVertex:
        """
        The vertex record a walk from ``vertex`` should arrive at.

        It has the same domain identity, has the edge just walked as its
        incoming edge and the domain found at the end as its outgoing one.
        """
        return DomainVertex(coord=result.end, f=vertex.f,
                            neighb=(result.next_domain, vertex.neighb[0]),
                            cell=vertex.cell)

    def _match_next(self, expected: DomainVertex, vertices: List[DomainVertex],
                    closed: np.ndarray) -> Optional[int]:
        """Find the unclosed pool vertex matching ``expected``."""
        for index, candidate in enumerate(vertices):
            if not closed[index] and candidate.matches(expected, self.tolerance):
                return index
        return None

    def _ends_on_boundary(self, expected: DomainVertex, result: WalkResult,
                          vertices: List[DomainVertex], boundary_hit: np.ndarray) -> bool:
        """
        Whether an unmatched walk ended where its domain meets the grid boundary.

        True if the walk reached the grid edge, or if the vertex it arrived
        at lies on the boundary or was used by an assembly that ended there.
        """
        if result.reached_grid_edge:
            return True
        for index, candidate in enumerate(vertices):
            if not candidate.matches(expected, self.tolerance):
                continue
            if (candidate.on_boundary or self.grid.is_boundary(candidate.cell)
                    or boundary_hit[index]):
                return True
        return False

    def _neighbour_paths(self, domain_vertices: List[DomainVertex]
                         ) -> List[Optional[Tuple[Coord, ...]]]:
        paths = []
        for vertex in domain_vertices:
            try:
                result = self.walker.walk_to_neighbour(vertex)
            except StructuralInconsistency as e:
                logger.warning("Walk to neighbour failed", coord=vertex.coord, error=str(e))
                result = None
            paths.append(result.path if result is not None else None)
        return paths

    def _failure(self, first_vtx: DomainVertex, reason: FailureReason,
                 domain_vertices: List[DomainVertex], message: str) -> DomainFailure:
        if reason is FailureReason.BOUNDARY_TERMINATION:
            logger.debug("Domain touches the grid boundary", f=first_vtx.f,
                         first=first_vtx.coord, vertices=len(domain_vertices))
        else:
            logger.warning("Failed to find the outline of a domain", f=first_vtx.f,
                           first=first_vtx.coord, reason=reason.value, error=message)
        return DomainFailure(
            first_vertex=first_vtx,
            reason=reason,
            vertices_visited=len(domain_vertices),
            message=message,
        )


def analyse_domains(grid: HexGrid, identities: Sequence[float],
                    options: Optional[DomainAnalysisOptions] = None,
                    vertices: Optional[List[DomainVertex]] = None) -> DomainAnalysis:
    """Run a full domain analysis, keeping failures for diagnostics."""
    return ShapeAnalysis(grid, identities, options).analyse(vertices)


def find_domains(grid: HexGrid, identities: Sequence[float],
                 options: Optional[DomainAnalysisOptions] = None,
                 vertices: Optional[List[DomainVertex]] = None) -> List[Domain]:
    """
    Determine the closed Dirichlet domains of an identity field.

    Domains touching the grid boundary, and any whose outline cannot be
    walked, are left out of the result.

    Args:
        grid: HexGrid the identities are defined on
        identities: Identity field, one value per cell
        options: Analysis options
        vertices: Candidate vertex pool, detected when not given

    Returns:
        Closed domains, each an anticlockwise sequence of vertices
    """
    return analyse_domains(grid, identities, options, vertices).domains
