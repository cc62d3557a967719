"""Tests for Dirichlet vertex detection."""

import pytest
import numpy as np
from py_hexdom.core.regions import dominant_identity
from py_hexdom.core.dirichlet_vertex import (
    DomainVertex, NO_NEIGHBOUR, vertex_test, detect_vertices,
)
from py_hexdom.core.hex_grid import NEIGHBOUR_E, NEIGHBOUR_NE

from conftest import LEFT, RIGHT, BLOB


def sector_fields(grid, apex):
    """Three fields, each 1 in one 120 degree sector around ``apex``, else 0."""
    offsets = grid.points - np.asarray(apex)
    angles = np.degrees(np.arctan2(offsets[:, 1], offsets[:, 0])) % 360.0
    sector = np.where((angles >= 151.0) & (angles < 271.0), 0,
                      np.where((angles >= 31.0) & (angles < 151.0), 2, 1))
    return [(sector == k).astype(float) for k in range(3)]


class TestDomainVertex:
    """Test the vertex record."""

    def test_equal_neighbours_rejected(self):
        with pytest.raises(ValueError):
            DomainVertex(coord=(0.0, 0.0), f=0.0, neighb=(0.5, 0.5), cell=0)

    def test_sentinel_pair_allowed(self):
        v = DomainVertex(coord=(0.0, 0.0), f=0.0, neighb=(NO_NEIGHBOUR, NO_NEIGHBOUR), cell=0)
        assert v.neighb == (NO_NEIGHBOUR, NO_NEIGHBOUR)

    def test_matching_ignores_owner_cell(self):
        a = DomainVertex(coord=(1.0, 2.0), f=0.0, neighb=(0.5, 0.25), cell=3)
        b = DomainVertex(coord=(1.0 + 1e-9, 2.0), f=0.0, neighb=(0.5, 0.25), cell=7)
        c = DomainVertex(coord=(1.0, 2.0), f=0.0, neighb=(0.25, 0.5), cell=3)
        assert a.matches(b, tolerance=1e-6)
        assert not a.matches(c, tolerance=1e-6)


class TestVertexDetection:
    """Test vertex detection over identity fields."""

    def test_uniform_field_has_no_vertices(self, grid):
        assert detect_vertices(grid, np.zeros(grid.num)) == []

    def test_three_regions_meet_at_known_point(self, grid):
        """dominant_identity then detection finds the vertex where the sectors meet."""
        centre = grid.find_cell(0.0, 0.0)
        apex = grid.vertex_coord(centre, 0)
        identities = dominant_identity(sector_fields(grid, apex))

        vertices = detect_vertices(grid, identities)
        internal = [v for v in vertices if not v.on_boundary]

        assert len(internal) == 3
        owners = {v.cell for v in internal}
        assert owners == {centre,
                          grid.neighbour(centre, NEIGHBOUR_E),
                          grid.neighbour(centre, NEIGHBOUR_NE)}

        all_ids = {0.0, 1 / 3, 2 / 3}
        for v in internal:
            np.testing.assert_allclose(v.coord, apex, atol=1e-9)
            assert v.f == identities[v.cell]
            assert set(v.neighb) == all_ids - {v.f}

    def test_owner_sees_neighbours_anticlockwise(self, grid):
        """neighb[1] is the neighbour before the vertex, neighb[0] the one after."""
        centre = grid.find_cell(0.0, 0.0)
        apex = grid.vertex_coord(centre, 0)
        identities = dominant_identity(sector_fields(grid, apex))

        found = vertex_test(grid, identities, centre)
        assert len(found) == 1
        v = found[0]
        assert v.neighb[1] == identities[grid.neighbour(centre, NEIGHBOUR_E)]
        assert v.neighb[0] == identities[grid.neighbour(centre, NEIGHBOUR_NE)]

    def test_two_region_split_has_only_boundary_vertices(self, grid, split_identities):
        vertices = detect_vertices(grid, split_identities)
        assert len(vertices) >= 2
        for v in vertices:
            assert v.on_boundary
            assert grid.is_boundary(v.cell)
            assert NO_NEIGHBOUR in v.neighb
            assert set(v.neighb) - {NO_NEIGHBOUR} == {LEFT, RIGHT} - {v.f}

    def test_boundary_vertex_lies_on_grid_edge(self, grid, split_identities):
        """The cell owning a boundary vertex has a missing neighbour next to it."""
        for v in detect_vertices(grid, split_identities):
            direction = grid.vertex_direction(v.cell, v.coord)
            assert direction is not None
            assert (not grid.has_neighbour(v.cell, direction)
                    or not grid.has_neighbour(v.cell, direction + 1))

    def test_blob_vertices(self, grid, blob_identities):
        """The blob meets both halves at one point above and one below."""
        internal = [v for v in detect_vertices(grid, blob_identities) if not v.on_boundary]
        top = 4 / np.sqrt(3)

        coords = sorted({(round(v.coord[0], 9), round(v.coord[1], 9)) for v in internal})
        np.testing.assert_allclose(coords, [(0.0, -top), (0.0, top)], atol=1e-9)

        blob_owned = [v for v in internal if v.f == BLOB]
        assert len(blob_owned) == 2
        for v in blob_owned:
            assert set(v.neighb) == {LEFT, RIGHT}

    def test_distinct_identity_thresholds(self, grid):
        """Interior hosts need three identities around them, boundary hosts two."""
        rng = np.random.default_rng(7)
        identities = rng.integers(0, 4, grid.num) / 4

        vertices = detect_vertices(grid, identities)
        assert len(vertices) > 0
        for v in vertices:
            ids = {identities[v.cell]}
            ids.update(identities[n] for n in grid.present_neighbours(v.cell))
            if grid.is_boundary(v.cell):
                assert len(ids) >= 2
            else:
                assert len(ids) >= 3
                assert not v.on_boundary

    def test_length_mismatch_rejected(self, grid):
        with pytest.raises(ValueError):
            detect_vertices(grid, np.zeros(grid.num + 1))
