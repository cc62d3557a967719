"""Shared grids and identity fields for the domain analysis tests."""

import numpy as np
import pytest

from py_hexdom.core.hex_grid import GridConfig, generate_hex_grid

LEFT = 0.0
RIGHT = 1.0 / 3.0
BLOB = 2.0 / 3.0

SQRT3 = np.sqrt(3.0)
HEX_AREA = SQRT3 / 2.0  # area of one hex with d=1


def split_field(grid):
    """LEFT for cells with x < 0, RIGHT otherwise."""
    return np.where(grid.points[:, 0] < -1e-9, LEFT, RIGHT)


def blob_cells(grid, centre, radius):
    offsets = grid.points - np.asarray(centre)
    return np.flatnonzero(np.hypot(offsets[:, 0], offsets[:, 1]) <= radius)


@pytest.fixture
def grid():
    """Hexagon-shaped grid, 8 rings around the origin, unit spacing."""
    return generate_hex_grid(GridConfig(d=1.0, shape="hexagon", rings=8))


@pytest.fixture
def split_identities(grid):
    return split_field(grid)


@pytest.fixture
def blob_identities(grid):
    """A 19-cell blob at the origin, straddling the LEFT/RIGHT split.

    The blob meets both halves, so its outline has one Dirichlet vertex at
    the top, (0, sqrt(3) + 1/sqrt(3)), and one at the bottom.
    """
    identities = split_field(grid)
    identities[blob_cells(grid, (0.0, 0.0), 2.5)] = BLOB
    return identities


@pytest.fixture
def twin_blob_identities(grid):
    """Two separate 7-cell blobs with the same identity, one above the other."""
    identities = split_field(grid)
    for cy in (4 * SQRT3 / 2, -4 * SQRT3 / 2):
        identities[blob_cells(grid, (0.0, cy), 1.1)] = BLOB
    return identities
