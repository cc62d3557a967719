"""
Region classification over scalar fields on a hex grid.

This module handles:
- Contour extraction, the cells along the edge of each above-threshold region
- Dirichlet regions, labelling each cell with the field that dominates it
"""

import numpy as np
from typing import List, Sequence, Set
import structlog

from .hex_grid import HexGrid

logger = structlog.get_logger()


def _as_field_array(grid: HexGrid, fields: Sequence[Sequence[float]]) -> np.ndarray:
    if len(fields) == 0:
        raise ValueError("At least one field is required")
    arr = np.asarray(fields, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != grid.num:
        raise ValueError(
            f"Each field must hold one value per cell ({grid.num}), got shape {arr.shape}"
        )
    return arr


def normalise_fields(grid: HexGrid, fields: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Rescale all fields to [0, 1] using one global range.

    The min and max are taken over the non-boundary cells of every field, so
    boundary cells may fall outside [0, 1]. A constant field rescales to zeros.
    """
    arr = _as_field_array(grid, fields)
    interior = grid.boundary_flags == 0
    if not np.any(interior):
        interior = np.ones(grid.num, dtype=bool)

    minf = arr[:, interior].min()
    maxf = arr[:, interior].max()
    if maxf == minf:
        logger.warning("Fields are constant over the grid interior", value=float(minf))
        return np.zeros_like(arr)

    return (arr - minf) / (maxf - minf)


def extract_contours(grid: HexGrid, fields: Sequence[Sequence[float]],
                     threshold: float) -> List[Set[int]]:
    """
    Obtain the cells on the contour of each field where ``threshold`` is crossed.

    Interior cells are included only if they are above threshold and have at
    least one neighbour below it. Boundary cells are included whenever they
    are above threshold.

    Args:
        grid: HexGrid the fields are defined on
        fields: One or more scalar fields, each with one value per cell
        threshold: Threshold on the rescaled [0, 1] values

    Returns:
        One set of cell indices per field
    """
    norm_f = normalise_fields(grid, fields)
    above = norm_f > threshold
    below = norm_f < threshold

    # below-threshold flag of each neighbour; absent neighbours count as not below
    present = grid.neighbours != -1
    safe_nb = np.where(present, grid.neighbours, 0)
    boundary = grid.boundary_flags.astype(bool)

    contours = []
    for i in range(len(norm_f)):
        nb_below = np.any(below[i][safe_nb] & present, axis=1)
        selected = above[i] & (boundary | nb_below)
        contours.append(set(int(c) for c in np.flatnonzero(selected)))

    logger.info("Contours extracted", fields=len(norm_f), threshold=threshold,
                sizes=[len(c) for c in contours])
    return contours


def dominant_identity(fields: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Mark each cell with the index of the field that is largest there.

    The index is scaled to ``index / len(fields)``. Ties go to the lowest
    index, so a cell where every field is equal gets identity 0.0.

    Args:
        fields: N scalar fields of equal length

    Returns:
        Identity field, one float in [0, 1) per cell
    """
    if len(fields) == 0:
        raise ValueError("At least one field is required")
    arr = np.asarray(fields, dtype=np.float64)
    if arr.ndim != 2:
        raise ValueError("Fields must all have the same length")

    n_fields = arr.shape[0]
    # argmax returns the first maximum, matching a strict > scan
    winners = np.argmax(arr, axis=0)
    identities = np.arange(n_fields, dtype=np.float64) / n_fields
    return identities[winners]

