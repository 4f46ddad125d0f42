"""
3x3 spatial partition and empty-region selection.

Visual mass of a cell is the mean of 0.6 * (1 - L/255) + 0.4 * G over its
pixels: dark ink and edge activity both count as occupied. The last row and
column absorb the remainder when the size is not a multiple of the grid.
"""

from __future__ import annotations

import logging

import numpy as np

from collage_shared.protocol import RegionLabel

logger = logging.getLogger(__name__)

GRID_ROWS = 3
GRID_COLS = 3

INK_WEIGHT = 0.6
EDGE_WEIGHT = 0.4

CELL_NAMES: tuple[tuple[RegionLabel, ...], ...] = (
    (RegionLabel.TOP_LEFT, RegionLabel.TOP_CENTER, RegionLabel.TOP_RIGHT),
    (RegionLabel.MIDDLE_LEFT, RegionLabel.CENTER, RegionLabel.MIDDLE_RIGHT),
    (RegionLabel.BOTTOM_LEFT, RegionLabel.BOTTOM_CENTER, RegionLabel.BOTTOM_RIGHT),
)


def cell_name(row: int, col: int) -> RegionLabel:
    """Region label for a grid cell; indices are clamped to [0, 2]."""
    r = max(0, min(2, row))
    c = max(0, min(2, col))
    return CELL_NAMES[r][c]


def grid_occupancy(
    gray: np.ndarray,
    gradient: np.ndarray,
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
) -> np.ndarray:
    """
    Per-cell visual mass.

    Returns float64 array of shape (rows, cols). Cells with no pixels (only
    possible when the image is smaller than the grid) have mass 0.
    """
    h, w = gray.shape
    cell_w = w // cols
    cell_h = h // rows

    mass_field = INK_WEIGHT * (1.0 - gray.astype(np.float64) / 255.0) \
        + EDGE_WEIGHT * gradient.astype(np.float64)

    masses = np.zeros((rows, cols), dtype=np.float64)
    for r in range(rows):
        y0 = r * cell_h
        y1 = h if r == rows - 1 else y0 + cell_h
        for c in range(cols):
            x0 = c * cell_w
            x1 = w if c == cols - 1 else x0 + cell_w
            cell = mass_field[y0:y1, x0:x1]
            masses[r, c] = cell.sum() / max(1, cell.size)
    return masses


def emptiest_cells(masses: np.ndarray, k: int = 3) -> list[tuple[int, int, float]]:
    """
    The k lowest-mass cells as (row, col, mass), ascending.

    Equal masses keep row-major order.
    """
    flat = [
        (i, j, float(masses[i, j]))
        for i in range(masses.shape[0])
        for j in range(masses.shape[1])
    ]
    flat.sort(key=lambda cell: cell[2])
    return flat[:k]


def select_region(
    masses: np.ndarray,
    rng: np.random.Generator,
    k: int = 3,
) -> RegionLabel:
    """Pick uniformly at random among the k emptiest cells."""
    candidates = emptiest_cells(masses, k)
    row, col, mass = candidates[int(rng.integers(len(candidates)))]
    logger.debug("Selected cell (%d, %d) with mass %.3f from %d candidates",
                 row, col, mass, len(candidates))
    return cell_name(row, col)
