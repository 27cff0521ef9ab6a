"""
Helpers to create grids and neighborhood masks.
"""

import numpy as np

from .rules import RuleSet


__all__ = [
    "DEFAULT_GRID_SIZE",
    "DEFAULT_NEIGHBORHOOD_SIZE",
    "DEFAULT_DENSITY",
    "CONWAY",
    "empty_grid",
    "random_grid",
    "empty_mask",
    "moore_mask",
]


DEFAULT_GRID_SIZE = 200
DEFAULT_NEIGHBORHOOD_SIZE = 15
DEFAULT_DENSITY = 0.1

# Survive on 2-3 neighbors, born on exactly 3. Use with a ``moore_mask()``.
CONWAY = RuleSet(lower_stable=2, upper_stable=3, lower_born=3, upper_born=3, enabled=True)


def empty_grid(grid_size: int) -> np.ndarray:
    """A flat uint8 grid with all cells dead."""
    return np.zeros(grid_size * grid_size, np.uint8)


def random_grid(grid_size: int, density: float = DEFAULT_DENSITY, seed=None) -> np.ndarray:
    """A flat uint8 grid where each cell is alive with the given probability."""
    if not 0 <= density <= 1:
        raise ValueError(f"density must be between 0 and 1, got {density}.")
    rng = np.random.default_rng(seed)
    return (rng.random(grid_size * grid_size) < density).astype(np.uint8)


def empty_mask(neighborhood_size: int) -> np.ndarray:
    """A flat uint8 mask that selects no neighbors."""
    return np.zeros(neighborhood_size * neighborhood_size, np.uint8)


def moore_mask(neighborhood_size: int = 3) -> np.ndarray:
    """A flat uint8 mask that selects the 8 cells directly around the center.

    For larger neighborhoods the outer cells are left unselected, so that
    Conway's rules behave the same at any mask size.
    """
    if neighborhood_size < 3 or neighborhood_size % 2 == 0:
        raise ValueError(
            f"neighborhood_size must be odd and at least 3, got {neighborhood_size}."
        )
    mask = np.zeros((neighborhood_size, neighborhood_size), np.uint8)
    center = neighborhood_size // 2
    mask[center - 1 : center + 2, center - 1 : center + 2] = 1
    mask[center, center] = 0
    return mask.reshape(-1)
