"""
A numpy implementation of the generation step, for checking the GPU results.

This follows the kernel exactly (toroidal wrap, center excluded, additive
rule sets), but runs on the CPU and is much slower for large grids.
"""

import numpy as np

from .rules import RuleData


__all__ = ["count_neighbors", "step_reference", "run_reference"]


def _as_square(grid):
    grid = np.asarray(grid)
    if grid.ndim == 2:
        if grid.shape[0] != grid.shape[1]:
            raise ValueError(f"Grid must be square, got shape {grid.shape}.")
        return grid
    side = int(round(grid.size**0.5))
    if side * side != grid.size:
        raise ValueError(f"Flat grid of size {grid.size} is not square.")
    return grid.reshape(side, side)


def count_neighbors(grid, mask) -> np.ndarray:
    """Count, for each cell, the alive neighbors at the offsets marked in the mask.

    Both ``grid`` and ``mask`` are square (or flat square) arrays. The grid wraps
    around at the edges. The center of the mask is never counted.
    """
    alive = (_as_square(grid) == 1).astype(np.int32)
    mask = _as_square(mask)
    radius = mask.shape[0] // 2
    counts = np.zeros_like(alive)
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if dx == 0 and dy == 0:
                continue
            if mask[dy + radius, dx + radius] != 1:
                continue
            # Bring the neighbor at (y + dy, x + dx) to (y, x)
            counts += np.roll(alive, (-dy, -dx), axis=(0, 1))
    return counts


def step_reference(grid, rule_data: RuleData) -> np.ndarray:
    """Compute the next generation. Returns a uint8 array with the same shape as ``grid``."""
    grid = np.asarray(grid)
    if not rule_data.any_enabled:
        return grid.astype(np.uint8)

    square = _as_square(grid)
    alive = square == 1
    next_alive = np.zeros(square.shape, bool)
    for mask, rule_set in zip(rule_data.masks, rule_data.rule_sets):
        if not rule_set.enabled:
            continue
        counts = count_neighbors(square, mask)
        survive = (counts >= rule_set.lower_stable) & (counts <= rule_set.upper_stable)
        born = (counts >= rule_set.lower_born) & (counts <= rule_set.upper_born)
        next_alive |= np.where(alive, survive, born)

    return next_alive.astype(np.uint8).reshape(grid.shape)


def run_reference(grid, rule_data: RuleData, n: int) -> np.ndarray:
    """Apply ``step_reference()`` n times."""
    grid = np.asarray(grid).astype(np.uint8)
    for _ in range(n):
        grid = step_reference(grid, rule_data)
    return grid
