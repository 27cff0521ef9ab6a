"""
Multiple rules, async
---------------------

Combine four rule sets and run the engine from a coroutine, here with trio.
Each rule set counts neighbors with its own mask; a cell is alive in the next
generation if any enabled rule set says so. The result is compared against
the numpy reference implementation.
"""

# run_example = true

import numpy as np
import trio

from rulegrid import SimulationEngine, RuleSet, RuleData
from rulegrid.patterns import CONWAY, moore_mask, random_grid
from rulegrid.reference import run_reference


grid_size = 100
neighborhood_size = 5


def cross_mask(size):
    mask = np.zeros((size, size), np.uint8)
    mask[size // 2, :] = mask[:, size // 2] = 1
    return mask.reshape(-1)


def diagonal_mask(size):
    mask = np.eye(size, dtype=np.uint8) | np.fliplr(np.eye(size, dtype=np.uint8))
    return mask.reshape(-1)


rules = RuleData.from_rules(
    neighborhood_size,
    (moore_mask(neighborhood_size), CONWAY),
    (cross_mask(neighborhood_size), RuleSet(3, 4, 4, 4, True)),
    (diagonal_mask(neighborhood_size), RuleSet(2, 2, 5, 6, True)),
    (np.ones(neighborhood_size**2, np.uint8), RuleSet(0, 0, 20, 24, False)),
)


async def main():
    grid = random_grid(grid_size, 0.2, seed=0)
    steps = 10

    engine = SimulationEngine(grid_size, neighborhood_size)
    if not await engine.initialize():
        raise SystemExit("No GPU available")
    try:
        await engine.reset(grid)
        for _ in range(steps):
            await engine.step(rules)
        result = await engine.read()
    finally:
        engine.destroy()

    expected = run_reference(grid, rules, steps)
    print(f"{int(result.sum())} cells alive after {steps} steps")
    print("matches reference:", bool(np.all(result == expected)))


trio.run(main)
