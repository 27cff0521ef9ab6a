"""
Blinker
-------

The smallest possible example: a blinker on a 5x5 grid, printed to the terminal.
"""

# run_example = true

from rulegrid import SimulationEngine, RuleData
from rulegrid.patterns import CONWAY, empty_grid, moore_mask


grid_size = 5
rules = RuleData.from_rules(3, (moore_mask(3), CONWAY))

grid = empty_grid(grid_size).reshape(grid_size, grid_size)
grid[2, 1:4] = 1


def show(grid):
    for row in grid.reshape(grid_size, grid_size):
        print(" ".join("#" if cell else "." for cell in row))
    print()


with SimulationEngine(grid_size, 3) as engine:
    if not engine.is_ready:
        raise SystemExit("No GPU available")
    engine.reset_sync(grid)
    show(engine.read_sync())
    for _ in range(4):
        engine.step_sync(rules)
        show(engine.read_sync())
