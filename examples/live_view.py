"""
Live view
---------

Run a simulation on the GPU and show each generation in a window, using the
bitmap context of rendercanvas. Each rendered frame is one step.

The default setup is Conway's Game of Life, expressed with a 15x15 mask.
A second rule set with a ring-shaped mask adds some extra growth.
"""

# run_example = true

import numpy as np
from rendercanvas.auto import RenderCanvas, loop

from rulegrid import SimulationEngine, RuleSet, RuleData
from rulegrid.patterns import (
    CONWAY,
    DEFAULT_DENSITY,
    DEFAULT_GRID_SIZE,
    DEFAULT_NEIGHBORHOOD_SIZE,
    moore_mask,
    random_grid,
)


grid_size = DEFAULT_GRID_SIZE
neighborhood_size = DEFAULT_NEIGHBORHOOD_SIZE

alive_color = np.array([132, 204, 22, 255], np.uint8)
dead_color = np.array([0, 0, 0, 255], np.uint8)


def ring_mask(size, inner, outer):
    c = size // 2
    y, x = np.mgrid[-c : c + 1, -c : c + 1]
    r = np.sqrt(x**2 + y**2)
    return ((r >= inner) & (r <= outer)).astype(np.uint8).reshape(-1)


rules = RuleData.from_rules(
    neighborhood_size,
    (moore_mask(neighborhood_size), CONWAY),
    (ring_mask(neighborhood_size, 5, 7), RuleSet(60, 70, 62, 64, True)),
)

engine = SimulationEngine(grid_size, neighborhood_size)
engine.initialize_sync()
engine.reset_sync(random_grid(grid_size, DEFAULT_DENSITY))


canvas = RenderCanvas(title="rulegrid live view", update_mode="continuous", max_fps=30)
context = canvas.get_bitmap_context()


@canvas.request_draw
def animate():
    engine.step_sync(rules)
    grid = engine.read_sync()
    if grid is None:
        return
    alive = grid.reshape(grid_size, grid_size, 1) == 1
    context.set_bitmap(np.where(alive, alive_color, dead_color))


if __name__ == "__main__":
    loop.run()
    engine.destroy()
