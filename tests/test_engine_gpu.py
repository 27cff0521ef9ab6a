"""
Test the SimulationEngine on a real GPU, comparing against the numpy reference.
"""

import asyncio

import numpy as np
import pytest

from rulegrid import SimulationEngine, RuleSet, RuleData
from rulegrid.patterns import CONWAY, moore_mask, random_grid
from rulegrid.reference import run_reference
from testutils import run_tests, can_use_wgpu_lib, blinker_grid, conway_rules


pytestmark = pytest.mark.skipif(not can_use_wgpu_lib, reason="Needs a GPU adapter")


def test_blinker_on_gpu():
    with SimulationEngine(5, 3) as engine:
        assert engine.is_ready
        rules = conway_rules(3)
        engine.reset_sync(blinker_grid())
        engine.step_sync(rules)
        assert np.all(engine.read_sync() == blinker_grid(vertical=True))
        engine.step_sync(rules)
        assert np.all(engine.read_sync() == blinker_grid())


def test_blinker_with_large_neighborhood_on_gpu():
    with SimulationEngine(20, 15) as engine:
        engine.reset_sync(blinker_grid(20))
        engine.step_sync(conway_rules(15))
        assert np.all(engine.read_sync() == blinker_grid(20, vertical=True))


def test_matches_reference_on_gpu():
    # A grid size that is not a multiple of the workgroup size, and an asymmetric mask
    grid_size, neighborhood_size = 37, 5
    rng = np.random.default_rng(42)
    asymmetric = (rng.random(25) < 0.5).astype(np.uint8)
    rules = RuleData.from_rules(
        neighborhood_size,
        (moore_mask(5), CONWAY),
        (asymmetric, RuleSet(3, 6, 4, 5, True)),
        (np.ones(25, np.uint8), RuleSet(20, 24, 22, 24, True)),
    )
    grid = random_grid(grid_size, 0.3, seed=1)

    with SimulationEngine(grid_size, neighborhood_size) as engine:
        engine.reset_sync(grid)
        for n in range(1, 6):
            engine.step_sync(rules)
            expected = run_reference(grid, rules, n)
            assert np.all(engine.read_sync() == expected), f"differs at step {n}"


def test_multiple_steps_before_read_on_gpu():
    grid = random_grid(64, 0.25, seed=3)
    rules = conway_rules(3)
    with SimulationEngine(64, 3) as engine:
        engine.reset_sync(grid)
        for _ in range(7):
            engine.step_sync(rules)
        assert np.all(engine.read_sync() == run_reference(grid, rules, 7))


def test_reset_round_trip_on_gpu():
    grid = random_grid(33, 0.5, seed=5)
    with SimulationEngine(33, 3) as engine:
        engine.step_sync(conway_rules())
        engine.reset_sync(grid)
        assert engine.frame_counter == 0
        assert np.all(engine.read_sync() == grid)


def test_reinitialize_on_gpu():
    engine = SimulationEngine(8, 3)
    assert engine.initialize_sync()
    engine.destroy()
    assert not engine.is_ready
    assert engine.read_sync() is None

    assert engine.initialize_sync()
    engine.reset_sync(blinker_grid(8))
    assert np.all(engine.read_sync() == blinker_grid(8))
    engine.destroy()


def test_async_on_gpu():
    grid = random_grid(16, 0.3, seed=6)
    rules = conway_rules(3)
    engine = SimulationEngine(16, 3)

    async def main():
        assert await engine.initialize()
        await engine.reset(grid)
        await engine.step(rules)
        await engine.step(rules)
        return await engine.read()

    try:
        result = asyncio.run(main())
    finally:
        engine.destroy()
    assert np.all(result == run_reference(grid, rules, 2))


if __name__ == "__main__":
    run_tests(globals())
