"""
The simulation engine: runs generations of a multi-rule cellular automaton on the GPU.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ._coreutils import logger, log_exception, get_env_choice
from ._enums import EngineState, PowerPreference
from ._resources import EngineResources, request_device_sync, request_device_async
from .rules import encode_params
from .shaders import WORKGROUP_SIZE
from .utils.asyncs import sleep

if TYPE_CHECKING:
    from .rules import RuleData


__all__ = [
    "SimulationEngine",
    "bind_group_index",
    "current_grid_index",
    "workgroup_count",
]


def bind_group_index(frame_counter: int) -> int:
    """The bind group that the next step uses.

    Bind group 0 (A) reads grid 1 and writes grid 2; bind group 1 (B) does the reverse.
    """
    return frame_counter % 2


def current_grid_index(frame_counter: int) -> int:
    """The grid buffer that holds the current state.

    After an odd number of steps the last step used bind group A, so grid 2
    (index 1) holds the newest generation. After an even number it is grid 1
    (index 0). Right after a reset both grids are equal.
    """
    return frame_counter % 2


def workgroup_count(grid_size: int) -> int:
    """The number of workgroups along each axis to cover the grid."""
    return (grid_size + WORKGROUP_SIZE - 1) // WORKGROUP_SIZE


class SimulationEngine:
    """Evolve a square toroidal binary grid on the GPU.

    Arguments:
        grid_size (int): the side of the square grid. Must be positive.
        neighborhood_size (int): the side of the square neighborhood masks. Must be
            positive and odd, so that there is a center cell.
        power_preference (str | None): the kind of adapter to request, "high-performance"
            or "low-power". Default None, meaning the ``RULEGRID_POWER_PREFERENCE``
            environment variable, or "high-performance" if that is not set.

    The engine owns all GPU objects. Call ``initialize()`` (or ``initialize_sync()``)
    before using it, and ``destroy()`` when done. It can also be used as a context
    manager, which does both.

    There are two distinct points of synchronization:

    * ``step()`` and ``reset()`` return once their work is *enqueued*. The GPU may
      still be working on it.
    * ``read()`` returns once the copy of the current grid has been *completed*.
      Because the queue executes in submission order, this means that all
      previously enqueued steps have completed too.

    The engine does not serialize calls. Calling ``step()`` twice without a
    ``read()`` in between advances two generations. Errors during stepping,
    reading or resetting are logged to the "rulegrid" logger and never raised.
    """

    def __init__(self, grid_size: int, neighborhood_size: int, *, power_preference=None):
        grid_size = int(grid_size)
        neighborhood_size = int(neighborhood_size)
        if grid_size <= 0:
            raise ValueError(f"grid_size must be positive, got {grid_size}.")
        if neighborhood_size <= 0 or neighborhood_size % 2 == 0:
            raise ValueError(
                f"neighborhood_size must be positive and odd, got {neighborhood_size}."
            )
        if power_preference is not None and power_preference not in PowerPreference:
            raise ValueError(
                f"Invalid power_preference {power_preference!r}, expected one of {list(PowerPreference)}."
            )

        self._grid_size = grid_size
        self._neighborhood_size = neighborhood_size
        self._power_preference = power_preference

        self.__state = EngineState.uninitialized
        self.__resources = None
        self.__frame_counter = 0
        self.__read_pending = False

    def __repr__(self):
        size = f"{self._grid_size}x{self._grid_size}"
        return f"<rulegrid.SimulationEngine {size} '{self.__state}' at {hex(id(self))}>"

    def __del__(self):
        try:
            self.destroy()
        except Exception:
            pass

    def __enter__(self):
        self.initialize_sync()
        return self

    def __exit__(self, *args):
        self.destroy()

    # %% Properties

    @property
    def grid_size(self) -> int:
        """The side of the square grid."""
        return self._grid_size

    @property
    def neighborhood_size(self) -> int:
        """The side of the square neighborhood masks."""
        return self._neighborhood_size

    @property
    def state(self) -> str:
        """The lifecycle state, see ``EngineState``."""
        return self.__state

    @property
    def is_ready(self) -> bool:
        """Whether the engine is initialized and can be used.

        Remains False if initialization failed, e.g. because no GPU adapter is available.
        """
        return self.__state == EngineState.ready

    @property
    def frame_counter(self) -> int:
        """The number of steps since the last reset."""
        return self.__frame_counter

    # %% Lifecycle

    def _get_power_preference(self):
        if self._power_preference is not None:
            return self._power_preference
        return get_env_choice(
            "RULEGRID_POWER_PREFERENCE",
            list(PowerPreference),
            PowerPreference.high_performance,
        )

    def _begin_initialize(self):
        # Returns whether initialization should proceed.
        if self.__state != EngineState.uninitialized:
            return False
        self.__state = EngineState.initializing
        return True

    def _finish_initialize(self, adapter, device):
        if self.__state != EngineState.initializing:
            # Destroyed while waiting for the device
            device.destroy()
            return False
        resources = None
        with log_exception("Initialization error"):
            resources = EngineResources.create(
                device, self._grid_size, self._neighborhood_size
            )
        if resources is None:
            device.destroy()
            self.__state = EngineState.uninitialized
            return False
        self.__resources = resources
        self.__frame_counter = 0
        self.__state = EngineState.ready
        logger.info(f"Initialized {self!r} on {adapter.summary}")
        return True

    def _fail_initialize(self, err):
        if self.__state == EngineState.initializing:
            self.__state = EngineState.uninitialized
        logger.error(f"No compute-capable GPU available: {err}")
        return False

    def initialize_sync(self) -> bool:
        """Request a device and create all GPU resources. Returns ``is_ready``.

        A no-op if the engine is not in the 'uninitialized' state. If no GPU
        is available, the error is logged and the engine stays uninitialized.
        """
        if not self._begin_initialize():
            return self.is_ready
        try:
            adapter, device = request_device_sync(self._get_power_preference())
        except Exception as err:
            return self._fail_initialize(err)
        return self._finish_initialize(adapter, device)

    async def initialize(self) -> bool:
        """Async variant of ``initialize_sync()``."""
        if not self._begin_initialize():
            return self.is_ready
        try:
            adapter, device = await request_device_async(self._get_power_preference())
        except Exception as err:
            return self._fail_initialize(err)
        return self._finish_initialize(adapter, device)

    def destroy(self) -> None:
        """Release all GPU resources.

        All other calls become no-ops as soon as this is called. Afterwards the
        engine is back in the 'uninitialized' state.
        """
        if self.__state in (EngineState.uninitialized, EngineState.destroying):
            return
        was_initializing = self.__state == EngineState.initializing
        self.__state = EngineState.destroying
        resources, self.__resources = self.__resources, None
        if resources is not None:
            resources.release()
        self.__frame_counter = 0
        self.__read_pending = False
        self.__state = EngineState.uninitialized
        if not was_initializing:
            logger.info(f"Destroyed {self!r}")

    def _get_resources(self):
        if self.__state != EngineState.ready:
            return None
        return self.__resources

    # %% Stepping

    def step_sync(self, rule_data: RuleData) -> None:
        """Enqueue one generation, using the given rules.

        Uploads the masks and parameters, dispatches the kernel and advances the
        frame counter. Returns as soon as the work is enqueued. A no-op if the
        engine is not ready. Errors are logged and the frame is skipped.
        """
        resources = self._get_resources()
        if resources is None:
            return

        with log_exception("Step error"):
            if rule_data.neighborhood_size != self._neighborhood_size:
                raise ValueError(
                    f"RuleData has neighborhood size {rule_data.neighborhood_size}, engine has {self._neighborhood_size}."
                )
            device = resources.device
            for buffer, mask in zip(resources.mask_buffers, rule_data.masks):
                device.queue.write_buffer(buffer, 0, mask)
            params = encode_params(
                self._grid_size, self._neighborhood_size, rule_data.rule_sets
            )
            device.queue.write_buffer(resources.params_buffer, 0, params)

            bind_group = resources.bind_groups[bind_group_index(self.__frame_counter)]
            count = workgroup_count(self._grid_size)

            command_encoder = device.create_command_encoder()
            compute_pass = command_encoder.begin_compute_pass()
            compute_pass.set_pipeline(resources.pipeline)
            compute_pass.set_bind_group(0, bind_group)
            compute_pass.dispatch_workgroups(count, count, 1)
            compute_pass.end()
            device.queue.submit([command_encoder.finish()])

            self.__frame_counter += 1

    async def step(self, rule_data: RuleData) -> None:
        """Async variant of ``step_sync()``.

        Resolves once the work is enqueued, not when the GPU has finished it.
        Use ``read()`` to wait for the result.
        """
        self.step_sync(rule_data)
        await sleep(0)

    # %% Reading

    def _begin_read(self):
        resources = self._get_resources()
        if resources is None:
            return None
        if self.__read_pending:
            logger.debug("Skipping read, because another read is in progress.")
            return None
        nbytes = resources.staging_buffer.size
        grid_buffer = resources.grid_buffers[current_grid_index(self.__frame_counter)]
        command_encoder = resources.device.create_command_encoder()
        command_encoder.copy_buffer_to_buffer(
            grid_buffer, 0, resources.staging_buffer, 0, nbytes
        )
        resources.device.queue.submit([command_encoder.finish()])
        self.__read_pending = True
        return resources

    def _decode_staging(self, resources):
        staging_buffer = resources.staging_buffer
        try:
            data = staging_buffer.read_mapped(0, staging_buffer.size)
        finally:
            staging_buffer.unmap()
        return np.frombuffer(data, dtype=np.uint32).astype(np.uint8)

    def _end_read(self, resources):
        # A destroy (and maybe a new initialize) may have happened meanwhile.
        if resources is self.__resources:
            self.__read_pending = False

    def read_sync(self) -> np.ndarray | None:
        """Get the current grid as a flat uint8 array, or None.

        Blocks until all previously enqueued work is done. Returns None if the
        engine is not ready, if another read is in progress, or if the readback
        fails (the error is logged). Values are passed through as-is.
        """
        import wgpu

        with log_exception("Readback error"):
            resources = self._begin_read()
            if resources is None:
                return None
            try:
                resources.staging_buffer.map_sync(wgpu.MapMode.READ)
                return self._decode_staging(resources)
            finally:
                self._end_read(resources)
        return None

    async def read(self) -> np.ndarray | None:
        """Async variant of ``read_sync()``.

        Resolves once the copy of the current grid has completed on the GPU.
        """
        import wgpu

        with log_exception("Readback error"):
            resources = self._begin_read()
            if resources is None:
                return None
            try:
                await resources.staging_buffer.map_async(wgpu.MapMode.READ)
                if resources is not self.__resources:
                    return None  # destroyed while waiting
                return self._decode_staging(resources)
            finally:
                self._end_read(resources)
        return None

    # %% Resetting

    def reset_sync(self, initial_grid) -> None:
        """Write the given grid into both grid buffers and set the frame counter to zero.

        The grid must have ``grid_size**2`` elements (flat or square). A no-op if
        the engine is not ready. A grid of the wrong size is logged and ignored.
        """
        resources = self._get_resources()
        if resources is None:
            return

        with log_exception("Reset error"):
            grid = np.asarray(initial_grid)
            if grid.size != self._grid_size * self._grid_size:
                raise ValueError(
                    f"Grid of size {grid.size} does not match grid size {self._grid_size}."
                )
            data = np.ascontiguousarray(grid.reshape(-1), dtype=np.uint32)
            for buffer in resources.grid_buffers:
                resources.device.queue.write_buffer(buffer, 0, data)
            self.__frame_counter = 0

    async def reset(self, initial_grid) -> None:
        """Async variant of ``reset_sync()``. Resolves once the writes are enqueued."""
        self.reset_sync(initial_grid)
        await sleep(0)
