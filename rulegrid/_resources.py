"""
Creation and release of the GPU objects that a SimulationEngine owns.
"""

from __future__ import annotations

from ._coreutils import logger
from .rules import PARAMS_WORD_COUNT, RULE_SET_COUNT
from .shaders import ENTRY_POINT, generation_step_wgsl


__all__ = ["EngineResources", "request_device_sync", "request_device_async"]


BYTES_PER_WORD = 4  # uint32


def _check_adapter(adapter):
    if adapter is None:
        raise RuntimeError("No appropriate GPUAdapter found.")
    return adapter


def request_device_sync(power_preference: str):
    """Request an adapter and a device. Raises RuntimeError if no compute-capable adapter exists."""
    import wgpu

    adapter = _check_adapter(
        wgpu.gpu.request_adapter_sync(power_preference=power_preference)
    )
    return adapter, adapter.request_device_sync(required_limits={})


async def request_device_async(power_preference: str):
    """Async variant of ``request_device_sync()``."""
    import wgpu

    adapter = _check_adapter(
        await wgpu.gpu.request_adapter_async(power_preference=power_preference)
    )
    return adapter, await adapter.request_device_async(required_limits={})


class EngineResources:
    """The complete set of GPU objects for one engine.

    Instances are only created via ``create()``, which either returns a fully
    populated object or raises; a partially built set is never handed out.
    The objects are created in this order, and released in reverse order:

    * two grid buffers (ping-pong),
    * four mask buffers,
    * the params buffer (uniform),
    * the staging buffer (for readback),
    * the compute pipeline,
    * two bind groups: A reads grid 1 and writes grid 2, B the other way round.
    """

    def __init__(self, device, grid_buffers, mask_buffers, params_buffer, staging_buffer, pipeline, bind_groups):
        self.device = device
        self.grid_buffers = grid_buffers
        self.mask_buffers = mask_buffers
        self.params_buffer = params_buffer
        self.staging_buffer = staging_buffer
        self.pipeline = pipeline
        self.bind_groups = bind_groups

    @classmethod
    def create(cls, device, grid_size: int, neighborhood_size: int) -> EngineResources:
        import wgpu

        grid_nbytes = grid_size * grid_size * BYTES_PER_WORD
        mask_nbytes = neighborhood_size * neighborhood_size * BYTES_PER_WORD

        grid_usage = (
            wgpu.BufferUsage.STORAGE
            | wgpu.BufferUsage.COPY_DST
            | wgpu.BufferUsage.COPY_SRC
        )
        grid_buffers = tuple(
            device.create_buffer(label=f"grid{i + 1}", size=grid_nbytes, usage=grid_usage)
            for i in range(2)
        )

        mask_usage = wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_DST
        mask_buffers = tuple(
            device.create_buffer(label=f"mask{i + 1}", size=mask_nbytes, usage=mask_usage)
            for i in range(RULE_SET_COUNT)
        )

        params_buffer = device.create_buffer(
            label="params",
            size=PARAMS_WORD_COUNT * BYTES_PER_WORD,
            usage=wgpu.BufferUsage.UNIFORM | wgpu.BufferUsage.COPY_DST,
        )
        staging_buffer = device.create_buffer(
            label="staging",
            size=grid_nbytes,
            usage=wgpu.BufferUsage.MAP_READ | wgpu.BufferUsage.COPY_DST,
        )

        shader_module = device.create_shader_module(code=generation_step_wgsl)
        pipeline = device.create_compute_pipeline(
            layout="auto",
            compute={"module": shader_module, "entry_point": ENTRY_POINT},
        )

        layout = pipeline.get_bind_group_layout(0)

        def create_bind_group(grid_in, grid_out, label):
            entries = [
                {"binding": 0, "resource": {"buffer": grid_in}},
                {"binding": 1, "resource": {"buffer": grid_out}},
            ]
            for i, mask_buffer in enumerate(mask_buffers):
                entries.append({"binding": 2 + i, "resource": {"buffer": mask_buffer}})
            entries.append({"binding": 6, "resource": {"buffer": params_buffer}})
            return device.create_bind_group(label=label, layout=layout, entries=entries)

        grid1, grid2 = grid_buffers
        bind_groups = (
            create_bind_group(grid1, grid2, "bind_group_a"),
            create_bind_group(grid2, grid1, "bind_group_b"),
        )

        return cls(
            device,
            grid_buffers,
            mask_buffers,
            params_buffer,
            staging_buffer,
            pipeline,
            bind_groups,
        )

    def disposables(self) -> list:
        """The objects that need an explicit ``destroy()``, in release order.

        Pipelines and bind groups have no destroy method in wgpu; they are
        released when the last reference is dropped.
        """
        return [
            ("staging", self.staging_buffer),
            ("params", self.params_buffer),
            *((f"mask{i + 1}", b) for i, b in reversed(list(enumerate(self.mask_buffers)))),
            ("grid2", self.grid_buffers[1]),
            ("grid1", self.grid_buffers[0]),
            ("device", self.device),
        ]

    def release(self) -> None:
        """Destroy all resources, best-effort.

        Waits for submitted work to finish first, so that buffers are not
        destroyed while the device still uses them. Individual failures are
        logged at debug level and otherwise ignored.
        """
        try:
            self.device.queue.on_submitted_work_done_sync()
        except Exception as err:
            logger.debug(f"Could not wait for queue to drain: {err}")

        for name, ob in self.disposables():
            try:
                ob.destroy()
            except Exception as err:
                logger.debug(f"Could not release {name}: {err}")

        self.bind_groups = ()
        self.pipeline = None
        self.grid_buffers = ()
        self.mask_buffers = ()
        self.params_buffer = None
        self.staging_buffer = None
        self.device = None
