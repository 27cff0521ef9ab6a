from ._coreutils import BaseEnum


__all__ = ["EngineState", "PowerPreference"]


class EngineState(BaseEnum):
    """The EngineState enum specifies the lifecycle states of a SimulationEngine."""

    uninitialized = None  #: No GPU resources exist. The initial state, and the state after ``destroy()``.
    initializing = None  #: ``initialize()`` is requesting the device and creating resources.
    ready = None  #: All resources exist; stepping, reading and resetting are possible.
    destroying = None  #: ``destroy()`` is releasing resources; all other calls are no-ops.


class PowerPreference(BaseEnum):
    """The PowerPreference enum specifies which kind of adapter to request."""

    high_performance = "high-performance"  #: Prefer a discrete GPU.
    low_power = "low-power"  #: Prefer an integrated GPU.
