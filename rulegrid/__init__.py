"""
rulegrid: multi-rule cellular automata on the GPU, via wgpu.
"""

# ruff: noqa: F401

from ._version import __version__, version_info
from . import _coreutils
from ._enums import EngineState, PowerPreference
from .rules import RuleSet, RuleData, encode_params
from .engine import SimulationEngine
from . import patterns
from . import reference
from . import utils


__all__ = [
    "EngineState",
    "PowerPreference",
    "RuleData",
    "RuleSet",
    "SimulationEngine",
    "encode_params",
]
