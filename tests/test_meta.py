"""
Test some meta stuff.
"""

import sys
import subprocess
from testutils import run_tests

import rulegrid
import pytest


CODE = """
import sys
ignore_names = set(sys.modules)
ignore_names |= set(sys.stdlib_module_names)
import MODULE_NAME
module_names = [n for n in sys.modules if n.split(".")[0] not in ignore_names]
module_names = [n for n in module_names if not n.startswith("_")]
print(', '.join(module_names))
"""


def get_loaded_modules(module_name, depth=1):
    """Get what deps are loaded for a given module.

    Import the given module in a subprocess and return a set of
    module names that were imported as a result.

    The given depth indicates the module level (i.e. depth=1 will only
    yield 'X.Y' but not 'X.Y.Z').
    """

    code = (
        "; ".join(CODE.strip().splitlines()).strip().replace("MODULE_NAME", module_name)
    )

    p = subprocess.run([sys.executable, "-c", code], capture_output=True)
    assert not p.stderr, p.stderr.decode()
    loaded_modules = set(name.strip() for name in p.stdout.decode().split(","))

    filtered_modules = set()
    for m in loaded_modules:
        filtered_modules.add(".".join(m.split(".")[:depth]))
    return filtered_modules


# %%


def test_version_is_there():
    assert rulegrid.__version__
    assert rulegrid.version_info
    assert rulegrid.version_info[:3] == tuple(
        int(x) for x in rulegrid.__version__.split(".")[:3]
    )


def test_namespace():
    # Yes
    assert "SimulationEngine" in dir(rulegrid)
    assert "RuleData" in dir(rulegrid)
    assert "RuleSet" in dir(rulegrid)
    assert "EngineState" in dir(rulegrid)
    assert "patterns" in dir(rulegrid)

    # No
    assert "EngineResources" not in dir(rulegrid)
    assert "generation_step_wgsl" not in dir(rulegrid)


@pytest.mark.skipif(sys.version_info < (3, 10), reason="Need py310+")
def test_deps_plain_import():
    modules = get_loaded_modules("rulegrid", 1)
    assert modules == {"rulegrid", "numpy", "sniffio"}
    # Note, no wgpu until an engine is initialized


if __name__ == "__main__":
    run_tests(globals())
