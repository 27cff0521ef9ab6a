"""
Generic async primitives that work with any ``sniffio``-aware library (asyncio and trio).

To give an idea how this works:

.. code-block:: py

    libname = sniffio.current_async_library()
    sleep = sys.modules[libname].sleep

"""

import sys

import sniffio


async def sleep(delay):
    """Generic async sleep. Works with trio and asyncio.

    A ``sleep(0)`` gives other tasks a chance to run, without waiting.
    """
    libname = sniffio.current_async_library()
    sleep = sys.modules[libname].sleep
    await sleep(delay)

