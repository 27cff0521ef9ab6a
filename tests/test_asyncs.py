"""
Test basics of rulegrid.utils.asyncs.
"""

import os
import time
import asyncio

import trio
import pytest

from rulegrid.utils import asyncs
from testutils import run_tests


def run(libname, async_func):
    if libname == "asyncio":
        return asyncio.run(async_func())
    else:
        return trio.run(async_func)


@pytest.mark.parametrize("libname", ["asyncio", "trio"])
def test_sleep(libname):
    leeway = 0.20 if os.getenv("CI") else 0

    times = []

    async def coro():
        times.append(time.perf_counter())
        await asyncs.sleep(0.05)
        times.append(time.perf_counter())
        await asyncs.sleep(0.1)
        times.append(time.perf_counter())

    run(libname, coro)

    sleep_time1 = times[1] - times[0]
    sleep_time2 = times[2] - times[1]
    assert 0.04 < sleep_time1 < 0.08 + leeway
    assert 0.09 < sleep_time2 < 0.13 + leeway


@pytest.mark.parametrize("libname", ["asyncio", "trio"])
def test_sleep_zero_yields(libname):
    order = []

    async def worker(name):
        for i in range(2):
            order.append((name, i))
            await asyncs.sleep(0)

    async def main_asyncio():
        await asyncio.gather(worker("a"), worker("b"))

    async def main_trio():
        async with trio.open_nursery() as nursery:
            nursery.start_soon(worker, "a")
            nursery.start_soon(worker, "b")

    run(libname, main_asyncio if libname == "asyncio" else main_trio)

    # Both workers made progress before either finished
    assert len(order) == 4
    assert order.index(("b", 0)) < order.index(("a", 1))
    assert order.index(("a", 0)) < order.index(("b", 1))


def test_sleep_needs_async_lib():
    import sniffio

    coro = asyncs.sleep(0)
    with pytest.raises(sniffio.AsyncLibraryNotFoundError):
        coro.send(None)
    coro.close()


if __name__ == "__main__":
    run_tests(globals())
