"""
Shared timings and polling helpers for the test suites.
"""
import asyncio
import time

# Fast timings: ticks every 10ms, phases finish after 150ms
TICK = 0.01
PHASE = 0.15
WINDOW = 0.1


async def wait_for_status(engine, record_id, status, timeout=2.0):
    """Poll the engine until a record reaches a status."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        record = engine.get(record_id)
        if record is not None and record.status == status:
            return record
        await asyncio.sleep(0.005)
    raise AssertionError(f"{record_id} did not reach {status.value} within {timeout}s")


def poll_until(predicate, timeout=3.0):
    """Blocking poll for route tests."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        result = predicate()
        if result:
            return result
        time.sleep(0.01)
    raise AssertionError("condition not met in time")
