import asyncio

import pytest

from legiscan_client import format_error, process_batched


class Tracker:
    def __init__(self):
        self.in_flight = 0
        self.peak = 0
        self.started = []

    async def run(self, item):
        self.started.append(item)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            # later items finish first
            await asyncio.sleep(0.001 * (25 - item))
            if item % 7 == 3:
                raise RuntimeError(f"item {item} failed")
            return item * 10
        finally:
            self.in_flight -= 1


def test_order_and_ceiling():
    tracker = Tracker()
    items = list(range(23))
    results = asyncio.run(process_batched(items, tracker.run, batch_size=5))

    assert len(results) == len(items)
    assert tracker.peak <= 5
    for item, settled in zip(items, results):
        if item % 7 == 3:
            assert not settled.ok
            assert format_error(settled.error) == f"item {item} failed"
        else:
            assert settled.ok
            assert settled.value == item * 10


def test_next_window_waits_for_previous():
    events = []

    async def slow_then_fast(item):
        events.append(("start", item))
        await asyncio.sleep(0.02 if item == 0 else 0)
        events.append(("end", item))
        return item

    asyncio.run(process_batched([0, 1, 2, 3], slow_then_fast, batch_size=2))
    assert events.index(("end", 0)) < events.index(("start", 2))
    assert events.index(("end", 1)) < events.index(("start", 3))


def test_default_ceiling_is_ten():
    tracker = Tracker()
    asyncio.run(process_batched(list(range(24)), tracker.run))
    assert tracker.peak == 10


def test_empty_input():
    async def never(item):
        raise AssertionError("should not be called")

    assert asyncio.run(process_batched([], never)) == []


def test_bad_batch_size():
    async def ident(item):
        return item

    with pytest.raises(ValueError):
        asyncio.run(process_batched([1], ident, batch_size=0))


def test_format_error():
    assert format_error(ValueError("boom")) == "boom"
    assert format_error(KeyError()) == "KeyError"
    assert format_error("plain reason") == "plain reason"
