import asyncio
import time

import pytest

from immigration_crawler.crawler.politeness import PolitenessScheduler

# asyncio timers may fire up to one clock tick early
TOLERANCE = 0.01


@pytest.mark.asyncio
async def test_first_request_does_not_wait():
    scheduler = PolitenessScheduler(delay=5)
    start = time.monotonic()
    await scheduler.wait_if_needed("example.gc.ca")
    assert time.monotonic() - start < 1


@pytest.mark.asyncio
async def test_same_domain_requests_are_spaced():
    scheduler = PolitenessScheduler(delay=0.2)
    await scheduler.wait_if_needed("example.gc.ca")
    first = time.monotonic()
    await scheduler.wait_if_needed("example.gc.ca")
    second = time.monotonic()
    assert second - first >= 0.2 - TOLERANCE


@pytest.mark.asyncio
async def test_other_domains_are_not_delayed():
    scheduler = PolitenessScheduler(delay=5)
    await scheduler.wait_if_needed("a.gc.ca")
    start = time.monotonic()
    await scheduler.wait_if_needed("b.gc.ca")
    assert time.monotonic() - start < 1


@pytest.mark.asyncio
async def test_concurrent_callers_are_serialized_per_domain():
    scheduler = PolitenessScheduler(delay=0.1)
    released = []

    async def request():
        await scheduler.wait_if_needed("example.gc.ca")
        released.append(time.monotonic())

    await asyncio.gather(*(request() for _ in range(3)))
    released.sort()
    gaps = [b - a for a, b in zip(released, released[1:])]
    assert all(gap >= 0.1 - TOLERANCE for gap in gaps)


@pytest.mark.asyncio
async def test_zero_delay_never_sleeps():
    scheduler = PolitenessScheduler(delay=0)
    start = time.monotonic()
    for _ in range(5):
        await scheduler.wait_if_needed("example.gc.ca")
    assert time.monotonic() - start < 0.5
