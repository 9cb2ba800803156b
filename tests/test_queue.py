"""Tests for the bounded execution queue."""

import asyncio

import pytest

from notapi.config import ProvidersConfig
from notapi.pipeline.queue import QUEUE_CONCURRENCY, ExecutionQueue
from notapi.providers.registry import ProviderRegistry

DURATION = 0.05


class TestExecutionQueue:
    async def test_at_most_three_run_at_once(self):
        queue = ExecutionQueue(concurrency=3)
        loop = asyncio.get_running_loop()
        started = {}

        def job(index):
            async def run():
                started[index] = loop.time()
                await asyncio.sleep(DURATION)
                return index
            return run

        results = await asyncio.gather(*(queue.submit(job(i)) for i in range(10)))

        assert results == list(range(10))
        assert queue.peak == 3
        assert queue.in_flight == 0
        assert queue.pending == 0
        # FIFO: slots are granted in submission order.
        assert sorted(started, key=started.get) == list(range(10))
        assert started[3] - started[0] >= DURATION * 0.9

    async def test_slot_released_on_failure(self):
        queue = ExecutionQueue(concurrency=1)

        async def boom():
            raise RuntimeError("provider blew up")

        async def fine():
            return "ok"

        with pytest.raises(RuntimeError):
            await queue.submit(boom)
        assert await queue.submit(fine) == "ok"
        assert queue.in_flight == 0

    async def test_factory_called_only_when_slot_held(self):
        queue = ExecutionQueue(concurrency=1)
        release = asyncio.Event()
        calls = []

        async def blocker():
            await release.wait()

        def second():
            calls.append("second")
            return asyncio.sleep(0)

        first = asyncio.create_task(queue.submit(lambda: blocker()))
        await asyncio.sleep(0)
        waiting = asyncio.create_task(queue.submit(second))
        await asyncio.sleep(0)

        assert queue.pending == 1
        assert calls == []

        release.set()
        await asyncio.gather(first, waiting)
        assert calls == ["second"]

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            ExecutionQueue(concurrency=0)

    async def test_provider_delay_runs_inside_the_slot(self, spamwatch, genius):
        delay = 0.05
        registry = ProviderRegistry(ProvidersConfig(delay_min=delay, delay_max=delay), spamwatch, genius)
        queue = ExecutionQueue(concurrency=1)
        loop = asyncio.get_running_loop()

        started = loop.time()
        await asyncio.gather(*(
            queue.submit(lambda: registry.invoke("morse", {"en": "SOS"})) for _ in range(2)
        ))

        # One slot: the second delay only starts once the first invocation is done.
        assert loop.time() - started >= 2 * delay * 0.9

    def test_application_capacity(self):
        assert QUEUE_CONCURRENCY == 3
        assert ExecutionQueue().concurrency == QUEUE_CONCURRENCY
