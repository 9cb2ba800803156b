"""
Bounded-concurrency execution queue.

Every provider invocation goes through a single process-wide queue so that
no more than a fixed number of them run at once, regardless of how fast
requests arrive.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from notapi.utils.logging import get_logger

T = TypeVar("T")

# Provider invocations allowed to run at once, process-wide.
QUEUE_CONCURRENCY = 3


class ExecutionQueue:
    """
    FIFO serializer with a fixed number of concurrency slots.

    Slots are granted in arrival order; there is no priority, preemption or
    cancellation of running work. A slot is released whether the invocation
    returns or raises.

    Attributes:
        concurrency: Number of slots, fixed for the queue's lifetime
        in_flight: Invocations currently holding a slot
        pending: Invocations waiting for a slot
        peak: Highest ``in_flight`` value observed
    """

    def __init__(self, concurrency: int = QUEUE_CONCURRENCY) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.in_flight = 0
        self.pending = 0
        self.peak = 0
        self._slots = asyncio.Semaphore(concurrency)
        self.logger = get_logger(__name__)

    async def submit(self, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Wait for a free slot, run the invocation, then release the slot.

        Args:
            factory: Zero-argument callable returning the awaitable to run.
                It is called only once a slot is held.

        Returns:
            Whatever the invocation returns; exceptions propagate
        """
        self.pending += 1
        try:
            await self._slots.acquire()
        finally:
            self.pending -= 1

        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        self.logger.debug("Queue slot acquired",
                          in_flight=self.in_flight, pending=self.pending)
        try:
            return await factory()
        finally:
            self.in_flight -= 1
            self._slots.release()
