"""
Notification batching.

Splits payloads into fixed-size chunks and hands them to the sink one
chunk at a time. Delivery is best effort: a failed chunk is logged and
the remaining chunks are still attempted.
"""

import asyncio
import logging
from typing import List, Protocol, Sequence

from librus_bot.models import NotificationPayload

logger = logging.getLogger(__name__)

BATCH_SIZE = 10


class NotificationSink(Protocol):
    def send(self, payloads: Sequence[NotificationPayload]) -> bool: ...


def chunked(payloads: Sequence[NotificationPayload], size: int) -> List[List[NotificationPayload]]:
    """Split into consecutive chunks of at most ``size`` items."""
    return [list(payloads[i:i + size]) for i in range(0, len(payloads), size)]


class NotificationBatcher:
    """
    Delivers payloads to a sink in bounded batches.

    The sink is blocking; each batch is delivered in a worker thread
    and awaited before the next one starts.
    """

    def __init__(self, sink: NotificationSink, batch_size: int = BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.sink = sink
        self.batch_size = batch_size

    async def send(self, payloads: Sequence[NotificationPayload]) -> int:
        """
        Deliver payloads, preserving their order.

        Args:
            payloads: Payloads produced by one checker run

        Returns:
            int: Number of batches the sink accepted
        """
        if not payloads:
            return 0

        batches = chunked(payloads, self.batch_size)
        delivered = 0

        for number, batch in enumerate(batches, start=1):
            try:
                ok = await asyncio.to_thread(self.sink.send, batch)
            except Exception as e:
                logger.error(
                    f"Error delivering batch {number}/{len(batches)}: {e}",
                    exc_info=True,
                )
                continue

            if ok:
                delivered += 1
            else:
                logger.warning(
                    f"Batch {number}/{len(batches)} ({len(batch)} notifications) was not delivered"
                )

        logger.debug(f"Delivered {delivered}/{len(batches)} batches")
        return delivered
