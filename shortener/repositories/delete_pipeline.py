"""
Batch Delete Pipeline

Splits a list of short keys into fixed-size batches and applies them
with a bounded set of concurrent workers.

Flow:
    producer --(queue, maxsize=workers)--> worker x N --> apply_batch(keys, user_id)

- The first failing batch cancels the run: batches not yet started are skipped
- Batches already running finish, their errors are collected too
- run() returns only after the producer and every worker have exited
"""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional, Sequence

from shortener.core.exceptions import BatchDeleteError, EmptyInputError

logger = logging.getLogger(__name__)

ApplyBatch = Callable[[Sequence[str], str], Awaitable[None]]

DEFAULT_BATCH_SIZE = 10


def split_batches(items: Sequence[str], batch_size: int) -> list[list[str]]:
    """Contiguous slices of at most batch_size items; the last one may be shorter."""
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


class BatchDeletePipeline:
    """
    Producer/worker fan-out for soft deletes.

    Args:
        apply_batch: Coroutine that deletes one batch for one user
        batch_size: Keys per batch
        workers: Concurrent workers (defaults to the CPU count)
    """

    def __init__(
        self,
        apply_batch: ApplyBatch,
        batch_size: int = DEFAULT_BATCH_SIZE,
        workers: Optional[int] = None
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")

        self.apply_batch = apply_batch
        self.batch_size = batch_size
        self.workers = max(1, workers or os.cpu_count() or 1)

    async def run(
        self,
        short_keys: Sequence[str],
        user_id: str,
        cancel: Optional[asyncio.Event] = None
    ) -> None:
        """
        Delete short_keys for user_id.

        Args:
            short_keys: Keys to soft-delete
            user_id: Owner; keys of other users are left untouched by apply_batch
            cancel: Optional external cancellation signal

        Raises:
            EmptyInputError: short_keys is empty
            BatchDeleteError: One or more batches failed
        """
        if not short_keys:
            raise EmptyInputError("mark_deleted")

        cancel = cancel or asyncio.Event()
        batches = split_batches(short_keys, self.batch_size)
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.workers)
        errors: list[Exception] = []

        async def produce() -> None:
            try:
                for batch in batches:
                    if cancel.is_set():
                        logger.debug("Delete cancelled, producer stops enqueuing")
                        break
                    await queue.put(batch)
            finally:
                for _ in range(self.workers):
                    await queue.put(None)

        async def work(worker_id: int) -> None:
            while True:
                batch = await queue.get()
                if batch is None:
                    return
                if cancel.is_set():
                    continue
                try:
                    await self.apply_batch(batch, user_id)
                except Exception as e:
                    logger.error(f"Delete worker {worker_id} failed on batch {batch}: {e}")
                    errors.append(e)
                    cancel.set()

        logger.debug(
            f"Deleting {len(short_keys)} key(s) in {len(batches)} batch(es) "
            f"with {self.workers} worker(s)"
        )
        await asyncio.gather(produce(), *(work(i) for i in range(self.workers)))

        if errors:
            raise BatchDeleteError(errors)
