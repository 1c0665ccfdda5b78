"""Bounded producer/consumer byte pipe.

A producer task reads the upstream body into a fixed-size queue and the
response iterates the consumer side.  When the downstream socket stalls the
consumer stops pulling, the queue fills, and the producer blocks on ``put`` so
upstream reads pause too.  At most ``max_chunks`` chunks are held at once.
"""

import asyncio
from collections.abc import AsyncIterator

import anyio

_EOF = object()


class _ProducerFailed:
    __slots__ = ("exc",)

    def __init__(self, exc: Exception):
        self.exc = exc


class BytePipe:
    """Relay chunks from ``source`` in order through a bounded queue."""

    def __init__(self, source: AsyncIterator[bytes], max_chunks: int = 16):
        if max_chunks < 1:
            raise ValueError("max_chunks must be >= 1")
        self._source = source
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_chunks)
        self._producer: asyncio.Task | None = None
        self.bytes_relayed = 0

    @property
    def buffered(self) -> int:
        """Chunks currently waiting in the queue."""
        return self._queue.qsize()

    async def _produce(self):
        try:
            async for chunk in self._source:
                if chunk:
                    await self._queue.put(chunk)
        except Exception as exc:
            await self._queue.put(_ProducerFailed(exc))
            return
        finally:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                await aclose()
        await self._queue.put(_EOF)

    def start(self):
        if self._producer is None:
            self._producer = asyncio.create_task(self._produce())

    async def __aiter__(self) -> AsyncIterator[bytes]:
        self.start()
        try:
            while True:
                item = await self._queue.get()
                if item is _EOF:
                    return
                if isinstance(item, _ProducerFailed):
                    raise item.exc
                self.bytes_relayed += len(item)
                yield item
        finally:
            await self.aclose()

    async def aclose(self):
        """Stop the producer.  Safe to call more than once."""
        task = self._producer
        if task is None or task.done():
            return
        task.cancel()
        # The caller may itself be cancelled (client went away); still wait
        # for the producer so the upstream read is actually abandoned.
        with anyio.CancelScope(shield=True):
            await asyncio.gather(task, return_exceptions=True)
