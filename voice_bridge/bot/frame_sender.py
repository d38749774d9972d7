"""
Bounded outbound frame queue for one WebSocket direction.

Frames are handed over without waiting and written by a background task. When the
peer cannot keep up the queue is capped and the oldest frame is dropped, which keeps
memory bounded and favours fresh audio over stale audio.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from voice_bridge.config.constants import DEFAULT_OUTBOUND_QUEUE_SIZE, LOGGER_NAME
from voice_bridge.errors import ConnectionLost

logger = logging.getLogger(LOGGER_NAME)

SendFunc = Callable[[str], Awaitable[None]]


class FrameSender:
    """Drop-oldest send queue in front of a WebSocket send coroutine."""

    def __init__(self, name: str, send: SendFunc, max_size: int = DEFAULT_OUTBOUND_QUEUE_SIZE):
        self.name = name
        self._send = send
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, max_size))
        self._task: Optional[asyncio.Task] = None
        self.dropped_frames = 0

    def enqueue(self, frame: str) -> None:
        """Queue a frame, evicting the oldest one if the queue is full."""
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped_frames += 1
            if self.dropped_frames == 1 or self.dropped_frames % 100 == 0:
                logger.warning(
                    f"{self.name} send queue full, dropped {self.dropped_frames} frame(s) so far"
                )
        self._queue.put_nowait(frame)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            frame = await self._queue.get()
            await self._send_one(frame)

    async def _send_one(self, frame: str) -> None:
        try:
            await self._send(frame)
        except ConnectionLost:
            logger.debug(f"{self.name} connection lost, frame discarded")
        except Exception as e:
            logger.warning(f"Error sending frame to {self.name}: {e}")

    async def drain(self) -> None:
        """Send every queued frame from the calling task."""
        while not self._queue.empty():
            await self._send_one(self._queue.get_nowait())

    async def stop(self, flush: bool = False) -> None:
        """Stop the sender task, then send (``flush``) or discard anything still queued."""
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if flush:
            await self.drain()
        while not self._queue.empty():
            self._queue.get_nowait()
