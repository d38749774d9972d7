"""
Tests for the bounded drop-oldest outbound queue.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from voice_bridge.bot.frame_sender import FrameSender
from voice_bridge.errors import ConnectionLost


@pytest.mark.asyncio
async def test_drain_sends_in_order():
    send = AsyncMock()
    sender = FrameSender("test", send, max_size=4)
    for frame in ("a", "b", "c"):
        sender.enqueue(frame)

    await sender.drain()

    assert [c.args[0] for c in send.await_args_list] == ["a", "b", "c"]
    assert sender.pending == 0


@pytest.mark.asyncio
async def test_full_queue_drops_oldest():
    send = AsyncMock()
    sender = FrameSender("test", send, max_size=2)
    for frame in ("a", "b", "c", "d"):
        sender.enqueue(frame)

    assert sender.pending == 2
    assert sender.dropped_frames == 2

    await sender.drain()
    assert [c.args[0] for c in send.await_args_list] == ["c", "d"]


@pytest.mark.asyncio
async def test_background_task_sends():
    sent = asyncio.Event()
    send = AsyncMock(side_effect=lambda frame: sent.set())
    sender = FrameSender("test", send)
    sender.start()

    sender.enqueue("a")
    await asyncio.wait_for(sent.wait(), timeout=1)

    send.assert_awaited_once_with("a")
    await sender.stop()


@pytest.mark.asyncio
async def test_send_errors_do_not_stop_sender():
    send = AsyncMock(side_effect=[ConnectionLost(), RuntimeError("boom"), None])
    sender = FrameSender("test", send)
    for frame in ("a", "b", "c"):
        sender.enqueue(frame)

    await sender.drain()

    assert send.await_count == 3


@pytest.mark.asyncio
async def test_stop_discards_pending_frames():
    send = AsyncMock()
    sender = FrameSender("test", send)
    sender.start()
    await sender.stop()

    sender.enqueue("a")
    await sender.stop()

    assert sender.pending == 0
    send.assert_not_awaited()


@pytest.mark.asyncio
async def test_stop_with_flush_sends_pending_frames():
    send = AsyncMock()
    sender = FrameSender("test", send)
    for frame in ("a", "b"):
        sender.enqueue(frame)

    await sender.stop(flush=True)

    assert [c.args[0] for c in send.await_args_list] == ["a", "b"]
    assert sender.pending == 0
