"""
Bot module for relaying live call audio between the telephony provider and the agent.

Key components:
- AgentClient: WebSocket client for one conversation on the agent platform.
- MediaBridge: Per-call duplex translator between the telephony media-stream
  vocabulary and the agent vocabulary, with its lifecycle state machine.
- FrameSender: Bounded, drop-oldest outbound queue used for each socket direction.

Usage examples:
```python
from voice_bridge.bot import MediaBridge

async def serve(websocket, registry, session_id):
    bridge = MediaBridge(websocket)
    if not await bridge.open(registry, session_id):
        return
    async for text in websocket.iter_text():
        await bridge.handle_telephony_message(text)
    await bridge.telephony_disconnected()
```
"""

from voice_bridge.bot.agent_client import AgentClient
from voice_bridge.bot.frame_sender import FrameSender
from voice_bridge.bot.media_bridge import BridgeState, MediaBridge

__all__ = ["AgentClient", "BridgeState", "FrameSender", "MediaBridge"]
