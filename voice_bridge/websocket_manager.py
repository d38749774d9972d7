"""
WebSocket connection manager for telephony media streams.

This module accepts the provider's media-stream WebSocket, hands it to a new
MediaBridge together with the session id from the query string, and pumps inbound
telephony frames into the bridge until either side closes.
"""

import logging
from typing import Optional

from fastapi import WebSocket

from voice_bridge.bot.agent_client import AgentClient
from voice_bridge.bot.media_bridge import AgentClientFactory, BridgeState, MediaBridge
from voice_bridge.config.constants import (
    DEFAULT_OUTBOUND_QUEUE_SIZE,
    LOGGER_NAME,
    SESSION_ID_PARAM,
    WS_CLOSE_GOING_AWAY,
)
from voice_bridge.models.session import SessionRegistry

logger = logging.getLogger(LOGGER_NAME)


class WebSocketManager:
    """Runs one MediaBridge per accepted media-stream WebSocket.

    Bridges are independent of each other; the only state they share is the
    session registry, which they only read.
    """

    def __init__(
        self,
        session_registry: SessionRegistry,
        agent_client_factory: AgentClientFactory = AgentClient.from_credentials,
        queue_size: int = DEFAULT_OUTBOUND_QUEUE_SIZE,
    ):
        self.session_registry = session_registry
        self.agent_client_factory = agent_client_factory
        self.queue_size = queue_size
        self.active_bridges = set()

    async def handle_websocket(self, websocket: WebSocket) -> Optional[MediaBridge]:
        """Handle a media-stream WebSocket throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        Returns:
            The bridge that served the connection, once it has closed
        """
        await websocket.accept()
        session_id = websocket.query_params.get(SESSION_ID_PARAM)
        logger.info(f"WebSocket connection attempt with sessionId: {session_id}")

        bridge = MediaBridge(
            websocket,
            agent_client_factory=self.agent_client_factory,
            queue_size=self.queue_size,
        )
        if not await bridge.open(self.session_registry, session_id):
            return bridge

        self.active_bridges.add(bridge)
        try:
            while bridge.state is not BridgeState.CLOSED:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    await bridge.telephony_disconnected()
                    break

                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                if data is None:
                    continue
                await bridge.handle_telephony_message(data)
        except Exception as e:
            if bridge.state is BridgeState.CLOSED:
                logger.debug(f"Media stream receive ended after bridge closed: {e}")
            else:
                logger.error(f"Error in media stream connection: {e}", exc_info=True)
        finally:
            await bridge.close("media stream ended")
            self.active_bridges.discard(bridge)
            logger.info("Media stream connection closed")
        return bridge

    async def close_all(self) -> None:
        """Close every bridge that is still running, e.g. on server shutdown."""
        bridges = list(self.active_bridges)
        if bridges:
            logger.info(f"Closing {len(bridges)} active media stream(s)")
        for bridge in bridges:
            await bridge.close("server shutting down", code=WS_CLOSE_GOING_AWAY)
        self.active_bridges.clear()
