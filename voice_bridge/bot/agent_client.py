"""
WebSocket client for the conversational agent platform.

One client is opened per bridged call using the agent credentials stored in that
call's session. The client never reconnects: a dropped agent connection ends the call.
"""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK

from voice_bridge.config.constants import AGENT_API_KEY_HEADER, DEFAULT_AGENT_WS_URL, LOGGER_NAME
from voice_bridge.errors import ConnectionLost
from voice_bridge.models.session import AgentCredentials

logger = logging.getLogger(LOGGER_NAME)

AGENT_WS_URL = os.getenv("ELEVENLABS_CONVAI_URL", DEFAULT_AGENT_WS_URL)

CONNECTION_TIMEOUT = 15  # seconds
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks
WS_PING_INTERVAL = 20  # seconds

MessageHandler = Callable[[Union[str, bytes]], Awaitable[None]]


class AgentClient:
    """
    Client for one agent conversation over WebSocket.
    """

    def __init__(self, agent_id: str, api_key: str, url: str = AGENT_WS_URL):
        self.agent_id = agent_id
        self._api_key = api_key
        self.url = url
        self.ws = None
        self._open = False

    @classmethod
    def from_credentials(cls, credentials: AgentCredentials) -> "AgentClient":
        return cls(credentials.agent_id, credentials.api_key.get_secret_value())

    @property
    def conversation_url(self) -> str:
        return f"{self.url}?{urlencode({'agent_id': self.agent_id})}"

    @property
    def is_open(self) -> bool:
        return self._open

    async def connect(self) -> None:
        """
        Open the agent WebSocket.

        Raises:
            asyncio.TimeoutError: If the platform does not answer in time
            Exception: Any handshake failure reported by ``websockets``
        """
        logger.info(f"Connecting to agent platform with agent: {self.agent_id}")
        self.ws = await asyncio.wait_for(
            websockets.connect(
                self.conversation_url,
                additional_headers={AGENT_API_KEY_HEADER: self._api_key},
                max_size=WS_MAX_SIZE,
                ping_interval=WS_PING_INTERVAL,
                compression=None,
            ),
            timeout=CONNECTION_TIMEOUT,
        )
        self._open = True
        logger.info("Connected to agent platform")

    async def send(self, frame: str) -> None:
        """
        Send one text frame.

        Raises:
            ConnectionLost: If the connection is not open
        """
        if not self._open or self.ws is None:
            raise ConnectionLost("Agent connection is not open")
        try:
            await self.ws.send(frame)
        except ConnectionClosed as e:
            self._open = False
            raise ConnectionLost(str(e)) from e

    async def listen(self, on_message: MessageHandler) -> None:
        """
        Deliver every inbound frame to ``on_message`` until the connection closes.
        """
        if self.ws is None:
            logger.warning("Agent WebSocket not initialized for receive loop")
            return
        try:
            async for message in self.ws:
                await on_message(message)
        except ConnectionClosedOK:
            logger.info("Agent connection closed normally")
        except ConnectionClosedError as e:
            logger.warning(f"Agent connection closed unexpectedly: {e}")
        finally:
            self._open = False
        logger.info("Agent disconnected")

    async def close(self) -> None:
        self._open = False
        if self.ws is not None:
            try:
                await self.ws.close()
            except Exception as e:
                logger.warning(f"Error closing agent WebSocket: {e}")
