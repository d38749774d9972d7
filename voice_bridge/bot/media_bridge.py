"""
Bridge between the telephony media stream and the conversational agent WebSocket.

One MediaBridge is created per accepted media-stream WebSocket. It:
- Resolves the stream's session and opens the agent connection with its credentials
- Translates telephony ``media`` events into agent ``user_audio_chunk`` frames
- Translates agent ``audio`` events into telephony ``media`` frames for the stream
- Answers agent keep-alive pings
- Closes each socket when the other one closes

Audio payloads are forwarded byte-for-byte; no format conversion is performed.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Union

from fastapi import WebSocket

from voice_bridge.bot.agent_client import AgentClient
from voice_bridge.bot.frame_sender import FrameSender
from voice_bridge.config.constants import (
    AGENT_EVENT_AUDIO,
    AGENT_EVENT_CONVERSATION_INITIATED,
    AGENT_EVENT_PING,
    DEFAULT_OUTBOUND_QUEUE_SIZE,
    LOGGER_NAME,
    TELEPHONY_EVENT_MEDIA,
    TELEPHONY_EVENT_START,
    TELEPHONY_EVENT_STOP,
    WS_CLOSE_POLICY_VIOLATION,
)
from voice_bridge.errors import ProtocolDecodeError
from voice_bridge.models.message_schemas import (
    AgentAudioEvent,
    AgentPingEvent,
    ConversationInitiatedEvent,
    OutboundMedia,
    PongFrame,
    StreamMediaEvent,
    StreamStartEvent,
    StreamStopEvent,
    TelephonyMediaFrame,
    UserAudioChunk,
    parse_agent_event,
    parse_telephony_event,
)
from voice_bridge.models.session import AgentCredentials, SessionRegistry

logger = logging.getLogger(LOGGER_NAME)

AgentClientFactory = Callable[[AgentCredentials], AgentClient]


class BridgeState(str, Enum):
    AWAITING_SESSION = "awaiting_session"
    AWAITING_AGENT_READY = "awaiting_agent_ready"
    STREAMING = "streaming"
    CLOSED = "closed"


class MediaBridge:
    """
    Duplex relay and lifecycle state machine for one bridged call.

    States move ``AWAITING_SESSION -> AWAITING_AGENT_READY -> STREAMING``; ``CLOSED`` is
    terminal and reachable from every state. Caller audio that arrives before the agent
    connection is ready is dropped rather than buffered.
    """

    def __init__(
        self,
        websocket: WebSocket,
        agent_client_factory: AgentClientFactory = AgentClient.from_credentials,
        queue_size: int = DEFAULT_OUTBOUND_QUEUE_SIZE,
    ):
        self.websocket = websocket
        self.agent_client_factory = agent_client_factory
        self.queue_size = queue_size
        self.state = BridgeState.AWAITING_SESSION
        self.session_id: Optional[str] = None
        self.stream_sid: Optional[str] = None
        self.agent: Optional[AgentClient] = None
        self.agent_sender: Optional[FrameSender] = None
        self.telephony_sender = FrameSender("telephony", websocket.send_text, queue_size)
        self._agent_task: Optional[asyncio.Task] = None
        self._telephony_open = True

        self.telephony_handlers: Dict[str, Callable[..., Awaitable[None]]] = {
            TELEPHONY_EVENT_START: self._handle_stream_start,
            TELEPHONY_EVENT_MEDIA: self._handle_stream_media,
            TELEPHONY_EVENT_STOP: self._handle_stream_stop,
        }
        self.agent_handlers: Dict[str, Callable[..., Awaitable[None]]] = {
            AGENT_EVENT_CONVERSATION_INITIATED: self._handle_conversation_initiated,
            AGENT_EVENT_AUDIO: self._handle_agent_audio,
            AGENT_EVENT_PING: self._handle_agent_ping,
        }

    @property
    def agent_ready(self) -> bool:
        return (
            self.state is BridgeState.STREAMING
            and self.agent is not None
            and self.agent.is_open
        )

    async def open(self, registry: SessionRegistry, session_id: Optional[str]) -> bool:
        """
        Resolve the session and start connecting to the agent.

        Args:
            registry: Registry holding live sessions
            session_id: Session id from the media stream's query string

        Returns:
            True if the session was found and the bridge is starting, False if the
            telephony socket was closed because the session is unknown or expired
        """
        session = registry.get(session_id)
        if session is None:
            logger.error(f"Session not found for WebSocket: {session_id}")
            await self.close("unknown session", code=WS_CLOSE_POLICY_VIOLATION)
            return False

        self.session_id = session.id
        self.agent = self.agent_client_factory(session.agent_credentials)
        self.agent_sender = FrameSender("agent", self.agent.send, self.queue_size)
        self.state = BridgeState.AWAITING_AGENT_READY
        self.telephony_sender.start()
        self._agent_task = asyncio.create_task(self._run_agent())
        logger.info(f"Telephony media stream connected (Session: {session.id})")
        return True

    async def _run_agent(self) -> None:
        """Connect the agent socket, relay its frames, and close the bridge when it ends."""
        try:
            await self.agent.connect()
        except Exception as e:
            logger.error(f"Failed to connect to agent platform (Session: {self.session_id}): {e}")
            await self.close("agent connection failed")
            return

        if self.state is BridgeState.CLOSED:
            await self.agent.close()
            return

        self.state = BridgeState.STREAMING
        self.agent_sender.start()
        logger.info(f"Bridge streaming (Session: {self.session_id})")

        await self.agent.listen(self.handle_agent_message)
        # Agent audio already queued is delivered before the telephony socket closes
        await self.close("agent connection closed", flush_telephony=True)

    async def handle_telephony_message(self, raw: Union[str, bytes]) -> None:
        """Decode and dispatch one frame from the telephony media stream."""
        if self.state is BridgeState.CLOSED:
            return
        try:
            event = parse_telephony_event(raw)
        except ProtocolDecodeError as e:
            logger.warning(f"Discarding telephony frame: {e.detail}")
            return
        if event is None:
            return

        try:
            await self.telephony_handlers[event.event](event)
        except Exception as e:
            logger.error(f"Error handling telephony {event.event} event: {e}", exc_info=True)

    async def handle_agent_message(self, raw: Union[str, bytes]) -> None:
        """Decode and dispatch one frame from the agent platform."""
        if self.state is BridgeState.CLOSED:
            return
        try:
            event = parse_agent_event(raw)
        except ProtocolDecodeError as e:
            logger.warning(f"Discarding agent frame: {e.detail}")
            return
        if event is None:
            return

        try:
            await self.agent_handlers[event.type](event)
        except Exception as e:
            logger.error(f"Error handling agent {event.type} event: {e}", exc_info=True)

    async def _handle_stream_start(self, event: StreamStartEvent) -> None:
        self.stream_sid = event.start.streamSid
        logger.info(f"Stream started: {self.stream_sid}")

    async def _handle_stream_media(self, event: StreamMediaEvent) -> None:
        if not self.agent_ready:
            return
        frame = UserAudioChunk(user_audio_chunk=event.media.payload)
        self.agent_sender.enqueue(json.dumps(frame.model_dump()))

    async def _handle_stream_stop(self, event: StreamStopEvent) -> None:
        logger.info(f"Stream stopped: {self.stream_sid}")
        await self.close("telephony stream stopped")

    async def _handle_conversation_initiated(self, event: ConversationInitiatedEvent) -> None:
        metadata = event.conversation_initiation_metadata_event
        logger.info(
            "Agent conversation initiated"
            + (f": {metadata.conversation_id}" if metadata and metadata.conversation_id else "")
        )

    async def _handle_agent_audio(self, event: AgentAudioEvent) -> None:
        if event.audio_event is None or not event.audio_event.audio_base_64:
            return
        if self.stream_sid is None:
            logger.warning("Agent audio received before the telephony stream started, dropped")
            return
        frame = TelephonyMediaFrame(
            streamSid=self.stream_sid,
            media=OutboundMedia(payload=event.audio_event.audio_base_64),
        )
        self.telephony_sender.enqueue(json.dumps(frame.model_dump()))

    async def _handle_agent_ping(self, event: AgentPingEvent) -> None:
        if self.agent_sender is None:
            return
        frame = PongFrame(event_id=event.ping_event.event_id)
        self.agent_sender.enqueue(json.dumps(frame.model_dump()))

    async def telephony_disconnected(self) -> None:
        """Called when the telephony socket has closed from the provider's side."""
        self._telephony_open = False
        logger.info("Telephony media stream disconnected")
        await self.close("telephony disconnected")

    async def close(self, reason: str = "closed", code: int = 1000, flush_telephony: bool = False) -> None:
        """
        Close both legs and enter the terminal state. Safe to call repeatedly.

        Frames still queued when the bridge closes are discarded, except that with
        ``flush_telephony`` pending agent audio is written to the telephony socket first.
        """
        if self.state is BridgeState.CLOSED:
            return
        self.state = BridgeState.CLOSED
        logger.info(f"Closing bridge (Session: {self.session_id}): {reason}")

        if self.agent_sender is not None:
            await self.agent_sender.stop()
        await self.telephony_sender.stop(flush=flush_telephony and self._telephony_open)

        task, self._agent_task = self._agent_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self.agent is not None:
            await self.agent.close()

        if self._telephony_open:
            self._telephony_open = False
            try:
                await self.websocket.close(code=code)
            except Exception as e:
                logger.debug(f"Telephony socket already closed: {e}")
