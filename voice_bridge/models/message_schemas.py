"""
Pydantic models for the two streaming vocabularies the media bridge translates between.

Telephony side (Twilio Media Streams): JSON frames tagged by an ``event`` field.
Inbound ``start`` carries the stream identifier, ``media`` carries one base64 audio
frame, ``stop`` ends the stream. Outbound audio is a ``media`` frame addressed to the
stream identifier.

Agent side (ElevenLabs Conversational AI): JSON frames tagged by a ``type`` field.
Inbound ``conversation_initiation_metadata``, ``audio`` and ``ping``; outbound
``user_audio_chunk`` frames and ``pong`` replies.

Audio payloads are treated as opaque text and are never decoded here.
"""

import json
from typing import Any, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, Field, ValidationError

from voice_bridge.config.constants import (
    AGENT_EVENT_AUDIO,
    AGENT_EVENT_CONVERSATION_INITIATED,
    AGENT_EVENT_PING,
    TELEPHONY_EVENT_MEDIA,
    TELEPHONY_EVENT_START,
    TELEPHONY_EVENT_STOP,
)
from voice_bridge.errors import ProtocolDecodeError


# Telephony inbound
class StreamStart(BaseModel):
    """Metadata sent with the telephony ``start`` event."""

    streamSid: str = Field(..., description="Provider-assigned stream identifier")
    callSid: Optional[str] = Field(None, description="Call the stream belongs to")
    accountSid: Optional[str] = None
    tracks: Optional[list] = None
    mediaFormat: Optional[Dict[str, Any]] = None


class StreamStartEvent(BaseModel):
    event: Literal["start"]
    streamSid: Optional[str] = None
    start: StreamStart


class MediaPayload(BaseModel):
    payload: str = Field(..., description="Base64-encoded audio frame")
    track: Optional[str] = None
    chunk: Optional[str] = None
    timestamp: Optional[str] = None


class StreamMediaEvent(BaseModel):
    event: Literal["media"]
    streamSid: Optional[str] = None
    media: MediaPayload


class StreamStopEvent(BaseModel):
    event: Literal["stop"]
    streamSid: Optional[str] = None
    stop: Optional[Dict[str, Any]] = None


TelephonyEvent = Union[StreamStartEvent, StreamMediaEvent, StreamStopEvent]


# Telephony outbound
class OutboundMedia(BaseModel):
    payload: str


class TelephonyMediaFrame(BaseModel):
    """Audio frame sent back to the telephony leg."""

    event: Literal["media"] = "media"
    streamSid: str
    media: OutboundMedia


# Agent inbound
class ConversationInitiationMetadata(BaseModel):
    conversation_id: Optional[str] = None
    agent_output_audio_format: Optional[str] = None
    user_input_audio_format: Optional[str] = None


class ConversationInitiatedEvent(BaseModel):
    type: Literal["conversation_initiation_metadata"]
    conversation_initiation_metadata_event: Optional[ConversationInitiationMetadata] = None


class AudioEventBody(BaseModel):
    audio_base_64: Optional[str] = None
    event_id: Optional[int] = None


class AgentAudioEvent(BaseModel):
    type: Literal["audio"]
    audio_event: Optional[AudioEventBody] = None


class PingEventBody(BaseModel):
    event_id: int
    ping_ms: Optional[int] = None


class AgentPingEvent(BaseModel):
    type: Literal["ping"]
    ping_event: PingEventBody


AgentEvent = Union[ConversationInitiatedEvent, AgentAudioEvent, AgentPingEvent]


# Agent outbound
class UserAudioChunk(BaseModel):
    """Caller audio forwarded to the agent."""

    user_audio_chunk: str


class PongFrame(BaseModel):
    type: Literal["pong"] = "pong"
    event_id: int


TELEPHONY_EVENT_MODELS: Dict[str, Type[BaseModel]] = {
    TELEPHONY_EVENT_START: StreamStartEvent,
    TELEPHONY_EVENT_MEDIA: StreamMediaEvent,
    TELEPHONY_EVENT_STOP: StreamStopEvent,
}

AGENT_EVENT_MODELS: Dict[str, Type[BaseModel]] = {
    AGENT_EVENT_CONVERSATION_INITIATED: ConversationInitiatedEvent,
    AGENT_EVENT_AUDIO: AgentAudioEvent,
    AGENT_EVENT_PING: AgentPingEvent,
}


def _decode_frame(raw: Union[str, bytes], tag: str, models: Dict[str, Type[BaseModel]]):
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolDecodeError(f"Frame is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProtocolDecodeError(f"Frame is not a JSON object: {type(data).__name__}")

    name = data.get(tag)
    model = models.get(name) if isinstance(name, str) else None
    if model is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProtocolDecodeError(f"Invalid {name} frame: {e}") from e


def parse_telephony_event(raw: Union[str, bytes]) -> Optional[TelephonyEvent]:
    """
    Decode one frame received on the telephony media stream.

    Returns:
        The typed event, or None for event types the bridge does not act on
        (``connected``, ``mark``, ``dtmf``, ...)

    Raises:
        ProtocolDecodeError: If the frame is not JSON or a known event is malformed
    """
    return _decode_frame(raw, "event", TELEPHONY_EVENT_MODELS)


def parse_agent_event(raw: Union[str, bytes]) -> Optional[AgentEvent]:
    """
    Decode one frame received from the agent platform.

    Returns:
        The typed event, or None for event types the bridge does not act on
        (transcripts, agent responses, ...)

    Raises:
        ProtocolDecodeError: If the frame is not JSON or a known event is malformed
    """
    return _decode_frame(raw, "type", AGENT_EVENT_MODELS)
