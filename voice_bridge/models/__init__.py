"""
Models module for data structures and state management in the meeting voice bridge.

Key components:
- session: Immutable session records and the SessionRegistry that correlates the
  call-initiation request, the call-instruction webhook and the media-stream WebSocket.
- message_schemas: Pydantic models for the telephony media-stream vocabulary and the
  agent platform vocabulary, plus tolerant frame decoders.
- api_schemas: Request and response bodies of the HTTP call endpoints.

Usage examples:
```python
from pydantic import SecretStr

from voice_bridge.models import AgentCredentials, ProviderCredentials, SessionRegistry

registry = SessionRegistry()
session_id = registry.create(
    provider_credentials=ProviderCredentials(account_id="AC123", secret=SecretStr("token")),
    agent_credentials=AgentCredentials(agent_id="agent-1", api_key=SecretStr("xi-key")),
    callback_base_address="https://bridge.example.com",
)
session = registry.get(session_id)

from voice_bridge.models import parse_telephony_event

event = parse_telephony_event('{"event": "start", "start": {"streamSid": "MZ1"}}')
print(event.start.streamSid)
```
"""

from voice_bridge.models.api_schemas import (
    CallStatusResponse,
    ErrorResponse,
    HangupCallRequest,
    HangupCallResponse,
    HealthResponse,
    InitiateCallRequest,
    InitiateCallResponse,
)
from voice_bridge.models.message_schemas import (
    AgentAudioEvent,
    AgentEvent,
    AgentPingEvent,
    ConversationInitiatedEvent,
    PongFrame,
    StreamMediaEvent,
    StreamStartEvent,
    StreamStopEvent,
    TelephonyEvent,
    TelephonyMediaFrame,
    UserAudioChunk,
    parse_agent_event,
    parse_telephony_event,
)
from voice_bridge.models.session import (
    AgentCredentials,
    ProviderCredentials,
    Session,
    SessionRegistry,
)
