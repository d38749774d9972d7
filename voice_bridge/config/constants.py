"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for configuration values and making it easier to
maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "voice_bridge"

# Session lifetime (seconds) before a session is discarded regardless of use
DEFAULT_SESSION_TTL_SECONDS = 3600

# Maximum number of frames waiting to be sent on one socket before the oldest is dropped
DEFAULT_OUTBOUND_QUEUE_SIZE = 32

# HTTP and WebSocket paths the telephony provider calls back into
INITIATE_CALL_PATH = "/initiate-call"
HANGUP_CALL_PATH = "/hangup-call"
CALL_INSTRUCTIONS_PATH = "/call-instructions"
CALL_STATUS_PATH = "/call-status"
MEDIA_STREAM_PATH = "/media-stream"
SESSION_ID_PARAM = "sessionId"

# DTMF building blocks ("w" is a half-second pause for the telephony provider)
DTMF_PAUSE = "wwww"
DTMF_TERMINATOR = "#"

# Call status events the provider reports back, and the ones that end a call
STATUS_CALLBACK_EVENTS = ["initiated", "ringing", "answered", "completed"]
TERMINAL_CALL_STATUSES = {"completed", "busy", "failed", "no-answer", "canceled"}

# Conversational agent platform
DEFAULT_AGENT_WS_URL = "wss://api.elevenlabs.io/v1/convai/conversation"
AGENT_API_KEY_HEADER = "xi-api-key"

# WebSocket close code used when a media stream presents an unknown session
WS_CLOSE_POLICY_VIOLATION = 1008

# WebSocket close code used for media streams still open when the server stops
WS_CLOSE_GOING_AWAY = 1001

# Telephony media stream event types
TELEPHONY_EVENT_START = "start"
TELEPHONY_EVENT_MEDIA = "media"
TELEPHONY_EVENT_STOP = "stop"

# Agent platform event types
AGENT_EVENT_CONVERSATION_INITIATED = "conversation_initiation_metadata"
AGENT_EVENT_AUDIO = "audio"
AGENT_EVENT_PING = "ping"
