"""
Call-instruction responder.

When the provider connects a placed call it fetches instructions from the URL given at
placement time. The answer tells it to open a bidirectional media stream back to this
server, carrying the session id as a query parameter; this is how the session crosses
from the HTTP side into the WebSocket side.
"""

import logging
from urllib.parse import urlencode

from twilio.twiml.voice_response import VoiceResponse

from voice_bridge.config.constants import LOGGER_NAME, MEDIA_STREAM_PATH, SESSION_ID_PARAM
from voice_bridge.errors import SessionNotFound
from voice_bridge.models.session import SessionRegistry

logger = logging.getLogger(LOGGER_NAME)


def to_stream_url(http_url: str) -> str:
    """Swap an ``http``/``https`` scheme for the matching WebSocket scheme."""
    if http_url.startswith("https://"):
        return "wss://" + http_url[len("https://"):]
    if http_url.startswith("http://"):
        return "ws://" + http_url[len("http://"):]
    return http_url


def build_media_stream_url(callback_base_address: str, session_id: str) -> str:
    return (
        f"{to_stream_url(callback_base_address)}{MEDIA_STREAM_PATH}"
        f"?{urlencode({SESSION_ID_PARAM: session_id})}"
    )


def build_instructions(registry: SessionRegistry, session_id: str) -> str:
    """
    Build the TwiML document for a session.

    Args:
        registry: Registry holding live sessions
        session_id: Session id from the instruction URL's query string

    Returns:
        TwiML connecting the call to this server's media stream endpoint

    Raises:
        SessionNotFound: If the session does not exist or has expired
    """
    session = registry.get(session_id)
    if session is None:
        logger.error(f"Session not found for call instructions: {session_id}")
        raise SessionNotFound()

    response = VoiceResponse()
    connect = response.connect()
    connect.stream(url=build_media_stream_url(session.callback_base_address, session.id))
    return str(response)
