"""
Tests for the TwiML returned to the telephony provider's instruction webhook.
"""

import xml.etree.ElementTree as ET

import pytest

from voice_bridge.errors import SessionNotFound
from voice_bridge.services.call_instructions import (
    build_instructions,
    build_media_stream_url,
    to_stream_url,
)


@pytest.mark.parametrize(
    "http_url, ws_url",
    [
        ("https://bridge.example.com", "wss://bridge.example.com"),
        ("http://localhost:3000", "ws://localhost:3000"),
        ("wss://already.example.com", "wss://already.example.com"),
    ],
)
def test_to_stream_url(http_url, ws_url):
    assert to_stream_url(http_url) == ws_url


def test_media_stream_url():
    assert (
        build_media_stream_url("https://bridge.example.com", "abc")
        == "wss://bridge.example.com/media-stream?sessionId=abc"
    )


def test_instructions_connect_to_media_stream(registry, provider_credentials, agent_credentials):
    session_id = registry.create(provider_credentials, agent_credentials, "https://bridge.example.com")

    document = ET.fromstring(build_instructions(registry, session_id))

    assert document.tag == "Response"
    stream = document.find("./Connect/Stream")
    assert stream is not None
    assert stream.get("url") == f"wss://bridge.example.com/media-stream?sessionId={session_id}"


def test_unknown_session(registry):
    with pytest.raises(SessionNotFound) as exc_info:
        build_instructions(registry, "no-such-session")
    assert exc_info.value.status_code == 404


def test_expired_session(registry, clock, provider_credentials, agent_credentials):
    session_id = registry.create(provider_credentials, agent_credentials, "https://bridge.example.com")
    clock.advance(3600)
    with pytest.raises(SessionNotFound):
        build_instructions(registry, session_id)
