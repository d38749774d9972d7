import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from voice_bridge.models.session import AgentCredentials, ProviderCredentials, SessionRegistry
from voice_bridge.services.telephony_client import TelephonyClient


class FakeClock:
    """Manually advanced monotonic clock for registry expiry tests."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    registry = SessionRegistry(ttl_seconds=3600, clock=clock)
    yield registry
    registry.close()


@pytest.fixture
def provider_credentials():
    return ProviderCredentials(account_id="AC123", secret=SecretStr("provider-secret"))


@pytest.fixture
def agent_credentials():
    return AgentCredentials(agent_id="agent-1", api_key=SecretStr("agent-key"))


@pytest.fixture
def telephony_client():
    """A TelephonyClient stand-in that records calls instead of dialing."""
    client = MagicMock(spec=TelephonyClient)
    client.place_call = AsyncMock(return_value="CA0001")
    client.hangup = AsyncMock()
    return client


@pytest.fixture
def telephony_client_factory(telephony_client):
    return MagicMock(return_value=telephony_client)


@pytest.fixture
def call_request_body():
    return {
        "telephonyAccountId": "AC123",
        "telephonySecret": "provider-secret",
        "telephonySourceNumber": "+15550001111",
        "agentApiKey": "agent-key",
        "agentId": "agent-1",
        "destinationDialString": "+15552223333",
        "callbackBaseAddress": "bridge.example.com",
        "meetingJoinId": "1234",
        "passcode": "56",
    }


class FakeAgent:
    """In-memory agent connection driven by the test."""

    def __init__(self):
        self.sent = []
        self.is_open = False
        self.close_calls = 0
        self.connect_error = None
        self.connect_gate = None
        self.remote_closed = asyncio.Event()
        self.on_message = None

    async def connect(self):
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        self.is_open = True

    async def send(self, frame):
        self.sent.append(frame)

    async def listen(self, on_message):
        self.on_message = on_message
        await self.remote_closed.wait()
        self.is_open = False

    async def close(self):
        self.close_calls += 1
        self.is_open = False


@pytest.fixture
def agent():
    return FakeAgent()
