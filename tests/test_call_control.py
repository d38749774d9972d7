"""
Tests for call-status notifications and hangup.
"""

import pytest

from voice_bridge.errors import NoActiveSession, UpstreamError
from voice_bridge.services import call_control


@pytest.fixture
def session_id(registry, provider_credentials, agent_credentials):
    return registry.create(provider_credentials, agent_credentials, "https://bridge.example.com")


class TestStatusUpdate:
    @pytest.mark.parametrize("status", ["initiated", "ringing", "answered", "in-progress"])
    def test_progress_keeps_call(self, registry, session_id, status):
        registry.bind_call("CA1", session_id)
        call_control.status_update(registry, "CA1", status)
        assert registry.session_for_call("CA1") is not None

    @pytest.mark.parametrize("status", ["completed", "busy", "failed", "no-answer", "canceled"])
    def test_terminal_status_forgets_call(self, registry, session_id, status):
        registry.bind_call("CA1", session_id)
        call_control.status_update(registry, "CA1", status)
        assert registry.session_for_call("CA1") is None
        # The session itself lives on until its TTL
        assert registry.get(session_id) is not None

    def test_missing_fields_tolerated(self, registry):
        call_control.status_update(registry, "", "")


class TestHangup:
    @pytest.mark.asyncio
    async def test_uses_owning_session(
        self, registry, session_id, telephony_client, telephony_client_factory, provider_credentials
    ):
        registry.bind_call("CA1", session_id)

        await call_control.hangup(registry, "CA1", telephony_client_factory)

        telephony_client_factory.assert_called_once_with(provider_credentials)
        telephony_client.hangup.assert_awaited_once_with("CA1")
        assert registry.session_for_call("CA1") is None

    @pytest.mark.asyncio
    async def test_falls_back_to_live_session(
        self, registry, session_id, telephony_client, telephony_client_factory
    ):
        await call_control.hangup(registry, "CA-unknown", telephony_client_factory)
        telephony_client.hangup.assert_awaited_once_with("CA-unknown")

    @pytest.mark.asyncio
    async def test_no_sessions(self, registry, telephony_client_factory):
        with pytest.raises(NoActiveSession) as exc_info:
            await call_control.hangup(registry, "CA1", telephony_client_factory)
        assert exc_info.value.status_code == 404
        telephony_client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_rejection(self, registry, session_id, telephony_client, telephony_client_factory):
        registry.bind_call("CA1", session_id)
        telephony_client.hangup.side_effect = UpstreamError("Call not found", code=20404)

        with pytest.raises(UpstreamError):
            await call_control.hangup(registry, "CA1", telephony_client_factory)

        # Still indexed, so a retry uses the same account
        assert registry.session_for_call("CA1") is not None
