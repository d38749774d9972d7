"""
Tests for call initiation: request validation, DTMF sequences and session wiring.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from voice_bridge.errors import InvalidRequest, UpstreamError
from voice_bridge.models.api_schemas import InitiateCallRequest
from voice_bridge.services.call_orchestrator import (
    REQUIRED_FIELDS,
    build_dtmf_sequence,
    build_instructions_url,
    initiate_call,
    normalize_callback_address,
)


class TestDtmfSequence:
    def test_join_id_and_passcode(self):
        assert build_dtmf_sequence("1234", "56") == "wwww1234#wwww56#"

    def test_join_id_only(self):
        assert build_dtmf_sequence("1234") == "wwww1234#wwww#"
        assert build_dtmf_sequence("1234", "") == "wwww1234#wwww#"

    def test_no_join_id(self):
        assert build_dtmf_sequence() == "wwww"
        # A passcode on its own is not keyed in
        assert build_dtmf_sequence(None, "56") == "wwww"


class TestCallbackAddress:
    @pytest.mark.parametrize(
        "address, expected",
        [
            ("bridge.example.com", "https://bridge.example.com"),
            ("bridge.example.com/", "https://bridge.example.com"),
            ("https://bridge.example.com", "https://bridge.example.com"),
            ("http://localhost:3000/", "http://localhost:3000"),
        ],
    )
    def test_normalize(self, address, expected):
        assert normalize_callback_address(address) == expected

    def test_instructions_url(self):
        assert (
            build_instructions_url("https://bridge.example.com", "abc")
            == "https://bridge.example.com/call-instructions?sessionId=abc"
        )


class TestInitiateCall:
    @pytest.mark.asyncio
    async def test_places_call_for_new_session(
        self, registry, telephony_client, telephony_client_factory, call_request_body
    ):
        placement = await initiate_call(
            InitiateCallRequest(**call_request_body), registry, telephony_client_factory
        )

        assert placement.call_handle == "CA0001"
        session = registry.get(placement.session_id)
        assert session is not None
        assert session.callback_base_address == "https://bridge.example.com"
        assert registry.session_for_call("CA0001").id == placement.session_id

        telephony_client_factory.assert_called_once_with(session.provider_credentials)
        kwargs = telephony_client.place_call.await_args.kwargs
        assert kwargs["to"] == "+15552223333"
        assert kwargs["from_"] == "+15550001111"
        assert kwargs["send_digits"] == "wwww1234#wwww56#"
        assert kwargs["status_callback"] == "https://bridge.example.com/call-status"
        assert kwargs["status_callback_events"] == ["initiated", "ringing", "answered", "completed"]

    @pytest.mark.asyncio
    async def test_instruction_url_carries_returned_session_id(
        self, registry, telephony_client, telephony_client_factory, call_request_body
    ):
        placement = await initiate_call(
            InitiateCallRequest(**call_request_body), registry, telephony_client_factory
        )

        url = urlparse(telephony_client.place_call.await_args.kwargs["url"])
        assert url.scheme == "https"
        assert url.netloc == "bridge.example.com"
        assert url.path == "/call-instructions"
        assert parse_qs(url.query)["sessionId"] == [placement.session_id]

    @pytest.mark.asyncio
    async def test_session_exists_before_call_is_placed(
        self, registry, telephony_client, telephony_client_factory, call_request_body
    ):
        seen = {}

        async def place_call(**kwargs):
            session_id = parse_qs(urlparse(kwargs["url"]).query)["sessionId"][0]
            seen["session"] = registry.get(session_id)
            return "CA0002"

        telephony_client.place_call.side_effect = place_call
        await initiate_call(InitiateCallRequest(**call_request_body), registry, telephony_client_factory)

        assert seen["session"] is not None

    @pytest.mark.asyncio
    async def test_numeric_meeting_fields(
        self, registry, telephony_client, telephony_client_factory, call_request_body
    ):
        call_request_body.update(meetingJoinId=1234, passcode=56)
        await initiate_call(
            InitiateCallRequest(**call_request_body), registry, telephony_client_factory
        )
        assert telephony_client.place_call.await_args.kwargs["send_digits"] == "wwww1234#wwww56#"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", REQUIRED_FIELDS)
    async def test_missing_field_rejected_without_side_effects(
        self, field, registry, telephony_client_factory, call_request_body
    ):
        del call_request_body[field]

        with pytest.raises(InvalidRequest) as exc_info:
            await initiate_call(
                InitiateCallRequest(**call_request_body), registry, telephony_client_factory
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.missing_fields == [field]
        telephony_client_factory.assert_not_called()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_blank_fields_count_as_missing(self, registry, telephony_client_factory, call_request_body):
        call_request_body["agentId"] = "   "
        with pytest.raises(InvalidRequest) as exc_info:
            await initiate_call(
                InitiateCallRequest(**call_request_body), registry, telephony_client_factory
            )
        assert exc_info.value.missing_fields == ["agentId"]

    @pytest.mark.asyncio
    async def test_provider_rejection_discards_session(
        self, registry, telephony_client, telephony_client_factory, call_request_body
    ):
        telephony_client.place_call.side_effect = UpstreamError(
            "Invalid 'To' number", code=21211, more_info="https://www.twilio.com/docs/errors/21211"
        )

        with pytest.raises(UpstreamError) as exc_info:
            await initiate_call(
                InitiateCallRequest(**call_request_body), registry, telephony_client_factory
            )

        assert exc_info.value.code == 21211
        assert len(registry) == 0
