"""
Outbound call orchestration.

Turns a call-initiation request into a session plus a placed call. The session is
created before the provider is contacted so the provider's first webhook fetch can
already resolve it; the session id travels to the provider inside the call-instruction
URL and is the only thing that ties the later media stream back to this request.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from pydantic import SecretStr

from voice_bridge.config.constants import (
    CALL_INSTRUCTIONS_PATH,
    CALL_STATUS_PATH,
    DTMF_PAUSE,
    DTMF_TERMINATOR,
    LOGGER_NAME,
    SESSION_ID_PARAM,
    STATUS_CALLBACK_EVENTS,
)
from voice_bridge.errors import InvalidRequest, UpstreamError
from voice_bridge.models.api_schemas import InitiateCallRequest
from voice_bridge.models.session import AgentCredentials, ProviderCredentials, SessionRegistry
from voice_bridge.services.telephony_client import TelephonyClient, TelephonyClientFactory

logger = logging.getLogger(LOGGER_NAME)

REQUIRED_FIELDS = (
    "telephonyAccountId",
    "telephonySecret",
    "telephonySourceNumber",
    "agentApiKey",
    "agentId",
    "destinationDialString",
    "callbackBaseAddress",
)


@dataclass(frozen=True)
class CallPlacement:
    call_handle: str
    session_id: str


def normalize_callback_address(address: str) -> str:
    """Give the callback address an explicit scheme (``https`` by default)."""
    address = address.strip()
    if not address.startswith(("http://", "https://")):
        address = f"https://{address}"
    return address.rstrip("/")


def build_dtmf_sequence(join_id: Optional[str] = None, passcode: Optional[str] = None) -> str:
    """
    Build the digits the provider keys in once the call connects.

    The leading pause waits for the meeting's voice menu. With a join identifier the
    sequence continues with ``<join_id>#``, another pause, then ``<passcode>#`` or a
    bare ``#`` when there is no passcode. Without a join identifier only the pause is
    sent, since the call is expected to connect directly.

    Examples:
        >>> build_dtmf_sequence("1234", "56")
        'wwww1234#wwww56#'
        >>> build_dtmf_sequence("1234")
        'wwww1234#wwww#'
        >>> build_dtmf_sequence()
        'wwww'
    """
    sequence = DTMF_PAUSE
    if join_id:
        sequence += f"{join_id}{DTMF_TERMINATOR}{DTMF_PAUSE}"
        sequence += f"{passcode}{DTMF_TERMINATOR}" if passcode else DTMF_TERMINATOR
    return sequence


def build_instructions_url(callback_base_address: str, session_id: str) -> str:
    return f"{callback_base_address}{CALL_INSTRUCTIONS_PATH}?{urlencode({SESSION_ID_PARAM: session_id})}"


def _missing_fields(request: InitiateCallRequest):
    return [
        name for name in REQUIRED_FIELDS
        if not (getattr(request, name) or "").strip()
    ]


async def initiate_call(
    request: InitiateCallRequest,
    registry: SessionRegistry,
    telephony_client_factory: TelephonyClientFactory = TelephonyClient.from_credentials,
) -> CallPlacement:
    """
    Create a session and place the outbound call that will carry it.

    Args:
        request: The call-initiation request
        registry: Registry the new session is stored in
        telephony_client_factory: Builds a telephony client for the request's account

    Returns:
        The provider's call handle and the new session id

    Raises:
        InvalidRequest: If a required field is missing; nothing external is contacted
        UpstreamError: If the provider rejects the call; the session is discarded
    """
    missing = _missing_fields(request)
    if missing:
        raise InvalidRequest(
            "All fields (except meeting join id and passcode) are required",
            missing_fields=missing,
        )

    callback_base_address = normalize_callback_address(request.callbackBaseAddress)
    send_digits = build_dtmf_sequence(request.meetingJoinId, request.passcode)

    provider_credentials = ProviderCredentials(
        account_id=request.telephonyAccountId.strip(),
        secret=SecretStr(request.telephonySecret.strip()),
    )
    session_id = registry.create(
        provider_credentials=provider_credentials,
        agent_credentials=AgentCredentials(
            agent_id=request.agentId.strip(),
            api_key=SecretStr(request.agentApiKey.strip()),
        ),
        callback_base_address=callback_base_address,
    )

    client = telephony_client_factory(provider_credentials)
    try:
        call_handle = await client.place_call(
            to=request.destinationDialString.strip(),
            from_=request.telephonySourceNumber.strip(),
            url=build_instructions_url(callback_base_address, session_id),
            send_digits=send_digits,
            status_callback=f"{callback_base_address}{CALL_STATUS_PATH}",
            status_callback_events=STATUS_CALLBACK_EVENTS,
        )
    except UpstreamError:
        registry.delete(session_id)
        raise

    registry.bind_call(call_handle, session_id)
    logger.info(f"Call initiated: {call_handle} (Session: {session_id})")
    return CallPlacement(call_handle=call_handle, session_id=session_id)
