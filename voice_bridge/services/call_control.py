"""
Administrative operations on in-flight calls.

The status receiver is passive: it logs provider notifications and forgets the call
handle once the call has ended. Hangup uses the credentials of the session that placed
the call; calls placed before a restart are unknown to the index, in which case the
most recently created live session's account is tried instead.
"""

import logging

from voice_bridge.config.constants import LOGGER_NAME, TERMINAL_CALL_STATUSES
from voice_bridge.errors import NoActiveSession
from voice_bridge.models.session import SessionRegistry
from voice_bridge.services.telephony_client import TelephonyClient, TelephonyClientFactory

logger = logging.getLogger(LOGGER_NAME)


def status_update(registry: SessionRegistry, call_handle: str, status: str) -> None:
    """Record a provider call-status notification."""
    logger.info(f"Call Status Update: {call_handle} is {status}")
    if call_handle and status in TERMINAL_CALL_STATUSES:
        registry.forget_call(call_handle)


async def hangup(
    registry: SessionRegistry,
    call_handle: str,
    telephony_client_factory: TelephonyClientFactory = TelephonyClient.from_credentials,
) -> None:
    """
    Terminate a call.

    Raises:
        NoActiveSession: If no session is available to supply credentials
        UpstreamError: If the provider rejects the request
    """
    session = registry.session_for_call(call_handle)
    if session is None:
        session = registry.any_session()
        if session is None:
            raise NoActiveSession()
        logger.warning(
            f"No session recorded for call {call_handle}; using credentials of session {session.id}"
        )

    client = telephony_client_factory(session.provider_credentials)
    await client.hangup(call_handle)
    registry.forget_call(call_handle)
    logger.info(f"Call {call_handle} terminated")
