"""
Async wrapper around the Twilio REST client.

The Twilio helper library is synchronous, so each request runs in a worker thread to
keep the event loop free for live media streams. Provider rejections are re-raised as
UpstreamError with Twilio's error code, message and documentation link unchanged.
Network failures raised by the helper's HTTP transport become UpstreamError too.
Nothing here retries: placing a call is not safe to repeat blindly.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from requests.exceptions import RequestException
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from voice_bridge.config.constants import LOGGER_NAME
from voice_bridge.errors import UpstreamError
from voice_bridge.models.session import ProviderCredentials

logger = logging.getLogger(LOGGER_NAME)

ERROR_DOCS_URL = "https://www.twilio.com/docs/errors/{code}"


def _rest_error(exc: TwilioRestException) -> UpstreamError:
    more_info = getattr(exc, "more_info", None)
    if not more_info and exc.code:
        more_info = ERROR_DOCS_URL.format(code=exc.code)
    return UpstreamError(exc.msg or str(exc), code=exc.code, more_info=more_info)


class TelephonyClient:
    """Places and terminates calls on behalf of one telephony account."""

    def __init__(self, account_id: str, secret: str, client: Optional[Client] = None):
        self.account_id = account_id
        self._client = client or Client(account_id, secret)

    @classmethod
    def from_credentials(cls, credentials: ProviderCredentials) -> "TelephonyClient":
        return cls(credentials.account_id, credentials.secret.get_secret_value())

    async def place_call(
        self,
        *,
        to: str,
        from_: str,
        url: str,
        send_digits: Optional[str] = None,
        status_callback: Optional[str] = None,
        status_callback_events: Optional[List[str]] = None,
    ) -> str:
        """
        Place an outbound call.

        Args:
            to: Destination dial string
            from_: Source number owned by the account
            url: Webhook the provider fetches call instructions from
            send_digits: DTMF sequence played once the call connects
            status_callback: Webhook notified about call progress
            status_callback_events: Call progress events to report

        Returns:
            The provider's call handle

        Raises:
            UpstreamError: If the provider rejects the request
        """
        call_kwargs = {"to": to, "from_": from_, "url": url, "method": "POST"}
        if send_digits:
            call_kwargs["send_digits"] = send_digits
        if status_callback:
            call_kwargs["status_callback"] = status_callback
            call_kwargs["status_callback_method"] = "POST"
            if status_callback_events:
                call_kwargs["status_callback_event"] = status_callback_events

        logger.info(f"Placing call to {to} from {from_} (account: {self.account_id})")
        try:
            call = await asyncio.to_thread(self._client.calls.create, **call_kwargs)
        except TwilioRestException as exc:
            logger.error(f"Telephony provider rejected call placement: {exc.code} {exc.msg}")
            raise _rest_error(exc) from exc
        except TwilioException as exc:
            logger.error(f"Telephony request failed: {exc}")
            raise UpstreamError(str(exc)) from exc
        except RequestException as exc:
            logger.error(f"Could not reach telephony provider: {exc}")
            raise UpstreamError(f"Could not reach telephony provider: {exc}") from exc

        return str(call.sid)

    async def hangup(self, call_handle: str) -> None:
        """
        Terminate an in-flight call.

        Raises:
            UpstreamError: If the provider rejects the request
        """
        logger.info(f"Terminating call {call_handle} (account: {self.account_id})")
        try:
            await asyncio.to_thread(
                lambda: self._client.calls(call_handle).update(status="completed")
            )
        except TwilioRestException as exc:
            logger.error(f"Telephony provider rejected hangup of {call_handle}: {exc.code} {exc.msg}")
            raise _rest_error(exc) from exc
        except TwilioException as exc:
            logger.error(f"Telephony request failed: {exc}")
            raise UpstreamError(str(exc)) from exc
        except RequestException as exc:
            logger.error(f"Could not reach telephony provider: {exc}")
            raise UpstreamError(f"Could not reach telephony provider: {exc}") from exc


TelephonyClientFactory = Callable[[ProviderCredentials], TelephonyClient]
