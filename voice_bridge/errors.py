"""
Error taxonomy for the meeting voice bridge.

Every error carries the HTTP status it maps to so the API layer can translate it
without knowing the specific failure. Socket-level errors (``ProtocolDecodeError``,
``ConnectionLost``) never reach HTTP; they are logged and contained by the bridge.
"""

from typing import Optional, Sequence


class BridgeError(Exception):
    status_code: int = 500
    default_detail: str = "Bridge error"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class InvalidRequest(BridgeError):
    status_code = 400
    default_detail = "Invalid request"

    def __init__(self, detail: Optional[str] = None, missing_fields: Sequence[str] = ()) -> None:
        super().__init__(detail)
        self.missing_fields = list(missing_fields)


class SessionNotFound(BridgeError):
    status_code = 404
    default_detail = "Session not found"


class NoActiveSession(BridgeError):
    status_code = 404
    default_detail = "No active session found"


class UpstreamError(BridgeError):
    """A telephony or agent platform rejected a request.

    The provider's code, message and documentation link are kept verbatim for
    operator diagnosis.
    """

    status_code = 500
    default_detail = "Upstream request failed"

    def __init__(
        self,
        detail: Optional[str] = None,
        code: Optional[int] = None,
        more_info: Optional[str] = None,
    ) -> None:
        super().__init__(detail)
        self.code = code
        self.more_info = more_info


class ProtocolDecodeError(BridgeError):
    default_detail = "Malformed frame"


class ConnectionLost(BridgeError):
    default_detail = "Connection lost"
