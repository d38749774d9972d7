"""
Pydantic models for the HTTP request and response bodies of the call endpoints.

Request fields are all optional at the schema level so that missing values surface as
``InvalidRequest`` (HTTP 400) from the call orchestrator instead of a generic
validation error.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InitiateCallRequest(BaseModel):
    """Body of ``POST /initiate-call``."""

    # Meeting ids and passcodes are often sent as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    telephonyAccountId: Optional[str] = Field(None, description="Telephony account identifier")
    telephonySecret: Optional[str] = Field(None, description="Telephony account secret")
    telephonySourceNumber: Optional[str] = Field(None, description="Number the call is placed from")
    agentApiKey: Optional[str] = Field(None, description="Agent platform API key")
    agentId: Optional[str] = Field(None, description="Agent platform agent identifier")
    destinationDialString: Optional[str] = Field(None, description="Number to dial, e.g. a meeting dial-in")
    callbackBaseAddress: Optional[str] = Field(
        None, description="Externally reachable base address of this server"
    )
    meetingJoinId: Optional[str] = Field(None, description="Meeting identifier keyed in after connect")
    passcode: Optional[str] = Field(None, description="Meeting passcode keyed in after the identifier")


class InitiateCallResponse(BaseModel):
    success: bool = True
    callHandle: str
    sessionId: str


class HangupCallRequest(BaseModel):
    """Body of ``POST /hangup-call``."""

    callHandle: Optional[str] = Field(None, description="Call handle returned by initiate-call")


class HangupCallResponse(BaseModel):
    success: bool = True
    message: str = "Call ended"


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
    missingFields: Optional[List[str]] = None
    providerCode: Optional[int] = None
    providerInfoLink: Optional[str] = None


class CallStatusResponse(BaseModel):
    status: str = "ok"


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str
    active_sessions: int = 0
