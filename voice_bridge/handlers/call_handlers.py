"""
HTTP endpoints for placing, instructing, tracking and ending bridged calls.

The client-facing endpoints (``/initiate-call``, ``/hangup-call``) take JSON bodies.
The provider-facing webhooks (``/call-instructions``, ``/call-status``) are fetched by
the telephony provider with form-encoded bodies.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from voice_bridge.config.constants import (
    CALL_INSTRUCTIONS_PATH,
    CALL_STATUS_PATH,
    HANGUP_CALL_PATH,
    INITIATE_CALL_PATH,
    LOGGER_NAME,
    SESSION_ID_PARAM,
)
from voice_bridge.errors import InvalidRequest, SessionNotFound, UpstreamError
from voice_bridge.models.api_schemas import (
    CallStatusResponse,
    ErrorResponse,
    HangupCallRequest,
    HangupCallResponse,
    InitiateCallRequest,
    InitiateCallResponse,
)
from voice_bridge.models.session import SessionRegistry
from voice_bridge.services import call_control
from voice_bridge.services.call_instructions import build_instructions
from voice_bridge.services.call_orchestrator import initiate_call
from voice_bridge.services.telephony_client import TelephonyClient, TelephonyClientFactory

logger = logging.getLogger(LOGGER_NAME)

router = APIRouter()


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


def get_telephony_client_factory() -> TelephonyClientFactory:
    return TelephonyClient.from_credentials


def _upstream_error_response(title: str, exc: UpstreamError) -> JSONResponse:
    body = ErrorResponse(
        error=title,
        details=exc.detail,
        providerCode=exc.code,
        providerInfoLink=exc.more_info,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@router.post(INITIATE_CALL_PATH, response_model=InitiateCallResponse)
async def initiate_call_endpoint(
    payload: Optional[InitiateCallRequest] = Body(None),
    registry: SessionRegistry = Depends(get_session_registry),
    telephony_client_factory: TelephonyClientFactory = Depends(get_telephony_client_factory),
):
    """Create a session and dial out to the destination with the agent attached."""
    try:
        placement = await initiate_call(
            payload or InitiateCallRequest(), registry, telephony_client_factory
        )
    except UpstreamError as exc:
        return _upstream_error_response("Failed to initiate call", exc)

    return InitiateCallResponse(callHandle=placement.call_handle, sessionId=placement.session_id)


@router.post(HANGUP_CALL_PATH, response_model=HangupCallResponse)
async def hangup_call_endpoint(
    payload: Optional[HangupCallRequest] = Body(None),
    registry: SessionRegistry = Depends(get_session_registry),
    telephony_client_factory: TelephonyClientFactory = Depends(get_telephony_client_factory),
):
    """Terminate an in-flight call."""
    call_handle = ((payload.callHandle if payload else None) or "").strip()
    if not call_handle:
        raise InvalidRequest("Call handle is required", missing_fields=["callHandle"])

    try:
        await call_control.hangup(registry, call_handle, telephony_client_factory)
    except UpstreamError as exc:
        return _upstream_error_response("Failed to hang up call", exc)

    return HangupCallResponse()


@router.post(CALL_INSTRUCTIONS_PATH)
async def call_instructions_endpoint(
    session_id: Optional[str] = Query(None, alias=SESSION_ID_PARAM),
    registry: SessionRegistry = Depends(get_session_registry),
) -> Response:
    """Provider webhook: tell the provider where to open the media stream."""
    try:
        twiml = build_instructions(registry, session_id)
    except SessionNotFound as exc:
        return PlainTextResponse(exc.detail, status_code=exc.status_code)
    return Response(content=twiml, media_type="text/xml")


@router.post(CALL_STATUS_PATH, response_model=CallStatusResponse)
async def call_status_endpoint(
    request: Request,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CallStatusResponse:
    """Provider webhook: call progress notifications. Always acknowledged."""
    try:
        form = await request.form()
        call_handle = str(form.get("CallSid") or "").strip()
        status = str(form.get("CallStatus") or "").strip()
    except Exception as e:
        logger.warning(f"Unreadable call status callback: {e}")
        return CallStatusResponse()

    call_control.status_update(registry, call_handle, status)
    return CallStatusResponse()
