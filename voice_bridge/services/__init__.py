"""
Services module for the HTTP-side operations of the meeting voice bridge.

Key components:
- telephony_client: Async wrapper over the Twilio REST client for placing and
  terminating calls, mapping provider rejections to UpstreamError.
- call_orchestrator: Validates a call-initiation request, builds the DTMF join
  sequence, creates the session and places the call.
- call_instructions: Produces the TwiML that points the provider at the media stream.
- call_control: Call-status notifications and hangup.

Usage examples:
```python
from voice_bridge.models import InitiateCallRequest, SessionRegistry
from voice_bridge.services.call_orchestrator import initiate_call
from voice_bridge.services.call_instructions import build_instructions

registry = SessionRegistry()
placement = await initiate_call(InitiateCallRequest(**body), registry)
twiml = build_instructions(registry, placement.session_id)
```
"""
