"""
Handlers module for the HTTP side of the meeting voice bridge.

Key components:
- call_handlers: FastAPI router with the client-facing call endpoints
  (``/initiate-call``, ``/hangup-call``) and the provider-facing webhooks
  (``/call-instructions``, ``/call-status``).

The media-stream WebSocket itself is handled by ``voice_bridge.websocket_manager``.

Usage examples:
```python
from fastapi import FastAPI

from voice_bridge.handlers.call_handlers import router
from voice_bridge.models import SessionRegistry

app = FastAPI()
app.state.session_registry = SessionRegistry()
app.include_router(router)
```
"""
