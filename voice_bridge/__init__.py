"""
Meeting Voice Bridge - Telephony to Conversational AI Agent Bridge

This application dials a telephone number (typically a meeting dial-in) through the
telephony provider and connects the call's live audio to a conversational AI agent, so
that a voice agent joins the meeting instead of a human.

Architecture Overview:
- FastAPI server exposing the call endpoints, the provider webhooks and the
  media-stream WebSocket
- Session registry correlating the call request, the instruction webhook and the
  media stream through an opaque session id
- Per-call media bridge relaying audio frames between the telephony media stream and
  the agent platform WebSocket, translating between the two event vocabularies

Key Components:
- bot: Agent WebSocket client, media bridge and outbound frame queues
- config: Application-wide constants and logging setup
- handlers: HTTP endpoints for starting, instructing, tracking and ending calls
- models: Sessions, the session registry and the wire schemas
- services: Telephony client, call orchestration, call instructions and call control
- websocket_manager: Accepts media-stream WebSockets and drives their bridges

Getting Started:
1. Optionally set environment variables (or a .env file):
   - PORT / HOST: Where the server listens (default 0.0.0.0:3000)
   - LOG_LEVEL: Logging level (default INFO)
   - SESSION_TTL_SECONDS: Session lifetime (default 3600)
   - OUTBOUND_QUEUE_SIZE: Frames buffered per socket before dropping (default 32)
   - ELEVENLABS_CONVAI_URL: Agent platform WebSocket URL

2. Start the server:
   ```bash
   python run.py
   ```

3. POST the telephony and agent credentials to /initiate-call with a callback
   address the telephony provider can reach (e.g. an ngrok URL).
"""
