"""
Session state management for the meeting voice bridge.

A session binds one call's telephony credentials, agent credentials and callback
address to an opaque identifier. The identifier is the only thing that ties together
the call-initiation request, the provider's call-instruction webhook and the later
media-stream WebSocket, so it doubles as a capability token.

The SessionRegistry owns every session for the lifetime of the process. Sessions are
immutable once created and disappear after a fixed TTL whether or not they were used.
"""

import asyncio
import logging
import time
import uuid
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, SecretStr

from voice_bridge.config.constants import DEFAULT_SESSION_TTL_SECONDS, LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class ProviderCredentials(BaseModel):
    """Telephony provider account credentials."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    secret: SecretStr


class AgentCredentials(BaseModel):
    """Conversational agent platform credentials."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    api_key: SecretStr


class Session(BaseModel):
    """Immutable record for one bridged call."""

    model_config = ConfigDict(frozen=True)

    id: str
    provider_credentials: ProviderCredentials
    agent_credentials: AgentCredentials
    callback_base_address: str
    created_at: float


class SessionRegistry:
    """
    Holds ephemeral sessions keyed by opaque session identifiers.

    Each created session schedules its own removal after ``ttl_seconds`` when an event
    loop is running, and ``get`` also checks the session age against ``clock`` so an
    expired session is never returned even if its timer has not fired yet.

    The registry also keeps a secondary index from the provider's call handle to the
    session that placed the call, so call-control operations can use the owning
    session's credentials.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._call_index: Dict[str, str] = {}

    def create(
        self,
        provider_credentials: ProviderCredentials,
        agent_credentials: AgentCredentials,
        callback_base_address: str,
    ) -> str:
        """
        Create a session and schedule its expiry.

        Args:
            provider_credentials: Telephony account used to place and control the call
            agent_credentials: Agent platform credentials used by the media bridge
            callback_base_address: Normalized, externally reachable base address

        Returns:
            The new session identifier
        """
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = Session(
            id=session_id,
            provider_credentials=provider_credentials,
            agent_credentials=agent_credentials,
            callback_base_address=callback_base_address,
            created_at=self._clock(),
        )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (e.g. synchronous callers); lazy expiry in get() still applies
            loop = None
        if loop is not None:
            self._timers[session_id] = loop.call_later(
                self.ttl_seconds, self._expire, session_id
            )

        logger.info(f"Session created: {session_id} (active sessions: {len(self._sessions)})")
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        """
        Get a live session by its identifier.

        Returns:
            The session, or None if it does not exist or has expired
        """
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self._clock() - session.created_at >= self.ttl_seconds:
            self._expire(session_id)
            return None
        return session

    def delete(self, session_id: str) -> None:
        """Remove a session, its expiry timer and any call handles bound to it."""
        self._sessions.pop(session_id, None)
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()
        for call_handle in [h for h, sid in self._call_index.items() if sid == session_id]:
            del self._call_index[call_handle]

    def _expire(self, session_id: str) -> None:
        if session_id in self._sessions:
            logger.info(f"Session expired: {session_id}")
        self.delete(session_id)

    def bind_call(self, call_handle: str, session_id: str) -> None:
        """Record which session placed the call identified by ``call_handle``."""
        if session_id in self._sessions:
            self._call_index[call_handle] = session_id

    def forget_call(self, call_handle: str) -> None:
        self._call_index.pop(call_handle, None)

    def session_for_call(self, call_handle: str) -> Optional[Session]:
        """Return the live session that placed ``call_handle``, if known."""
        session_id = self._call_index.get(call_handle)
        if session_id is None:
            return None
        return self.get(session_id)

    def any_session(self) -> Optional[Session]:
        """Return the most recently created live session, if any."""
        for session_id in reversed(list(self._sessions)):
            session = self.get(session_id)
            if session is not None:
                return session
        return None

    def close(self) -> None:
        """Cancel all expiry timers and drop every session."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._sessions.clear()
        self._call_index.clear()
        logger.info("Session registry closed")

    def __len__(self) -> int:
        """Number of live sessions; sessions past their TTL are expired as a side effect."""
        return sum(1 for session_id in list(self._sessions) if self.get(session_id) is not None)

    def __contains__(self, session_id: object) -> bool:
        return isinstance(session_id, str) and self.get(session_id) is not None
