"""In-memory session records for the OAuth client.

Each browser session gets its own record, keyed by an opaque cookie value.
Nothing is persisted: restarting the process forgets every session.
"""

import asyncio
import logging
import os
import secrets
from collections import OrderedDict
from typing import Optional

from oauth.state import StateManager
from oauth.tokens import TokenSet

logger = logging.getLogger(__name__)

DEFAULT_SESSION_CAPACITY = 1000


class SessionState:
    """Expected state value and current tokens for one user.

    Hold ``lock`` while issuing or validating state and while applying tokens
    so concurrent requests on the same session cannot interleave.
    """

    def __init__(self, session_id: str = None):
        self.session_id = session_id or secrets.token_urlsafe(32)
        self.state = StateManager()
        self.tokens: Optional[TokenSet] = None
        self.lock = asyncio.Lock()

    @property
    def access_token(self) -> Optional[str]:
        return self.tokens.access_token if self.tokens else None

    @property
    def refresh_token(self) -> Optional[str]:
        return self.tokens.refresh_token if self.tokens else None

    @property
    def scope(self) -> Optional[str]:
        return self.tokens.scope if self.tokens else None

    @property
    def id_token(self):
        return self.tokens.id_token if self.tokens else None

    def reset(self) -> None:
        """Forget tokens and any outstanding state value."""
        self.state.clear()
        self.tokens = None

    def apply(self, tokens: Optional[TokenSet]) -> None:
        self.tokens = tokens


class SessionStore:
    """Session records by session id, least recently used evicted first.

    ``capacity`` defaults to SESSION_CAPACITY from the environment.
    """

    def __init__(self, capacity: int = None):
        if capacity is None:
            capacity = int(os.getenv("SESSION_CAPACITY", str(DEFAULT_SESSION_CAPACITY)))
        if capacity < 1:
            raise ValueError("Session capacity must be at least 1")
        self.capacity = capacity
        self._sessions: "OrderedDict[str, SessionState]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id) -> bool:
        return session_id in self._sessions

    def get(self, session_id: Optional[str]) -> Optional[SessionState]:
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def add(self, session: SessionState) -> SessionState:
        """Store ``session``, evicting the least recently used records over capacity."""
        self._sessions[session.session_id] = session
        self._sessions.move_to_end(session.session_id)
        while len(self._sessions) > self.capacity:
            self._sessions.popitem(last=False)
            logger.info(f"[SESSION] Evicted least recently used session ({len(self._sessions)} kept)")
        return session

    def create(self) -> SessionState:
        return self.add(SessionState())

    def get_or_create(self, session_id: Optional[str]) -> SessionState:
        return self.get(session_id) or self.create()
