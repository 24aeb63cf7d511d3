from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class McpSession:
    """Per-caller state handed to tools.

    The protocol layer and both transports only forward this object; tools
    own whatever they keep in `state`.
    """

    session_id: str
    state: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new(cls, session_id: str | None = None) -> "McpSession":
        return cls(session_id=session_id or f"sess_{uuid.uuid4().hex}")


class SessionStore:
    """Process-wide session map; sessions are created on first reference.

    There is no expiry: sessions live until the hosting process recycles.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, McpSession] = {}
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str | None = None) -> McpSession:
        with self._lock:
            if session_id:
                sess = self._sessions.get(session_id)
                if sess is not None:
                    return sess
            sess = McpSession.new(session_id)
            self._sessions[sess.session_id] = sess
            return sess

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class LazySession:
    """A session handle that touches the store only when a handler needs it.

    Calls that never reach a tool (ping, initialize, rejected envelopes) leave
    the store untouched.
    """

    def __init__(self, store: SessionStore, session_id: str | None = None) -> None:
        self._store = store
        self._requested_id = session_id
        self._session: McpSession | None = None

    def resolve(self) -> McpSession:
        if self._session is None:
            self._session = self._store.get_or_create(self._requested_id)
        return self._session

    @property
    def resolved(self) -> bool:
        return self._session is not None

    @property
    def session_id(self) -> str | None:
        if self._session is not None:
            return self._session.session_id
        return self._requested_id


def resolve_session(session: Any) -> Any:
    """Materialize a LazySession; anything else is passed through as-is."""
    if isinstance(session, LazySession):
        return session.resolve()
    return session


_STORE: SessionStore | None = None
_STORE_LOCK = threading.Lock()


def get_session_store() -> SessionStore:
    """Return the process-wide store, creating it on first use."""
    global _STORE
    with _STORE_LOCK:
        if _STORE is None:
            _STORE = SessionStore()
        return _STORE
