"""
Session tracking for the chat server.

A Session is the server-side state of one connected client. The
SessionRegistry is the shared set of live sessions that every connection
task reads and mutates.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from myrc.core.message.protocol import DEFAULT_COLOR_LABEL, RESET
from myrc.core.server.interfaces import TransportConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Profile:
    """
    Display state of a session.

    Replaced as a whole on every change so readers on other connections
    always see a matching identity and color.

    Attributes:
        identity: Nickname, None until the client picks one
        color_label: Color name as shown to the user
        color_tag: ANSI tag written before the user's messages
    """
    identity: Optional[str] = None
    color_label: str = DEFAULT_COLOR_LABEL
    color_tag: str = RESET


@dataclass(eq=False)
class Session:
    """
    Represents one connected client.

    Attributes:
        transport: Line transport exclusively owned by this session
        session_id: Unique identifier used in logs
        created_at: Session creation timestamp
    """
    transport: TransportConnection
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    created_at: float = field(default_factory=time.time)
    _profile: Profile = field(default_factory=Profile, repr=False)

    @property
    def profile(self) -> Profile:
        """Get the current display state snapshot."""
        return self._profile

    @property
    def identity(self) -> Optional[str]:
        return self._profile.identity

    @property
    def color_label(self) -> str:
        return self._profile.color_label

    @property
    def color_tag(self) -> str:
        return self._profile.color_tag

    @property
    def is_named(self) -> bool:
        return self._profile.identity is not None

    def set_color(self, label: str, tag: str) -> None:
        """
        Change the display color.

        Args:
            label: Color name shown to the user
            tag: ANSI tag for message bodies
        """
        self._profile = replace(self._profile, color_label=label, color_tag=tag)

    def _set_identity(self, identity: Optional[str]) -> None:
        # Only SessionRegistry.claim_identity may call this, under its lock.
        self._profile = replace(self._profile, identity=identity)

    async def send(self, line: str) -> None:
        """
        Send one line to this client.

        Raises:
            DeliveryError: If the transport rejects the write
        """
        await self.transport.send_line(line)

    def describe(self) -> str:
        """Short label for log lines."""
        name = self.identity or "<unnamed>"
        return f"{name} ({self.session_id}@{self.transport.peer})"


class SessionRegistry:
    """
    Thread-safe collection of live sessions.

    Sessions are kept in insertion order with a secondary index from
    identity to session. No method awaits while holding the lock, so
    readers and writers never block each other for longer than a dict
    operation or a list copy.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._sessions: Dict[str, Session] = {}
        self._by_identity: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def add(self, session: Session) -> None:
        """
        Register a session.

        Identity uniqueness is not checked here; see claim_identity.

        Args:
            session: Session to add
        """
        with self._lock:
            self._sessions[session.session_id] = session
            total = len(self._sessions)
        logger.debug("Registered session %s (total sessions: %d)", session.session_id, total)

    def remove(self, session: Session) -> bool:
        """
        Unregister a session and release its identity.

        Args:
            session: Session to remove

        Returns:
            True if the session was registered, False if it was already gone
        """
        with self._lock:
            removed = self._sessions.pop(session.session_id, None)
            identity = session.identity
            if identity is not None and self._by_identity.get(identity) is session:
                del self._by_identity[identity]
        if removed is not None:
            logger.debug("Removed session %s", session.session_id)
        return removed is not None

    def snapshot(self) -> List[Session]:
        """
        Get the sessions registered at call time.

        The returned list is a copy, safe to iterate while other tasks add
        or remove sessions.
        """
        with self._lock:
            return list(self._sessions.values())

    def find_by_identity(self, name: str) -> Optional[Session]:
        """
        Find the session currently using a nickname.

        Args:
            name: Nickname, matched exactly (case-sensitive)

        Returns:
            Session or None
        """
        with self._lock:
            return self._by_identity.get(name)

    def claim_identity(self, session: Session, name: str) -> bool:
        """
        Atomically check that a nickname is free and assign it.

        The session's previous nickname, if any, is released in the same
        step. Claiming the nickname the session already holds succeeds.

        Args:
            session: Registered session asking for the nickname
            name: Requested nickname

        Returns:
            True if the session now holds the nickname, False if another
            live session holds it or the session is not registered
        """
        with self._lock:
            if self._sessions.get(session.session_id) is not session:
                return False
            holder = self._by_identity.get(name)
            if holder is not None and holder is not session:
                return False
            previous = session.identity
            if previous is not None and self._by_identity.get(previous) is session:
                del self._by_identity[previous]
            self._by_identity[name] = session
            session._set_identity(name)
        return True

    def identities(self) -> List[str]:
        """Get the nicknames currently in use."""
        with self._lock:
            return list(self._by_identity.keys())

    def __len__(self) -> int:
        """Return number of registered sessions."""
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        """Check if a session is registered."""
        if not isinstance(session, Session):
            return False
        with self._lock:
            return self._sessions.get(session.session_id) is session


__all__ = [
    'Profile',
    'Session',
    'SessionRegistry',
]
