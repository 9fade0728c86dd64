"""
Message routing for the chat server.

Delivers broadcast and private lines to sessions found in the registry.
A failed delivery is logged and reported in the result; it never stops
delivery to the other recipients.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional

from myrc.core.server.errors import DeliveryError
from myrc.core.server.session import Session, SessionRegistry
from myrc.core.server.utils.helpers import (
    format_chat_line,
    format_whisper_line,
    recipient_not_found,
)

logger = logging.getLogger(__name__)


class DeliveryStatus(Enum):
    """Status of message delivery."""
    DELIVERED = auto()
    FAILED = auto()
    USER_OFFLINE = auto()


@dataclass
class DeliveryResult:
    """Result of message delivery attempt."""
    status: DeliveryStatus
    recipient: str
    error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED


class MessageRouter:
    """
    Routes chat lines to sessions.

    Broadcasts go to every named session except the sender; whispers go to
    exactly one session looked up by its current nickname.
    """

    def __init__(self, registry: SessionRegistry):
        """
        Initialize message router.

        Args:
            registry: Registry of live sessions
        """
        self._registry = registry

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    async def deliver(self, session: Session, line: str) -> DeliveryResult:
        """
        Send one line to one session.

        Args:
            session: Recipient
            line: Line to send

        Returns:
            DeliveryResult, FAILED if the transport rejected the write
        """
        try:
            await session.send(line)
        except DeliveryError as e:
            logger.warning("Delivery to %s failed: %s", session.describe(), e)
            return DeliveryResult(DeliveryStatus.FAILED, session.session_id, error=str(e))
        return DeliveryResult(DeliveryStatus.DELIVERED, session.session_id)

    async def broadcast(
        self,
        text: str,
        sender: Optional[Session] = None
    ) -> Dict[str, DeliveryResult]:
        """
        Deliver a line to every named session.

        With a sender, the line is formatted with the sender's nickname and
        color and the sender itself is skipped. Without one (server notices)
        the text is sent as-is to everybody named.

        Args:
            text: Message body
            sender: Originating session, or None for a server notice

        Returns:
            Delivery results keyed by session id
        """
        if sender is not None:
            profile = sender.profile
            line = format_chat_line(profile.identity, profile.color_tag, text)
        else:
            line = text

        results: Dict[str, DeliveryResult] = {}
        for session in self._registry.snapshot():
            if session is sender or not session.is_named:
                continue
            results[session.session_id] = await self.deliver(session, line)

        logger.debug(
            "Broadcast from %s reached %d session(s)",
            sender.describe() if sender is not None else "server",
            sum(1 for r in results.values() if r.delivered),
        )
        return results

    async def whisper(
        self,
        text: str,
        sender: Session,
        recipient_name: str
    ) -> DeliveryResult:
        """
        Deliver a private line to one session.

        The recipient is whoever holds recipient_name at lookup time. If
        nobody does, the sender gets a "not found" notice instead.

        Args:
            text: Message body
            sender: Originating session
            recipient_name: Nickname of the recipient

        Returns:
            DeliveryResult for the recipient, USER_OFFLINE if not found
        """
        recipient = self._registry.find_by_identity(recipient_name)
        if recipient is None:
            await self.deliver(sender, recipient_not_found(recipient_name))
            return DeliveryResult(DeliveryStatus.USER_OFFLINE, recipient_name)

        profile = sender.profile
        line = format_whisper_line(profile.identity, profile.color_tag, text)
        return await self.deliver(recipient, line)


__all__ = [
    'MessageRouter',
    'DeliveryResult',
    'DeliveryStatus',
]
