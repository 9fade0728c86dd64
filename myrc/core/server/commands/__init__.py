"""
Command processing system for the server.

A line starting with "/" is split into at most three whitespace-separated
fields (command word, first argument, rest of the line) and handed to the
handler registered under the command word. Handlers report back through a
CommandResult; the processor sends its notice to the invoking session.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from myrc.core.message.protocol import resolve_color
from myrc.core.server.routing import MessageRouter
from myrc.core.server.session import Session, SessionRegistry
from myrc.core.server.utils.helpers import (
    COLOR_USAGE,
    NICKNAME_REQUIRED,
    NICKNAME_TAKEN,
    NICKNAME_USAGE,
    WHISPER_USAGE,
    color_changed,
    command_error,
    invalid_command,
    nickname_changed,
)

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "/"


@dataclass(frozen=True)
class ParsedCommand:
    """
    A command line split into its fields.

    Attributes:
        name: Command word including the leading slash, e.g. "/name"
        argument: First argument or None
        remainder: Everything after the first argument, or None
        raw: The line as received
    """
    name: str
    argument: Optional[str]
    remainder: Optional[str]
    raw: str


def is_command(line: str) -> bool:
    """Check whether a client line is a command."""
    return line.startswith(COMMAND_PREFIX)


def parse_command(line: str) -> ParsedCommand:
    """
    Split a command line into at most three fields.

    Args:
        line: Client line starting with "/"

    Returns:
        ParsedCommand
    """
    parts = line.split(maxsplit=2)
    name = parts[0] if parts else line
    argument = parts[1] if len(parts) > 1 else None
    remainder = parts[2] if len(parts) > 2 else None
    return ParsedCommand(name=name, argument=argument, remainder=remainder, raw=line)


@dataclass
class CommandResult:
    """
    Outcome of a command.

    Attributes:
        success: Whether the command changed state or delivered a message
        notice: Line to send back to the invoking session, if any
    """
    success: bool
    notice: Optional[str] = None


@dataclass
class CommandContext:
    """Context passed to command handlers."""
    session: Session
    command: ParsedCommand
    registry: SessionRegistry
    router: MessageRouter

    def ok(self, notice: Optional[str] = None) -> CommandResult:
        return CommandResult(True, notice)

    def fail(self, notice: Optional[str] = None) -> CommandResult:
        return CommandResult(False, notice)


class CommandHandler(ABC):
    """
    Abstract base class for command handlers.

    Implement this class to create custom commands.
    """

    name: str = ""
    description: str = ""
    usage: str = ""
    aliases: List[str] = []

    @abstractmethod
    async def execute(self, context: CommandContext) -> CommandResult:
        """
        Execute the command.

        Args:
            context: Command context

        Returns:
            CommandResult describing the outcome
        """
        pass

    def get_help(self) -> str:
        """Get help text for this command."""
        return f"{self.usage or self.name} - {self.description}"


class CommandRegistry:
    """
    Registry for command handlers.

    Manages command handlers and provides lookup by command word or alias.
    """

    def __init__(self):
        """Initialize command registry."""
        self._handlers: List[CommandHandler] = []
        self._handlers_by_name: Dict[str, CommandHandler] = {}

    def register(self, handler: CommandHandler) -> None:
        """
        Register a command handler.

        Args:
            handler: Command handler to register
        """
        self._handlers.append(handler)
        self._handlers_by_name[handler.name] = handler

        for alias in handler.aliases:
            self._handlers_by_name[alias] = handler

        logger.debug("Registered command handler: %s", handler.name)

    def unregister(self, name: str) -> Optional[CommandHandler]:
        """
        Unregister a command handler.

        Args:
            name: Command name or alias

        Returns:
            Removed handler or None
        """
        handler = self._handlers_by_name.get(name)
        if handler:
            self._handlers.remove(handler)
            self._handlers_by_name.pop(handler.name, None)

            for alias in handler.aliases:
                self._handlers_by_name.pop(alias, None)

            logger.debug("Unregistered command handler: %s", handler.name)

        return handler

    def get_handler(self, name: str) -> Optional[CommandHandler]:
        """
        Get handler by name or alias.

        Args:
            name: Command word including the slash

        Returns:
            Command handler or None
        """
        return self._handlers_by_name.get(name)

    def get_all_handlers(self) -> List[CommandHandler]:
        """Get all registered handlers in registration order."""
        return self._handlers.copy()


class CommandProcessor:
    """
    Parses command lines and runs the matching handler.
    """

    def __init__(
        self,
        session_registry: SessionRegistry,
        router: MessageRouter,
        registry: Optional[CommandRegistry] = None
    ):
        """
        Initialize command processor.

        Args:
            session_registry: Registry of live sessions
            router: Router used by messaging commands
            registry: Command registry (creates new if not provided)
        """
        self._sessions = session_registry
        self._router = router
        self._registry = registry or CommandRegistry()

    async def process(self, session: Session, line: str) -> CommandResult:
        """
        Run the command on a line and answer the invoking session.

        Args:
            session: Session that sent the line
            line: Client line starting with "/"

        Returns:
            CommandResult of the handler, or a failure for unknown commands
        """
        command = parse_command(line)
        handler = self._registry.get_handler(command.name)

        if handler is None:
            result = CommandResult(False, invalid_command(line))
        else:
            context = CommandContext(session, command, self._sessions, self._router)
            try:
                result = await handler.execute(context)
            except Exception as e:
                logger.exception("Error executing command %s: %s", handler.name, e)
                result = CommandResult(False, command_error(e))

        if result.notice is not None:
            await self._router.deliver(session, result.notice)
        return result

    @property
    def registry(self) -> CommandRegistry:
        """Get command registry."""
        return self._registry


class NameCommandHandler(CommandHandler):
    """Handler for /name: pick or change the nickname."""

    name = "/name"
    description = "Set or change your nickname"
    usage = "/name <nickname>"

    async def execute(self, context: CommandContext) -> CommandResult:
        new_name = (context.command.argument or "").strip()
        if not new_name:
            return context.fail(NICKNAME_USAGE)

        previous = context.session.identity
        if not context.registry.claim_identity(context.session, new_name):
            logger.info("%s asked for taken nickname %r", context.session.describe(), new_name)
            return context.fail(NICKNAME_TAKEN)

        logger.info("Session %s renamed %r -> %r", context.session.session_id, previous, new_name)
        return context.ok(nickname_changed(new_name))


class WhisperCommandHandler(CommandHandler):
    """Handler for /whisper: private message to one user."""

    name = "/whisper"
    description = "Send a private message"
    usage = "/whisper <nickname> <message>"

    async def execute(self, context: CommandContext) -> CommandResult:
        recipient = context.command.argument
        remainder = context.command.remainder
        if recipient is None or remainder is None or not remainder.strip():
            return context.fail(WHISPER_USAGE)
        if not context.session.is_named:
            # Whispers carry the sender's nickname.
            return context.fail(NICKNAME_REQUIRED)

        text = " ".join(remainder.split())
        result = await context.router.whisper(text, context.session, recipient)
        return CommandResult(result.delivered)


class ColorCommandHandler(CommandHandler):
    """Handler for /color: change the color of your messages."""

    name = "/color"
    description = "Change the color of your messages"
    usage = "/color <red|green|blue|yellow|magenta|cyan|white>"

    async def execute(self, context: CommandContext) -> CommandResult:
        requested = (context.command.argument or "").strip()
        if not requested:
            return context.fail(COLOR_USAGE)

        label, tag = resolve_color(requested)
        context.session.set_color(label, tag)
        logger.debug("%s switched color to %s", context.session.describe(), label)
        return context.ok(color_changed(label))


class HelpCommandHandler(CommandHandler):
    """Handler for /help command."""

    name = "/help"
    description = "Show available commands"
    usage = "/help"
    aliases = ["/?"]

    def __init__(self, processor: CommandProcessor):
        """Initialize with reference to processor."""
        self._processor = processor

    async def execute(self, context: CommandContext) -> CommandResult:
        lines = ["Available commands:"]
        for handler in self._processor.registry.get_all_handlers():
            lines.append(f"  {handler.get_help()}")
        for line in lines[:-1]:
            await context.router.deliver(context.session, line)
        return context.ok(lines[-1])


def create_default_processor(
    session_registry: SessionRegistry,
    router: MessageRouter
) -> CommandProcessor:
    """
    Create a command processor with the built-in chat commands.

    Returns:
        Configured CommandProcessor
    """
    processor = CommandProcessor(session_registry, router)

    processor.registry.register(NameCommandHandler())
    processor.registry.register(WhisperCommandHandler())
    processor.registry.register(ColorCommandHandler())
    processor.registry.register(HelpCommandHandler(processor))

    return processor


__all__ = [
    'ParsedCommand',
    'CommandResult',
    'CommandContext',
    'CommandHandler',
    'CommandRegistry',
    'CommandProcessor',
    'NameCommandHandler',
    'WhisperCommandHandler',
    'ColorCommandHandler',
    'HelpCommandHandler',
    'create_default_processor',
    'is_command',
    'parse_command',
]
