"""
Text builders for every line the server sends to clients.
"""

from typing import List

from myrc.core.message.protocol import RESET

WELCOME_LINES = (
    "Welcome to mYRC! To set your nickname use the command /name <your_nickname> enjoy the chat",
    "There's also command to set the color of your text using: /color <color_name> .",
    "If you want to change your nickname just use /name <your_new_nickname> to get a new nickname.",
)

NICKNAME_REQUIRED = "You need to set your nickname first using: /name <your_nickname>"
NICKNAME_USAGE = "Invalid nickname. Use: /name <new_nickname> to change the current nickname"
NICKNAME_TAKEN = "Nickname already in use, choose another."
WHISPER_USAGE = "How to use: /whisper <nickname> <message>"
COLOR_USAGE = "Invalid color. Use: /color <color_name>"


def welcome_lines() -> List[str]:
    """Lines sent to a client right after it connects."""
    return list(WELCOME_LINES)


def format_chat_line(identity: str, color_tag: str, text: str) -> str:
    """
    Build a broadcast chat line.

    Args:
        identity: Sender nickname
        color_tag: Sender's ANSI color tag
        text: Message body

    Returns:
        Line such as "alice: <tag>hello<reset>"
    """
    return f"{identity}: {color_tag}{text}{RESET}"


def format_whisper_line(identity: str, color_tag: str, text: str) -> str:
    """Build a private message line."""
    return f"{identity} [whisper]: {color_tag}{text}{RESET}"


def recipient_not_found(name: str) -> str:
    return f"User '{name}' offline or not found."


def departure_notice(identity: str) -> str:
    return f"{identity} has left the server."


def nickname_changed(identity: str) -> str:
    return f"Nickname changed to: {identity}"


def color_changed(label: str) -> str:
    return f"Color changed to: {label}"


def invalid_command(line: str) -> str:
    return f"Invalid command: {line}"


def command_error(error: Exception) -> str:
    return f"Error executing command: {error}"
