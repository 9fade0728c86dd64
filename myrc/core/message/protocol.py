"""
Wire protocol module for myrc.
Defines line framing and the display color palette used in client-server communication.

Every message on the wire is one UTF-8 line terminated by a newline. There is
no other framing.
"""

from enum import Enum
from typing import Tuple

ENCODING = "utf-8"
LINE_TERMINATOR = "\n"

RESET = "\033[0m"
DEFAULT_COLOR_LABEL = "Default"


class Color(Enum):
    """
    Enumeration of the display colors a user can pick with /color.
    Values are the ANSI escape sequences wrapped around message bodies.
    """
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"


def resolve_color(name: str) -> Tuple[str, str]:
    """
    Map a user-supplied color name to a (label, escape tag) pair.

    Lookup is case-insensitive. The label keeps the name as typed; any
    unknown name falls back to the default tag and the "Default" label.

    Args:
        name: Color name given by the user

    Returns:
        Tuple of display label and ANSI tag
    """
    label = name.strip()
    try:
        return label, Color[label.upper()].value
    except KeyError:
        return DEFAULT_COLOR_LABEL, RESET


def encode_line(text: str) -> bytes:
    """
    Encode one outbound line.

    Args:
        text: Line content without terminator

    Returns:
        bytes: UTF-8 bytes including the trailing newline
    """
    return (text + LINE_TERMINATOR).encode(ENCODING)


def decode_line(data: bytes) -> str:
    """
    Decode one inbound line, dropping the trailing CRLF or LF.

    Args:
        data: Raw bytes as read from the stream

    Returns:
        str: Line content without terminator
    """
    return data.decode(ENCODING, errors="replace").rstrip("\r\n")
