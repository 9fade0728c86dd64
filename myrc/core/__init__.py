"""
Core building blocks of myrc: wire protocol, logging, server and client.
"""

from .message.protocol import Color, decode_line, encode_line, resolve_color

__all__ = ['Color', 'decode_line', 'encode_line', 'resolve_color']
