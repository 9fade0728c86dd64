"""
Custom exceptions for the chat server.
"""


class MyrcError(Exception):
    """Base exception for server errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ServerStartupError(MyrcError):
    """Raised when the listening socket cannot be bound."""
    pass


class DeliveryError(MyrcError):
    """Raised when a line cannot be written to a client transport."""
    pass
