"""
Custom exceptions for the Coinbase HMAC client library.
"""


class CoinbaseHMACError(Exception):
    """Base exception for client errors."""
    pass


class ConfigurationError(CoinbaseHMACError):
    """Raised when credentials or client configuration are missing or invalid."""
    pass


class InvalidRequestError(CoinbaseHMACError):
    """Raised when a call does not resolve to a verb and at least one path segment."""
    pass


class TransportError(CoinbaseHMACError):
    """Raised when the HTTP transport fails or, if enabled, returns a non-2xx status."""

    def __init__(self, message, original=None, status_code=None, body=None):
        super().__init__(message)
        self.original = original
        self.status_code = status_code
        self.body = body
