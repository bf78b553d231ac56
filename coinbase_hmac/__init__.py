"""
Coinbase HMAC Client Library

A Python client library that sends HMAC-SHA256 signed requests to the
Coinbase API and returns raw response bodies.

Example usage:
    from coinbase_hmac import CoinbaseClient

    client = CoinbaseClient.from_config_file("~/.api-configs/coinbase.conf")
    body = client.get("prices", "spot_rate")
"""

from .client import CoinbaseClient
from .config import ClientCredentials, credentials_from_mapping, load_credentials
from .exceptions import (
    CoinbaseHMACError,
    ConfigurationError,
    InvalidRequestError,
    TransportError
)
from .signing import (
    SignedHttpRequest,
    SignedRequestBuilder,
    format_compound_token,
    generate_nonce,
    parse_compound_token,
    sign_message,
    split_trailing_payload
)
from .constants import (
    HEADER_ACCESS_NONCE,
    HEADER_ACCESS_KEY,
    HEADER_ACCESS_SIGNATURE,
    DEFAULT_CONFIG
)

__version__ = "1.0.0"
__all__ = [
    "CoinbaseClient",
    "ClientCredentials",
    "credentials_from_mapping",
    "load_credentials",
    "CoinbaseHMACError",
    "ConfigurationError",
    "InvalidRequestError",
    "TransportError",
    "SignedHttpRequest",
    "SignedRequestBuilder",
    "format_compound_token",
    "generate_nonce",
    "parse_compound_token",
    "sign_message",
    "split_trailing_payload",
    "HEADER_ACCESS_NONCE",
    "HEADER_ACCESS_KEY",
    "HEADER_ACCESS_SIGNATURE",
    "DEFAULT_CONFIG"
]
