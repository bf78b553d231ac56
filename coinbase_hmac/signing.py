"""
Request signing for the Coinbase HMAC API.

Every request carries three authentication headers:

    ACCESS_NONCE      seconds since epoch + 6-digit zero-padded microseconds
    ACCESS_KEY        the configured access key
    ACCESS_SIGNATURE  hex HMAC-SHA256(secret, nonce + url + body)

The body is serialized once and the same bytes are both signed and sent.
"""

import hashlib
import hmac
import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import ClientCredentials
from .constants import (
    CONTENT_TYPE_JSON,
    HEADER_ACCESS_KEY,
    HEADER_ACCESS_NONCE,
    HEADER_ACCESS_SIGNATURE,
    HTTP_METHODS,
    SEGMENT_SEPARATOR,
    VERB_SEPARATOR
)
from .exceptions import InvalidRequestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedHttpRequest:
    """A fully signed request, ready to hand to the transport."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def nonce(self) -> str:
        """Value of the ACCESS_NONCE header."""
        return self.headers[HEADER_ACCESS_NONCE]

    @property
    def signature(self) -> str:
        """Value of the ACCESS_SIGNATURE header."""
        return self.headers[HEADER_ACCESS_SIGNATURE]


def generate_nonce() -> str:
    """
    Return the current time as whole seconds followed by zero-padded microseconds.

    Each call samples the clock independently, so successive values increase
    as long as the system clock moves forward.
    """
    now_us = time.time_ns() // 1000
    seconds, micros = divmod(now_us, 1_000_000)
    return "%d%06d" % (seconds, micros)


def sign_message(secret: str, nonce: str, url: str, body: Optional[bytes] = None) -> str:
    """
    Compute the request signature.

    Args:
        secret: Shared access secret
        nonce: Nonce sent in the ACCESS_NONCE header
        url: Full request URL, base URL included
        body: Serialized request body, or None for an empty body

    Returns:
        Lowercase hex-encoded HMAC-SHA256 signature
    """
    message = f"{nonce}{url}".encode('utf-8') + (body or b'')
    mac = hmac.new(
        secret.encode('utf-8'),
        message,
        hashlib.sha256
    )
    return mac.hexdigest()


def encode_payload(payload: Any) -> Optional[bytes]:
    """Serialize a payload to compact UTF-8 JSON, or None when there is no payload."""
    if payload is None:
        return None
    try:
        return json.dumps(payload, separators=(',', ':'), ensure_ascii=False).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(f"Payload is not JSON serializable: {e}") from e


def normalize_method(method: str) -> str:
    """Upper-case an HTTP verb, rejecting anything but GET, POST, PUT and DELETE."""
    if not isinstance(method, str) or method.upper() not in HTTP_METHODS:
        raise InvalidRequestError(
            f"Unsupported HTTP method {method!r}, expected one of {', '.join(HTTP_METHODS)}"
        )
    return method.upper()


def parse_compound_token(token: str) -> Tuple[str, List[str]]:
    """
    Split a compound token into its HTTP verb and path segments.

    The grammar is ``verb "___" seg ("__" seg)*``, so ``get___prices__buy``
    becomes ``("GET", ["prices", "buy"])``.

    Raises:
        InvalidRequestError: If the token has no verb separator, an unknown
            verb, or no path
    """
    if not isinstance(token, str):
        raise InvalidRequestError(f"Compound token must be a string, got {type(token).__name__}")

    verb, sep, path = token.partition(VERB_SEPARATOR)
    if not sep:
        raise InvalidRequestError(f"Compound token {token!r} has no verb separator")

    method = normalize_method(verb)
    if not path:
        raise InvalidRequestError(f"Compound token {token!r} has no resource path")

    return method, path.split(SEGMENT_SEPARATOR)


def format_compound_token(method: str, path_segments: Sequence[Any]) -> str:
    """
    Inverse of parse_compound_token: ``("GET", ["prices", "buy"])`` -> ``get___prices__buy``.

    Raises:
        InvalidRequestError: If the path is empty or a segment can't be
            told apart from the separator, e.g. ``"a__b"``
    """
    if not path_segments:
        raise InvalidRequestError("Invalid request: no resource path")
    segments = [str(segment) for segment in path_segments]
    path = SEGMENT_SEPARATOR.join(segments)
    if path.split(SEGMENT_SEPARATOR) != segments:
        raise InvalidRequestError(
            f"Path segments {segments!r} can't be encoded in a compound token"
        )
    return f"{normalize_method(method).lower()}{VERB_SEPARATOR}{path}"


def split_trailing_payload(args: Sequence[Any]) -> Tuple[List[Any], Any]:
    """
    Separate path segments from an optional trailing payload.

    A final argument that is a mapping or a list is the request payload;
    anything else is treated as a path segment.
    """
    segments = list(args)
    payload = None
    if segments and isinstance(segments[-1], (Mapping, list)):
        payload = segments.pop()
    return segments, payload


class SignedRequestBuilder:
    """
    Builds signed requests for a fixed set of credentials.

    The builder holds no mutable state, so one instance may be shared
    across threads.
    """

    def __init__(self, credentials: ClientCredentials,
                 nonce_source: Callable[[], str] = generate_nonce):
        self.credentials = credentials
        self.nonce_source = nonce_source

    def build_url(self, path_segments: Sequence[Any]) -> str:
        """Join path segments onto the base URL with "/"."""
        if not path_segments:
            raise InvalidRequestError("Invalid request: no resource path")
        if isinstance(path_segments, str):
            path_segments = [path_segments]
        path = "/".join(str(segment) for segment in path_segments)
        return f"{self.credentials.base_url}/{path}"

    def build_request(self, method: str, path_segments: Sequence[Any],
                      payload: Any = None, nonce: Optional[str] = None) -> SignedHttpRequest:
        """
        Build a signed request.

        Args:
            method: One of GET, POST, PUT, DELETE (case-insensitive)
            path_segments: Non-empty sequence of path components
            payload: Optional JSON-serializable request body
            nonce: Fixed nonce to use instead of sampling the clock

        Returns:
            SignedHttpRequest with authentication headers attached

        Raises:
            InvalidRequestError: If the method is unsupported, the path is
                empty or the payload can't be serialized
        """
        method = normalize_method(method)
        url = self.build_url(path_segments)
        body = encode_payload(payload)

        if nonce is None:
            nonce = self.nonce_source()

        headers = {
            'Content-Type': CONTENT_TYPE_JSON,
            HEADER_ACCESS_NONCE: nonce,
            HEADER_ACCESS_KEY: self.credentials.access_key,
            HEADER_ACCESS_SIGNATURE: sign_message(
                self.credentials.access_secret, nonce, url, body
            ),
        }

        logger.debug("Built signed %s request for %s (nonce %s)", method, url, nonce)
        return SignedHttpRequest(method=method, url=url, headers=headers, body=body)

    def build_compound(self, token: str, payload: Any = None,
                       nonce: Optional[str] = None) -> SignedHttpRequest:
        """Build a signed request from a compound token such as ``get___prices__buy``."""
        method, path_segments = parse_compound_token(token)
        return self.build_request(method, path_segments, payload, nonce=nonce)
