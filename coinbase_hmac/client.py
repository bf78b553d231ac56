"""
HMAC-signed client for the Coinbase API.

Requests are addressed by path segments rather than pre-declared endpoint
methods, so any resource can be reached:

    client.get("prices", "buy", {"qty": 2, "currency": "USD"})
    client.call("get___prices__buy", {"qty": 2, "currency": "USD"})

Both calls send the same signed ``GET <baseurl>/prices/buy`` request and
return the raw response body.
"""

import logging
import os
from typing import Any, Union

import requests

from .config import ClientCredentials, load_credentials
from .constants import DEFAULT_CONFIG
from .exceptions import ConfigurationError, TransportError
from .signing import SignedHttpRequest, SignedRequestBuilder, split_trailing_payload

logger = logging.getLogger(__name__)


class CoinbaseClient:
    """
    Client for making HMAC-signed requests.

    Credentials are fixed at construction. Each call builds one signed
    request, sends it once and returns the response body bytes.
    """

    def __init__(self, credentials: ClientCredentials, **config):
        """
        Initialize the client.

        Args:
            credentials: Base URL, access key and secret
            **config: Configuration options (timeout, raise_for_status)

        Raises:
            ConfigurationError: If credentials or options are invalid
        """
        if not isinstance(credentials, ClientCredentials):
            raise ConfigurationError("credentials must be a ClientCredentials instance")
        self.credentials = credentials

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}
        self._validate_config()

        self.builder = SignedRequestBuilder(credentials)
        self.session = requests.Session()

    @classmethod
    def from_config_file(cls, path: Union[str, os.PathLike], **config) -> "CoinbaseClient":
        """Create a client from an INI file holding baseurl, key and secret."""
        return cls(load_credentials(path), **config)

    @property
    def base_url(self) -> str:
        """Base URL every request path is appended to."""
        return self.credentials.base_url

    @staticmethod
    def _is_positive_number(value) -> bool:
        """True for an int or float above zero, bools excluded."""
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0

    def _validate_config(self):
        """Validate client configuration."""
        unknown = set(self.config) - set(DEFAULT_CONFIG)
        if unknown:
            raise ConfigurationError(f"Unknown configuration options: {', '.join(sorted(unknown))}")

        # None, a positive number, or a (connect, read) pair as requests accepts
        timeout = self.config['timeout']
        if timeout is None or self._is_positive_number(timeout):
            return
        if (isinstance(timeout, tuple) and len(timeout) == 2
                and all(self._is_positive_number(part) for part in timeout)):
            return
        raise ConfigurationError(
            f"timeout must be a positive number or a (connect, read) pair, got {timeout!r}"
        )

    def send(self, signed_request: SignedHttpRequest) -> bytes:
        """
        Send a signed request and return the raw response body.

        Raises:
            TransportError: If the request fails, or the status is not 2xx
                and raise_for_status is enabled
        """
        logger.debug("Sending %s %s", signed_request.method, signed_request.url)
        try:
            response = self.session.request(
                signed_request.method,
                signed_request.url,
                headers=dict(signed_request.headers),
                data=signed_request.body,
                timeout=self.config['timeout']
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", signed_request.method, signed_request.url, e)
            raise TransportError(f"HTTP request failed: {e}", original=e) from e

        if self.config['raise_for_status']:
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                logger.warning("%s %s returned %s",
                               signed_request.method, signed_request.url, response.status_code)
                raise TransportError(
                    f"HTTP {response.status_code} for {signed_request.url}",
                    original=e,
                    status_code=response.status_code,
                    body=response.content
                ) from e

        return response.content

    def request(self, method: str, *args: Any) -> bytes:
        """
        Send a signed request for a path given as positional segments.

        A trailing mapping or list argument is used as the JSON payload.

        Raises:
            InvalidRequestError: If no path segments remain
        """
        path_segments, payload = split_trailing_payload(args)
        return self.send(self.builder.build_request(method, path_segments, payload))

    def call(self, token: str, payload: Any = None) -> bytes:
        """Send a request addressed by a compound token such as ``get___prices__buy``."""
        return self.send(self.builder.build_compound(token, payload))

    def get(self, *args: Any) -> bytes:
        """Make signed GET request."""
        return self.request('GET', *args)

    def post(self, *args: Any) -> bytes:
        """Make signed POST request."""
        return self.request('POST', *args)

    def put(self, *args: Any) -> bytes:
        """Make signed PUT request."""
        return self.request('PUT', *args)

    def delete(self, *args: Any) -> bytes:
        """Make signed DELETE request."""
        return self.request('DELETE', *args)

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
