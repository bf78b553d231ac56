"""
Credential loading for the Coinbase HMAC client.

The configuration file is INI-style with the three required keys in the
root part of the file, before any section header:

    baseurl = https://coinbase.com/api/v1
    key = yourkey
    secret = yoursecretusedforHMAC256

A ``[_]`` or ``[default]`` section holding the same keys is also accepted.
"""

import configparser
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Union

from .constants import (
    CONFIG_BASE_URL,
    CONFIG_KEY,
    CONFIG_SECRET,
    REQUIRED_CONFIG_KEYS
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Section name given to keys that appear before any header
ROOT_SECTION = "_"


@dataclass(frozen=True)
class ClientCredentials:
    """Base URL and access key pair. Immutable once constructed."""

    base_url: str
    access_key: str
    access_secret: str

    def __post_init__(self):
        for field_name in ("base_url", "access_key", "access_secret"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"{field_name} cannot be empty")
        object.__setattr__(self, "base_url", self.base_url.rstrip('/'))

    def __repr__(self):
        return (
            f"ClientCredentials(base_url={self.base_url!r}, "
            f"access_key={self.access_key!r}, access_secret='***')"
        )


def credentials_from_mapping(values: Mapping[str, str]) -> ClientCredentials:
    """
    Build credentials from a ``baseurl``/``key``/``secret`` mapping.

    Raises:
        ConfigurationError: If any required key is missing or empty
    """
    missing = [name for name in REQUIRED_CONFIG_KEYS if not values.get(name)]
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}"
        )

    return ClientCredentials(
        base_url=values[CONFIG_BASE_URL].strip(),
        access_key=values[CONFIG_KEY].strip(),
        access_secret=values[CONFIG_SECRET].strip()
    )


def _read_sections(path: str) -> configparser.ConfigParser:
    """Parse an INI file, placing keys before any header in the root section."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise ConfigurationError(f"Can't read configuration file {path}: {e}") from e

    parser = configparser.ConfigParser(
        interpolation=None, default_section="default", strict=False
    )
    # Keys are case-sensitive: "baseurl", not "BASEURL"
    parser.optionxform = str
    try:
        parser.read_string(f"[{ROOT_SECTION}]\n{text}", source=path)
    except configparser.Error as e:
        raise ConfigurationError(f"Can't parse configuration file {path}: {e}") from e
    return parser


def load_credentials(path: Union[str, os.PathLike]) -> ClientCredentials:
    """
    Load credentials from an INI configuration file.

    Args:
        path: Path to the configuration file

    Returns:
        ClientCredentials built from the file's root section

    Raises:
        ConfigurationError: If the file is unreadable or a key is missing
    """
    path = os.fspath(path)
    parser = _read_sections(path)

    values = dict(parser[ROOT_SECTION])
    logger.debug("Loaded configuration from %s (keys: %s)", path, sorted(values))
    return credentials_from_mapping(values)
