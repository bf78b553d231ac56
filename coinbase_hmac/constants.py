"""
Constants for the Coinbase HMAC client library.
"""

# HTTP Headers sent with every signed request
HEADER_ACCESS_NONCE = "ACCESS_NONCE"
HEADER_ACCESS_KEY = "ACCESS_KEY"
HEADER_ACCESS_SIGNATURE = "ACCESS_SIGNATURE"
CONTENT_TYPE_JSON = "application/json"

# Supported HTTP verbs
HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")

# Compound token grammar: VERB + "___" + seg1 + "__" + seg2 + ...
VERB_SEPARATOR = "___"
SEGMENT_SEPARATOR = "__"

# Configuration file keys (root section of the INI file)
CONFIG_BASE_URL = "baseurl"
CONFIG_KEY = "key"
CONFIG_SECRET = "secret"
REQUIRED_CONFIG_KEYS = (CONFIG_BASE_URL, CONFIG_KEY, CONFIG_SECRET)

# Default client configuration values
DEFAULT_CONFIG = {
    'timeout': None,            # Seconds or (connect, read); None means no timeout
    'raise_for_status': False,  # Leave status codes to the caller
}
