"""
Unit tests for request signing.
"""

import hashlib
import hmac
import json
import re
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from coinbase_hmac import (
    ClientCredentials,
    InvalidRequestError,
    SignedRequestBuilder,
    format_compound_token,
    generate_nonce,
    parse_compound_token,
    sign_message,
    split_trailing_payload
)
from coinbase_hmac.constants import (
    HEADER_ACCESS_KEY,
    HEADER_ACCESS_NONCE,
    HEADER_ACCESS_SIGNATURE
)

BASE_URL = "https://coinbase.com/api/v1"
KEY = "test-key"
SECRET = "test-secret"
NONCE = "1400000000000123"


def expected_signature(nonce, url, body=b""):
    message = f"{nonce}{url}".encode('utf-8') + body
    return hmac.new(SECRET.encode('utf-8'), message, hashlib.sha256).hexdigest()


class TestNonce:
    """Test nonce generation."""

    def test_nonce_format(self):
        """Nonce is all digits with a 6-digit microsecond tail."""
        nonce = generate_nonce()

        assert re.fullmatch(r"\d{16,}", nonce)

    def test_nonce_pads_microseconds(self):
        """Microseconds are zero-padded to six digits."""
        with patch('coinbase_hmac.signing.time.time_ns', return_value=1_400_000_000_000_042_999):
            assert generate_nonce() == "1400000000000042"

    def test_nonce_distinct_and_increasing(self):
        """Successive nonces differ and increase with the clock."""
        clock = [1_400_000_000_000_001_000, 1_400_000_000_000_002_000]
        with patch('coinbase_hmac.signing.time.time_ns', side_effect=clock):
            first = generate_nonce()
            second = generate_nonce()

        assert first != second
        assert int(second) > int(first)

    def test_nonce_non_decreasing_real_clock(self):
        """Nonces sampled from the real clock never go backwards."""
        nonces = [generate_nonce() for _ in range(50)]

        assert [int(n) for n in nonces] == sorted(int(n) for n in nonces)


class TestSignMessage:
    """Test the signing function."""

    def test_sign_without_body(self):
        """Empty body signs nonce + url only."""
        url = f"{BASE_URL}/prices/buy"
        signature = sign_message(SECRET, NONCE, url)

        assert signature == expected_signature(NONCE, url)
        assert signature == signature.lower()
        assert len(signature) == 64

    def test_sign_with_body(self):
        """Body bytes are appended to the signed message."""
        url = f"{BASE_URL}/orders"
        body = b'{"qty":2}'

        assert sign_message(SECRET, NONCE, url, body) == expected_signature(NONCE, url, body)

    def test_sign_deterministic(self):
        """Same inputs produce the same signature."""
        url = f"{BASE_URL}/account/balance"

        assert sign_message(SECRET, NONCE, url, b"x") == sign_message(SECRET, NONCE, url, b"x")

    def test_sign_depends_on_secret(self):
        """A different secret gives a different signature."""
        url = f"{BASE_URL}/account/balance"

        assert sign_message(SECRET, NONCE, url) != sign_message("other", NONCE, url)


class TestCompoundToken:
    """Test the verb + compound path token grammar."""

    def test_parse(self):
        assert parse_compound_token("get___prices__buy") == ("GET", ["prices", "buy"])

    def test_parse_single_segment(self):
        assert parse_compound_token("post___transactions") == ("POST", ["transactions"])

    def test_parse_upper_case_verb(self):
        assert parse_compound_token("DELETE___orders__42") == ("DELETE", ["orders", "42"])

    def test_parse_missing_separator(self):
        with pytest.raises(InvalidRequestError):
            parse_compound_token("get__prices__buy")

    def test_parse_unknown_verb(self):
        with pytest.raises(InvalidRequestError):
            parse_compound_token("patch___prices")

    def test_parse_empty_path(self):
        with pytest.raises(InvalidRequestError):
            parse_compound_token("get___")

    def test_format_round_trip(self):
        """Formatting then parsing returns the structured form."""
        token = format_compound_token("PUT", ["users", "self"])

        assert token == "put___users__self"
        assert parse_compound_token(token) == ("PUT", ["users", "self"])

    def test_format_empty_path(self):
        with pytest.raises(InvalidRequestError):
            format_compound_token("GET", [])

    @pytest.mark.parametrize("segments", [["a__b"], ["prices", "x__y"], ["a_", "b"]])
    def test_format_rejects_ambiguous_segments(self, segments):
        """Segments that would not parse back to themselves are rejected."""
        with pytest.raises(InvalidRequestError):
            format_compound_token("GET", segments)


class TestSplitTrailingPayload:
    """Test trailing payload detection."""

    def test_trailing_mapping(self):
        segments, payload = split_trailing_payload(("prices", "buy", {"qty": 2, "currency": "USD"}))

        assert segments == ["prices", "buy"]
        assert payload == {"qty": 2, "currency": "USD"}

    def test_no_payload(self):
        segments, payload = split_trailing_payload(("prices", "buy"))

        assert segments == ["prices", "buy"]
        assert payload is None

    def test_only_payload(self):
        segments, payload = split_trailing_payload(({"page": 1},))

        assert segments == []
        assert payload == {"page": 1}

    def test_scalar_last_is_segment(self):
        segments, payload = split_trailing_payload(("transactions", 1234))

        assert segments == ["transactions", 1234]
        assert payload is None

    def test_empty(self):
        assert split_trailing_payload(()) == ([], None)


class TestSignedRequestBuilder:
    """Test signed request construction."""

    @pytest.fixture
    def builder(self):
        """Create builder with test credentials."""
        return SignedRequestBuilder(ClientCredentials(BASE_URL, KEY, SECRET))

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
    @pytest.mark.parametrize("segments", [["prices"], ["prices", "buy"], ["a", "b", "c"]])
    def test_url(self, builder, method, segments):
        """URL is base URL + "/" + joined segments."""
        request = builder.build_request(method, segments)

        assert request.url == BASE_URL + "/" + "/".join(segments)
        assert request.method == method

    def test_headers(self, builder):
        """All authentication headers are attached."""
        request = builder.build_request("GET", ["prices", "buy"], nonce=NONCE)

        assert request.headers[HEADER_ACCESS_NONCE] == NONCE
        assert request.headers[HEADER_ACCESS_KEY] == KEY
        assert request.headers[HEADER_ACCESS_SIGNATURE] == expected_signature(NONCE, request.url)
        assert request.headers['Content-Type'] == 'application/json'
        assert request.body is None

    def test_payload_body(self, builder):
        """Payload is serialized once and the same bytes are signed."""
        payload = {"qty": 2, "currency": "USD"}
        request = builder.build_request("POST", ["buys"], payload, nonce=NONCE)

        assert json.loads(request.body) == payload
        assert request.signature == expected_signature(NONCE, request.url, request.body)

    def test_unicode_payload(self, builder):
        """Non-ASCII payloads are sent as UTF-8."""
        request = builder.build_request("POST", ["notes"], {"text": "café"}, nonce=NONCE)

        assert "café".encode('utf-8') in request.body

    def test_nonce_sampled_once(self):
        """One nonce sample is used for both header and signature."""
        nonces = iter(["1000000000000001", "1000000000000002"])
        builder = SignedRequestBuilder(
            ClientCredentials(BASE_URL, KEY, SECRET),
            nonce_source=lambda: next(nonces)
        )

        request = builder.build_request("GET", ["prices"])

        assert request.nonce == "1000000000000001"
        assert request.signature == expected_signature("1000000000000001", request.url)

    def test_successive_requests_distinct_nonces(self):
        """Two builds in succession carry increasing nonces."""
        builder = SignedRequestBuilder(ClientCredentials(BASE_URL, KEY, SECRET))
        clock = [1_400_000_000_000_001_000, 1_400_000_000_000_002_000]
        with patch('coinbase_hmac.signing.time.time_ns', side_effect=clock):
            first = builder.build_request("GET", ["prices"])
            second = builder.build_request("GET", ["prices"])

        assert first.nonce != second.nonce
        assert int(second.nonce) >= int(first.nonce)

    def test_compound_matches_explicit(self, builder):
        """Compound token and explicit segments give the same request."""
        explicit = builder.build_request("GET", ["prices", "buy"], nonce=NONCE)
        compound = builder.build_compound("get___prices__buy", nonce=NONCE)

        assert compound.url == explicit.url
        assert compound.signature == explicit.signature

    def test_compound_with_payload(self, builder):
        payload = {"qty": 2, "currency": "USD"}
        explicit = builder.build_request("GET", ["prices", "buy"], payload, nonce=NONCE)
        compound = builder.build_compound("get___prices__buy", payload, nonce=NONCE)

        assert compound == explicit

    def test_empty_path(self, builder):
        with pytest.raises(InvalidRequestError):
            builder.build_request("GET", [])

    def test_invalid_method(self, builder):
        with pytest.raises(InvalidRequestError):
            builder.build_request("PATCH", ["prices"])

    def test_method_case_insensitive(self, builder):
        assert builder.build_request("get", ["prices"]).method == "GET"

    def test_non_string_segments(self, builder):
        """Scalar segments such as ids are converted to strings."""
        request = builder.build_request("GET", ["transactions", 1234])

        assert request.url == f"{BASE_URL}/transactions/1234"

    def test_unserializable_payload(self, builder):
        with pytest.raises(InvalidRequestError):
            builder.build_request("POST", ["buys"], {"when": object()})

    def test_concurrent_builds(self, builder):
        """One builder shared across threads signs every request correctly."""
        def build(i):
            payload = {"index": i} if i % 2 else None
            return i, builder.build_request("POST", ["orders", i], payload, nonce=f"{NONCE}{i}")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(build, range(200)))

        for i, request in results:
            assert request.url == f"{BASE_URL}/orders/{i}"
            assert request.nonce == f"{NONCE}{i}"
            assert request.signature == expected_signature(request.nonce, request.url, request.body or b"")
