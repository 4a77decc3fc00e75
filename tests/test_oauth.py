"""
Unit tests for OAuth 1.0a request signing
"""

import string
from urllib.parse import unquote

import pytest

from core.credentials import OAuthCredentials
from core.errors import ConfigurationError, SigningError
from core.oauth import (
    OAuth1Signer,
    build_base_string,
    build_parameter_string,
    build_signing_key,
    collect_parameters,
    compute_signature,
    generate_nonce,
    normalize_base_url,
    percent_encode,
    sign_request,
)

pytestmark = [pytest.mark.unit]

SEARCH_URL = "https://api.example.com/2/tweets/search/recent"


class TestPercentEncode:
    def test_unreserved_characters_pass_through(self):
        unreserved = string.ascii_letters + string.digits + "-._~"
        assert percent_encode(unreserved) == unreserved

    @pytest.mark.parametrize("char", list(":/?#[]@!$&'()*+,;=%\"<>\\^`{|} "))
    def test_reserved_characters_are_encoded(self, char):
        encoded = percent_encode(char)
        assert encoded == "%" + format(ord(char), "02X")

    def test_space_is_percent_20(self):
        assert percent_encode("hello world") == "hello%20world"
        assert percent_encode("test@example.com") == "test%40example.com"

    def test_utf8_multibyte(self):
        assert percent_encode("☃") == "%E2%98%83"

    @pytest.mark.parametrize(
        "value",
        ["", "plain", "a b+c", "Hello Ladies + Gentlemen, a signed OAuth request!", "ümlaut/ünïcode", "100%"],
    )
    def test_decoding_restores_original(self, value):
        assert unquote(percent_encode(value)) == value


class TestNonce:
    def test_length_and_alphabet(self):
        nonce = generate_nonce()
        assert len(nonce) == 32
        assert nonce.isalnum()

    def test_successive_nonces_differ(self):
        assert generate_nonce() != generate_nonce()

    def test_signer_uses_fresh_nonce_per_request(self, oauth_credentials):
        signer = OAuth1Signer(oauth_credentials)
        first = signer.sign("GET", SEARCH_URL, {"query": "MCP"})
        second = signer.sign("GET", SEARCH_URL, {"query": "MCP"})
        assert first.nonce != second.nonce
        assert first.signature != second.signature


class TestSignatureSteps:
    def test_parameter_string_sorts_by_encoded_key_then_value(self):
        pairs = [("b", "x"), ("a", "2"), ("a", "1"), ("a b", "z")]
        assert build_parameter_string(pairs) == "a=1&a=2&a%20b=z&b=x"

    def test_multi_value_params_expand(self):
        pairs = collect_parameters({"ids": ["2", "1"], "flag": True})
        assert sorted(pairs) == [("flag", "true"), ("ids", "1"), ("ids", "2")]

    def test_base_string_uppercases_method(self):
        assert build_base_string("get", "https://a.b/c", "x=1") == "GET&https%3A%2F%2Fa.b%2Fc&x%3D1"

    def test_signing_key_encodes_both_secrets(self):
        assert build_signing_key("c&s", "t s") == "c%26s&t%20s"
        assert build_signing_key("cs", "") == "cs&"

    def test_normalize_base_url(self):
        assert normalize_base_url("HTTPS://API.Example.com:443/2/tweets?x=1#frag") == "https://api.example.com/2/tweets"
        assert normalize_base_url("http://example.com:8080/path") == "http://example.com:8080/path"

    def test_relative_url_cannot_be_signed(self, oauth_credentials):
        with pytest.raises(SigningError):
            sign_request("GET", "/2/tweets", None, oauth_credentials, nonce="n", timestamp=1)


class TestGoldenSignatures:
    def test_search_request_signature(self, oauth_credentials):
        signed = sign_request(
            "GET",
            SEARCH_URL,
            {"query": "MCP"},
            oauth_credentials,
            nonce="abc123",
            timestamp="1700000000",
        )
        assert signed.signature == "KqQfbha6UTN1AgeM+MWqN6Ufvkc="
        assert signed.authorization_header == (
            'OAuth oauth_consumer_key="ck", oauth_nonce="abc123", '
            'oauth_signature="KqQfbha6UTN1AgeM%2BMWqN6Ufvkc%3D", oauth_signature_method="HMAC-SHA1", '
            'oauth_timestamp="1700000000", oauth_token="tk", oauth_version="1.0"'
        )

    def test_published_x_example(self):
        """Reference request from the X developer documentation on creating signatures."""
        credentials = OAuthCredentials(
            consumer_key="xvz1evFS4wEEPTGEFPHBog",
            consumer_secret="kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw",
            access_token="370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
            access_token_secret="LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE",
        )
        params = {
            "status": "Hello Ladies + Gentlemen, a signed OAuth request!",
            "include_entities": "true",
        }
        signed = sign_request(
            "POST",
            "https://api.twitter.com/1.1/statuses/update.json",
            params,
            credentials,
            nonce="kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg",
            timestamp=1318622958,
        )
        assert signed.signature == "hCtSmYh+iHYCEqBWrE7C7hYmtUk="

    def test_published_x_example_parameter_string(self):
        pairs = collect_parameters(
            {"status": "Hello Ladies + Gentlemen, a signed OAuth request!", "include_entities": "true"},
            oauth_params={
                "oauth_consumer_key": "xvz1evFS4wEEPTGEFPHBog",
                "oauth_nonce": "kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg",
                "oauth_signature_method": "HMAC-SHA1",
                "oauth_timestamp": "1318622958",
                "oauth_token": "370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
                "oauth_version": "1.0",
            },
        )
        assert build_parameter_string(pairs) == (
            "include_entities=true&oauth_consumer_key=xvz1evFS4wEEPTGEFPHBog"
            "&oauth_nonce=kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg&oauth_signature_method=HMAC-SHA1"
            "&oauth_timestamp=1318622958&oauth_token=370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb"
            "&oauth_version=1.0&status=Hello%20Ladies%20%2B%20Gentlemen%2C%20a%20signed%20OAuth%20request%21"
        )

    def test_compute_signature_matches_steps(self, oauth_credentials):
        signed = sign_request("GET", SEARCH_URL, {"query": "MCP"}, oauth_credentials, nonce="abc123", timestamp=1700000000)
        base = build_base_string(
            "GET",
            SEARCH_URL,
            build_parameter_string(collect_parameters({"query": "MCP"}, oauth_params=signed.oauth_params)),
        )
        assert compute_signature(build_signing_key("cs", "ts"), base) == signed.signature


class TestDeterminism:
    def test_same_inputs_same_header(self, oauth_credentials):
        headers = {
            sign_request("GET", SEARCH_URL, {"query": "MCP"}, oauth_credentials, "abc123", 1700000000).authorization_header
            for _ in range(5)
        }
        assert len(headers) == 1

    def test_injected_clock_and_nonce(self, fixed_signer, oauth_credentials):
        expected = sign_request("GET", SEARCH_URL, {"query": "MCP"}, oauth_credentials, "abc123", 1700000000)
        assert fixed_signer.sign("GET", SEARCH_URL, {"query": "MCP"}) == expected

    def test_query_in_url_is_signed_like_params(self, oauth_credentials):
        from_url = sign_request("GET", SEARCH_URL + "?query=MCP", None, oauth_credentials, "n", 1)
        from_params = sign_request("GET", SEARCH_URL, {"query": "MCP"}, oauth_credentials, "n", 1)
        assert from_url.signature == from_params.signature

    def test_timestamp_changes_signature(self, oauth_credentials):
        a = sign_request("GET", SEARCH_URL, None, oauth_credentials, "n", 1)
        b = sign_request("GET", SEARCH_URL, None, oauth_credentials, "n", 2)
        assert a.signature != b.signature


class TestFailures:
    @pytest.mark.parametrize("field", ["consumer_key", "consumer_secret", "access_token", "access_token_secret"])
    def test_empty_credential_is_a_signing_error(self, field):
        values = {"consumer_key": "ck", "consumer_secret": "cs", "access_token": "tk", "access_token_secret": "ts"}
        values[field] = ""
        credentials = OAuthCredentials(**values)
        with pytest.raises(SigningError) as exc:
            sign_request("GET", SEARCH_URL, None, credentials, "n", 1)
        assert field in str(exc.value)
        assert isinstance(exc.value, ConfigurationError)

    def test_signer_rejects_empty_credentials_up_front(self):
        with pytest.raises(SigningError):
            OAuth1Signer(OAuthCredentials("ck", "cs", "tk", ""))

    def test_signed_request_repr_hides_signature(self, fixed_signer):
        signed = fixed_signer.sign("GET", SEARCH_URL)
        assert signed.signature not in repr(signed)
