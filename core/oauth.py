"""OAuth 1.0a request signing (HMAC-SHA1, header transport).

The signing steps are exposed as small pure functions so each one can be
checked on its own; `sign_request` strings them together for a single call
with an explicit nonce and timestamp, and `OAuth1Signer` supplies those from
an injected clock and nonce factory.

Only query-string and form parameters take part in the signature. JSON
request bodies (as used by `POST /2/tweets`) are never part of the base
string.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Union
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from core.credentials import OAuthCredentials  # type: ignore
from core.errors import SigningError  # type: ignore

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"
NONCE_ALPHABET = string.ascii_letters + string.digits
DEFAULT_PORTS = {"http": 80, "https": 443}

Params = Union[Mapping[str, Any], Iterable[tuple[str, Any]], None]


def percent_encode(value: Any) -> str:
    """RFC 3986 encoding: only ALPHA, DIGIT and `-._~` pass through, space becomes %20."""
    return quote(str(value), safe="")


def generate_nonce(length: int = 32) -> str:
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(length))


def normalize_base_url(url: str) -> str:
    """Base string URI: lowercase scheme and host, no default port, no query or fragment."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        raise SigningError(f"Cannot sign a request for a relative URL: {url!r}")
    port = parts.port
    netloc = host if port is None or DEFAULT_PORTS.get(scheme) == port else f"{host}:{port}"
    return urlunsplit((scheme, netloc, parts.path or "/", "", ""))


def _iter_pairs(params: Params) -> Iterable[tuple[str, Any]]:
    if not params:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    pairs: list[tuple[str, Any]] = []
    for key, value in items:
        # list values are the multi-value form of a parameter
        if isinstance(value, (list, tuple)):
            pairs.extend((key, v) for v in value)
        else:
            pairs.append((key, value))
    return pairs


def collect_parameters(params: Params, url: str = "", oauth_params: Optional[Mapping[str, str]] = None) -> list[tuple[str, str]]:
    """Merge URL query, request and protocol parameters into one list of string pairs."""
    pairs: list[tuple[str, str]] = []
    query = urlsplit(url).query if url else ""
    if query:
        pairs.extend(parse_qsl(query, keep_blank_values=True))
    pairs.extend((str(k), _stringify(v)) for k, v in _iter_pairs(params))
    if oauth_params:
        pairs.extend(oauth_params.items())
    return pairs


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_parameter_string(pairs: Iterable[tuple[str, str]]) -> str:
    """Encode every key and value, sort by encoded key then encoded value, join with `&`."""
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in pairs)
    return "&".join(f"{k}={v}" for k, v in encoded)


def build_base_string(method: str, base_url: str, parameter_string: str) -> str:
    return "&".join([method.upper(), percent_encode(base_url), percent_encode(parameter_string)])


def build_signing_key(consumer_secret: str, token_secret: str) -> str:
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"


def compute_signature(signing_key: str, base_string: str) -> str:
    digest = hmac.new(signing_key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True)
class SignedRequest:
    """One signed outbound call. Built fresh per request and never reused."""

    method: str
    base_url: str
    query_params: tuple[tuple[str, str], ...]
    oauth_params: dict[str, str] = field(repr=False)
    signature: str = field(repr=False)

    @property
    def nonce(self) -> str:
        return self.oauth_params["oauth_nonce"]

    @property
    def timestamp(self) -> str:
        return self.oauth_params["oauth_timestamp"]

    @property
    def authorization_header(self) -> str:
        header_params = dict(self.oauth_params)
        header_params["oauth_signature"] = self.signature
        return "OAuth " + ", ".join(
            f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(header_params.items())
        )


def _check_credentials(credentials: OAuthCredentials) -> None:
    empty = [
        name
        for name in ("consumer_key", "consumer_secret", "access_token", "access_token_secret")
        if not getattr(credentials, name, "")
    ]
    if empty:
        raise SigningError(f"Cannot sign request, empty credential(s): {', '.join(empty)}")


def sign_request(
    method: str,
    url: str,
    params: Params,
    credentials: OAuthCredentials,
    nonce: str,
    timestamp: Union[int, str],
) -> SignedRequest:
    """Sign a request with an explicit nonce and timestamp.

    Output is fully determined by the inputs, so the same arguments always
    yield a byte-identical Authorization header.
    """
    _check_credentials(credentials)
    if not nonce:
        raise SigningError("Cannot sign request with an empty nonce")

    oauth_params = {
        "oauth_consumer_key": credentials.consumer_key,
        "oauth_nonce": nonce,
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": str(timestamp),
        "oauth_token": credentials.access_token,
        "oauth_version": OAUTH_VERSION,
    }
    base_url = normalize_base_url(url)
    request_pairs = collect_parameters(params, url)
    parameter_string = build_parameter_string(request_pairs + list(oauth_params.items()))
    base_string = build_base_string(method, base_url, parameter_string)
    signing_key = build_signing_key(credentials.consumer_secret, credentials.access_token_secret)

    return SignedRequest(
        method=method.upper(),
        base_url=base_url,
        query_params=tuple(request_pairs),
        oauth_params=oauth_params,
        signature=compute_signature(signing_key, base_string),
    )


class OAuth1Signer:
    """Signs requests with a fresh nonce and the current time on every call."""

    def __init__(
        self,
        credentials: OAuthCredentials,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = generate_nonce,
    ):
        _check_credentials(credentials)
        self._credentials = credentials
        self._clock = clock
        self._nonce_factory = nonce_factory

    def sign(self, method: str, url: str, params: Params = None) -> SignedRequest:
        return sign_request(
            method,
            url,
            params,
            self._credentials,
            nonce=self._nonce_factory(),
            timestamp=int(self._clock()),
        )

    def authorization_header(self, method: str, url: str, params: Params = None) -> str:
        return self.sign(method, url, params).authorization_header
