"""
Shared pytest fixtures and configuration
"""

import copy
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

# Add the project root to Python path to make imports work
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DEFAULT_CONFIG, ConfigLoader
from core.client import XClient
from core.credentials import BearerToken, CredentialSet, OAuthCredentials
from core.oauth import OAuth1Signer

FIXED_NONCE = "abc123"
FIXED_TIMESTAMP = 1700000000


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Every test starts from a freshly loaded config and no credentials in the environment."""
    for name in (
        "X_CONSUMER_KEY",
        "X_CONSUMER_SECRET",
        "X_ACCESS_TOKEN",
        "X_ACCESS_TOKEN_SECRET",
        "X_BEARER_TOKEN",
        "X_MCP_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def config() -> dict[str, Any]:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["logging"]["log_to_file"] = False
    return cfg


@pytest.fixture
def oauth_credentials() -> OAuthCredentials:
    return OAuthCredentials(
        consumer_key="ck",
        consumer_secret="cs",
        access_token="tk",
        access_token_secret="ts",
    )


@pytest.fixture
def fixed_signer(oauth_credentials) -> OAuth1Signer:
    return OAuth1Signer(
        oauth_credentials,
        clock=lambda: FIXED_TIMESTAMP,
        nonce_factory=lambda: FIXED_NONCE,
    )


class Recorder:
    """Collects requests seen by the mock transport and replays queued responses."""

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response


@pytest.fixture
def make_client(config, oauth_credentials, fixed_signer) -> Callable[..., tuple[XClient, Recorder]]:
    """Factory: an XClient whose HTTP calls are answered from `responses` in order."""

    def _make(*responses, credentials=None, signer=None):
        recorder = Recorder(list(responses))
        creds = credentials if credentials is not None else CredentialSet(oauth=oauth_credentials)
        if signer is None and creds.oauth is not None:
            signer = fixed_signer
        client = XClient(creds, config, transport=httpx.MockTransport(recorder), signer=signer)
        return client, recorder

    return _make


@pytest.fixture
def bearer_credentials() -> CredentialSet:
    return CredentialSet(bearer=BearerToken("bearer-token-value"))
