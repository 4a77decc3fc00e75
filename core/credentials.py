"""Credential store for the X API.

Credentials are read from the environment once at startup and handed by
reference to the client. Nothing here is mutated after construction.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from core.errors import ConfigurationError  # type: ignore

OAUTH_ENV_VARS = (
    "X_CONSUMER_KEY",
    "X_CONSUMER_SECRET",
    "X_ACCESS_TOKEN",
    "X_ACCESS_TOKEN_SECRET",
)
BEARER_ENV_VAR = "X_BEARER_TOKEN"


@dataclass(frozen=True)
class OAuthCredentials:
    """OAuth 1.0a consumer and access token pair."""

    consumer_key: str = field(repr=False)
    consumer_secret: str = field(repr=False)
    access_token: str = field(repr=False)
    access_token_secret: str = field(repr=False)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OAuthCredentials":
        """Load the four OAuth variables, raising ConfigurationError naming any that are missing."""
        env = os.environ if environ is None else environ
        values = {name: (env.get(name) or "").strip() for name in OAUTH_ENV_VARS}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing OAuth 1.0a environment variables: {', '.join(missing)}")
        return cls(
            consumer_key=values["X_CONSUMER_KEY"],
            consumer_secret=values["X_CONSUMER_SECRET"],
            access_token=values["X_ACCESS_TOKEN"],
            access_token_secret=values["X_ACCESS_TOKEN_SECRET"],
        )

    def secret_values(self) -> list[str]:
        return [self.consumer_key, self.consumer_secret, self.access_token, self.access_token_secret]


@dataclass(frozen=True)
class BearerToken:
    """App-only bearer token, good for read operations only."""

    token: str = field(repr=False)

    def secret_values(self) -> list[str]:
        return [self.token]


@dataclass(frozen=True)
class CredentialSet:
    oauth: Optional[OAuthCredentials] = None
    bearer: Optional[BearerToken] = None

    @property
    def can_post(self) -> bool:
        return self.oauth is not None

    @property
    def mode(self) -> str:
        return "oauth1" if self.oauth is not None else "bearer"

    def secret_values(self) -> list[str]:
        values: list[str] = []
        for cred in (self.oauth, self.bearer):
            if cred is not None:
                values.extend(cred.secret_values())
        return values


def load_credentials(environ: Optional[Mapping[str, str]] = None) -> CredentialSet:
    """Resolve which auth path the process runs with.

    Complete OAuth 1.0a credentials win and enable every tool. A partial OAuth
    set is a configuration error even if a bearer token is present. With no
    OAuth variables at all, `X_BEARER_TOKEN` enables read-only mode.
    """
    env = os.environ if environ is None else environ
    present = [name for name in OAUTH_ENV_VARS if (env.get(name) or "").strip()]
    bearer_value = (env.get(BEARER_ENV_VAR) or "").strip()
    bearer = BearerToken(bearer_value) if bearer_value else None

    if present:
        # raises with the missing names when the set is partial
        return CredentialSet(oauth=OAuthCredentials.from_env(env), bearer=bearer)
    if bearer is not None:
        return CredentialSet(bearer=bearer)
    raise ConfigurationError(
        f"No X API credentials found. Set {', '.join(OAUTH_ENV_VARS)} "
        f"(required for post_tweet) or {BEARER_ENV_VAR} for read-only access."
    )
