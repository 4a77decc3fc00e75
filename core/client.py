"""Async X API v2 client.

One shared `httpx.AsyncClient` serves every tool call, so connections are
pooled across invocations. Each request is signed on its own (fresh nonce and
timestamp), bounded by a single timeout, and never retried.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union
from urllib.parse import urlsplit

import httpx

from core.config import get_config  # type: ignore
from core.credentials import CredentialSet, OAuthCredentials  # type: ignore
from core.errors import ApiError, ConfigurationError, TransportError  # type: ignore
from core.models import ApiErrorDetail, SearchResult, TimelineResult, Tweet, TweetLookup, User  # type: ignore
from core.oauth import OAuth1Signer, percent_encode  # type: ignore
from utils import extract_error_entries, get_base_url, get_endpoint, parse_json_body  # type: ignore
from utils.validation import require_text, validate_max_results  # type: ignore

logger = logging.getLogger(__name__)

USER_AGENT = "x-mcp-server"
# Upstream floors for max_results; smaller requests are fetched at the floor and trimmed.
SEARCH_MIN_RESULTS = 10
TIMELINE_MIN_RESULTS = 5
MAX_ERROR_BODY = 2000


class XClient:
    """Issues one upstream call per logical operation and maps the response to domain records."""

    def __init__(
        self,
        credentials: Union[CredentialSet, OAuthCredentials],
        config: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        signer: Optional[OAuth1Signer] = None,
    ):
        if isinstance(credentials, OAuthCredentials):
            credentials = CredentialSet(oauth=credentials)
        self._credentials = credentials
        self._config = config if config is not None else (get_config() or {})
        self.base_url = get_base_url(self._config)
        self.timeout = float(self._config.get("request_timeout") or 30.0)
        self._fields = self._config.get("fields") or {}

        if signer is None and credentials.oauth is not None:
            signer = OAuth1Signer(credentials.oauth)
        self._signer = signer

        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    @property
    def can_post(self) -> bool:
        return self._signer is not None

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "XClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    ###################################################### Operations ######################################################

    async def get_user(self, identifier: str, is_user_id: bool = False) -> Optional[User]:
        """Look a user up by username (leading @ allowed) or by numeric id."""
        identifier = require_text("identifier", identifier)
        params = {"user.fields": self._field_list("user")}
        if is_user_id:
            payload = await self._request("GET", "user_by_id", {"user_id": identifier}, params=params)
        else:
            username = require_text("identifier", identifier.lstrip("@"))
            payload = await self._request("GET", "user_by_username", {"username": username}, params=params)

        data = payload.get("data")
        return User.from_json(data) if data else None

    async def get_tweet(self, tweet_id: str) -> Optional[TweetLookup]:
        tweet_id = require_text("tweet_id", tweet_id)
        params = {
            "tweet.fields": self._field_list("tweet"),
            "expansions": "author_id",
            "user.fields": self._field_list("search_user"),
        }
        payload = await self._request("GET", "tweet", {"tweet_id": tweet_id}, params=params)
        if not payload.get("data"):
            return None
        return TweetLookup.from_json(payload)

    async def search_tweets(
        self,
        query: str,
        max_results: int = 10,
        include_users: bool = False,
        include_metrics: bool = False,
    ) -> SearchResult:
        """Search tweets from the last seven days."""
        query = require_text("query", query)
        max_results = validate_max_results(max_results)

        tweet_fields = self._field_list("search")
        if include_metrics:
            tweet_fields += ",public_metrics"
        params = {
            "query": query,
            "max_results": str(max(max_results, SEARCH_MIN_RESULTS)),
            "tweet.fields": tweet_fields,
        }
        if include_users:
            params["expansions"] = "author_id"
            params["user.fields"] = self._field_list("search_user")

        payload = await self._request("GET", "search_recent", params=params)
        result = SearchResult.from_json(payload, include_users=include_users)
        if len(result.tweets) > max_results:
            tweets = result.tweets[:max_results]
            users = result.users
            if users is not None:
                authors = {t.author_id for t in tweets}
                users = tuple(u for u in users if u.id in authors)
            result = SearchResult(
                tweets=tweets,
                users=users,
                result_count=max_results,
                next_token=result.next_token,
            )
        return result

    async def get_user_tweets(
        self,
        identifier: str,
        is_user_id: bool = False,
        max_results: int = 10,
    ) -> Optional[TimelineResult]:
        """Most recent tweets of a user. Returns None when a username does not resolve."""
        identifier = require_text("identifier", identifier)
        max_results = validate_max_results(max_results)

        if is_user_id:
            user_id = identifier
        else:
            user = await self.get_user(identifier, is_user_id=False)
            if user is None:
                return None
            user_id = user.id

        params = {
            "tweet.fields": self._field_list("timeline"),
            "max_results": str(max(max_results, TIMELINE_MIN_RESULTS)),
        }
        payload = await self._request("GET", "user_tweets", {"user_id": user_id}, params=params)
        result = TimelineResult.from_json(user_id, payload)
        if len(result.tweets) > max_results:
            result = TimelineResult(
                user_id=user_id,
                tweets=result.tweets[:max_results],
                result_count=max_results,
                next_token=result.next_token,
            )
        return result

    async def post_tweet(self, text: str, reply_to: Optional[str] = None) -> Tweet:
        """Post a tweet, optionally as a reply. Needs OAuth 1.0a user credentials."""
        if not self.can_post:
            raise ConfigurationError(
                "post_tweet requires X_CONSUMER_KEY, X_CONSUMER_SECRET, X_ACCESS_TOKEN and X_ACCESS_TOKEN_SECRET"
            )
        text = require_text("text", text)
        body: dict[str, Any] = {"text": text}
        if reply_to:
            body["reply"] = {"in_reply_to_tweet_id": require_text("reply_to", reply_to)}

        payload = await self._request("POST", "tweets", json_body=body)
        data = payload.get("data")
        if not data:
            raise TransportError("X API returned no data for the posted tweet", status_code=None)
        return Tweet.from_json({"text": text, **data})

    ###################################################### Transport ######################################################

    def _field_list(self, key: str) -> str:
        return ",".join(self._fields.get(key) or [])

    def _authorization(self, method: str, url: str, params: Optional[dict[str, str]]) -> str:
        if self._signer is not None:
            return self._signer.authorization_header(method, url, params)
        if self._credentials.bearer is not None:
            return f"Bearer {self._credentials.bearer.token}"
        raise ConfigurationError("No X API credentials available to authorize the request")

    async def _request(
        self,
        method: str,
        endpoint: str,
        path_args: Optional[dict[str, str]] = None,
        params: Optional[dict[str, str]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = get_endpoint(endpoint, self._config, **(path_args or {}))
        headers = {"Authorization": self._authorization(method, url, params)}

        # encode the query with the signer's rules so the wire matches the signature
        request_url = url
        if params:
            request_url = url + "?" + "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in params.items())

        path = urlsplit(url).path
        logger.debug("%s %s", method, path)
        try:
            # httpx bounds each connect/read/write step; wait_for bounds the whole exchange
            response = await asyncio.wait_for(
                self._http.request(method, request_url, headers=headers, json=json_body), self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise TransportError(
                f"{method} {path} timed out after {self.timeout:g}s", timeout=True
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e.__class__.__name__}: {e}") from e

        logger.info("%s %s -> %s", method, path, response.status_code)
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        status = response.status_code
        text = response.text

        if not response.is_success:
            entries = extract_error_entries(parse_json_body(text))
            if entries:
                raise ApiError(status, [ApiErrorDetail.from_json(e) for e in entries])
            raise TransportError(
                f"X API returned HTTP {status}", status_code=status, body=text[:MAX_ERROR_BODY]
            )

        payload = parse_json_body(text)
        if not isinstance(payload, dict):
            raise TransportError(
                f"X API returned a non-JSON body with HTTP {status}", status_code=status, body=text[:MAX_ERROR_BODY]
            )
        # lookups of missing users/tweets come back as 200 with only an errors array
        if not payload.get("data") and "meta" not in payload:
            entries = extract_error_entries(payload)
            if entries:
                raise ApiError(status, [ApiErrorDetail.from_json(e) for e in entries])
        return payload
