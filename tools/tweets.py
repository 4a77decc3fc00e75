from typing import Any, Annotated
import logging

from pydantic import Field

from core.client import XClient  # type: ignore
from core.errors import ApiError  # type: ignore
from core.models import ApiErrorDetail  # type: ignore
from utils.validation import (  # type: ignore
    DEFAULT_MAX_RESULTS,
    optional_text,
    require_bool,
    require_text,
    validate_max_results,
)

logger = logging.getLogger(__name__)


def get_tools(client: XClient) -> dict[str, Any]:

    async def _get_tweet(
        tweet_id: Annotated[str, Field(description="The tweet ID")],
    ) -> dict[str, Any]:
        tweet_id = require_text("tweet_id", tweet_id)
        lookup = await client.get_tweet(tweet_id)
        if lookup is None:
            raise ApiError(404, [ApiErrorDetail(message=f"Tweet not found: {tweet_id}", title="Not Found Error")])
        return lookup.to_dict()

    async def _search_tweets(
        query: Annotated[str, Field(description="Search query")],
        max_results: Annotated[
            int, Field(ge=1, le=100, description="Maximum number of results (1-100)")
        ] = DEFAULT_MAX_RESULTS,
        include_users: Annotated[bool, Field(description="Include user information in results")] = False,
        include_metrics: Annotated[bool, Field(description="Include tweet metrics")] = False,
    ) -> dict[str, Any]:
        """Search tweets from the last seven days."""
        query = require_text("query", query)
        result = await client.search_tweets(
            query,
            max_results=validate_max_results(max_results),
            include_users=require_bool("include_users", include_users),
            include_metrics=require_bool("include_metrics", include_metrics),
        )
        logger.info(f"Search returned {len(result.tweets)} tweets")
        return result.to_dict()

    async def _post_tweet(
        text: Annotated[str, Field(description="The text content of the tweet")],
        reply_to: Annotated[str | None, Field(description="Optional tweet ID to reply to")] = None,
    ) -> dict[str, Any]:
        text = require_text("text", text)
        reply_to = optional_text("reply_to", reply_to)
        tweet = await client.post_tweet(text, reply_to=reply_to)
        logger.info(f"Posted tweet {tweet.id}" + (f" in reply to {reply_to}" if reply_to else ""))
        return {"tweet": tweet.to_dict()}

    tools: dict[str, Any] = {
        "search_tweets": {
            "func": _search_tweets,
            "title": "Search tweets",
            "description": "Search recent tweets (last 7 days) matching a query",
        },
        "get_tweet": {
            "func": _get_tweet,
            "title": "Get tweet",
            "description": "Get a specific tweet by ID",
        },
    }
    if client.can_post:
        tools["post_tweet"] = {
            "func": _post_tweet,
            "title": "Post tweet",
            "description": "Post a new tweet, optionally as a reply to another tweet",
        }
    else:
        logger.warning("post_tweet disabled: OAuth 1.0a credentials are not configured (read-only mode)")
    return tools
