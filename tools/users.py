from typing import Any, Annotated
import logging

from pydantic import Field

from core.client import XClient  # type: ignore
from core.errors import ApiError  # type: ignore
from core.models import ApiErrorDetail  # type: ignore
from utils.validation import DEFAULT_MAX_RESULTS, require_bool, require_text, validate_max_results  # type: ignore

logger = logging.getLogger(__name__)


def _not_found(identifier: str) -> ApiError:
    return ApiError(404, [ApiErrorDetail(message=f"User not found: {identifier}", title="Not Found Error")])


def get_tools(client: XClient) -> dict[str, Any]:
    # closures capture the shared client; the exposed signatures stay clean for the schema

    async def _get_user(
        identifier: Annotated[str, Field(description="Username (without @) or user ID")],
        is_user_id: Annotated[
            bool, Field(description="Whether the identifier is a user ID (true) or username (false)")
        ] = False,
    ) -> dict[str, Any]:
        identifier = require_text("identifier", identifier)
        is_user_id = require_bool("is_user_id", is_user_id)
        user = await client.get_user(identifier, is_user_id=is_user_id)
        if user is None:
            raise _not_found(identifier)
        return {"user": user.to_dict()}

    async def _get_user_tweets(
        identifier: Annotated[str, Field(description="Username (without @) or user ID")],
        is_user_id: Annotated[
            bool, Field(description="Whether the identifier is a user ID (true) or username (false)")
        ] = False,
        max_results: Annotated[
            int, Field(ge=1, le=100, description="Maximum number of tweets to retrieve (1-100)")
        ] = DEFAULT_MAX_RESULTS,
    ) -> dict[str, Any]:
        identifier = require_text("identifier", identifier)
        is_user_id = require_bool("is_user_id", is_user_id)
        max_results = validate_max_results(max_results)
        timeline = await client.get_user_tweets(identifier, is_user_id=is_user_id, max_results=max_results)
        if timeline is None:
            raise _not_found(identifier)
        logger.info(f"Fetched {len(timeline.tweets)} tweets for user {timeline.user_id}")
        return timeline.to_dict()

    return {
        "get_user": {
            "func": _get_user,
            "title": "Get user",
            "description": "Get user information by username or user ID",
        },
        "get_user_tweets": {
            "func": _get_user_tweets,
            "title": "Get user tweets",
            "description": "Get a user's most recent tweets",
        },
    }
