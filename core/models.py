"""Value records for X API v2 payloads.

Each record maps 1:1 from the upstream JSON. Unknown keys are dropped and
missing optional keys become None, so schema additions upstream never break
parsing.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class UserMetrics:
    followers_count: int = 0
    following_count: int = 0
    tweet_count: int = 0
    listed_count: int = 0

    @classmethod
    def from_json(cls, data: Optional[dict[str, Any]]) -> Optional["UserMetrics"]:
        if not isinstance(data, dict):
            return None
        return cls(
            followers_count=int(data.get("followers_count", 0)),
            following_count=int(data.get("following_count", 0)),
            tweet_count=int(data.get("tweet_count", 0)),
            listed_count=int(data.get("listed_count", 0)),
        )


@dataclass(frozen=True)
class User:
    id: str
    username: str
    name: str
    description: Optional[str] = None
    public_metrics: Optional[UserMetrics] = None
    profile_image_url: Optional[str] = None
    verified: Optional[bool] = None
    created_at: Optional[str] = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            username=data.get("username", ""),
            name=data.get("name", ""),
            description=data.get("description"),
            public_metrics=UserMetrics.from_json(data.get("public_metrics")),
            profile_image_url=data.get("profile_image_url"),
            verified=data.get("verified"),
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass(frozen=True)
class TweetMetrics:
    retweet_count: int = 0
    like_count: int = 0
    reply_count: int = 0
    quote_count: int = 0
    impression_count: Optional[int] = None

    @classmethod
    def from_json(cls, data: Optional[dict[str, Any]]) -> Optional["TweetMetrics"]:
        if not isinstance(data, dict):
            return None
        impressions = data.get("impression_count")
        return cls(
            retweet_count=int(data.get("retweet_count", 0)),
            like_count=int(data.get("like_count", 0)),
            reply_count=int(data.get("reply_count", 0)),
            quote_count=int(data.get("quote_count", 0)),
            impression_count=int(impressions) if impressions is not None else None,
        )


@dataclass(frozen=True)
class ReferencedTweet:
    type: str
    id: str


@dataclass(frozen=True)
class ContextAnnotation:
    domain: str
    entity: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ContextAnnotation":
        return cls(
            domain=(data.get("domain") or {}).get("name", ""),
            entity=(data.get("entity") or {}).get("name", ""),
        )


@dataclass(frozen=True)
class Tweet:
    id: str
    text: str
    author_id: Optional[str] = None
    created_at: Optional[str] = None
    public_metrics: Optional[TweetMetrics] = None
    referenced_tweets: Optional[tuple[ReferencedTweet, ...]] = None
    context_annotations: Optional[tuple[ContextAnnotation, ...]] = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Tweet":
        refs = data.get("referenced_tweets")
        annotations = data.get("context_annotations")
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            author_id=data.get("author_id"),
            created_at=data.get("created_at"),
            public_metrics=TweetMetrics.from_json(data.get("public_metrics")),
            referenced_tweets=tuple(ReferencedTweet(type=r.get("type", ""), id=str(r.get("id", ""))) for r in refs)
            if refs
            else None,
            context_annotations=tuple(ContextAnnotation.from_json(a) for a in annotations) if annotations else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = _drop_none(asdict(self))
        if self.public_metrics is not None:
            data["public_metrics"] = _drop_none(data["public_metrics"])
        return data


def _users_from_includes(payload: dict[str, Any]) -> tuple[User, ...]:
    includes = payload.get("includes") or {}
    return tuple(User.from_json(u) for u in includes.get("users") or [])


@dataclass(frozen=True)
class SearchResult:
    tweets: tuple[Tweet, ...]
    users: Optional[tuple[User, ...]] = None
    result_count: int = 0
    next_token: Optional[str] = None

    @classmethod
    def from_json(cls, payload: dict[str, Any], include_users: bool = False) -> "SearchResult":
        tweets = tuple(Tweet.from_json(t) for t in payload.get("data") or [])
        meta = payload.get("meta") or {}
        return cls(
            tweets=tweets,
            users=_users_from_includes(payload) if include_users else None,
            result_count=int(meta.get("result_count", len(tweets))),
            next_token=meta.get("next_token"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tweets": [t.to_dict() for t in self.tweets],
            "count": len(self.tweets),
        }
        if self.users is not None:
            data["users"] = [u.to_dict() for u in self.users]
        if self.next_token:
            data["next_token"] = self.next_token
        return data


@dataclass(frozen=True)
class TimelineResult:
    user_id: str
    tweets: tuple[Tweet, ...]
    result_count: int = 0
    next_token: Optional[str] = None

    @classmethod
    def from_json(cls, user_id: str, payload: dict[str, Any]) -> "TimelineResult":
        tweets = tuple(Tweet.from_json(t) for t in payload.get("data") or [])
        meta = payload.get("meta") or {}
        return cls(
            user_id=user_id,
            tweets=tweets,
            result_count=int(meta.get("result_count", len(tweets))),
            next_token=meta.get("next_token"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tweets": [t.to_dict() for t in self.tweets],
            "count": len(self.tweets),
            "user_id": self.user_id,
        }
        if self.next_token:
            data["next_token"] = self.next_token
        return data


@dataclass(frozen=True)
class ApiErrorDetail:
    """One entry of the upstream `errors` array (v1.1 `code`/`message` or v2 problem fields)."""

    message: str
    code: Optional[int] = None
    title: Optional[str] = None
    detail: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> "ApiErrorDetail":
        if not isinstance(data, dict):
            return cls(message=str(data))
        message = data.get("message") or data.get("detail") or data.get("title") or "Unknown API error"
        code = data.get("code")
        return cls(
            message=str(message),
            code=int(code) if isinstance(code, int) or (isinstance(code, str) and code.isdigit()) else None,
            title=data.get("title"),
            detail=data.get("detail"),
            type=data.get("type"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(asdict(self))

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class TweetLookup:
    """A single tweet plus its author when the API expanded `author_id`."""

    tweet: Tweet
    author: Optional[User] = None

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "TweetLookup":
        tweet = Tweet.from_json(payload["data"])
        author = next((u for u in _users_from_includes(payload) if u.id == tweet.author_id), None)
        return cls(tweet=tweet, author=author)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"tweet": self.tweet.to_dict()}
        if self.author is not None:
            data["author"] = self.author.to_dict()
        return data
