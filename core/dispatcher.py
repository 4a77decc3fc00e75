"""Tool dispatch: name lookup, argument checks and response envelopes.

The operation set is closed (`ToolName`). Handlers come from the `tools`
package and are plain async functions; their signatures declare which
arguments are required and which have defaults. Every outcome, including
failures, becomes a `ToolResponse` so one bad call never takes the server
down.
"""
from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional

from core.errors import UnknownToolError, ValidationError, XMCPError  # type: ignore

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    GET_USER = "get_user"
    POST_TWEET = "post_tweet"
    SEARCH_TWEETS = "search_tweets"
    GET_TWEET = "get_tweet"
    GET_USER_TWEETS = "get_user_tweets"

    @classmethod
    def parse(cls, name: Any) -> "ToolName":
        try:
            return cls(name)
        except ValueError:
            raise UnknownToolError(str(name)) from None


@dataclass(frozen=True)
class ToolEntry:
    name: ToolName
    func: Callable[..., Awaitable[dict[str, Any]]]
    title: Optional[str] = None
    description: Optional[str] = None

    @property
    def signature(self) -> inspect.Signature:
        return inspect.signature(self.func)

    @property
    def required(self) -> list[str]:
        return [p.name for p in self.signature.parameters.values() if p.default is inspect.Parameter.empty]


@dataclass(frozen=True)
class ToolResponse:
    is_error: bool
    payload: dict[str, Any]

    @property
    def text(self) -> str:
        return json.dumps(self.payload, indent=2, ensure_ascii=False)

    @classmethod
    def success(cls, result: Mapping[str, Any]) -> "ToolResponse":
        return cls(is_error=False, payload={"success": True, **result})

    @classmethod
    def failure(cls, error: XMCPError) -> "ToolResponse":
        return cls(is_error=True, payload={"success": False, "error": error.to_dict()})


def parse_arguments(arguments: Any) -> dict[str, Any]:
    """Accept a dict, a JSON object string, or nothing."""
    if arguments is None:
        return {}
    if isinstance(arguments, str):
        if not arguments.strip():
            return {}
        try:
            arguments = json.loads(arguments)
        except ValueError as e:
            raise ValidationError(f"Arguments are not valid JSON: {e}") from e
    if not isinstance(arguments, Mapping):
        raise ValidationError("Arguments must be a JSON object")
    return dict(arguments)


class ToolDispatcher:
    def __init__(self, entries: Mapping[ToolName, ToolEntry]):
        self._entries = dict(entries)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ToolDispatcher":
        """Build from the `get_tools()` shape: name -> {'func', 'title', 'description'} or a bare callable."""
        entries: dict[ToolName, ToolEntry] = {}
        for raw_name, meta in mapping.items():
            name = ToolName.parse(raw_name)
            if isinstance(meta, dict):
                entry = ToolEntry(name, meta["func"], meta.get("title"), meta.get("description"))
            else:
                entry = ToolEntry(name, meta)
            entries[name] = entry
        return cls(entries)

    @property
    def entries(self) -> list[ToolEntry]:
        return list(self._entries.values())

    def names(self) -> list[str]:
        return [name.value for name in self._entries]

    def get(self, name: Any) -> ToolEntry:
        tool = ToolName.parse(name)
        entry = self._entries.get(tool)
        if entry is None:
            raise UnknownToolError(tool.value)
        return entry

    def bind(self, entry: ToolEntry, arguments: Mapping[str, Any]) -> dict[str, Any]:
        params = entry.signature.parameters
        unexpected = sorted(set(arguments) - set(params))
        if unexpected:
            raise ValidationError(f"Unexpected argument: {unexpected[0]}", field=unexpected[0])
        for field in entry.required:
            if arguments.get(field) is None:
                raise ValidationError(f"Missing required argument: {field}", field=field)
        return dict(arguments)

    async def dispatch(self, name: Any, arguments: Any = None) -> ToolResponse:
        try:
            entry = self.get(name)
            kwargs = self.bind(entry, parse_arguments(arguments))
            result = await entry.func(**kwargs)
        except XMCPError as e:
            logger.warning("Tool %s failed: %s: %s", name, e.error_type, e.message)
            return ToolResponse.failure(e)
        except Exception as e:
            logger.exception(f"Unhandled error in tool {name}")
            return ToolResponse(
                is_error=True,
                payload={"success": False, "error": {"type": "internal_error", "message": str(e)}},
            )
        return ToolResponse.success(result)
