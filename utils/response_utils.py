"""Parsing helpers for X API response bodies.

`parse_json_body` is used on error responses, where the upstream may send a
JSON envelope, a JSON object followed by noise, or plain text/HTML from a
proxy. Plain text yields None so the caller can fall back to a transport error.
"""
from __future__ import annotations

import json
from typing import Any, Optional


def parse_json_body(text: Optional[str]) -> Optional[Any]:
    """Parse `text` as JSON, else the first JSON value embedded at its start, else None."""
    if not text:
        return None
    text = text.lstrip("\ufeff").strip()
    if not text:
        return None

    try:
        return json.loads(text)
    except ValueError:
        pass

    # A JSON object followed by trailing data (e.g. a proxy appending a footer)
    try:
        obj, _ = json.JSONDecoder().raw_decode(text)
        return obj
    except ValueError:
        return None


def extract_error_entries(payload: Any) -> list[Any]:
    """Return the upstream error entries in `payload`, or [] when it is not an error envelope.

    Handles the `{"errors": [...]}` envelope and the RFC 7807 problem body
    (`title`/`detail`) the v2 API returns for auth and rate-limit failures.
    """
    if not isinstance(payload, dict):
        return []
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        return errors
    if isinstance(errors, dict):
        return [errors]
    if payload.get("title") or payload.get("detail"):
        return [payload]
    if isinstance(payload.get("error"), str):
        return [{"message": payload["error"]}]
    return []
