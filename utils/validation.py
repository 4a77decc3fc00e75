"""Argument checks applied before any upstream call."""
from __future__ import annotations

from typing import Any

from core.errors import ValidationError  # type: ignore

MIN_RESULTS = 1
MAX_RESULTS = 100
DEFAULT_MAX_RESULTS = 10


def require_text(field: str, value: Any) -> str:
    """Non-empty string after stripping whitespace."""
    if value is None:
        raise ValidationError(f"Missing required argument: {field}", field=field)
    if not isinstance(value, str):
        raise ValidationError(f"Argument '{field}' must be a string", field=field)
    value = value.strip()
    if not value:
        raise ValidationError(f"Argument '{field}' must not be empty", field=field)
    return value


def optional_text(field: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return require_text(field, value)


def require_bool(field: str, value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    # some runtimes send booleans as strings
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"Argument '{field}' must be a boolean", field=field)


def validate_max_results(value: Any, field: str = "max_results") -> int:
    """Accept an integer in [1, 100]; anything else is rejected, never clamped."""
    if value is None:
        return DEFAULT_MAX_RESULTS
    if isinstance(value, bool):
        raise ValidationError(f"Argument '{field}' must be an integer", field=field)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationError(f"Argument '{field}' must be an integer", field=field)
    if value < MIN_RESULTS or value > MAX_RESULTS:
        raise ValidationError(
            f"Argument '{field}' must be between {MIN_RESULTS} and {MAX_RESULTS}, got {value}", field=field
        )
    return value
