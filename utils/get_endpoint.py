from urllib.parse import quote

from core.config import get_config  # type: ignore
from core.errors import ConfigurationError  # type: ignore


def get_base_url(config=None):
    _cfg = config if config is not None else (get_config() or {})
    base_url = (_cfg.get("x_api_url") or "").rstrip("/")
    if not base_url:
        raise ConfigurationError("'x_api_url' must be set in config.yaml")
    return base_url


def get_endpoint(key, config=None, **path_args):
    """Full upstream URL for `api_paths[key]` with placeholders filled in.

    Path arguments are percent-encoded as a single segment so an identifier can
    never escape into another path.
    """
    _cfg = config if config is not None else (get_config() or {})
    base_url = get_base_url(_cfg)

    path = (_cfg.get("api_paths") or {}).get(key)
    if not path:
        raise ConfigurationError(f"Missing API path for key '{key}' in config.yaml under 'api_paths'")

    try:
        path = path.format(**{name: quote(str(value), safe="") for name, value in path_args.items()})
    except KeyError as e:
        raise ConfigurationError(f"API path '{key}' needs argument {e}") from e

    return f"{base_url}{path}"
