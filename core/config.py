import copy
import os
import yaml

CONFIG_ENV_VAR = "X_MCP_CONFIG"

DEFAULT_CONFIG = {
    "server_name": "x-mcp-server",
    "instructions": None,
    "x_api_url": "https://api.twitter.com/2",
    "request_timeout": 30.0,
    "api_paths": {
        "user_by_username": "/users/by/username/{username}",
        "user_by_id": "/users/{user_id}",
        "tweet": "/tweets/{tweet_id}",
        "tweets": "/tweets",
        "search_recent": "/tweets/search/recent",
        "user_tweets": "/users/{user_id}/tweets",
    },
    "fields": {
        "user": ["id", "name", "username", "description", "public_metrics", "profile_image_url", "verified", "created_at"],
        "tweet": ["id", "text", "author_id", "created_at", "public_metrics", "context_annotations", "referenced_tweets"],
        "timeline": ["id", "text", "author_id", "created_at", "public_metrics"],
        "search": ["id", "text", "author_id", "created_at"],
        "search_user": ["id", "name", "username"],
    },
    "logging": {
        "level": "INFO",
        "log_to_file": True,
        "logs_dir": None,
    },
}


def _merge(base, override):
    """Recursively merge `override` into a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    _instance = None
    _config = None

    def __new__(cls):
        """
        Create a singleton instance of ConfigLoader.
        Loads configuration from YAML file on first instantiation.
        """
        if cls._instance is None:
            cls._instance = super(ConfigLoader, cls).__new__(cls)
            cls._load_config()
        return cls._instance

    @classmethod
    def config_path(cls):
        """
        Path of the YAML file: $X_MCP_CONFIG if set, else config.yaml at the repository root.
        """
        override = os.environ.get(CONFIG_ENV_VAR)
        if override:
            return os.path.abspath(override)
        return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "config.yaml"))

    @classmethod
    def _load_config(cls):
        """
        Load the YAML file over the built-in defaults into the class variable _config.
        A missing file leaves the defaults in place.
        """
        loaded = {}
        path = cls.config_path()
        if os.path.isfile(path):
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        cls._config = _merge(DEFAULT_CONFIG, loaded)

    @classmethod
    def reset(cls):
        """
        Drop the cached instance so the next access reloads the file.
        """
        cls._instance = None
        cls._config = None

    def get_config(self):
        """
        Return the loaded configuration dictionary.
        """
        return self._config


def get_config():
    """
    Helper function to get the singleton configuration instance's config dictionary.
    """
    return ConfigLoader().get_config()
