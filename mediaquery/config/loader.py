"""YAML configuration loader with environment variable overrides.

Configuration is layered (later layers override earlier):

  1. config/config.yaml  -- static query/chat tuning checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

``load_config()`` reads the YAML first, then deep-merges the env-derived
values from :class:`Settings` on top.
"""

from pathlib import Path

import yaml

from mediaquery.config.settings import Settings

_DEFAULTS: dict = {
    "query_limits": {
        "default": 1000,
        "large_images": 500,
        "page_images": 500,
    },
    "semantic_search": {
        "top_k": 20,
    },
    "chat": {
        "history_turns": 4,
        "inline_preview": 5,
        "tool_temperature": 0.1,
        "tool_max_tokens": 150,
    },
    "large_image_min_width": 1000,
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to read overrides from; a fresh one is
                  built from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config: dict = {}
    _deep_merge(config, _copy(_DEFAULTS))

    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "ingestion": {
            "max_batch_size": settings.max_batch_size,
            "embedding_concurrency": settings.embedding_concurrency,
        },
        "admission": {
            "require_api_key": settings.require_api_key,
            "enable_rate_limiting": settings.enable_rate_limiting,
            "rate_limit_per_hour": settings.rate_limit_per_hour,
            "rate_limit_window_seconds": settings.rate_limit_window_seconds,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def _copy(value: dict) -> dict:
    return {k: _copy(v) if isinstance(v, dict) else v for k, v in value.items()}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
