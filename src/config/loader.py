"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/config.yaml  — static tunables checked into the repo
#                            (retry budget, cache TTL, model names, prompt
#                            item counts)
#   2. .env file           — local developer overrides (not committed)
#   3. Environment vars    — set at deploy time
#
# load_config() reads the YAML first, then deep-merges the values that came
# from Settings on top.  Settings fields left at their defaults do NOT
# override YAML; only values explicitly supplied through the environment
# or .env do.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    explicit = settings.model_fields_set

    env_overrides: dict[str, Any] = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "providers": settings.get_available_providers(),
        "logging": {
            "level": settings.log_level,
        },
    }

    retry: dict[str, Any] = {}
    if "retry_max_attempts" in explicit:
        retry["max_attempts"] = settings.retry_max_attempts
    if "retry_base_delay_seconds" in explicit:
        retry["base_delay_seconds"] = settings.retry_base_delay_seconds
    if retry:
        env_overrides["retry"] = retry

    cache: dict[str, Any] = {}
    if "cache_ttl_minutes" in explicit:
        cache["ttl_minutes"] = settings.cache_ttl_minutes
    if "cache_backend" in explicit:
        cache["backend"] = settings.cache_backend
    if cache:
        env_overrides["cache"] = cache

    models: dict[str, Any] = {}
    for key in ("insights", "live", "market_fit", "chat"):
        field_name = f"openai_{key}_model"
        if field_name in explicit:
            models[key] = getattr(settings, field_name)
    if models:
        env_overrides["llm"] = {"models": models}

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def config_value(config: dict, dotted_key: str, default: Any = None) -> Any:
    """Fetch ``"a.b.c"`` from a nested config dict, or *default*."""
    node: Any = config
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node
