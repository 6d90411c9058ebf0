"""Configuration loading for the inventory domain.

Settings live in ``domain.toml`` next to ``domain.py``. Top-level tables hold
the base configuration; a table named after the active environment
(``[test]``, ``[production]``, ...) is merged on top of it. A handful of
deployment settings can be overridden from environment variables.
"""

import copy
import os
import tomllib
from pathlib import Path
from typing import Any

from inventory.utils.logging import get_environment

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "domain.toml"

ENVIRONMENTS = ("development", "test", "staging", "production")

# Environment variable -> (section path, key)
_ENV_OVERRIDES = {
    "DATABASE_URL": (("databases", "default"), "database_uri"),
    "REDIS_URL": (("brokers", "default"), "redis_url"),
    "CATALOGUE_URL": (("catalogue",), "base_url"),
}


def _deep_merge(base: dict, overlay: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _apply_env_overrides(config: dict) -> dict:
    for var, (path, key) in _ENV_OVERRIDES.items():
        value = os.getenv(var)
        if not value:
            continue
        section = config
        for part in path:
            section = section.setdefault(part, {})
        section[key] = value
    return config


def load_config(path: str | Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Load ``domain.toml`` and resolve it for the given (or active) environment."""
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    with config_path.open("rb") as fp:
        raw = tomllib.load(fp)

    env = (env or get_environment()).lower()
    base = {key: value for key, value in raw.items() if key not in ENVIRONMENTS}
    config = _deep_merge(base, raw.get(env, {}))
    config["env"] = env

    return _apply_env_overrides(config)
