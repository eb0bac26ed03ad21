"""
config.py — Settings

YAML first (config/default.yaml or --config), then REFLEX_* environment
variables on top. A value that doesn't parse is logged and replaced by
its default; a bad setting should never keep the bot from starting.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

log = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("config/default.yaml")
DEFAULT_STATE_DIR = Path.home() / ".reflex"

ENV_PREFIX = "REFLEX_"


@dataclass
class Settings:
    name: str = "reflex"
    alias: str | None = None
    store_size: int = 200               # max taught responses
    throttle_expiration: float = 300.0  # seconds a term stays quiet after firing
    init_timeout: int = 10000           # ms to wait for the brain at startup
    reaction_delay: float = 3.0         # seconds between hearing and reacting
    state_dir: Path = DEFAULT_STATE_DIR
    channels: dict[str, Any] = field(default_factory=lambda: {"shell": {"enabled": True}})

    @property
    def init_timeout_seconds(self) -> float:
        return self.init_timeout / 1000.0


def load_config(path: str | Path) -> dict:
    """Load YAML config, falling back to defaults."""
    p = Path(path)
    if p.exists():
        try:
            with open(p) as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            log.warning("Config at %s is not valid YAML (%s), using defaults", p, e)
            return {}
        if not isinstance(config, dict):
            log.warning("Config at %s is not a mapping, using defaults", p)
            return {}
        log.info("Config loaded from %s", p)
        return config

    log.warning("Config not found at %s, using defaults", p)
    return {}


def _coerce(key: str, value: Any, cast: Callable[[Any], Any], default: Any) -> Any:
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        log.warning("Invalid %s=%r, using %r", key, value, default)
        return default


def build_settings(config: dict | None = None, environ: dict[str, str] | None = None) -> Settings:
    """Merge a config dict with REFLEX_* env vars into Settings."""
    config = dict(config or {})
    env = os.environ if environ is None else environ
    defaults = Settings()

    def pick(key: str) -> Any:
        return env.get(ENV_PREFIX + key.upper(), config.get(key))

    store_size = _coerce("store_size", pick("store_size"), int, defaults.store_size)
    if store_size < 1:
        log.warning("store_size=%d is too small, using 1", store_size)
        store_size = 1

    settings = Settings(
        name=str(pick("name") or defaults.name),
        alias=str(pick("alias")) if pick("alias") else None,
        store_size=store_size,
        throttle_expiration=max(0.0, _coerce(
            "throttle_expiration", pick("throttle_expiration"), float,
            defaults.throttle_expiration)),
        init_timeout=max(0, _coerce(
            "init_timeout", pick("init_timeout"), int, defaults.init_timeout)),
        reaction_delay=max(0.0, _coerce(
            "reaction_delay", pick("reaction_delay"), float, defaults.reaction_delay)),
        state_dir=Path(pick("state_dir") or defaults.state_dir).expanduser(),
        channels=config.get("channels") or defaults.channels,
    )
    return settings
