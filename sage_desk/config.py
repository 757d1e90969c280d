"""Startup configuration.

Everything the client, cache and window need to know about the provider is
collected here once, at launch, and passed in explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.asksage.ai/server"
DEFAULT_STORE_PATH = Path.home() / ".sage_desk" / "settings.json"
REFRESH_INTERVAL_MS = 24 * 60 * 60 * 1000


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={value!r}, using {default}")
        return default


def _env_flag(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AppConfig:
    base_url: str = DEFAULT_BASE_URL
    # None drops the "dataset" field from the query body
    dataset: str | None = "none"
    timeout: float = 60.0
    refresh_interval_ms: int = REFRESH_INTERVAL_MS
    preferred_model: str = "gpt-4o-mini"
    authenticate_model_list: bool = False
    store_path: Path = field(default_factory=lambda: DEFAULT_STORE_PATH)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from SAGE_* overrides (environment or a .env file)."""
        # Load .env if present
        _dotenv_path = find_dotenv(usecwd=True)
        if _dotenv_path:
            load_dotenv(_dotenv_path)

        defaults = cls()
        dataset = os.getenv("SAGE_DATASET", defaults.dataset or "")
        return cls(
            base_url=os.getenv("SAGE_BASE_URL", defaults.base_url).rstrip("/"),
            dataset=dataset or None,
            timeout=_env_float("SAGE_TIMEOUT", defaults.timeout),
            preferred_model=os.getenv("SAGE_PREFERRED_MODEL", defaults.preferred_model),
            authenticate_model_list=_env_flag(os.getenv("SAGE_AUTH_MODEL_LIST", "false")),
            store_path=Path(os.getenv("SAGE_STORE_PATH", str(defaults.store_path))).expanduser(),
        )
