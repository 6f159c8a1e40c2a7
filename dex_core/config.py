"""
Service configuration - env vars (optionally from .env), defaults, constants.
"""
from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

_ROOT = pathlib.Path(__file__).resolve().parent.parent
_env = _ROOT / ".env"
if _env.exists():
    # Real environment variables win over .env entries.
    load_dotenv(_env, override=False)

DEFAULT_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_POKEAPI_BASE = "https://pokeapi.co/api/v2"
DEFAULT_POKEAPI_TIMEOUT = 10.0
DEFAULT_POKEAPI_CACHE_TTL = 60.0 * 60.0 * 6.0  # 6 hours
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


def _to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Any, default: int) -> int:
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _to_float(value: Any, default: float) -> float:
    if value is None or str(value).strip() == "":
        return default
    try:
        return float(str(value).strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_MODEL
    anthropic_max_tokens: int = DEFAULT_MAX_TOKENS
    pokeapi_base_url: str = DEFAULT_POKEAPI_BASE
    pokeapi_timeout: float = DEFAULT_POKEAPI_TIMEOUT
    pokeapi_cache_ttl: float = DEFAULT_POKEAPI_CACHE_TTL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    debug: bool = False

    @property
    def chat_enabled(self) -> bool:
        return bool(self.anthropic_api_key)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment (or an explicit mapping, for tests).
    Malformed numbers fall back to their defaults instead of failing startup.
    """
    src = os.environ if env is None else env
    return Settings(
        anthropic_api_key=(src.get("ANTHROPIC_API_KEY") or "").strip(),
        anthropic_model=(src.get("ANTHROPIC_MODEL") or DEFAULT_MODEL).strip(),
        anthropic_max_tokens=_to_int(src.get("ANTHROPIC_MAX_TOKENS"), DEFAULT_MAX_TOKENS),
        pokeapi_base_url=(src.get("POKEAPI_BASE_URL") or DEFAULT_POKEAPI_BASE).strip().rstrip("/"),
        pokeapi_timeout=_to_float(src.get("POKEAPI_TIMEOUT"), DEFAULT_POKEAPI_TIMEOUT),
        pokeapi_cache_ttl=max(0.0, _to_float(src.get("POKEAPI_CACHE_TTL"), DEFAULT_POKEAPI_CACHE_TTL)),
        host=(src.get("DEXCHAT_HOST") or DEFAULT_HOST).strip(),
        port=_to_int(src.get("DEXCHAT_PORT"), DEFAULT_PORT),
        debug=_to_bool(src.get("DEXCHAT_DEBUG")),
    )
