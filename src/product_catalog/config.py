import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

DEFAULT_TABLE = "products"
DEFAULT_SCHEMA = "public"
DEFAULT_TIMEOUT = 30.0


class ConfigurationError(Exception):
    """Raised when required store settings are missing or invalid."""


@dataclass(frozen=True)
class StoreSettings:
    url: str
    api_key: str
    table: str = DEFAULT_TABLE
    schema: str = DEFAULT_SCHEMA
    timeout: float = DEFAULT_TIMEOUT


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Path of the nearest ``filename`` in start_dir or one of its parents."""
    here = os.path.abspath(start_dir or ".")
    while not os.path.isfile(os.path.join(here, filename)):
        parent = os.path.dirname(here)
        if parent == here:
            return None
        here = parent
    return os.path.join(here, filename)


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Return key/value pairs from the nearest `.env` without touching os.environ."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    try:
        values = dotenv_values(path)
    except OSError as e:
        log.warning(f"Failed reading .env: {e}")
        return {}
    env = {k: v.strip() for k, v in values.items() if v is not None}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


def _lookup(env: Dict[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        v = os.environ.get(key)
        if v and v.strip():
            return v.strip()
    for key in keys:
        v = env.get(key)
        if v:
            return v
    return None


def load_store_settings(
    dotenv_dir: str,
    *,
    url: Optional[str] = None,
    api_key: Optional[str] = None,
    table: Optional[str] = None,
    schema: Optional[str] = None,
    timeout: Optional[float] = None,
) -> StoreSettings:
    """Resolve store settings from overrides, then env, then `.env`.

    Raises ConfigurationError when the project URL or API key is missing.
    """
    env = _read_dotenv(dotenv_dir)

    resolved_url = url or _lookup(env, "SUPABASE_URL")
    if not resolved_url:
        raise ConfigurationError("SUPABASE_URL missing. Provide --url or set it in env/.env.")
    if not resolved_url.startswith(("http://", "https://")):
        raise ConfigurationError(f"SUPABASE_URL must be an http(s) URL, got {resolved_url!r}")

    resolved_key = api_key or _lookup(env, "SUPABASE_ANON_KEY", "SUPABASE_KEY")
    if not resolved_key:
        raise ConfigurationError("SUPABASE_ANON_KEY missing. Provide --key or set it in env/.env.")
    if api_key:
        log.info("Using API key from command line")
    elif os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("SUPABASE_KEY"):
        log.info("Using Supabase API key from environment")
    else:
        log.info("Loaded Supabase API key from .env file")

    resolved_timeout = timeout
    if resolved_timeout is None:
        raw = _lookup(env, "STORE_TIMEOUT")
        try:
            resolved_timeout = float(raw) if raw else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ConfigurationError(f"STORE_TIMEOUT must be a number, got {raw!r}") from exc

    return StoreSettings(
        url=resolved_url.rstrip("/"),
        api_key=resolved_key,
        table=table or _lookup(env, "PRODUCTS_TABLE") or DEFAULT_TABLE,
        schema=schema or _lookup(env, "PRODUCTS_SCHEMA") or DEFAULT_SCHEMA,
        timeout=resolved_timeout,
    )
