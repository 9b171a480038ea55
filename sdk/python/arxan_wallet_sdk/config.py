"""Client configuration: optional YAML file, .env and environment overrides."""

import logging
import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "http://localhost:9143"

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


@dataclass(frozen=True)
class ClientConfig:
    address: str = DEFAULT_ADDRESS
    api_key: str = ""
    timeout: float = 30.0
    sync_timeout: float = 120.0  # bounds the wait for ledger confirmation
    verify_tls: bool = True


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _build(raw: dict) -> ClientConfig:
    return ClientConfig(
        address=str(raw.get("address", DEFAULT_ADDRESS)),
        api_key=str(raw.get("api_key", "") or ""),
        timeout=float(raw.get("timeout", 30.0)),
        sync_timeout=float(raw.get("sync_timeout", 120.0)),
        verify_tls=_parse_bool(raw.get("verify_tls", True)),
    )


def _apply_env(cfg: ClientConfig) -> ClientConfig:
    overrides: dict = {}
    if os.environ.get("WALLET_SDK_ADDRESS"):
        overrides["address"] = os.environ["WALLET_SDK_ADDRESS"]
    if os.environ.get("WALLET_SDK_API_KEY"):
        overrides["api_key"] = os.environ["WALLET_SDK_API_KEY"]
    if os.environ.get("WALLET_SDK_TIMEOUT"):
        overrides["timeout"] = float(os.environ["WALLET_SDK_TIMEOUT"])
    if os.environ.get("WALLET_SDK_SYNC_TIMEOUT"):
        overrides["sync_timeout"] = float(os.environ["WALLET_SDK_SYNC_TIMEOUT"])
    if os.environ.get("WALLET_SDK_VERIFY_TLS"):
        overrides["verify_tls"] = _parse_bool(os.environ["WALLET_SDK_VERIFY_TLS"])
    return replace(cfg, **overrides) if overrides else cfg


def load_config(config_path: Optional[Union[str, Path]] = None) -> ClientConfig:
    """Load client configuration.

    Args:
        config_path: Optional YAML file with a top-level ``wallet`` mapping.
            ``${VAR}`` references are interpolated from the environment.
            WALLET_SDK_* environment variables override the file.
    """
    load_dotenv()

    raw: dict = {}
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path) as f:
            loaded = yaml.safe_load(f) or {}
        raw = _interpolate_env(loaded.get("wallet", {}) or {})

    cfg = _apply_env(_build(raw))
    _validate(cfg)
    logger.info("Wallet client configured for %s", cfg.address)
    return cfg


def _validate(cfg: ClientConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.address:
        raise ValueError("Wallet service address must not be empty")
    if not cfg.address.startswith(("http://", "https://")):
        raise ValueError(f"Wallet service address must be an http(s) URL: {cfg.address}")
    if cfg.timeout <= 0:
        raise ValueError("timeout must be positive")
    if cfg.sync_timeout <= 0:
        raise ValueError("sync_timeout must be positive")
    if cfg.sync_timeout < cfg.timeout:
        raise ValueError("sync_timeout must not be shorter than timeout")
