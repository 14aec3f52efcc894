# src/lighter_engine/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from lighter_engine.core.market.codec import FALLBACK_DECIMALS
from lighter_engine.core.market.metadata_cache import DEFAULT_QUOTE_SUFFIX
from lighter_engine.core.models.enums import MarginMode
from lighter_engine.exchanges.lighter.rest import MAINNET_URL


@dataclass(slots=True)
class LighterConfig:
    endpoint: str = MAINNET_URL
    account_index: int = 0
    api_key_index: int = 0
    chain_id: int = 2               # testnet=1 mainnet=2
    timeout_sec: float = 10.0

    quote_suffix: str = DEFAULT_QUOTE_SUFFIX
    fallback_decimals: int = FALLBACK_DECIMALS
    strict_precision: bool = False
    margin_mode: MarginMode = MarginMode.CROSS

    dry_run: bool = True


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise SystemExit(f"Config file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "yes", "on")


def load_config(path: Optional[str | Path] = None, *, env_file: Optional[str] = None) -> LighterConfig:
    """
    Order of precedence (last wins): defaults, YAML `lighter:` section, env.

    .env is loaded first and never overrides variables already set.
    """
    load_dotenv(env_file)

    section: dict[str, Any] = {}
    if path is not None:
        section = _load_yaml(Path(path)).get("lighter") or {}

    cfg = LighterConfig()

    for key in (
        "endpoint",
        "account_index",
        "api_key_index",
        "chain_id",
        "timeout_sec",
        "quote_suffix",
        "fallback_decimals",
        "strict_precision",
        "margin_mode",
        "dry_run",
    ):
        if key in section and section[key] is not None:
            setattr(cfg, key, section[key])

    env_map = {
        "LIGHTER_ENDPOINT": "endpoint",
        "LIGHTER_ACCOUNT_INDEX": "account_index",
        "LIGHTER_API_KEY_INDEX": "api_key_index",
        "LIGHTER_CHAIN_ID": "chain_id",
        "LIGHTER_TIMEOUT_SEC": "timeout_sec",
        "LIGHTER_QUOTE_SUFFIX": "quote_suffix",
        "LIGHTER_STRICT_PRECISION": "strict_precision",
        "LIGHTER_MARGIN_MODE": "margin_mode",
        "DRY_RUN": "dry_run",
    }
    for env_key, attr in env_map.items():
        v = os.getenv(env_key)
        if v is not None and v.strip() != "":
            setattr(cfg, attr, v.strip())

    # normalize types
    cfg.endpoint = str(cfg.endpoint).rstrip("/")
    cfg.account_index = int(cfg.account_index)
    cfg.api_key_index = int(cfg.api_key_index)
    cfg.chain_id = int(cfg.chain_id)
    cfg.timeout_sec = float(cfg.timeout_sec)
    cfg.quote_suffix = str(cfg.quote_suffix).upper()
    cfg.fallback_decimals = int(cfg.fallback_decimals)
    cfg.strict_precision = _as_bool(cfg.strict_precision)
    if not isinstance(cfg.margin_mode, MarginMode):
        cfg.margin_mode = MarginMode(str(cfg.margin_mode).strip().lower())
    cfg.dry_run = _as_bool(cfg.dry_run)

    if cfg.chain_id not in (1, 2):
        raise ValueError(f"unknown chain_id={cfg.chain_id} (testnet=1 mainnet=2)")
    if cfg.fallback_decimals < 0:
        raise ValueError("fallback_decimals must be >= 0")

    return cfg
