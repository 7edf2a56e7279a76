"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    commitment: str = "confirmed"
    confirm_timeout: float = 60.0
    poll_interval: float = 1.0


@dataclass(frozen=True)
class ProgramConfig:
    program_id: str = ""
    reference_asset: str = "USDC"
    liquidation_threshold: int = 80
    max_ltv: int = 70


@dataclass(frozen=True)
class AssetConfig:
    symbol: str = ""
    mint: str = ""
    decimals: int = 0


@dataclass(frozen=True)
class WalletConfig:
    keypair_env: str = "WALLET_KEY"


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    program: ProgramConfig = field(default_factory=ProgramConfig)
    assets: dict[str, AssetConfig] = field(default_factory=dict)
    wallet: WalletConfig = field(default_factory=WalletConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        # Unset ${VAR} endpoints interpolate to "" and are dropped.
        rpc_endpoints=tuple(e for e in raw.get("rpc_endpoints", []) if e),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        commitment=raw.get("commitment", "confirmed"),
        confirm_timeout=float(raw.get("confirm_timeout", 60.0)),
        poll_interval=float(raw.get("poll_interval", 1.0)),
    )


def _build_program(raw: dict[str, Any]) -> ProgramConfig:
    return ProgramConfig(
        program_id=raw.get("program_id", ""),
        reference_asset=str(raw.get("reference_asset", "USDC")).upper(),
        liquidation_threshold=int(raw.get("liquidation_threshold", 80)),
        max_ltv=int(raw.get("max_ltv", 70)),
    )


def _build_assets(raw: dict[str, Any]) -> dict[str, AssetConfig]:
    assets: dict[str, AssetConfig] = {}
    for symbol, cfg in raw.items():
        key = str(symbol).upper()
        assets[key] = AssetConfig(
            symbol=key,
            mint=cfg.get("mint", ""),
            decimals=int(cfg.get("decimals", -1)),
        )
    return assets


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(keypair_env=raw.get("keypair_env", "WALLET_KEY"))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chain=_build_chain(raw.get("chain", {})),
        program=_build_program(raw.get("program", {})),
        assets=_build_assets(raw.get("assets", {})),
        wallet=_build_wallet(raw.get("wallet", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _is_pubkey(value: str) -> bool:
    try:
        Pubkey.from_string(value)
    except ValueError:
        return False
    return True


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    if not cfg.program.program_id:
        raise ValueError("Program id is not configured")
    if not _is_pubkey(cfg.program.program_id):
        raise ValueError(f"Program id '{cfg.program.program_id}' is not a valid address")

    if not cfg.assets:
        raise ValueError("At least one asset must be configured")

    for symbol, asset in cfg.assets.items():
        if not _is_pubkey(asset.mint):
            raise ValueError(f"Asset '{symbol}' has an invalid mint '{asset.mint}'")
        if not 0 <= asset.decimals <= 18:
            raise ValueError(f"Asset '{symbol}' has invalid decimals {asset.decimals}")

    if cfg.program.reference_asset not in cfg.assets:
        raise ValueError(
            f"Reference asset '{cfg.program.reference_asset}' is not a configured asset"
        )

    lt = cfg.program.liquidation_threshold
    ltv = cfg.program.max_ltv
    if not (0 < lt <= 100 and 0 < ltv <= 100):
        raise ValueError("Risk parameters must be percentages between 1 and 100")
    if ltv > lt:
        raise ValueError("max_ltv must not exceed liquidation_threshold")
