"""
Keeper configuration (imperative shell).

The configuration is loaded once at startup and passed explicitly to every
shell component. Sources, later ones winning:
- dataclass defaults,
- an optional YAML file,
- `VAULT_KEEPER_*` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ..core.quote import DEFAULT_PRICING_MODEL, PricingModel
from ..errors import ConfigError


ENV_PREFIX = "VAULT_KEEPER_"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class WithdrawPolicy(Enum):
    """How much LP the withdrawal flow burns."""
    TARGET = "TARGET"  # enough to cover the requested amount, capped at the held balance
    FULL = "FULL"  # the entire held LP balance


@dataclass(frozen=True)
class KeeperConfig:
    # Opaque pool identifier, resolved by the gateway.
    pool_id: str = ""

    # Rebalancing:
    pricing_model: PricingModel = DEFAULT_PRICING_MODEL
    swap_tolerance_pct: int = 95
    withdraw_tolerance_pct: int = 95
    withdraw_policy: WithdrawPolicy = WithdrawPolicy.TARGET

    # Polling:
    poll_interval_s: float = 10.0
    requester_filter: Optional[str] = None

    # Phase journal (JSON lines). None keeps the journal in memory only.
    journal_path: Optional[str] = None

    log_level: str = "INFO"

    # Gateway factory as "module:callable"; None selects the simulated chain.
    gateway: Optional[str] = None
    simulation: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("swap_tolerance_pct", "withdraw_tolerance_pct"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise ConfigError(f"{name} must be an int")
            if not (0 < v <= 100):
                raise ConfigError(f"{name} must be in (0, 100]: {v}")
        if not isinstance(self.pricing_model, PricingModel):
            raise ConfigError("pricing_model must be a PricingModel")
        if not isinstance(self.withdraw_policy, WithdrawPolicy):
            raise ConfigError("withdraw_policy must be a WithdrawPolicy")
        if not isinstance(self.poll_interval_s, (int, float)) or self.poll_interval_s <= 0:
            raise ConfigError("poll_interval_s must be positive")
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {sorted(_LOG_LEVELS)}: {self.log_level!r}")
        if self.gateway is not None and ":" not in self.gateway:
            raise ConfigError("gateway must look like 'module:callable'")
        if not isinstance(self.simulation, Mapping):
            raise ConfigError("simulation must be a mapping")


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw YAML/env value into the type of field `name`."""
    try:
        if name == "pricing_model":
            return value if isinstance(value, PricingModel) else PricingModel(str(value).strip().upper())
        if name == "withdraw_policy":
            return value if isinstance(value, WithdrawPolicy) else WithdrawPolicy(str(value).strip().upper())
        if name in ("swap_tolerance_pct", "withdraw_tolerance_pct"):
            if isinstance(value, bool):
                raise ConfigError(f"{name} must be an int")
            return int(value)
        if name == "poll_interval_s":
            return float(value)
        if name == "log_level":
            return str(value).strip().upper()
        if name in ("requester_filter", "journal_path", "gateway"):
            if value is None:
                return None
            s = str(value).strip()
            return s or None
        if name == "simulation":
            return dict(value or {})
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value for {name}: {value!r}") from exc
    return "" if value is None else str(value)


def config_from_mapping(raw: Mapping[str, Any], *, base: Optional[KeeperConfig] = None) -> KeeperConfig:
    known = {f.name for f in fields(KeeperConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {unknown}")
    updates: Dict[str, Any] = {k: _coerce(k, v) for k, v in raw.items()}
    return replace(base or KeeperConfig(), **updates)


def _env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in fields(KeeperConfig):
        if f.name == "simulation":
            continue
        raw = env.get(ENV_PREFIX + f.name.upper())
        if raw is None:
            continue
        out[f.name] = raw
    return out


def load_config(path: Optional[str | Path] = None, *, env: Optional[Mapping[str, str]] = None) -> KeeperConfig:
    """
    Load the keeper configuration.

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    config = KeeperConfig()
    if path is not None:
        p = Path(path)
        try:
            obj = yaml.safe_load(p.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"cannot read config {p}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {p}: {exc}") from exc
        if obj is None:
            obj = {}
        if not isinstance(obj, dict):
            raise ConfigError(f"config {p} must be a mapping")
        config = config_from_mapping(obj, base=config)

    overrides = _env_overrides(os.environ if env is None else env)
    if overrides:
        config = config_from_mapping(overrides, base=config)
    return config
