"""Engine configuration.

Operator tunables as a frozen dataclass, loadable from a plain mapping or a
JSON file. Protocol constants that are not tunable live in `core.constants`.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .core.constants import (
    CONCENTRATED_LIQUIDITY_GAS,
    CONSTANT_PRODUCT_GAS,
    EVENT_LOG_MAXLEN,
    MAX_FEE_BPS,
    PLACEHOLDER_SYMBOL,
)
from .core.exc import InvalidInput


@dataclass(frozen=True)
class EngineConfig:
    """Engine configuration.

    platform_fee_bps: fee skimmed from every swap input, 0..MAX_FEE_BPS.
    fee_recipient: principal receiving the platform fee; defaults to the owner.
    quote_timeout_s: per-venue bound after which a quote counts as failed.
    max_quote_workers: size of the quote worker pool.
    event_log_maxlen: events kept in the shared log; oldest are dropped first.
    """
    platform_fee_bps: int = 30
    fee_recipient: Optional[str] = None
    quote_timeout_s: float = 2.0
    max_quote_workers: int = 8
    constant_product_gas: int = CONSTANT_PRODUCT_GAS
    concentrated_liquidity_gas: int = CONCENTRATED_LIQUIDITY_GAS
    placeholder_symbol: str = PLACEHOLDER_SYMBOL
    event_log_maxlen: int = EVENT_LOG_MAXLEN

    def __post_init__(self) -> None:
        if not (0 <= self.platform_fee_bps <= MAX_FEE_BPS):
            raise InvalidInput(f"platform_fee_bps must satisfy 0 <= fee <= {MAX_FEE_BPS}")
        if self.fee_recipient is not None and not self.fee_recipient:
            raise InvalidInput("fee_recipient must be non-empty when set")
        if self.quote_timeout_s <= 0:
            raise InvalidInput("quote_timeout_s must be > 0")
        if self.max_quote_workers < 1:
            raise InvalidInput("max_quote_workers must be >= 1")
        if self.constant_product_gas < 0 or self.concentrated_liquidity_gas < 0:
            raise InvalidInput("gas estimates must be >= 0")
        if not self.placeholder_symbol:
            raise InvalidInput("placeholder_symbol must be non-empty")
        if self.event_log_maxlen < 1:
            raise InvalidInput("event_log_maxlen must be >= 1")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidInput(f"unknown config keys: {', '.join(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load an EngineConfig from a JSON object file."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise InvalidInput(f"{p}: expected a JSON object")
    return EngineConfig.from_dict(data)


__all__ = ["EngineConfig", "load_config"]
