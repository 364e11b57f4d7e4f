"""Tabular views of quotes and analytics state as pandas DataFrames.

Read-only helpers for notebooks, the demo launcher and ad-hoc inspection.
Integer amounts are kept as-is (values beyond int64 land in object columns).
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Iterable, List

import pandas as pd

from .analytics import LiquidityAnalytics
from .core.datatypes import RouteQuote

QUOTE_COLUMNS = ["venue_id", "display_name", "amount_out", "estimated_gas", "fee_bps"]
POOL_COLUMNS = [
    "pool_id", "token_a", "token_b", "venue_id", "display_name", "liquidity_usd",
    "volume24h_usd", "fees24h_usd", "apr_bps", "last_updated_at", "active",
]
SNAPSHOT_COLUMNS = ["timestamp", "volume", "liquidity", "price"]
TOKEN_COLUMNS = [
    "token", "symbol", "price_usd", "total_liquidity_usd", "volume24h_usd",
    "pool_count", "last_updated_at",
]


def quotes_frame(quotes: Iterable[RouteQuote]) -> pd.DataFrame:
    """One row per quote, best output first (stable for ties)."""
    records = [
        {
            "venue_id": q.venue_id,
            "display_name": q.display_name,
            "amount_out": q.amount_out,
            "estimated_gas": q.estimated_gas,
            "fee_bps": q.fee_bps,
        }
        for q in quotes
    ]
    df = pd.DataFrame(records, columns=QUOTE_COLUMNS)
    if not df.empty:
        df = df.sort_values("amount_out", ascending=False, kind="stable").reset_index(drop=True)
    return df


def pools_frame(analytics: LiquidityAnalytics, *, active_only: bool = False) -> pd.DataFrame:
    records = [asdict(p) for p in analytics.list_pools() if p.active or not active_only]
    return pd.DataFrame(records, columns=POOL_COLUMNS)


def volume_history_frame(analytics: LiquidityAnalytics, pool_id: str, hours: int) -> pd.DataFrame:
    """Snapshots oldest first, indexed by timestamp."""
    records: List[dict] = [asdict(s) for s in analytics.get_volume_history(pool_id, hours)]
    df = pd.DataFrame(records, columns=SNAPSHOT_COLUMNS)
    return df.set_index("timestamp")


def tokens_frame(analytics: LiquidityAnalytics) -> pd.DataFrame:
    records = [asdict(t) for t in analytics.list_tokens()]
    df = pd.DataFrame(records, columns=TOKEN_COLUMNS)
    if not df.empty:
        df = df.sort_values("total_liquidity_usd", ascending=False, kind="stable").reset_index(drop=True)
    return df


__all__ = ["quotes_frame", "pools_frame", "volume_history_frame", "tokens_frame"]
