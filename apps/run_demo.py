#!/usr/bin/env python3
"""In-memory demo: quote three venues, execute the best route, report analytics.

Scenario:
  - two constant-product venues (different depth) on TKA/TKB
  - one concentrated-liquidity venue on TKA/TKB (fee tier 3000)
  - a trader swaps TKA -> TKB through the best quote
  - the analytics side ingests pool snapshots and token prices

Usage:
  python apps/run_demo.py --amount 10000 --fee-bps 30 --slippage-bps 50
"""
from __future__ import annotations

import argparse
import logging

from dex_aggregator import DexAggregator, EngineConfig, InvalidInput, ProtocolVariant, SwapRequest, load_config
from dex_aggregator.core import Q96, WAD, isqrt
from dex_aggregator.ledger import InMemoryLedger
from dex_aggregator.metadata import StaticTokenMetadata
from dex_aggregator.reporting import pools_frame, quotes_frame, tokens_frame, volume_history_frame
from dex_aggregator.venues import ConcentratedPoolVenue, ConstantProductPoolVenue

OWNER = "admin"
TRADER = "alice"
NOW = 1_700_000_000


def build(cfg: EngineConfig) -> DexAggregator:
    ledger = InMemoryLedger()
    clock = lambda: NOW  # noqa: E731
    dex = DexAggregator(
        OWNER,
        ledger,
        config=cfg,
        metadata=StaticTokenMetadata({"TKA": "TKA", "TKB": "TKB"}),
        clock=clock,
    )

    deep = ConstantProductPoolVenue("v2-deep", ledger, fee_bps=30, clock=clock)
    pair = deep.create_pair("TKA", "TKB")
    ledger.mint("TKA", pair, 100_000_000)
    ledger.mint("TKB", pair, 200_000_000)

    shallow = ConstantProductPoolVenue("v2-shallow", ledger, fee_bps=30, clock=clock)
    pair = shallow.create_pair("TKA", "TKB")
    ledger.mint("TKA", pair, 1_000_000)
    ledger.mint("TKB", pair, 2_000_000)

    # price 2 TKB per TKA
    concentrated = ConcentratedPoolVenue(
        "v3-pool", ledger, token0="TKA", token1="TKB",
        sqrt_price_x96=isqrt(2 * Q96 * Q96), liquidity=10**9, fee_tier=3000, clock=clock,
    )
    ledger.mint("TKB", concentrated.address, 1_500_000_000)

    dex.register_venue(OWNER, "v2-deep", "Deep CP", 30, ProtocolVariant.CONSTANT_PRODUCT, deep)
    dex.register_venue(OWNER, "v2-shallow", "Shallow CP", 30, ProtocolVariant.CONSTANT_PRODUCT, shallow)
    dex.register_venue(OWNER, "v3-pool", "Concentrated", 30, ProtocolVariant.CONCENTRATED_LIQUIDITY, concentrated)
    return dex


def run_swap(dex: DexAggregator, amount: int, slippage_bps: int) -> None:
    quotes = dex.get_all_quotes("TKA", "TKB", amount)
    print("\n=== Quotes TKA -> TKB ===")
    print(quotes_frame(quotes).to_string(index=False))

    best = dex.find_best_route("TKA", "TKB", amount)
    if not best.is_route:
        print("no route")
        return
    print(f"\nbest: {best.venue_id} amount_out={best.amount_out}")

    dex.ledger.mint("TKA", TRADER, amount)
    dex.ledger.increase_allowance("TKA", TRADER, dex.address, amount)
    # the quote ignores the platform fee; leave room for it in the minimum
    fee_adjusted = best.amount_out * (10_000 - dex.executor.platform_fee_bps) // 10_000
    min_out = fee_adjusted * (10_000 - slippage_bps) // 10_000
    fee_tier = 3000 if best.venue_id == "v3-pool" else None
    rec = dex.execute_swap(TRADER, SwapRequest("TKA", "TKB", amount, min_out, best.venue_id, NOW + 60, fee_tier))
    print(f"executed: in={rec.amount_in} out={rec.amount_out} fee={rec.fee_amount} via {rec.venue_id}")
    print(f"trader TKB balance: {dex.ledger.balance_of('TKB', TRADER)}")


def run_analytics(dex: DexAggregator) -> None:
    dex.update_token_price(OWNER, "TKA", 2 * 10**6)
    dex.update_token_price(OWNER, "TKB", 10**6)
    for liq, vol in [(400, 30), (420, 35), (410, 28)]:
        dex.update_pool_data(OWNER, "pool-deep", "TKA", "TKB", "v2-deep", "Deep CP", liq, vol, vol * 3 // 1000, 1200)
    dex.update_pool_data(OWNER, "pool-shallow", "TKA", "TKB", "v2-shallow", "Shallow CP", 4, 1, 0, 800)
    dex.update_pool_data(OWNER, "pool-v3", "TKA", "TKB", "v3-pool", "Concentrated", 300, 60, 0, 2500)

    print("\n=== Pools ===")
    print(pools_frame(dex.analytics).to_string(index=False))
    print("\n=== Tokens ===")
    print(tokens_frame(dex.analytics).to_string(index=False))
    print("\n=== pool-deep history (24h) ===")
    print(volume_history_frame(dex.analytics, "pool-deep", 24).to_string())

    top = dex.get_top_pools_by_liquidity(2)
    print("\ntop pools:", ", ".join(f"{p.pool_id}={p.liquidity_usd}" for p in top))
    totals = dex.get_totals()
    print(f"totals: pools={totals.total_pools} active={totals.active_pools} "
          f"liquidity={totals.total_liquidity_usd} volume24h={totals.total_volume24h_usd}")
    print(f"executed volume TKA={dex.analytics.get_executed_volume('TKA')} "
          f"TKB={dex.analytics.get_executed_volume('TKB')}")

    il = dex.calculate_il(WAD, WAD, 4 * WAD, WAD, 10**18, 4 * 10**18)
    print(f"IL for a 4x move of token0: {il} bps")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="In-memory DEX aggregator demo.")
    parser.add_argument("--amount", type=int, default=10_000, help="TKA amount to swap (raw units)")
    parser.add_argument("--fee-bps", type=int, default=None, help="Platform fee override (0..1000)")
    parser.add_argument("--slippage-bps", type=int, default=50, help="Tolerance below the quote")
    parser.add_argument("--config", default=None, help="Optional JSON EngineConfig file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = load_config(args.config) if args.config else EngineConfig()
    if args.fee_bps is not None:
        cfg = EngineConfig.from_dict({**cfg.to_dict(), "platform_fee_bps": args.fee_bps})
    if args.amount <= 0:
        raise InvalidInput("--amount must be > 0")

    with build(cfg) as dex:
        run_swap(dex, args.amount, args.slippage_bps)
        run_analytics(dex)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
