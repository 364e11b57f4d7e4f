from __future__ import annotations

import threading
from typing import List, Optional, Sequence

import pytest

# Import project primitives
from dex_aggregator.analytics import LiquidityAnalytics
from dex_aggregator.config import EngineConfig
from dex_aggregator.core import Q96, AccessControl, ProtocolVariant, isqrt
from dex_aggregator.events import EventLog
from dex_aggregator.executor import SwapExecutor
from dex_aggregator.ledger import InMemoryLedger
from dex_aggregator.metadata import StaticTokenMetadata
from dex_aggregator.quotes import QuoteAggregator
from dex_aggregator.registry import VenueRegistry
from dex_aggregator.venues import ConcentratedPoolVenue, ConstantProductPoolVenue, ConstantProductVenue

OWNER = "owner"
FEEDER = "feeder"
ALICE = "alice"
NOW = 1_700_000_000


# -----------------------------
# Test helpers
# -----------------------------


class FixedClock:
    """Deterministic clock; `advance` moves it forward in whole seconds."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class StubVenue(ConstantProductVenue):
    """Quote-only venue: returns a fixed amount, raises, or blocks until released.

    - amount: quote returned when no error is configured.
    - error: exception instance raised from quote.
    - gate: threading.Event the quote waits on (models an unresponsive venue).
    """

    def __init__(self, address: str, amount: int = 0, *, error: Optional[Exception] = None,
                 gate: Optional[threading.Event] = None) -> None:
        super().__init__(address)
        self.amount = amount
        self.error = error
        self.gate = gate
        self.calls = 0

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        return [amount_in, self.amount]

    def swap_exact_tokens_for_tokens(self, amount_in, amount_out_min, path, to, deadline, *, payer):
        raise NotImplementedError("quote-only stub")


# -----------------------------
# Pytest fixtures
# -----------------------------

@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture()
def access() -> AccessControl:
    return AccessControl(OWNER)


@pytest.fixture()
def events() -> EventLog:
    return EventLog()


@pytest.fixture()
def config() -> EngineConfig:
    return EngineConfig(platform_fee_bps=30, quote_timeout_s=0.5, max_quote_workers=4)


@pytest.fixture()
def registry(access, events, clock) -> VenueRegistry:
    return VenueRegistry(access, events=events, clock=clock)


@pytest.fixture()
def aggregator(registry, config):
    with QuoteAggregator(registry, config=config) as agg:
        yield agg


@pytest.fixture()
def make_cp_venue(ledger, clock):
    """Factory: constant-product venue with one TKA/TKB pair seeded on the ledger."""

    def _make(address: str, reserve_a: int, reserve_b: int, *, fee_bps: int = 30) -> ConstantProductPoolVenue:
        venue = ConstantProductPoolVenue(address, ledger, fee_bps=fee_bps, clock=clock)
        pair = venue.create_pair("TKA", "TKB")
        ledger.mint("TKA", pair, reserve_a)
        ledger.mint("TKB", pair, reserve_b)
        return venue

    return _make


@pytest.fixture()
def cl_venue(ledger, clock) -> ConcentratedPoolVenue:
    """TKA/TKB concentrated pool at price 1 with deep TKB inventory."""
    venue = ConcentratedPoolVenue(
        "cl-pool", ledger, token0="TKA", token1="TKB",
        sqrt_price_x96=isqrt(Q96 * Q96), liquidity=10**12, fee_tier=3000, clock=clock,
    )
    ledger.mint("TKA", venue.address, 10**12)
    ledger.mint("TKB", venue.address, 10**12)
    return venue


@pytest.fixture()
def route_env(registry, make_cp_venue, cl_venue):
    """Registry with two CP venues (dex-a shallow, dex-b deep) and one CL venue."""
    shallow = make_cp_venue("dex-a", 1_000_000, 1_000_000)
    deep = make_cp_venue("dex-b", 10_000_000, 10_000_000)
    registry.register_venue(OWNER, "dex-a", "DEX A", 30, ProtocolVariant.CONSTANT_PRODUCT, shallow)
    registry.register_venue(OWNER, "dex-b", "DEX B", 30, ProtocolVariant.CONSTANT_PRODUCT, deep)
    registry.register_venue(OWNER, "cl", "CL Pool", 30, ProtocolVariant.CONCENTRATED_LIQUIDITY, cl_venue)
    return {"dex-a": shallow, "dex-b": deep, "cl": cl_venue}


@pytest.fixture()
def executor(registry, ledger, config, events, clock) -> SwapExecutor:
    return SwapExecutor(registry, ledger, address="agg", config=config, events=events, clock=clock)


@pytest.fixture()
def funded_alice(ledger, executor):
    """Alice holds 100_000 TKA and has approved the executor for all of it."""
    ledger.mint("TKA", ALICE, 100_000)
    ledger.increase_allowance("TKA", ALICE, executor.address, 100_000)
    return ALICE


@pytest.fixture()
def analytics(access, events, clock) -> LiquidityAnalytics:
    la = LiquidityAnalytics(
        access,
        metadata=StaticTokenMetadata({"TKA": "AAA", "TKB": "BBB"}),
        events=events,
        clock=clock,
    )
    la.set_authorized_updater(OWNER, FEEDER, True)
    return la
