"""
DexAggregator facade.

Wires the route side (registry -> quote aggregator -> route selector ->
swap executor) and the analytics side (pool registry, token aggregates,
volume history) behind one object exposing the public operation names.
The two sides share only the owner role and the event log; executed swaps
reach analytics through the executor's volume listener.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Tuple, Union

from .analytics import LiquidityAnalytics
from .config import EngineConfig
from .core.access import AccessControl
from .core.datatypes import (
    AnalyticsTotals,
    PoolRecord,
    ProtocolVariant,
    RouteQuote,
    SwapExecuted,
    SwapRequest,
    TokenRecord,
    Venue,
    VolumeSnapshot,
)
from .events import EventLog
from .executor import SwapExecutor
from .il import calculate_il
from .ledger import AssetLedger
from .metadata import TokenMetadataSource
from .quotes import QuoteAggregator
from .registry import VenueRegistry
from .router import RouteSelector
from .venues import VenueAdapter

logger = logging.getLogger(__name__)


class DexAggregator:
    def __init__(
        self,
        owner: str,
        ledger: AssetLedger,
        *,
        address: str = "dex-aggregator",
        config: Optional[EngineConfig] = None,
        metadata: Optional[TokenMetadataSource] = None,
        clock: Callable[[], float] = time.time,
        track_volume: bool = True,
    ) -> None:
        self.config = config if config is not None else EngineConfig()
        self.access = AccessControl(owner)
        self.events = EventLog(maxlen=self.config.event_log_maxlen)
        self.ledger = ledger
        self.registry = VenueRegistry(self.access, events=self.events, clock=clock)
        self.quotes = QuoteAggregator(self.registry, config=self.config)
        self.selector = RouteSelector(self.quotes)
        self.analytics = LiquidityAnalytics(
            self.access, metadata=metadata, config=self.config, events=self.events, clock=clock,
        )
        self.executor = SwapExecutor(
            self.registry,
            ledger,
            address=address,
            config=self.config,
            events=self.events,
            clock=clock,
            volume_listener=self.analytics.record_swap if track_volume else None,
        )
        logger.info("aggregator %s ready (owner=%s, fee=%dbps)", address, owner, self.config.platform_fee_bps)

    @property
    def address(self) -> str:
        return self.executor.address

    def close(self) -> None:
        self.quotes.close()

    def __enter__(self) -> "DexAggregator":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------- venue management -------------

    def register_venue(
        self,
        sender: str,
        venue_id: str,
        name: str,
        fee_bps: int,
        variant: Union[ProtocolVariant, str, int],
        adapter: VenueAdapter,
    ) -> Venue:
        return self.registry.register_venue(sender, venue_id, name, fee_bps, variant, adapter)

    def set_venue_active(self, sender: str, venue_id: str, active: bool) -> Venue:
        return self.registry.set_venue_active(sender, venue_id, active)

    def update_platform_fee(self, sender: str, new_bps: int) -> None:
        self.executor.update_platform_fee(sender, new_bps)

    def update_fee_recipient(self, sender: str, recipient: str) -> None:
        self.executor.update_fee_recipient(sender, recipient)

    def emergency_withdraw(self, sender: str, token: str, amount: int) -> None:
        self.executor.emergency_withdraw(sender, token, amount)

    # ------------- quoting and execution -------------

    def get_all_quotes(self, token_in: str, token_out: str, amount_in: int) -> List[RouteQuote]:
        return self.quotes.get_all_quotes(token_in, token_out, amount_in)

    def find_best_route(self, token_in: str, token_out: str, amount_in: int) -> RouteQuote:
        return self.selector.find_best_route(token_in, token_out, amount_in)

    def get_quote_from_dex(self, venue_id: str, token_in: str, token_out: str, amount_in: int) -> RouteQuote:
        return self.quotes.get_quote_from_dex(venue_id, token_in, token_out, amount_in)

    def execute_swap(self, sender: str, request: SwapRequest) -> SwapExecuted:
        return self.executor.execute_swap(sender, request)

    # ------------- analytics -------------

    def update_pool_data(
        self,
        sender: str,
        pool_id: str,
        token_a: str,
        token_b: str,
        venue_id: str,
        name: str,
        liquidity: int,
        volume24h: int,
        fees24h: int,
        apr: int,
    ) -> PoolRecord:
        return self.analytics.update_pool_data(
            sender, pool_id, token_a, token_b, venue_id, name, liquidity, volume24h, fees24h, apr,
        )

    def update_token_price(self, sender: str, token: str, price: int) -> TokenRecord:
        return self.analytics.update_token_price(sender, token, price)

    def deactivate_pool(self, sender: str, pool_id: str) -> None:
        self.analytics.deactivate_pool(sender, pool_id)

    def set_authorized_updater(self, sender: str, principal: str, authorized: bool) -> None:
        self.analytics.set_authorized_updater(sender, principal, authorized)

    def get_pools_for_pair(self, token_a: str, token_b: str) -> List[PoolRecord]:
        return self.analytics.get_pools_for_pair(token_a, token_b)

    def get_top_pools_by_liquidity(self, n: int) -> List[PoolRecord]:
        return self.analytics.get_top_pools_by_liquidity(n)

    def get_volume_history(self, pool_id: str, hours: int) -> List[VolumeSnapshot]:
        return self.analytics.get_volume_history(pool_id, hours)

    def get_token_analytics(self, token: str) -> Tuple[TokenRecord, List[PoolRecord]]:
        return self.analytics.get_token_analytics(token)

    def get_totals(self) -> AnalyticsTotals:
        return self.analytics.get_totals()

    @staticmethod
    def calculate_il(
        initial_price0: int,
        initial_price1: int,
        current_price0: int,
        current_price1: int,
        amount0: int,
        amount1: int,
    ) -> int:
        return calculate_il(initial_price0, initial_price1, current_price0, current_price1, amount0, amount1)


__all__ = ["DexAggregator"]
