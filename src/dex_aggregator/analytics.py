"""
Liquidity analytics: pool registry, token aggregates and volume history.

Pool records are keyed by pool id and fully replaced on every update. Pool
ids are enumerated in first-seen order; the list is never reordered or
compacted, and deactivation is a soft flag.

Token aggregates (liquidity, 24h volume, pool count) are never patched
incrementally. Every pool change recomputes them for each affected token by
scanning all active pools, so they always equal the sum over current pool
state. When an update moves a pool to a different pair, the tokens it left
are recomputed too.

Mutations are serialised by one lock, so an update and the recomputation it
triggers are applied as a unit.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from .config import EngineConfig
from .core.access import AccessControl
from .core.constants import MAX_SNAPSHOTS, TOP_TOKEN_POOLS
from .core.datatypes import AnalyticsTotals, PoolRecord, SwapExecuted, TokenRecord, VolumeSnapshot
from .core.exc import InvalidInput, NotFound
from .events import (
    POOL_DEACTIVATED,
    POOL_UPDATED,
    TOKEN_PRICE_UPDATED,
    UPDATER_AUTHORIZATION_CHANGED,
    EventLog,
)
from .history import VolumeHistoryStore
from .metadata import TokenMetadataSource

logger = logging.getLogger(__name__)


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidInput(f"{name} must be a non-negative integer")


class LiquidityAnalytics:
    def __init__(
        self,
        access: AccessControl,
        *,
        metadata: Optional[TokenMetadataSource] = None,
        config: Optional[EngineConfig] = None,
        events: Optional[EventLog] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        cfg = config if config is not None else EngineConfig()
        self.access = access
        self.metadata = metadata
        self.placeholder_symbol = cfg.placeholder_symbol
        self.events = events if events is not None else EventLog()
        self.history = VolumeHistoryStore(MAX_SNAPSHOTS)
        self._clock = clock
        self._pools: Dict[str, PoolRecord] = {}
        self._pool_order: List[str] = []
        self._tokens: Dict[str, TokenRecord] = {}
        self._executed: Dict[str, int] = {}
        self._lock = threading.RLock()

    def _now(self) -> int:
        return int(self._clock())

    # ------------- token records -------------

    def _resolve_symbol(self, token: str) -> str:
        if self.metadata is None:
            return self.placeholder_symbol
        try:
            sym = self.metadata.symbol(token)
        except Exception as e:
            logger.warning("metadata lookup for %s raised: %s", token, e)
            return self.placeholder_symbol
        return sym or self.placeholder_symbol

    def _token_record(self, token: str) -> TokenRecord:
        rec = self._tokens.get(token)
        if rec is None:
            rec = TokenRecord(token=token, symbol=self._resolve_symbol(token))
        return rec

    def _recompute_token(self, token: str, now: int) -> TokenRecord:
        """Full re-sum over active pools referencing `token`."""
        liquidity = volume = count = 0
        for pid in self._pool_order:
            p = self._pools[pid]
            if p.active and p.references(token):
                liquidity += p.liquidity_usd
                volume += p.volume24h_usd
                count += 1
        rec = replace(
            self._token_record(token),
            total_liquidity_usd=liquidity,
            volume24h_usd=volume,
            pool_count=count,
            last_updated_at=now,
        )
        self._tokens[token] = rec
        return rec

    # ------------- ingestion -------------

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
        """Replace the pool record, recompute affected tokens, append a snapshot."""
        self.access.require_updater(sender)
        if not pool_id:
            raise InvalidInput("pool_id must be non-empty")
        if not token_a or not token_b:
            raise InvalidInput("pool tokens must be non-empty")
        for field_name, value in (("liquidity", liquidity), ("volume24h", volume24h),
                                  ("fees24h", fees24h), ("apr", apr)):
            _require_amount(field_name, value)

        with self._lock:
            now = self._now()
            previous = self._pools.get(pool_id)
            is_new = previous is None
            record = PoolRecord(
                pool_id=pool_id,
                token_a=token_a,
                token_b=token_b,
                venue_id=venue_id,
                display_name=name,
                liquidity_usd=liquidity,
                volume24h_usd=volume24h,
                fees24h_usd=fees24h,
                apr_bps=apr,
                last_updated_at=now,
                active=True,
            )
            self._pools[pool_id] = record
            if is_new:
                self._pool_order.append(pool_id)

            affected: List[str] = [token_a, token_b]
            if previous is not None:
                affected += [t for t in (previous.token_a, previous.token_b) if t not in affected]
            for token in affected:
                self._recompute_token(token, now)

            price = self._tokens[token_a].price_usd
            self.history.append(pool_id, VolumeSnapshot(now, volume24h, liquidity, price))
            self.events.emit(POOL_UPDATED, now, pool_id=pool_id, is_new=is_new,
                             liquidity_usd=liquidity, volume24h_usd=volume24h)
        logger.info("pool %s updated (new=%s) liquidity=%d volume24h=%d", pool_id, is_new, liquidity, volume24h)
        return record

    def update_token_price(self, sender: str, token: str, price: int) -> TokenRecord:
        self.access.require_updater(sender)
        if not token:
            raise InvalidInput("token must be non-empty")
        if not isinstance(price, int) or isinstance(price, bool) or price <= 0:
            raise InvalidInput("price must be a positive integer")
        with self._lock:
            now = self._now()
            rec = replace(self._token_record(token), price_usd=price, last_updated_at=now)
            self._tokens[token] = rec
            self.events.emit(TOKEN_PRICE_UPDATED, now, token=token, price_usd=price)
        logger.info("token %s (%s) price=%d", token, rec.symbol, price)
        return rec

    def record_swap(self, event: SwapExecuted) -> None:
        """Accumulate executed swap volume (raw token units) per token."""
        with self._lock:
            self._executed[event.token_in] = self._executed.get(event.token_in, 0) + event.amount_in
            self._executed[event.token_out] = self._executed.get(event.token_out, 0) + event.amount_out

    # ------------- admin -------------

    def deactivate_pool(self, sender: str, pool_id: str) -> None:
        self.access.require_owner(sender)
        with self._lock:
            pool = self._pools.get(pool_id)
            if pool is None:
                raise NotFound(f"pool {pool_id!r} not found")
            now = self._now()
            self._pools[pool_id] = replace(pool, active=False)
            for token in {pool.token_a, pool.token_b}:
                self._recompute_token(token, now)
            self.events.emit(POOL_DEACTIVATED, now, pool_id=pool_id)
        logger.info("pool %s deactivated", pool_id)

    def set_authorized_updater(self, sender: str, principal: str, authorized: bool) -> None:
        self.access.set_updater(sender, principal, authorized)
        self.events.emit(UPDATER_AUTHORIZATION_CHANGED, self._now(),
                         principal=principal, authorized=bool(authorized))

    # ------------- queries -------------

    def get_pool(self, pool_id: str) -> PoolRecord:
        with self._lock:
            pool = self._pools.get(pool_id)
        if pool is None:
            raise NotFound(f"pool {pool_id!r} not found")
        return pool

    def get_token(self, token: str) -> TokenRecord:
        with self._lock:
            rec = self._tokens.get(token)
        if rec is None:
            raise NotFound(f"token {token!r} not found")
        return rec

    def list_pools(self) -> List[PoolRecord]:
        """All pools (active or not) in first-seen order."""
        with self._lock:
            return [self._pools[pid] for pid in self._pool_order]

    def list_tokens(self) -> List[TokenRecord]:
        with self._lock:
            return list(self._tokens.values())

    def _active_pools(self) -> List[PoolRecord]:
        return [p for p in (self._pools[pid] for pid in self._pool_order) if p.active]

    def get_pools_for_pair(self, token_a: str, token_b: str) -> List[PoolRecord]:
        with self._lock:
            return [p for p in self._active_pools() if p.matches_pair(token_a, token_b)]

    def get_top_pools_by_liquidity(self, n: int) -> List[PoolRecord]:
        """Top-n active pools by liquidity; ties keep enumeration order."""
        with self._lock:
            total = len(self._pool_order)
            if not isinstance(n, int) or isinstance(n, bool) or n <= 0 or n >= total:
                raise InvalidInput(f"n must satisfy 0 < n < {total}")
            ranked = sorted(self._active_pools(), key=lambda p: p.liquidity_usd, reverse=True)
        return ranked[:n]

    def get_token_analytics(self, token: str) -> Tuple[TokenRecord, List[PoolRecord]]:
        """Token record plus up to TOP_TOKEN_POOLS referencing active pools, in enumeration order."""
        with self._lock:
            rec = self._tokens.get(token)
            if rec is None:
                raise NotFound(f"token {token!r} not found")
            pools = [p for p in self._active_pools() if p.references(token)][:TOP_TOKEN_POOLS]
        return rec, pools

    def get_volume_history(self, pool_id: str, hours: int) -> List[VolumeSnapshot]:
        if not isinstance(hours, int) or isinstance(hours, bool) or hours <= 0 or hours > MAX_SNAPSHOTS:
            raise InvalidInput(f"hours must satisfy 1 <= hours <= {MAX_SNAPSHOTS}")
        with self._lock:
            if pool_id not in self._pools:
                raise NotFound(f"pool {pool_id!r} not found")
            return self.history.recent(pool_id, hours)

    def get_executed_volume(self, token: str) -> int:
        with self._lock:
            return self._executed.get(token, 0)

    def get_totals(self) -> AnalyticsTotals:
        with self._lock:
            active = self._active_pools()
            return AnalyticsTotals(
                total_pools=len(self._pool_order),
                active_pools=len(active),
                total_tokens=len(self._tokens),
                total_liquidity_usd=sum(p.liquidity_usd for p in active),
                total_volume24h_usd=sum(p.volume24h_usd for p in active),
            )


__all__ = ["LiquidityAnalytics"]
