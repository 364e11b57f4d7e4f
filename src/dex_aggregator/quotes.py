"""Quote aggregation across every active venue.

Each venue query is an independent, side-effect-free read dispatched on a
worker pool. A venue that raises, returns garbage, or misses the per-venue
timeout yields a failed `QuoteOutcome` and is left out of the result; it
never fails the aggregation. The aggregation returns only once every
dispatched query has resolved or been classified as timed out.

Results keep the registry's enumeration order, which route selection relies
on for tie-breaking.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import EngineConfig
from .core.datatypes import ProtocolVariant, RouteQuote, Venue
from .core.exc import InvalidInput, UnsupportedSource
from .registry import VenueRegistry
from .venues import VenueAdapter

logger = logging.getLogger(__name__)


class QuoteTimeout(Exception):
    """A venue did not answer within the per-venue timeout."""


@dataclass(frozen=True)
class QuoteOutcome:
    """Result of one venue query: an amount or the isolated error."""

    venue: Venue
    amount_out: Optional[int] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.amount_out is not None


def _validate_pair(token_in: str, token_out: str, amount_in: int) -> None:
    if not token_in or not token_out:
        raise InvalidInput("token_in and token_out must be non-empty")
    if token_in == token_out:
        raise InvalidInput("token_in and token_out must differ")
    if not isinstance(amount_in, int) or isinstance(amount_in, bool) or amount_in <= 0:
        raise InvalidInput("amount_in must be a positive integer")


class QuoteAggregator:
    """Fan-out quoting over the registry's active venues."""

    def __init__(self, registry: VenueRegistry, *, config: Optional[EngineConfig] = None) -> None:
        self.registry = registry
        self.config = config if config is not None else EngineConfig()
        self._pool: Optional[ThreadPoolExecutor] = None
        self._pool_lock = threading.Lock()

    # ------------- worker pool -------------

    def _executor(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self.config.max_quote_workers,
                    thread_name_prefix="venue-quote",
                )
            return self._pool

    def close(self) -> None:
        """Release the worker pool without waiting on hung venues."""
        with self._pool_lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "QuoteAggregator":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------- helpers -------------

    def gas_estimate(self, variant: ProtocolVariant) -> int:
        """Static per-variant estimate; not measured."""
        if variant is ProtocolVariant.CONCENTRATED_LIQUIDITY:
            return self.config.concentrated_liquidity_gas
        return self.config.constant_product_gas

    def to_route_quote(self, venue: Venue, amount_out: int) -> RouteQuote:
        return RouteQuote(
            venue_id=venue.venue_id,
            amount_out=amount_out,
            estimated_gas=self.gas_estimate(venue.variant),
            fee_bps=venue.fee_bps,
            display_name=venue.display_name,
        )

    @staticmethod
    def _query(adapter: VenueAdapter, token_in: str, token_out: str, amount_in: int) -> int:
        out = adapter.quote(token_in, token_out, amount_in)
        if not isinstance(out, int) or isinstance(out, bool) or out < 0:
            raise ValueError(f"venue returned invalid quote {out!r}")
        return out

    # ------------- aggregation -------------

    def collect(self, token_in: str, token_out: str, amount_in: int) -> List[QuoteOutcome]:
        """Query every active venue concurrently; one outcome per venue, in registry order."""
        _validate_pair(token_in, token_out, amount_in)
        venues = self.registry.list_active_venues()
        if not venues:
            return []

        pool = self._executor()
        dispatched: List[Tuple[Venue, Future]] = []
        for venue in venues:
            adapter = self.registry.adapter_for(venue.venue_id)
            dispatched.append((venue, pool.submit(self._query, adapter, token_in, token_out, amount_in)))

        _, pending = wait([f for _, f in dispatched], timeout=self.config.quote_timeout_s)

        outcomes: List[QuoteOutcome] = []
        for venue, fut in dispatched:
            if fut in pending:
                fut.cancel()
                err = QuoteTimeout(f"no answer within {self.config.quote_timeout_s}s")
                logger.warning("quote from %s timed out", venue.venue_id)
                outcomes.append(QuoteOutcome(venue, error=err))
                continue
            err = fut.exception()
            if err is not None:
                logger.warning("quote from %s failed: %s", venue.venue_id, err)
                outcomes.append(QuoteOutcome(venue, error=err))
                continue
            amount = fut.result()
            logger.debug("quote from %s: %s -> %s amount_out=%d", venue.venue_id, token_in, token_out, amount)
            outcomes.append(QuoteOutcome(venue, amount_out=amount))
        return outcomes

    def get_all_quotes(self, token_in: str, token_out: str, amount_in: int) -> List[RouteQuote]:
        """Successful quotes only, in venue enumeration order (unsorted)."""
        return [
            self.to_route_quote(o.venue, o.amount_out)
            for o in self.collect(token_in, token_out, amount_in)
            if o.ok
        ]

    def get_quote_from_dex(self, venue_id: str, token_in: str, token_out: str, amount_in: int) -> RouteQuote:
        """Quote from one venue. An isolated venue failure yields a zero amount."""
        _validate_pair(token_in, token_out, amount_in)
        venue = self.registry.get_venue(venue_id)
        if not venue.active:
            raise UnsupportedSource(f"venue {venue_id!r} is inactive")
        adapter = self.registry.adapter_for(venue_id)
        fut = self._executor().submit(self._query, adapter, token_in, token_out, amount_in)
        _, pending = wait([fut], timeout=self.config.quote_timeout_s)
        if pending:
            fut.cancel()
            logger.warning("quote from %s timed out", venue_id)
            return self.to_route_quote(venue, 0)
        err = fut.exception()
        if err is not None:
            logger.warning("quote from %s failed: %s", venue_id, err)
            return self.to_route_quote(venue, 0)
        return self.to_route_quote(venue, fut.result())


__all__ = ["QuoteAggregator", "QuoteOutcome", "QuoteTimeout"]
