"""
Swap executor: custody, platform fee, delegated venue execution and settlement.

Stages (all inside one atomic section):
  1. Validate    deadline, venue active, amount > 0 (no effects on failure).
  2. Custody     pull amount_in of token_in from the caller.
  3. Fee split   fee = floor(amount_in * platform_fee_bps / 10000) to the fee recipient.
  4. Delegate    allow the venue to spend the rest and run its execution path;
                 output is the custody balance delta, not the venue's return value.
  5. Slippage    measured output >= min_amount_out.
  6. Settle      pay the measured output to the caller, then emit SwapExecuted.

Stages 2-6 run in one ledger transaction; any failure rolls back the swap's own
movements (and venue state), and other threads never see a partial swap.
A single in-flight lock serialises swaps and admin fee changes; a nested call
from the same thread (token hook, venue callback) raises ReentrantCall.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import asdict
from typing import Callable, Iterator, Optional, Tuple

from .config import EngineConfig
from .core.constants import BPS_DENOMINATOR, FEE_TIER_DENOMINATOR, MAX_FEE_BPS
from .core.datatypes import ProtocolVariant, SwapExecuted, SwapRequest, Venue
from .core.exc import (
    DeadlineExpired,
    DexError,
    InvalidInput,
    ReentrantCall,
    SlippageExceeded,
    TransferFailed,
    UnsupportedSource,
    VenueExecutionError,
)
from .events import (
    EMERGENCY_WITHDRAW,
    FEE_RECIPIENT_UPDATED,
    PLATFORM_FEE_UPDATED,
    SWAP_EXECUTED,
    EventLog,
)
from .ledger import AssetLedger
from .registry import VenueRegistry
from .venues import VenueAdapter

logger = logging.getLogger(__name__)

VolumeListener = Callable[[SwapExecuted], None]


class SwapExecutor:
    def __init__(
        self,
        registry: VenueRegistry,
        ledger: AssetLedger,
        *,
        address: str = "dex-aggregator",
        config: Optional[EngineConfig] = None,
        events: Optional[EventLog] = None,
        clock: Callable[[], float] = time.time,
        volume_listener: Optional[VolumeListener] = None,
    ) -> None:
        cfg = config if config is not None else EngineConfig()
        self.registry = registry
        self.access = registry.access
        self.ledger = ledger
        self.address = address
        self.events = events if events is not None else registry.events
        self.volume_listener = volume_listener
        self._clock = clock
        self._platform_fee_bps = cfg.platform_fee_bps
        self._fee_recipient = cfg.fee_recipient or self.access.owner
        self._lock = threading.Lock()
        self._holder: Optional[int] = None

    # ------------- state -------------

    @property
    def platform_fee_bps(self) -> int:
        return self._platform_fee_bps

    @property
    def fee_recipient(self) -> str:
        return self._fee_recipient

    def _now(self) -> int:
        return int(self._clock())

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._holder == me:
            raise ReentrantCall("swap executor re-entered while a call is in flight")
        with self._lock:
            self._holder = me
            try:
                yield
            finally:
                self._holder = None

    @contextmanager
    def _atomic(self, adapter: VenueAdapter) -> Iterator[None]:
        tx = self.ledger.begin()
        try:
            venue_sp = adapter.savepoint()
            try:
                yield
            except BaseException:
                adapter.rollback(venue_sp)
                raise
        except BaseException:
            self.ledger.rollback(tx)
            raise
        else:
            self.ledger.commit(tx)

    def _ledger(self, op: str, fn, *args) -> None:
        """Run a ledger movement; foreign failures become TransferFailed."""
        try:
            fn(*args)
        except DexError:
            raise
        except Exception as e:
            raise TransferFailed(f"{op}: {e}") from e

    # ------------- validation -------------

    def _validate(self, request: SwapRequest, now: int) -> Tuple[Venue, VenueAdapter]:
        if request.deadline < now:
            raise DeadlineExpired(request.deadline, now)
        if request.venue_id not in self.registry or not self.registry.is_active(request.venue_id):
            raise UnsupportedSource(f"venue {request.venue_id!r} is not an active source")
        if not isinstance(request.amount_in, int) or isinstance(request.amount_in, bool) or request.amount_in <= 0:
            raise InvalidInput("amount_in must be a positive integer")
        if not request.token_in or not request.token_out or request.token_in == request.token_out:
            raise InvalidInput("token_in and token_out must be distinct non-empty tokens")
        if request.min_amount_out < 0:
            raise InvalidInput("min_amount_out must be >= 0")
        if request.fee_tier is not None and not (0 <= request.fee_tier < FEE_TIER_DENOMINATOR):
            raise InvalidInput("fee_tier must satisfy 0 <= tier < 1_000_000")
        venue = self.registry.get_venue(request.venue_id)
        adapter = self.registry.adapter_for(request.venue_id)
        if adapter.variant is not venue.variant:
            raise UnsupportedSource(f"venue {venue.venue_id!r} adapter does not match {venue.variant.value}")
        return venue, adapter

    # ------------- swap -------------

    def execute_swap(self, sender: str, request: SwapRequest) -> SwapExecuted:
        """Execute `request` for `sender` atomically; returns the SwapExecuted record."""
        with self._non_reentrant():
            now = self._now()
            venue, adapter = self._validate(request, now)
            fee_bps = self._platform_fee_bps
            fee_recipient = self._fee_recipient

            with self._atomic(adapter):
                fee_amount, amount_out = self._run(sender, request, venue, adapter, fee_bps, fee_recipient)

            record = SwapExecuted(
                caller=sender,
                token_in=request.token_in,
                token_out=request.token_out,
                amount_in=request.amount_in,
                amount_out=amount_out,
                venue_id=venue.venue_id,
                fee_amount=fee_amount,
            )
            self.events.emit(SWAP_EXECUTED, now, **asdict(record))
            logger.info("swap %s %d %s -> %d %s via %s (fee %d)", sender, request.amount_in, request.token_in,
                        amount_out, request.token_out, venue.venue_id, fee_amount)

        if self.volume_listener is not None:
            try:
                self.volume_listener(record)
            except Exception:
                logger.exception("volume listener failed for swap via %s", venue.venue_id)
        return record

    def _run(
        self,
        sender: str,
        request: SwapRequest,
        venue: Venue,
        adapter: VenueAdapter,
        fee_bps: int,
        fee_recipient: str,
    ) -> Tuple[int, int]:
        token_in, token_out, amount_in = request.token_in, request.token_out, request.amount_in

        # custody
        held_before = self.ledger.balance_of(token_in, self.address)
        self._ledger("custody", self.ledger.transfer_from, token_in, self.address, sender, self.address, amount_in)
        received = self.ledger.balance_of(token_in, self.address) - held_before
        if received < amount_in:
            raise TransferFailed(f"custody received {received} of {amount_in} {token_in}")

        # fee split
        fee_amount = amount_in * fee_bps // BPS_DENOMINATOR
        swap_amount = amount_in - fee_amount
        if fee_amount > 0:
            self._ledger("fee", self.ledger.transfer, token_in, self.address, fee_recipient, fee_amount)

        # delegate
        self._ledger("approve", self.ledger.increase_allowance, token_in, self.address, adapter.address, swap_amount)
        out_before = self.ledger.balance_of(token_out, self.address)
        fee_tier = request.fee_tier if venue.variant is ProtocolVariant.CONCENTRATED_LIQUIDITY else None
        # venue minimum is 0: the slippage check below owns min_amount_out
        try:
            adapter.swap(token_in, token_out, swap_amount, 0, self.address,
                         request.deadline, payer=self.address, fee_tier=fee_tier)
        except DexError:
            raise
        except Exception as e:
            raise VenueExecutionError(venue.venue_id, str(e)) from e
        amount_out = self.ledger.balance_of(token_out, self.address) - out_before

        # slippage
        if amount_out < request.min_amount_out:
            raise SlippageExceeded(request.min_amount_out, amount_out)

        # settle
        if amount_out > 0:
            self._ledger("settle", self.ledger.transfer, token_out, self.address, sender, amount_out)
        return fee_amount, amount_out

    # ------------- admin -------------

    def update_platform_fee(self, sender: str, new_bps: int) -> None:
        with self._non_reentrant():
            self.access.require_owner(sender)
            if not isinstance(new_bps, int) or isinstance(new_bps, bool) or not (0 <= new_bps <= MAX_FEE_BPS):
                raise InvalidInput(f"platform fee must satisfy 0 <= fee <= {MAX_FEE_BPS}")
            old, self._platform_fee_bps = self._platform_fee_bps, new_bps
            self.events.emit(PLATFORM_FEE_UPDATED, self._now(), old_bps=old, new_bps=new_bps)
            logger.info("platform fee %d -> %d bps", old, new_bps)

    def update_fee_recipient(self, sender: str, recipient: str) -> None:
        with self._non_reentrant():
            self.access.require_owner(sender)
            if not recipient:
                raise InvalidInput("fee recipient must be non-empty")
            old, self._fee_recipient = self._fee_recipient, recipient
            self.events.emit(FEE_RECIPIENT_UPDATED, self._now(), old=old, new=recipient)
            logger.info("fee recipient %s -> %s", old, recipient)

    def emergency_withdraw(self, sender: str, token: str, amount: int) -> None:
        """Move a stray custody balance to the owner. Last-resort recovery only."""
        with self._non_reentrant():
            self.access.require_owner(sender)
            if not token:
                raise InvalidInput("token must be non-empty")
            if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
                raise InvalidInput("amount must be a positive integer")
            self._ledger("withdraw", self.ledger.transfer, token, self.address, self.access.owner, amount)
            self.events.emit(EMERGENCY_WITHDRAW, self._now(), token=token, amount=amount, to=self.access.owner)
            logger.warning("emergency withdraw %d %s to %s", amount, token, self.access.owner)


__all__ = ["SwapExecutor", "VolumeListener"]
