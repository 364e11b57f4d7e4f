"""Venue adapters: the uniform quote/swap capability per protocol variant.

The engine talks to every venue through `VenueAdapter.quote` and
`VenueAdapter.swap`. Two variant bases map that uniform surface onto the
protocol-specific entry points:

- ConstantProductVenue: path-based `get_amounts_out` /
  `swap_exact_tokens_for_tokens`.
- ConcentratedLiquidityVenue: single-pool `exact_input_single`. Spot quoting
  is optional for this family; without it `quote` returns the zero
  placeholder instead of failing.

Reference in-memory venues (`ConstantProductPoolVenue`, `ConcentratedPoolVenue`)
keep their reserves on an `AssetLedger` and are used by the tests and the demo.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .amm import cl_swap_exact_input, get_amount_out
from .core.constants import BPS_DENOMINATOR
from .core.datatypes import ProtocolVariant
from .ledger import AssetLedger


class VenueError(Exception):
    """Raised by a venue itself (expired, no pair, insufficient output...)."""


# ---------------------------------------------------------------------------
# Uniform capability
# ---------------------------------------------------------------------------

class VenueAdapter(ABC):
    """Uniform quote/swap capability for one venue.

    `address` is the principal the venue spends from and pays out of; the
    executor grants it an allowance before delegating a swap.
    """

    variant: ProtocolVariant

    def __init__(self, address: str) -> None:
        self.address = address

    @abstractmethod
    def quote(self, token_in: str, token_out: str, amount_in: int) -> int:
        ...

    @abstractmethod
    def swap(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
        *,
        payer: str,
        fee_tier: Optional[int] = None,
    ) -> int:
        ...

    # Venues holding state outside the ledger override these so a swap can be
    # rolled back as a unit.
    def savepoint(self) -> Any:
        return None

    def rollback(self, savepoint: Any) -> None:
        return None


class ConstantProductVenue(VenueAdapter):
    """Path-based constant-product router surface."""

    variant = ProtocolVariant.CONSTANT_PRODUCT

    @abstractmethod
    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        ...

    @abstractmethod
    def swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
        *,
        payer: str,
    ) -> List[int]:
        ...

    def quote(self, token_in: str, token_out: str, amount_in: int) -> int:
        return self.get_amounts_out(amount_in, [token_in, token_out])[-1]

    def swap(self, token_in, token_out, amount_in, min_amount_out, recipient, deadline, *, payer, fee_tier=None) -> int:
        amounts = self.swap_exact_tokens_for_tokens(
            amount_in, min_amount_out, [token_in, token_out], recipient, deadline, payer=payer,
        )
        return amounts[-1]


@dataclass(frozen=True)
class ExactInputSingleParams:
    token_in: str
    token_out: str
    fee: int
    recipient: str
    deadline: int
    amount_in: int
    amount_out_minimum: int


class ConcentratedLiquidityVenue(VenueAdapter):
    """Single-pool exact-input surface for concentrated-liquidity venues."""

    variant = ProtocolVariant.CONCENTRATED_LIQUIDITY
    default_fee_tier: int = 3000

    def quote_exact_input_single(self, token_in: str, token_out: str, fee: int, amount_in: int) -> Optional[int]:
        """Spot quote, or None when the venue cannot quote without executing."""
        return None

    @abstractmethod
    def exact_input_single(self, params: ExactInputSingleParams, *, payer: str) -> int:
        ...

    def quote(self, token_in: str, token_out: str, amount_in: int) -> int:
        out = self.quote_exact_input_single(token_in, token_out, self.default_fee_tier, amount_in)
        return 0 if out is None else out

    def swap(self, token_in, token_out, amount_in, min_amount_out, recipient, deadline, *, payer, fee_tier=None) -> int:
        params = ExactInputSingleParams(
            token_in=token_in,
            token_out=token_out,
            fee=self.default_fee_tier if fee_tier is None else fee_tier,
            recipient=recipient,
            deadline=deadline,
            amount_in=amount_in,
            amount_out_minimum=min_amount_out,
        )
        return self.exact_input_single(params, payer=payer)


# ---------------------------------------------------------------------------
# Reference venues (in-memory, ledger-backed)
# ---------------------------------------------------------------------------

def _now(clock: Callable[[], float]) -> int:
    return int(clock())


class ConstantProductPoolVenue(ConstantProductVenue):
    """x*y=k pairs; each pair's reserves are ledger balances of the pair address."""

    def __init__(
        self,
        address: str,
        ledger: AssetLedger,
        *,
        fee_bps: int = 30,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(address)
        if not (0 <= fee_bps < BPS_DENOMINATOR):
            raise ValueError("fee_bps must satisfy 0 <= fee < 10000")
        self.ledger = ledger
        self.fee_bps = fee_bps
        self._clock = clock
        self._pairs: Dict[Tuple[str, str], str] = {}

    def pair_address(self, token_a: str, token_b: str) -> str:
        key = tuple(sorted((token_a, token_b)))
        try:
            return self._pairs[key]
        except KeyError:
            raise VenueError(f"{self.address}: no pair for {token_a}/{token_b}") from None

    def create_pair(self, token_a: str, token_b: str) -> str:
        key = tuple(sorted((token_a, token_b)))
        if key not in self._pairs:
            self._pairs[key] = f"{self.address}:{key[0]}/{key[1]}"
        return self._pairs[key]

    def reserves(self, token_in: str, token_out: str) -> Tuple[int, int]:
        pair = self.pair_address(token_in, token_out)
        return self.ledger.balance_of(token_in, pair), self.ledger.balance_of(token_out, pair)

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        if len(path) < 2:
            raise VenueError("INVALID_PATH")
        amounts = [amount_in]
        for token_in, token_out in zip(path, path[1:]):
            r_in, r_out = self.reserves(token_in, token_out)
            amounts.append(get_amount_out(amounts[-1], r_in, r_out, self.fee_bps))
        return amounts

    def swap_exact_tokens_for_tokens(self, amount_in, amount_out_min, path, to, deadline, *, payer) -> List[int]:
        if _now(self._clock) > deadline:
            raise VenueError("EXPIRED")
        amounts = self.get_amounts_out(amount_in, path)
        if amounts[-1] < amount_out_min:
            raise VenueError("INSUFFICIENT_OUTPUT_AMOUNT")
        first_pair = self.pair_address(path[0], path[1])
        self.ledger.transfer_from(path[0], self.address, payer, first_pair, amount_in)
        hops = list(zip(path, path[1:]))
        for i, (token_in, token_out) in enumerate(hops):
            pair = self.pair_address(token_in, token_out)
            nxt = self.pair_address(*hops[i + 1]) if i + 1 < len(hops) else to
            self.ledger.transfer(token_out, pair, nxt, amounts[i + 1])
        return amounts


class ConcentratedPoolVenue(ConcentratedLiquidityVenue):
    """One concentrated-liquidity pool with a single active range.

    token0/token1 ordering follows the constructor. The pool's token balances
    are ledger balances of `address`; the sqrt price is venue state and takes
    part in savepoints.
    """

    def __init__(
        self,
        address: str,
        ledger: AssetLedger,
        *,
        token0: str,
        token1: str,
        sqrt_price_x96: int,
        liquidity: int,
        fee_tier: int = 3000,
        spot_quotes: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(address)
        if sqrt_price_x96 <= 0 or liquidity <= 0:
            raise ValueError("sqrt_price_x96 and liquidity must be > 0")
        self.ledger = ledger
        self.token0 = token0
        self.token1 = token1
        self.sqrt_price_x96 = sqrt_price_x96
        self.liquidity = liquidity
        self.default_fee_tier = fee_tier
        self.spot_quotes = spot_quotes
        self._clock = clock

    def _direction(self, token_in: str, token_out: str) -> bool:
        if (token_in, token_out) == (self.token0, self.token1):
            return True
        if (token_in, token_out) == (self.token1, self.token0):
            return False
        raise VenueError(f"{self.address}: pool does not trade {token_in}/{token_out}")

    def quote_exact_input_single(self, token_in, token_out, fee, amount_in) -> Optional[int]:
        if not self.spot_quotes:
            return None
        zero_for_one = self._direction(token_in, token_out)
        out, _ = cl_swap_exact_input(self.sqrt_price_x96, self.liquidity, amount_in, fee, zero_for_one=zero_for_one)
        return min(out, self.ledger.balance_of(token_out, self.address))

    def exact_input_single(self, params: ExactInputSingleParams, *, payer: str) -> int:
        if _now(self._clock) > params.deadline:
            raise VenueError("EXPIRED")
        if params.fee != self.default_fee_tier:
            raise VenueError(f"{self.address}: no pool at fee tier {params.fee}")
        zero_for_one = self._direction(params.token_in, params.token_out)
        out, nxt = cl_swap_exact_input(
            self.sqrt_price_x96, self.liquidity, params.amount_in, params.fee, zero_for_one=zero_for_one,
        )
        if out > self.ledger.balance_of(params.token_out, self.address):
            raise VenueError("INSUFFICIENT_LIQUIDITY")
        if out < params.amount_out_minimum:
            raise VenueError("TOO_LITTLE_RECEIVED")
        self.ledger.transfer_from(params.token_in, self.address, payer, self.address, params.amount_in)
        self.ledger.transfer(params.token_out, self.address, params.recipient, out)
        self.sqrt_price_x96 = nxt
        return out

    def savepoint(self) -> Tuple[int, int]:
        return self.sqrt_price_x96, self.liquidity

    def rollback(self, savepoint: Tuple[int, int]) -> None:
        self.sqrt_price_x96, self.liquidity = savepoint


__all__ = [
    "VenueError",
    "VenueAdapter",
    "ConstantProductVenue",
    "ConcentratedLiquidityVenue",
    "ExactInputSingleParams",
    "ConstantProductPoolVenue",
    "ConcentratedPoolVenue",
]
