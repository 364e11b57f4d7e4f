"""Asset-transfer capability: balances, allowances and transactions.

The engine never moves value itself; it calls an `AssetLedger`. The ledger
must also offer transactions so a swap's custody, fee, venue and settlement
transfers commit or roll back as one unit.

`InMemoryLedger` is the reference implementation used by tests and the demo.
It models fee-on-transfer tokens (the fee is burned in transit) and transfer
hooks (callbacks run after each movement, like token receive hooks).
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from .core.constants import BPS_DENOMINATOR, MAX_FEE_BPS
from .core.exc import InvalidInput, TransferFailed

TransferHook = Callable[[str, str, str, int], None]


class AssetLedger(ABC):
    """Abstract asset-transfer capability.

    All movement methods raise TransferFailed when the movement is refused
    (insufficient balance or allowance, negative amount).
    """

    @abstractmethod
    def balance_of(self, token: str, holder: str) -> int:
        ...

    @abstractmethod
    def allowance(self, token: str, owner: str, spender: str) -> int:
        ...

    @abstractmethod
    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        ...

    @abstractmethod
    def transfer_from(self, token: str, spender: str, owner: str, recipient: str, amount: int) -> None:
        ...

    @abstractmethod
    def increase_allowance(self, token: str, owner: str, spender: str, amount: int) -> None:
        ...

    @abstractmethod
    def begin(self) -> Any:
        """Open a transaction for the calling thread; returns an opaque marker.

        Until `commit` or `rollback`, other threads must neither observe nor
        interleave with the transaction's movements.
        """

    @abstractmethod
    def commit(self, marker: Any) -> None:
        """Keep every movement made since `begin` and end the transaction."""

    @abstractmethod
    def rollback(self, marker: Any) -> None:
        """Undo every movement made since `begin` and end the transaction."""


# (book, key, previous value or None when the key was absent)
_UndoEntry = Tuple[Dict[Any, int], Any, Optional[int]]


class InMemoryLedger(AssetLedger):
    """Dictionary-backed ledger keyed by (token, holder).

    A transaction holds the ledger lock from `begin` until it ends, so other
    threads block on every read and movement meanwhile; hooks fired inside a
    transaction run under the same lock. Rollback replays an undo journal of
    the transaction's own writes, so it never touches unrelated balances.
    """

    def __init__(self) -> None:
        self._balances: Dict[str, Dict[str, int]] = {}
        self._allowances: Dict[str, Dict[Tuple[str, str], int]] = {}
        self._transfer_fee_bps: Dict[str, int] = {}
        self._hooks: List[TransferHook] = []
        self._lock = threading.RLock()
        self._journal: List[_UndoEntry] = []
        self._depth = 0

    # ------------- setup helpers -------------

    def mint(self, token: str, holder: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInput("mint amount must be >= 0")
        with self._lock:
            book = self._balances.setdefault(token, {})
            self._write(book, holder, book.get(holder, 0) + amount)

    def set_transfer_fee(self, token: str, fee_bps: int) -> None:
        """Make `token` fee-on-transfer: recipients receive amount minus fee_bps."""
        if not (0 <= fee_bps <= MAX_FEE_BPS):
            raise InvalidInput(f"transfer fee must satisfy 0 <= fee <= {MAX_FEE_BPS}")
        self._transfer_fee_bps[token] = fee_bps

    def add_transfer_hook(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def remove_transfer_hook(self, hook: TransferHook) -> None:
        self._hooks.remove(hook)

    # ------------- queries -------------

    def balance_of(self, token: str, holder: str) -> int:
        with self._lock:
            return self._balances.get(token, {}).get(holder, 0)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        with self._lock:
            return self._allowances.get(token, {}).get((owner, spender), 0)

    # ------------- movements -------------

    def _write(self, book: Dict[Any, int], key: Any, value: int) -> None:
        # caller holds the lock
        if self._depth:
            self._journal.append((book, key, book.get(key)))
        book[key] = value

    def _move(self, token: str, sender: str, recipient: str, amount: int) -> None:
        if not isinstance(amount, int) or amount < 0:
            raise TransferFailed(f"invalid transfer amount {amount!r}")
        book = self._balances.setdefault(token, {})
        have = book.get(sender, 0)
        if have < amount:
            raise TransferFailed(f"{sender} holds {have} {token}, needs {amount}")
        fee = amount * self._transfer_fee_bps.get(token, 0) // BPS_DENOMINATOR
        self._write(book, sender, have - amount)
        self._write(book, recipient, book.get(recipient, 0) + (amount - fee))

    def _run_hooks(self, token: str, sender: str, recipient: str, amount: int) -> None:
        for hook in list(self._hooks):
            hook(token, sender, recipient, amount)

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        with self._lock:
            self._move(token, sender, recipient, amount)
        self._run_hooks(token, sender, recipient, amount)

    def transfer_from(self, token: str, spender: str, owner: str, recipient: str, amount: int) -> None:
        with self._lock:
            allowances = self._allowances.setdefault(token, {})
            allowed = allowances.get((owner, spender), 0)
            if spender != owner and allowed < amount:
                raise TransferFailed(f"{spender} allowance over {owner}'s {token} is {allowed}, needs {amount}")
            self._move(token, owner, recipient, amount)
            if spender != owner:
                self._write(allowances, (owner, spender), allowed - amount)
        self._run_hooks(token, owner, recipient, amount)

    def increase_allowance(self, token: str, owner: str, spender: str, amount: int) -> None:
        if not isinstance(amount, int) or amount < 0:
            raise TransferFailed(f"invalid allowance increment {amount!r}")
        with self._lock:
            allowances = self._allowances.setdefault(token, {})
            self._write(allowances, (owner, spender), allowances.get((owner, spender), 0) + amount)

    # ------------- transactions -------------

    def begin(self) -> int:
        self._lock.acquire()
        self._depth += 1
        return len(self._journal)

    def commit(self, marker: int) -> None:
        try:
            self._depth -= 1
            if self._depth == 0:
                self._journal.clear()
        finally:
            self._lock.release()

    def rollback(self, marker: int) -> None:
        try:
            while len(self._journal) > marker:
                book, key, previous = self._journal.pop()
                if previous is None:
                    book.pop(key, None)
                else:
                    book[key] = previous
            self._depth -= 1
        finally:
            self._lock.release()


__all__ = ["AssetLedger", "InMemoryLedger", "TransferHook"]
