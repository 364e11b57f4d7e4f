"""Append-only event log shared by the engines.

Events are plain records; state-changing operations add one after they
commit, so a rolled-back swap never leaves an event behind.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .core.constants import EVENT_LOG_MAXLEN

VENUE_REGISTERED = "VenueRegistered"
VENUE_STATUS_CHANGED = "VenueStatusChanged"
PLATFORM_FEE_UPDATED = "PlatformFeeUpdated"
FEE_RECIPIENT_UPDATED = "FeeRecipientUpdated"
EMERGENCY_WITHDRAW = "EmergencyWithdraw"
SWAP_EXECUTED = "SwapExecuted"
POOL_UPDATED = "PoolUpdated"
POOL_DEACTIVATED = "PoolDeactivated"
TOKEN_PRICE_UPDATED = "TokenPriceUpdated"
UPDATER_AUTHORIZATION_CHANGED = "UpdaterAuthorizationChanged"


@dataclass(frozen=True)
class Event:
    kind: str
    timestamp: int
    payload: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    def __init__(self, maxlen: Optional[int] = EVENT_LOG_MAXLEN) -> None:
        self.events = deque(maxlen=maxlen)

    def add(self, e: Event) -> None:
        self.events.append(e)

    def emit(self, kind: str, timestamp: int, **payload: Any) -> Event:
        e = Event(kind, timestamp, dict(payload))
        self.add(e)
        return e

    def of_kind(self, kind: str) -> List[Event]:
        return [e for e in self.events if e.kind == kind]

    def tail(self, n: int = 200) -> List[Event]:
        if n <= 0:
            return []
        if n >= len(self.events):
            return list(self.events)
        return list(self.events)[-n:]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self.events))


__all__ = [
    "Event",
    "EventLog",
    "VENUE_REGISTERED",
    "VENUE_STATUS_CHANGED",
    "PLATFORM_FEE_UPDATED",
    "FEE_RECIPIENT_UPDATED",
    "EMERGENCY_WITHDRAW",
    "SWAP_EXECUTED",
    "POOL_UPDATED",
    "POOL_DEACTIVATED",
    "TOKEN_PRICE_UPDATED",
    "UPDATER_AUTHORIZATION_CHANGED",
]
