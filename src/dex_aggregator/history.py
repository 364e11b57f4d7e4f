"""Bounded per-pool volume history.

Each pool keeps a sliding window of the most recent MAX_SNAPSHOTS snapshots
(one week at hourly cadence). Appending past capacity evicts the oldest entry.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List

from .core.constants import MAX_SNAPSHOTS
from .core.datatypes import VolumeSnapshot
from .core.exc import InvalidInput, NotFound


class VolumeHistoryStore:
    def __init__(self, capacity: int = MAX_SNAPSHOTS) -> None:
        if capacity < 1:
            raise InvalidInput("capacity must be >= 1")
        self.capacity = capacity
        self._series: Dict[str, Deque[VolumeSnapshot]] = {}

    def append(self, pool_id: str, snapshot: VolumeSnapshot) -> None:
        series = self._series.get(pool_id)
        if series is None:
            series = self._series[pool_id] = deque(maxlen=self.capacity)
        series.append(snapshot)

    def count(self, pool_id: str) -> int:
        return len(self._series.get(pool_id, ()))

    def __contains__(self, pool_id: object) -> bool:
        return pool_id in self._series

    def recent(self, pool_id: str, hours: int) -> List[VolumeSnapshot]:
        """The most recent min(hours, stored) snapshots, oldest first."""
        if not isinstance(hours, int) or isinstance(hours, bool) or hours <= 0 or hours > self.capacity:
            raise InvalidInput(f"hours must satisfy 1 <= hours <= {self.capacity}")
        series = self._series.get(pool_id)
        if series is None:
            raise NotFound(f"no history for pool {pool_id!r}")
        n = min(hours, len(series))
        return list(series)[len(series) - n:]


__all__ = ["VolumeHistoryStore"]
