"""Venue registry: venue id -> metadata and adapter, in registration order.

Venues are soft-deactivated, never removed, so enumeration order (and thus
route tie-breaking) is stable for the life of the registry.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Union

from .core.access import AccessControl
from .core.constants import MAX_FEE_BPS
from .core.datatypes import ProtocolVariant, Venue
from .core.exc import InvalidInput, NotFound
from .events import EventLog, VENUE_REGISTERED, VENUE_STATUS_CHANGED
from .venues import VenueAdapter

logger = logging.getLogger(__name__)


class VenueRegistry:
    def __init__(
        self,
        access: AccessControl,
        *,
        events: Optional[EventLog] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.access = access
        self.events = events if events is not None else EventLog()
        self._clock = clock
        self._venues: Dict[str, Venue] = {}
        self._adapters: Dict[str, VenueAdapter] = {}
        self._order: List[str] = []

    # ------------- admin -------------

    def register_venue(
        self,
        sender: str,
        venue_id: str,
        name: str,
        fee_bps: int,
        variant: Union[ProtocolVariant, str, int],
        adapter: VenueAdapter,
    ) -> Venue:
        """Insert or overwrite a venue. New ids are appended to the enumeration order."""
        self.access.require_owner(sender)
        if not venue_id or not isinstance(venue_id, str):
            raise InvalidInput("venue id must be a non-empty string")
        if not isinstance(fee_bps, int) or isinstance(fee_bps, bool) or not (0 <= fee_bps <= MAX_FEE_BPS):
            raise InvalidInput(f"fee_bps must satisfy 0 <= fee <= {MAX_FEE_BPS}")
        parsed = ProtocolVariant.parse(variant)
        if adapter is None:
            raise InvalidInput("venue adapter is required")
        if adapter.variant is not parsed:
            raise InvalidInput(f"adapter implements {adapter.variant.value}, not {parsed.value}")

        venue = Venue(venue_id=venue_id, display_name=name or venue_id, active=True, fee_bps=fee_bps, variant=parsed)
        is_new = venue_id not in self._venues
        self._venues[venue_id] = venue
        self._adapters[venue_id] = adapter
        if is_new:
            self._order.append(venue_id)
            self.events.emit(VENUE_REGISTERED, int(self._clock()), venue_id=venue_id,
                             name=venue.display_name, variant=parsed.value, fee_bps=fee_bps)
        logger.info("venue %s %s (%s, fee=%dbps)", venue_id, "registered" if is_new else "re-registered",
                    parsed.value, fee_bps)
        return venue

    def set_venue_active(self, sender: str, venue_id: str, active: bool) -> Venue:
        self.access.require_owner(sender)
        venue = self.get_venue(venue_id)
        if venue.active != bool(active):
            venue = replace(venue, active=bool(active))
            self._venues[venue_id] = venue
        self.events.emit(VENUE_STATUS_CHANGED, int(self._clock()), venue_id=venue_id, active=bool(active))
        logger.info("venue %s active=%s", venue_id, bool(active))
        return venue

    # ------------- queries -------------

    def get_venue(self, venue_id: str) -> Venue:
        try:
            return self._venues[venue_id]
        except KeyError:
            raise NotFound(f"venue {venue_id!r} is not registered") from None

    def adapter_for(self, venue_id: str) -> VenueAdapter:
        try:
            return self._adapters[venue_id]
        except KeyError:
            raise NotFound(f"venue {venue_id!r} is not registered") from None

    def is_active(self, venue_id: str) -> bool:
        venue = self._venues.get(venue_id)
        return venue is not None and venue.active

    def list_venues(self) -> List[Venue]:
        return [self._venues[v] for v in self._order]

    def list_active_venues(self) -> List[Venue]:
        return [self._venues[v] for v in self._order if self._venues[v].active]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, venue_id: object) -> bool:
        return venue_id in self._venues


__all__ = ["VenueRegistry"]
