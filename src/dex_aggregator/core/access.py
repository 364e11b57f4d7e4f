"""Ownership and updater roles.

The administrative owner manages venues, fees and updater grants. Updaters
may submit pool and price data; the owner is implicitly an updater.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .exc import InvalidInput, Unauthorized

logger = logging.getLogger(__name__)


class AccessControl:
    """Owner principal plus a principal -> bool updater mapping."""

    def __init__(self, owner: str) -> None:
        if not owner:
            raise InvalidInput("owner must be a non-empty principal")
        self._owner = owner
        self._updaters: Dict[str, bool] = {}

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, sender: Optional[str]) -> bool:
        return sender is not None and sender == self._owner

    def is_updater(self, sender: Optional[str]) -> bool:
        if self.is_owner(sender):
            return True
        return bool(sender) and self._updaters.get(sender, False)

    def require_owner(self, sender: Optional[str]) -> None:
        if not self.is_owner(sender):
            raise Unauthorized(f"{sender!r} is not the owner", sender=sender)

    def require_updater(self, sender: Optional[str]) -> None:
        if not self.is_updater(sender):
            raise Unauthorized(f"{sender!r} is not an authorized updater", sender=sender)

    def set_updater(self, sender: str, principal: str, authorized: bool) -> None:
        self.require_owner(sender)
        if not principal:
            raise InvalidInput("principal must be non-empty")
        self._updaters[principal] = bool(authorized)
        logger.info("updater %s authorized=%s", principal, bool(authorized))

    def updaters(self) -> List[str]:
        """Explicitly granted updaters (the owner is implied, not listed)."""
        return [p for p, ok in self._updaters.items() if ok]

    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        self.require_owner(sender)
        if not new_owner:
            raise InvalidInput("new owner must be non-empty")
        logger.info("ownership transferred %s -> %s", self._owner, new_owner)
        self._owner = new_owner


__all__ = ["AccessControl"]
