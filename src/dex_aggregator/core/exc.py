"""
Core exception types for dex_aggregator.core.

These are dependency-free and may be imported by all modules. Every engine
failure is a `DexError` carrying a stable `kind`, so callers can discriminate
causes without parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "ErrorKind",
    "DexError",
    "InvalidInput",
    "Unauthorized",
    "NotFound",
    "UnsupportedSource",
    "DeadlineExpired",
    "SlippageExceeded",
    "TransferFailed",
    "ArithmeticOverflow",
    "ReentrantCall",
    "VenueExecutionError",
]


class ErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    UNSUPPORTED_SOURCE = "unsupported_source"
    DEADLINE_EXPIRED = "deadline_expired"
    SLIPPAGE_EXCEEDED = "slippage_exceeded"
    TRANSFER_FAILED = "transfer_failed"
    ARITHMETIC_OVERFLOW = "arithmetic_overflow"
    REENTRANT_CALL = "reentrant_call"
    VENUE_EXECUTION_FAILED = "venue_execution_failed"


class DexError(Exception):
    """Base class for all engine failures."""

    kind: ErrorKind

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.value)


class InvalidInput(DexError):
    """Raised for malformed or out-of-range arguments (zero amount, fee above cap, bad limit)."""
    kind = ErrorKind.INVALID_INPUT


class Unauthorized(DexError):
    """Raised when the sender lacks the administrative or updater role.

    Attributes
    ----------
    sender : str | None
        The principal that attempted the call.
    """
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "", *, sender: Optional[str] = None) -> None:
        super().__init__(message)
        self.sender = sender


class NotFound(DexError):
    """Raised on reference to an unregistered venue, pool or token."""
    kind = ErrorKind.NOT_FOUND


class UnsupportedSource(DexError):
    """Raised when a venue is inactive, unknown, or of an unknown protocol variant."""
    kind = ErrorKind.UNSUPPORTED_SOURCE


class DeadlineExpired(DexError):
    kind = ErrorKind.DEADLINE_EXPIRED

    def __init__(self, deadline: int, now: int) -> None:
        super().__init__(f"deadline={deadline} is before now={now}")
        self.deadline = deadline
        self.now = now


class SlippageExceeded(DexError):
    """Raised when measured swap output is below the caller's minimum.

    Attributes
    ----------
    min_amount_out : int
        The caller-supplied floor.
    amount_out : int
        Output measured by custody balance delta.
    """
    kind = ErrorKind.SLIPPAGE_EXCEEDED

    def __init__(self, min_amount_out: int, amount_out: int) -> None:
        super().__init__(f"amount_out={amount_out} below min_amount_out={min_amount_out}")
        self.min_amount_out = min_amount_out
        self.amount_out = amount_out


class TransferFailed(DexError):
    """Raised when the asset-transfer capability rejects a movement of value."""
    kind = ErrorKind.TRANSFER_FAILED


class ArithmeticOverflow(DexError):
    """Raised when fixed-point arithmetic leaves the unsigned 256-bit range."""
    kind = ErrorKind.ARITHMETIC_OVERFLOW


class ReentrantCall(DexError):
    """Raised on a nested swap while one is already in flight on the same thread."""
    kind = ErrorKind.REENTRANT_CALL


class VenueExecutionError(DexError):
    """Raised when a venue's swap path fails with a foreign exception.

    The underlying exception is chained as ``__cause__``.
    """
    kind = ErrorKind.VENUE_EXECUTION_FAILED

    def __init__(self, venue_id: str, message: str = "") -> None:
        super().__init__(f"venue {venue_id!r} failed: {message}" if message else f"venue {venue_id!r} failed")
        self.venue_id = venue_id
