"""
Error kinds reported by the auction engine.

Every rejected operation raises exactly one AuctionError subclass and
leaves engine state untouched. Nothing is retried by the engine.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Kinds of engine failure."""
    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"
    AUCTION_ENDED = "AuctionEnded"
    BID_TOO_LOW = "BidTooLow"
    SELF_NOT_ALLOWED = "SelfNotAllowed"
    NOT_YET_ENDED = "NotYetEnded"
    ALREADY_SETTLED = "AlreadySettled"
    NOTHING_TO_WITHDRAW = "NothingToWithdraw"


class AuctionError(Exception):
    """Base class for all engine rejections."""

    kind: ErrorKind

    def __init__(self, message: str, auction_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.auction_id = auction_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value}, auction_id={self.auction_id}, message={self.message!r})"


class InvalidInputError(AuctionError, ValueError):
    kind = ErrorKind.INVALID_INPUT


class NotFoundError(AuctionError, LookupError):
    kind = ErrorKind.NOT_FOUND


class AuctionEndedError(AuctionError):
    kind = ErrorKind.AUCTION_ENDED


class BidTooLowError(AuctionError):
    kind = ErrorKind.BID_TOO_LOW


class SelfBidNotAllowedError(AuctionError):
    kind = ErrorKind.SELF_NOT_ALLOWED


class NotYetEndedError(AuctionError):
    kind = ErrorKind.NOT_YET_ENDED


class AlreadySettledError(AuctionError):
    kind = ErrorKind.ALREADY_SETTLED


class NothingToWithdrawError(AuctionError):
    kind = ErrorKind.NOTHING_TO_WITHDRAW


__all__ = [
    "ErrorKind",
    "AuctionError",
    "InvalidInputError",
    "NotFoundError",
    "AuctionEndedError",
    "BidTooLowError",
    "SelfBidNotAllowedError",
    "NotYetEndedError",
    "AlreadySettledError",
    "NothingToWithdrawError",
]
