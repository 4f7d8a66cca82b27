"""
Auction record and lifecycle states.

An auction is created once, accepts zero or more strictly increasing bids
while open, and is settled exactly once after its deadline. Settlement
either sells to the highest bidder (WON) or cancels the sale (NO_BIDS,
RESERVE_NOT_MET). Records are never deleted.
"""

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Optional


class AuctionStatus(IntEnum):
    """Observable state of an auction at a given time."""
    OPEN = 0          # Accepting bids
    ENDED = 1         # Deadline passed, awaiting settlement
    WON = 2           # Settled with a sale
    CANCELED = 3      # Settled without a sale


class AuctionOutcome(Enum):
    """Result of settling an auction."""
    WON = "Won"
    NO_BIDS = "NoBids"
    RESERVE_NOT_MET = "ReserveNotMet"


@dataclass
class Auction:
    """
    A single sale listing.

    Attributes:
        id: Sequential identifier, starting at 1
        seller: Identity of the creator
        title: Listing title (non-empty)
        uri: Optional link to item metadata
        created_at: Creation timestamp (Unix seconds)
        end_time: Deadline; no bid is accepted at or after it
        reserve_price: Minimum winning bid, checked only at settlement
        highest_bidder: Current leader, None until the first bid
        highest_bid: Current leading amount, 0 until the first bid
        settled: True once settlement has run
        canceled: True if settlement found no qualifying bid
        proceeds_withdrawn: True once the seller has withdrawn a won sale
    """
    id: int
    seller: str
    title: str
    uri: str
    created_at: int
    end_time: int
    reserve_price: int
    highest_bidder: Optional[str] = None
    highest_bid: int = 0
    settled: bool = False
    canceled: bool = False
    proceeds_withdrawn: bool = False

    @property
    def has_bids(self) -> bool:
        return self.highest_bidder is not None

    @property
    def reserve_met(self) -> bool:
        return self.has_bids and self.highest_bid >= self.reserve_price

    def is_open(self, now: int) -> bool:
        """True while bids may still be placed."""
        return not self.settled and now < self.end_time

    def status(self, now: int) -> AuctionStatus:
        if self.settled:
            return AuctionStatus.CANCELED if self.canceled else AuctionStatus.WON
        if now < self.end_time:
            return AuctionStatus.OPEN
        return AuctionStatus.ENDED

    def copy(self) -> "Auction":
        """Detached snapshot safe to hand to callers."""
        return replace(self)
