"""
Presentation model for auction listings.

AuctionListing is what a front end shows for one auction: the record's
fields plus the status derived from the current time. Amounts stay in
base units; formatting happens at the edge.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auctionhouse.core.state.auction import Auction
from auctionhouse.utils.format import DEFAULT_DECIMALS, format_units, short, time_left


class AuctionListing(BaseModel):
    """One auction as surfaced to a presentation layer."""

    model_config = ConfigDict(frozen=True)

    id: int
    seller: str
    title: str
    uri: str
    end_time: int
    reserve_price: int
    highest_bidder: Optional[str] = None
    highest_bid: int = 0
    settled: bool = False
    canceled: bool = False
    status: str
    time_left: str

    @classmethod
    def from_auction(cls, auction: Auction, now: int) -> "AuctionListing":
        return cls(
            id=auction.id,
            seller=auction.seller,
            title=auction.title,
            uri=auction.uri,
            end_time=auction.end_time,
            reserve_price=auction.reserve_price,
            highest_bidder=auction.highest_bidder,
            highest_bid=auction.highest_bid,
            settled=auction.settled,
            canceled=auction.canceled,
            status=auction.status(now).name.lower(),
            time_left=time_left(auction.end_time, now),
        )

    def summary(self, decimals: int = DEFAULT_DECIMALS, symbol: str = "") -> str:
        """One-line human readable description."""
        unit = f" {symbol}" if symbol else ""
        leader = short(self.highest_bidder) if self.highest_bidder else "no bids"
        return (
            f"#{self.id} {self.title} [{self.status}] "
            f"seller={short(self.seller)} "
            f"highest={format_units(self.highest_bid, decimals)}{unit} ({leader}) "
            f"reserve={format_units(self.reserve_price, decimals)}{unit} "
            f"{self.time_left}"
        )
