"""
Auction House

An English-auction engine modelled on an on-chain AuctionHouse contract:
- Sequential auctions with reserve price and deadline
- Strictly increasing bids with refund ledger for outbid bidders
- One-time settlement (won / no bids / reserve not met)
- Withdrawal of refunds and seller proceeds
"""

from auctionhouse.core.clock import Clock, ManualClock, SystemClock
from auctionhouse.core.config import AppConfig, EngineConfig, load_config
from auctionhouse.core.engine import AuctionEngine
from auctionhouse.core.errors import (
    AlreadySettledError,
    AuctionEndedError,
    AuctionError,
    BidTooLowError,
    ErrorKind,
    InvalidInputError,
    NothingToWithdrawError,
    NotFoundError,
    NotYetEndedError,
    SelfBidNotAllowedError,
)
from auctionhouse.core.state import (
    Auction,
    AuctionOutcome,
    AuctionStatus,
    BalanceKind,
    Payout,
    PayoutStatus,
)

__version__ = "0.1.0"

__all__ = [
    "AuctionEngine",
    "Auction",
    "AuctionOutcome",
    "AuctionStatus",
    "BalanceKind",
    "Payout",
    "PayoutStatus",
    "Clock",
    "ManualClock",
    "SystemClock",
    "AppConfig",
    "EngineConfig",
    "load_config",
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
