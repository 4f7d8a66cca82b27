"""Auction records and balance ledger"""
from auctionhouse.core.state.auction import Auction, AuctionOutcome, AuctionStatus
from auctionhouse.core.state.ledger import (
    BalanceKind,
    BalanceLedger,
    LedgerDelta,
    Payout,
    PayoutStatus,
)

__all__ = [
    "Auction",
    "AuctionOutcome",
    "AuctionStatus",
    "BalanceKind",
    "BalanceLedger",
    "LedgerDelta",
    "Payout",
    "PayoutStatus",
]
