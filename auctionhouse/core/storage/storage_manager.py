from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from auctionhouse.core.state.auction import Auction
from auctionhouse.core.state.ledger import BalanceKind, LedgerDelta, Payout, PayoutStatus
from auctionhouse.core.storage.sqlite_adapter import SQLiteAdapter
from auctionhouse.utils.logger import get_logger

logger = get_logger("storage.manager")


def auction_to_row(auction: Auction) -> tuple:
    return (
        auction.id,
        auction.seller,
        auction.title,
        auction.uri,
        auction.created_at,
        auction.end_time,
        str(auction.reserve_price),
        auction.highest_bidder,
        str(auction.highest_bid),
        int(auction.settled),
        int(auction.canceled),
        int(auction.proceeds_withdrawn),
    )


def auction_from_row(row: tuple) -> Auction:
    (auction_id, seller, title, uri, created_at, end_time, reserve_price,
     highest_bidder, highest_bid, settled, canceled, proceeds_withdrawn) = row
    return Auction(
        id=auction_id,
        seller=seller,
        title=title,
        uri=uri,
        created_at=created_at,
        end_time=end_time,
        reserve_price=int(reserve_price),
        highest_bidder=highest_bidder,
        highest_bid=int(highest_bid),
        settled=bool(settled),
        canceled=bool(canceled),
        proceeds_withdrawn=bool(proceeds_withdrawn),
    )


def payout_to_row(payout: Payout) -> tuple:
    return (
        payout.payout_id,
        payout.auction_id,
        payout.recipient,
        str(payout.amount),
        payout.kind.value,
        payout.status.value,
        payout.created_at,
    )


def payout_from_row(row: tuple) -> Payout:
    payout_id, auction_id, recipient, amount, kind, status, created_at = row
    return Payout(
        payout_id=payout_id,
        auction_id=auction_id,
        recipient=recipient,
        amount=int(amount),
        kind=BalanceKind(kind),
        status=PayoutStatus(status),
        created_at=created_at,
    )


class StorageManager:
    """
    Manages persistent storage for the auction engine.

    Coordinates data persistence using SQLite adapter.
    Handles:
    - Auction records (indexed by id)
    - Refund / proceeds balances (keyed by auction id, account, kind)
    - Payout journal
    """

    def __init__(self, data_dir: Path, db_name: str = "auctionhouse.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # Engine Support
    # =========================================================================

    def persist_mutation(
        self,
        auctions: Iterable[Auction] = (),
        delta: Optional[LedgerDelta] = None,
    ):
        """Atomically persist changed auctions together with a ledger delta."""
        balance_rows = []
        payout_rows = []
        if delta is not None:
            balance_rows = [
                (auction_id, account, kind.value, amount)
                for (auction_id, account, kind), amount in delta.balances.items()
            ]
            payout_rows = [payout_to_row(p) for p in delta.payouts]

        self.adapter.write_mutation(
            [auction_to_row(a) for a in auctions],
            balance_rows,
            payout_rows,
        )

    def load_engine_state(self) -> Tuple[List[Auction], List[Tuple[int, str, str, int]], List[Payout]]:
        """
        Load full engine state.

        Returns:
            (auctions, balances, payouts)
            auctions: List[Auction] ordered by id
            balances: List[(auction_id, account, kind, amount)]
            payouts: List[Payout] ordered by id
        """
        auctions = [auction_from_row(r) for r in self.adapter.get_all_auction_rows()]
        balances = self.adapter.get_all_balances()
        payouts = [payout_from_row(r) for r in self.adapter.get_all_payout_rows()]
        return auctions, balances, payouts

    def close(self):
        self.adapter.close()
