"""
Auction Engine - English auctions with refund ledger and settlement.

Lifecycle:
---------
1. create: seller lists an item with a duration and reserve price
2. bid:    while open, any bid strictly above the current highest wins the
           lead; the displaced leader's bid becomes refundable
3. end:    once the deadline has passed, anyone settles the auction:
           - WON             highest bid >= reserve, seller is owed the bid
           - NO_BIDS         nobody bid, sale canceled
           - RESERVE_NOT_MET highest bid < reserve, sale canceled and the
                             highest bidder refunded
4. withdraw: bidders drain refunds, the seller drains proceeds

Consistency:
-----------
Each auction has its own lock; every mutation runs validate -> build
new record and ledger delta -> persist -> apply under that lock, so a
rejected or failed call leaves nothing behind. Ledger access is further
guarded by one engine-wide lock (payout ids are global). Lock order is
always auction lock, then ledger lock.

Time comes from an injected Clock; identities are trusted as given.
"""

import threading
from typing import Dict, List, Optional

from auctionhouse.core.clock import Clock, SystemClock
from auctionhouse.core.config import EngineConfig
from auctionhouse.core.errors import (
    AlreadySettledError,
    AuctionEndedError,
    BidTooLowError,
    InvalidInputError,
    NothingToWithdrawError,
    NotFoundError,
    NotYetEndedError,
    SelfBidNotAllowedError,
)
from auctionhouse.core.state.auction import Auction, AuctionOutcome, AuctionStatus
from auctionhouse.core.state.ledger import (
    BalanceKind,
    BalanceLedger,
    LedgerDelta,
    Payout,
    PayoutStatus,
)
from auctionhouse.core.storage.storage_manager import StorageManager
from auctionhouse.utils.format import short
from auctionhouse.utils.logger import get_logger
from auctionhouse.utils.validation import (
    MAX_AMOUNT,
    MAX_TIMESTAMP,
    validate_auction_params,
    validate_identity,
    validate_integer,
)

logger = get_logger("engine")


class AuctionEngine:
    """
    Owns all auctions and the balance ledger.

    Attributes:
        clock: Time source
        config: Policy settings
        ledger: Refund / proceeds balances and payout journal
        storage_manager: Persistence. None = in-memory only.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        config: Optional[EngineConfig] = None,
        storage_manager: Optional[StorageManager] = None,
    ):
        self.clock = clock or SystemClock()
        self.config = config or EngineConfig()
        self.ledger = BalanceLedger()
        self.storage_manager = storage_manager

        self._auctions: Dict[int, Auction] = {}
        self._locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()   # id allocation and lock table
        self._ledger_lock = threading.RLock()

        if storage_manager:
            self._load_from_storage()

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        seller: str,
        duration_seconds: int,
        reserve_price: int,
        title: str,
        uri: str = "",
    ) -> int:
        """
        List a new auction.

        Args:
            seller: Creator identity
            duration_seconds: Time until the deadline, > 0
            reserve_price: Minimum winning bid in base units
            title: Non-empty listing title
            uri: Optional metadata link

        Returns:
            The new auction id

        Raises:
            InvalidInputError: On a non-positive duration, empty title or
                malformed argument
        """
        valid, err = validate_auction_params(
            seller,
            duration_seconds,
            reserve_price,
            title,
            uri,
            max_duration=self.config.max_duration,
            max_title_length=self.config.max_title_length,
            max_uri_length=self.config.max_uri_length,
        )
        if not valid:
            logger.debug(f"Create rejected: {err}")
            raise InvalidInputError(err)

        with self._registry_lock:
            auction_id = len(self._auctions) + 1
            now = self.clock.now()
            if now + duration_seconds > MAX_TIMESTAMP:
                raise InvalidInputError(f"duration_seconds too large: end time would exceed {MAX_TIMESTAMP}")

            auction = Auction(
                id=auction_id,
                seller=seller,
                title=title,
                uri=uri,
                created_at=now,
                end_time=now + duration_seconds,
                reserve_price=reserve_price,
            )

            if self.storage_manager:
                self.storage_manager.persist_mutation([auction])

            self._auctions[auction_id] = auction
            self._locks[auction_id] = threading.Lock()

        logger.info(f"Auction {auction_id} created by {short(seller)}: "
                    f"'{title}', reserve={reserve_price}, ends at {auction.end_time}")
        return auction_id

    # =========================================================================
    # Bid
    # =========================================================================

    def bid(self, auction_id: int, bidder: str, amount: int) -> Auction:
        """
        Place a bid.

        The bid must be strictly above the current highest bid; the reserve
        price is not checked here. The previous leader's bid is credited to
        their refund balance in the same step.

        Returns:
            Snapshot of the auction after the bid

        Raises:
            NotFoundError: Unknown auction
            InvalidInputError: Empty bidder, non-integer or out-of-range amount
            AuctionEndedError: Deadline reached or already settled
            SelfBidNotAllowedError: Seller bidding while the policy forbids it
            BidTooLowError: amount <= current highest bid (including 0 and below)
        """
        # Zero and negative amounts fall through to the highest-bid check
        checks = (validate_identity(bidder, "bidder"), validate_integer(amount, "amount", -MAX_AMOUNT, MAX_AMOUNT))
        for valid, err in checks:
            if not valid:
                raise InvalidInputError(err, auction_id)

        with self._lock_for(auction_id):
            auction = self._auctions[auction_id]
            now = self.clock.now()

            if not auction.is_open(now):
                logger.debug(f"Bid on auction {auction_id} rejected: ended")
                raise AuctionEndedError(f"Auction {auction_id} has ended", auction_id)

            if not self.config.allow_seller_bids and bidder == auction.seller:
                raise SelfBidNotAllowedError(f"Seller cannot bid on auction {auction_id}", auction_id)

            if amount <= auction.highest_bid:
                logger.debug(f"Bid on auction {auction_id} rejected: {amount} <= {auction.highest_bid}")
                raise BidTooLowError(
                    f"Bid {amount} must exceed highest bid {auction.highest_bid}", auction_id
                )

            updated = auction.copy()
            updated.highest_bidder = bidder
            updated.highest_bid = amount

            with self._ledger_lock:
                delta = LedgerDelta()
                if auction.highest_bidder is not None:
                    self.ledger.credit(
                        delta, auction_id, auction.highest_bidder, BalanceKind.REFUND, auction.highest_bid
                    )
                self._commit([updated], delta)

        logger.info(f"Bid on auction {auction_id}: {short(bidder)} leads with {amount}")
        return updated.copy()

    # =========================================================================
    # Settlement
    # =========================================================================

    def end(self, auction_id: int, caller: Optional[str] = None) -> AuctionOutcome:
        """
        Settle an auction after its deadline.

        Any caller may settle. Settlement happens exactly once.

        Returns:
            WON, NO_BIDS or RESERVE_NOT_MET

        Raises:
            NotFoundError: Unknown auction
            AlreadySettledError: Settlement already ran
            NotYetEndedError: Deadline not reached
        """
        with self._lock_for(auction_id):
            auction = self._auctions[auction_id]
            now = self.clock.now()

            if auction.settled:
                raise AlreadySettledError(f"Auction {auction_id} already settled", auction_id)

            if now < auction.end_time:
                raise NotYetEndedError(
                    f"Auction {auction_id} ends in {auction.end_time - now}s", auction_id
                )

            updated = auction.copy()
            updated.settled = True

            with self._ledger_lock:
                delta = LedgerDelta()
                if not auction.has_bids:
                    outcome = AuctionOutcome.NO_BIDS
                    updated.canceled = True
                elif not auction.reserve_met:
                    outcome = AuctionOutcome.RESERVE_NOT_MET
                    updated.canceled = True
                    self.ledger.credit(
                        delta, auction_id, auction.highest_bidder, BalanceKind.REFUND, auction.highest_bid
                    )
                else:
                    outcome = AuctionOutcome.WON
                    self.ledger.credit(
                        delta, auction_id, auction.seller, BalanceKind.PROCEEDS, auction.highest_bid
                    )
                self._commit([updated], delta)

        logger.info(f"Auction {auction_id} settled by {short(caller) or 'anonymous'}: {outcome.value}"
                    f" (highest={auction.highest_bid}, reserve={auction.reserve_price})")
        return outcome

    # =========================================================================
    # Withdraw
    # =========================================================================

    def withdraw(self, auction_id: int, caller: str) -> int:
        """
        Withdraw everything the caller is owed on an auction.

        Drains the caller's refund balance and, for the seller of a won
        auction, the proceeds. Each drained balance is recorded as a
        PENDING payout for the transfer layer.

        Returns:
            Total amount authorized for transfer

        Raises:
            NotFoundError: Unknown auction
            InvalidInputError: Empty caller
            NothingToWithdrawError: Nothing is owed
        """
        valid, err = validate_identity(caller, "caller")
        if not valid:
            raise InvalidInputError(err, auction_id)

        with self._lock_for(auction_id):
            auction = self._auctions[auction_id]
            now = self.clock.now()
            changed: List[Auction] = []

            with self._ledger_lock:
                delta = LedgerDelta()
                total = self.ledger.drain(delta, auction_id, caller, BalanceKind.REFUND, now)

                if caller == auction.seller:
                    proceeds = self.ledger.drain(delta, auction_id, caller, BalanceKind.PROCEEDS, now)
                    if proceeds:
                        updated = auction.copy()
                        updated.proceeds_withdrawn = True
                        changed.append(updated)
                        total += proceeds

                if total == 0:
                    logger.debug(f"Withdraw on auction {auction_id} by {short(caller)}: nothing owed")
                    raise NothingToWithdrawError(
                        f"Nothing to withdraw for {caller} on auction {auction_id}", auction_id
                    )

                self._commit(changed, delta)

        logger.info(f"Withdrawal on auction {auction_id}: {total} authorized for {short(caller)}")
        return total

    # =========================================================================
    # Payouts (transfer phase)
    # =========================================================================

    def pending_payouts(self) -> List[Payout]:
        """Payouts authorized but not yet confirmed by the transfer layer."""
        with self._ledger_lock:
            return self.ledger.payouts(PayoutStatus.PENDING)

    def payouts(self) -> List[Payout]:
        with self._ledger_lock:
            return self.ledger.payouts()

    def get_payout(self, payout_id: int) -> Payout:
        with self._ledger_lock:
            payout = self.ledger.get_payout(payout_id)
        if payout is None:
            raise NotFoundError(f"Payout {payout_id} not found")
        return payout

    def confirm_payout(self, payout_id: int) -> Payout:
        """Mark a payout as transferred."""
        return self._finish_payout(payout_id, PayoutStatus.COMPLETED)

    def fail_payout(self, payout_id: int) -> Payout:
        """Mark a payout as failed and credit its amount back to the recipient."""
        payout = self._finish_payout(payout_id, PayoutStatus.FAILED)
        logger.warning(f"Payout {payout_id} failed: {payout.amount} re-credited to {short(payout.recipient)}")
        return payout

    def _finish_payout(self, payout_id: int, status: PayoutStatus) -> Payout:
        payout = self.get_payout(payout_id)
        auction_id = payout.auction_id

        with self._lock_for(auction_id):
            with self._ledger_lock:
                try:
                    delta = self.ledger.settle_payout(payout_id, status)
                except ValueError as e:
                    raise InvalidInputError(str(e), auction_id) from e

                changed: List[Auction] = []
                # Re-credited proceeds are owed again
                if status == PayoutStatus.FAILED and payout.kind == BalanceKind.PROCEEDS:
                    updated = self._auctions[auction_id].copy()
                    updated.proceeds_withdrawn = False
                    changed.append(updated)
                self._commit(changed, delta)

        logger.debug(f"Payout {payout_id} marked {status.value}")
        return self.get_payout(payout_id)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_auction(self, auction_id: int) -> Auction:
        """Snapshot of one auction."""
        with self._lock_for(auction_id):
            return self._auctions[auction_id].copy()

    def auction_count(self) -> int:
        with self._registry_lock:
            return len(self._auctions)

    def latest(self, limit: Optional[int] = None) -> List[Auction]:
        """Most recent auctions, newest first."""
        limit = self.config.latest_limit if limit is None else limit
        if limit <= 0:
            return []
        count = self.auction_count()
        start = max(1, count - limit + 1)
        return [self.get_auction(i) for i in range(count, start - 1, -1)]

    def status_of(self, auction_id: int) -> AuctionStatus:
        return self.get_auction(auction_id).status(self.clock.now())

    def refund_of(self, auction_id: int, identity: str) -> int:
        return self._balance(auction_id, identity, BalanceKind.REFUND)

    def proceeds_of(self, auction_id: int, identity: str) -> int:
        return self._balance(auction_id, identity, BalanceKind.PROCEEDS)

    def balance_of(self, auction_id: int, identity: str) -> int:
        """Everything withdraw() would currently pay this identity."""
        with self._lock_for(auction_id):
            with self._ledger_lock:
                return (
                    self.ledger.balance(auction_id, identity, BalanceKind.REFUND)
                    + self.ledger.balance(auction_id, identity, BalanceKind.PROCEEDS)
                )

    def _balance(self, auction_id: int, identity: str, kind: BalanceKind) -> int:
        with self._lock_for(auction_id):
            with self._ledger_lock:
                return self.ledger.balance(auction_id, identity, kind)

    # =========================================================================
    # Internals
    # =========================================================================

    def _lock_for(self, auction_id: int) -> threading.Lock:
        valid, err = validate_integer(auction_id, "auction_id", 0)
        if not valid:
            raise InvalidInputError(err)

        with self._registry_lock:
            lock = self._locks.get(auction_id)
        if lock is None:
            raise NotFoundError(f"Auction {auction_id} not found", auction_id)
        return lock

    def _commit(self, auctions: List[Auction], delta: LedgerDelta) -> None:
        """Persist, then apply. Caller holds the relevant auction and ledger locks."""
        if self.storage_manager:
            self.storage_manager.persist_mutation(auctions, delta)

        for auction in auctions:
            self._auctions[auction.id] = auction
        self.ledger.commit(delta)

    def _load_from_storage(self) -> None:
        auctions, balances, payouts = self.storage_manager.load_engine_state()

        for auction in auctions:
            self._auctions[auction.id] = auction
            self._locks[auction.id] = threading.Lock()

        expected = list(range(1, len(auctions) + 1))
        if sorted(self._auctions) != expected:
            raise RuntimeError("Stored auction ids are not contiguous from 1")

        self.ledger.load(balances, payouts)

        logger.info(f"Loaded engine state: {len(auctions)} auctions, "
                    f"{len(balances)} balances, {len(payouts)} payouts")

    def close(self) -> None:
        if self.storage_manager:
            self.storage_manager.close()

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return f"AuctionEngine(auctions={self.auction_count()}, persistent={self.storage_manager is not None})"

    def stats(self) -> dict:
        """Get engine statistics."""
        now = self.clock.now()
        with self._registry_lock:
            snapshot = list(self._auctions.values())
        by_status = {status.name.lower(): 0 for status in AuctionStatus}
        for auction in snapshot:
            by_status[auction.status(now).name.lower()] += 1
        with self._ledger_lock:
            ledger_stats = self.ledger.stats()
        return {
            "auction_count": len(snapshot),
            **by_status,
            **ledger_stats,
        }
