"""
Balance Ledger - who is owed what, per auction.

Conceptual Background:
---------------------
Value never moves inside the engine. The ledger only records amounts
that external transfer machinery must pay out:

1. **Refunds**: an outbid bidder's previous bid, or the highest bid of
   an auction canceled for missing its reserve
2. **Proceeds**: the winning bid owed to the seller of a won auction

Two-Phase Payout:
----------------
A withdrawal drains ledger entries and records a PENDING payout
("authorize"). The transfer layer later confirms it (COMPLETED) or
reports that the transfer failed (FAILED), in which case the amount is
credited back so it can be withdrawn again.

All mutation is done on a working copy (LedgerDelta) that the engine
commits only after persistence succeeds.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from auctionhouse.utils.logger import get_logger

logger = get_logger("ledger")


# =============================================================================
# Types
# =============================================================================


class BalanceKind(Enum):
    """Reason a balance is owed."""
    REFUND = "refund"
    PROCEEDS = "proceeds"


class PayoutStatus(Enum):
    """State of an authorized transfer."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


BalanceKey = Tuple[int, str, BalanceKind]  # (auction_id, account, kind)


@dataclass
class Payout:
    """
    A withdrawal authorized by the engine, awaiting external transfer.

    Attributes:
        payout_id: Sequential identifier
        auction_id: Auction the funds belong to
        recipient: Identity to pay
        amount: Amount in base units
        kind: Which balance the amount was drained from
        status: Transfer state
        created_at: Authorization timestamp
    """
    payout_id: int
    auction_id: int
    recipient: str
    amount: int
    kind: BalanceKind
    status: PayoutStatus = PayoutStatus.PENDING
    created_at: int = 0

    def copy(self) -> "Payout":
        return replace(self)


@dataclass
class LedgerDelta:
    """
    Pending ledger changes produced by one engine operation.

    balances holds the new absolute value of every touched key
    (0 means the entry is removed).
    """
    balances: Dict[BalanceKey, int] = field(default_factory=dict)
    payouts: List[Payout] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.balances and not self.payouts


# =============================================================================
# Ledger
# =============================================================================


class BalanceLedger:
    """
    Refund and proceeds balances plus the payout journal.

    Not thread-safe on its own: the engine serializes access per auction
    and holds its own lock around commit().
    """

    def __init__(self):
        self._balances: Dict[BalanceKey, int] = {}
        self._payouts: Dict[int, Payout] = {}
        self._next_payout_id = 1

    # =========================================================================
    # Reads
    # =========================================================================

    def balance(self, auction_id: int, account: str, kind: BalanceKind) -> int:
        return self._balances.get((auction_id, account, kind), 0)

    def balances_for_auction(self, auction_id: int) -> Dict[Tuple[str, BalanceKind], int]:
        return {
            (account, kind): amount
            for (aid, account, kind), amount in self._balances.items()
            if aid == auction_id
        }

    def total_owed(self) -> int:
        return sum(self._balances.values())

    def get_payout(self, payout_id: int) -> Optional[Payout]:
        payout = self._payouts.get(payout_id)
        return payout.copy() if payout else None

    def payouts(self, status: Optional[PayoutStatus] = None) -> List[Payout]:
        return [
            p.copy()
            for p in sorted(self._payouts.values(), key=lambda p: p.payout_id)
            if status is None or p.status == status
        ]

    # =========================================================================
    # Delta construction (no mutation)
    # =========================================================================

    def credit(
        self,
        delta: LedgerDelta,
        auction_id: int,
        account: str,
        kind: BalanceKind,
        amount: int,
    ) -> None:
        """Add amount to an entry inside delta."""
        if amount < 0:
            raise ValueError(f"Cannot credit negative amount {amount}")
        key = (auction_id, account, kind)
        current = delta.balances.get(key, self._balances.get(key, 0))
        delta.balances[key] = current + amount

    def drain(
        self,
        delta: LedgerDelta,
        auction_id: int,
        account: str,
        kind: BalanceKind,
        now: int,
    ) -> int:
        """Zero an entry inside delta and authorize a payout for its full value."""
        key = (auction_id, account, kind)
        amount = delta.balances.get(key, self._balances.get(key, 0))
        if amount == 0:
            return 0

        delta.balances[key] = 0
        delta.payouts.append(Payout(
            payout_id=self._next_payout_id + len(delta.payouts),
            auction_id=auction_id,
            recipient=account,
            amount=amount,
            kind=kind,
            created_at=now,
        ))
        return amount

    def settle_payout(self, payout_id: int, status: PayoutStatus) -> LedgerDelta:
        """
        Build the delta that moves a PENDING payout to its final status.

        A FAILED payout re-credits its amount to the recipient.

        Raises:
            KeyError: Unknown payout
            ValueError: Payout already finalized or bad target status
        """
        payout = self._payouts[payout_id]
        if payout.status != PayoutStatus.PENDING:
            raise ValueError(f"Payout {payout_id} already {payout.status.value}")
        if status == PayoutStatus.PENDING:
            raise ValueError("Target status must be completed or failed")

        delta = LedgerDelta()
        delta.payouts.append(replace(payout, status=status))
        if status == PayoutStatus.FAILED:
            self.credit(delta, payout.auction_id, payout.recipient, payout.kind, payout.amount)
        return delta

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self, delta: LedgerDelta) -> None:
        """Apply a delta produced against the current state."""
        for key, amount in delta.balances.items():
            if amount < 0:
                raise ValueError(f"Balance for {key} would go negative")
            if amount == 0:
                self._balances.pop(key, None)
            else:
                self._balances[key] = amount

        for payout in delta.payouts:
            self._payouts[payout.payout_id] = payout.copy()
            self._next_payout_id = max(self._next_payout_id, payout.payout_id + 1)

        if not delta.is_empty():
            logger.debug(f"Ledger commit: {len(delta.balances)} balances, {len(delta.payouts)} payouts")

    def load(self, balances: Iterable[Tuple[int, str, str, int]], payouts: Iterable[Payout]) -> None:
        """Restore state read from storage."""
        for auction_id, account, kind, amount in balances:
            if amount > 0:
                self._balances[(auction_id, account, BalanceKind(kind))] = amount
        for payout in payouts:
            self._payouts[payout.payout_id] = payout
            self._next_payout_id = max(self._next_payout_id, payout.payout_id + 1)

    def stats(self) -> dict:
        return {
            "open_balances": len(self._balances),
            "total_owed": self.total_owed(),
            "pending_payouts": sum(1 for p in self._payouts.values() if p.status == PayoutStatus.PENDING),
            "completed_payouts": sum(1 for p in self._payouts.values() if p.status == PayoutStatus.COMPLETED),
            "failed_payouts": sum(1 for p in self._payouts.values() if p.status == PayoutStatus.FAILED),
        }
