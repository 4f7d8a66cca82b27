"""
Integration tests for concurrent access to the engine.

Many threads bid on the same auction; the engine must keep exactly one
leader and account for every displaced bid exactly once.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from auctionhouse.core.clock import ManualClock
from auctionhouse.core.engine import AuctionEngine
from auctionhouse.core.errors import BidTooLowError
from auctionhouse.core.state import AuctionOutcome, BalanceKind
from auctionhouse.core.storage import StorageManager

SELLER = "0xseller"
BIDDERS = [f"0xbidder{i}" for i in range(8)]


def hammer(engine, auction_id, bids_per_bidder=50):
    """Every bidder submits increasing amounts; returns accepted (bidder, amount)."""
    accepted = []
    accepted_lock = threading.Lock()
    start = threading.Barrier(len(BIDDERS))

    def run(index, bidder):
        start.wait()
        for step in range(bids_per_bidder):
            amount = step * len(BIDDERS) + index + 1
            try:
                engine.bid(auction_id, bidder, amount)
            except BidTooLowError:
                continue
            with accepted_lock:
                accepted.append((bidder, amount))

    with ThreadPoolExecutor(max_workers=len(BIDDERS)) as pool:
        futures = [pool.submit(run, i, b) for i, b in enumerate(BIDDERS)]
        for future in futures:
            future.result()

    return accepted


@pytest.mark.parametrize("persistent", [False, True])
def test_concurrent_bids_keep_ledger_consistent(tmp_path, persistent):
    clock = ManualClock(start=0)
    storage = StorageManager(data_dir=tmp_path) if persistent else None
    engine = AuctionEngine(clock=clock, storage_manager=storage)
    auction_id = engine.create(SELLER, 3600, 0, "Contested")

    accepted = hammer(engine, auction_id)
    auction = engine.get_auction(auction_id)

    assert accepted
    assert auction.highest_bid == max(amount for _, amount in accepted)
    leader_bids = [(b, a) for b, a in accepted if a == auction.highest_bid]
    assert leader_bids == [(auction.highest_bidder, auction.highest_bid)]

    # All accepted bids except the leading one are refundable, exactly once
    total_refunds = sum(
        engine.refund_of(auction_id, bidder) for bidder in BIDDERS
    )
    assert total_refunds == sum(a for _, a in accepted) - auction.highest_bid

    clock.advance(3600)
    assert engine.end(auction_id) == AuctionOutcome.WON
    assert engine.proceeds_of(auction_id, SELLER) == auction.highest_bid
    engine.close()


def test_concurrent_withdrawals_pay_once():
    clock = ManualClock(start=0)
    engine = AuctionEngine(clock=clock)
    auction_id = engine.create(SELLER, 60, 0, "Item")
    engine.bid(auction_id, BIDDERS[0], 10)
    engine.bid(auction_id, BIDDERS[1], 20)

    results = []

    def attempt():
        try:
            results.append(engine.withdraw(auction_id, BIDDERS[0]))
        except Exception as e:
            results.append(type(e).__name__)

    threads = [threading.Thread(target=attempt) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(10) == 1
    assert results.count("NothingToWithdrawError") == 15
    assert len(engine.payouts()) == 1


def test_concurrent_withdrawals_across_auctions_get_unique_payout_ids():
    clock = ManualClock(start=0)
    engine = AuctionEngine(clock=clock)
    ids = [engine.create(SELLER, 60, 0, f"Item {i}") for i in range(20)]
    for auction_id in ids:
        engine.bid(auction_id, BIDDERS[0], 1)
        engine.bid(auction_id, BIDDERS[1], 2)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda auction_id: engine.withdraw(auction_id, BIDDERS[0]), ids))

    payout_ids = [p.payout_id for p in engine.payouts()]
    assert sorted(payout_ids) == list(range(1, 21))
    assert engine.ledger.total_owed() == 0
    assert all(
        engine.ledger.balance(a, BIDDERS[0], BalanceKind.REFUND) == 0 for a in ids
    )


def test_concurrent_creates_get_contiguous_ids():
    engine = AuctionEngine(clock=ManualClock(start=0))

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda i: engine.create(SELLER, 60, 0, f"Item {i}"), range(100)))

    assert sorted(ids) == list(range(1, 101))
    assert engine.auction_count() == 100
