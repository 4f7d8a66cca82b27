import sqlite3
import threading
from pathlib import Path
from typing import Iterable, List, Tuple

from auctionhouse.utils.logger import get_logger

logger = get_logger("storage.sqlite")


AUCTION_COLUMNS = (
    "auction_id, seller, title, uri, created_at, end_time, reserve_price, "
    "highest_bidder, highest_bid, settled, canceled, proceeds_withdrawn"
)

PAYOUT_COLUMNS = "payout_id, auction_id, recipient, amount, kind, status, created_at"


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    Provides:
    1. Auction records keyed by id (rows are never deleted).
    2. Balance ledger keyed by (auction id, account, kind).
    3. Payout journal keyed by payout id.

    Amounts are uint256-sized, beyond SQLite's 64-bit INTEGER, so they are
    stored as decimal TEXT.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            # WAL lets readers proceed while a writer commits
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auctions (
                    auction_id INTEGER PRIMARY KEY,
                    seller TEXT NOT NULL,
                    title TEXT NOT NULL,
                    uri TEXT NOT NULL DEFAULT '',
                    created_at INTEGER NOT NULL,
                    end_time INTEGER NOT NULL,
                    reserve_price TEXT NOT NULL,
                    highest_bidder TEXT,
                    highest_bid TEXT NOT NULL DEFAULT '0',
                    settled INTEGER NOT NULL DEFAULT 0,
                    canceled INTEGER NOT NULL DEFAULT 0,
                    proceeds_withdrawn INTEGER NOT NULL DEFAULT 0
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS balances (
                    auction_id INTEGER NOT NULL,
                    account TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    PRIMARY KEY (auction_id, account, kind)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS payouts (
                    payout_id INTEGER PRIMARY KEY,
                    auction_id INTEGER NOT NULL,
                    recipient TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at INTEGER NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_payout_status ON payouts(status);")

    # =========================================================================
    # Reads
    # =========================================================================

    def get_all_auction_rows(self) -> List[tuple]:
        """All auctions ordered by id."""
        conn = self._get_conn()
        cursor = conn.execute(f"SELECT {AUCTION_COLUMNS} FROM auctions ORDER BY auction_id ASC")
        return [tuple(row) for row in cursor]

    def get_all_balances(self) -> List[Tuple[int, str, str, int]]:
        """All (auction_id, account, kind, amount) rows."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT auction_id, account, kind, amount FROM balances")
        return [(row['auction_id'], row['account'], row['kind'], int(row['amount'])) for row in cursor]

    def get_all_payout_rows(self) -> List[tuple]:
        conn = self._get_conn()
        cursor = conn.execute(f"SELECT {PAYOUT_COLUMNS} FROM payouts ORDER BY payout_id ASC")
        return [tuple(row) for row in cursor]

    # =========================================================================
    # Atomic write
    # =========================================================================

    def write_mutation(
        self,
        auction_rows: Iterable[tuple],
        balance_rows: Iterable[Tuple[int, str, str, int]],
        payout_rows: Iterable[tuple],
    ):
        """
        Atomically write the result of one engine operation.

        Args:
            auction_rows: Full auction rows (AUCTION_COLUMNS order) to upsert
            balance_rows: (auction_id, account, kind, amount); amount 0 deletes
            payout_rows: Full payout rows (PAYOUT_COLUMNS order) to upsert
        """
        conn = self._get_conn()
        with conn:
            for row in auction_rows:
                conn.execute(
                    f"INSERT OR REPLACE INTO auctions ({AUCTION_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    row
                )

            for auction_id, account, kind, amount in balance_rows:
                if amount == 0:
                    conn.execute(
                        "DELETE FROM balances WHERE auction_id = ? AND account = ? AND kind = ?",
                        (auction_id, account, kind)
                    )
                else:
                    conn.execute(
                        "INSERT OR REPLACE INTO balances (auction_id, account, kind, amount) VALUES (?, ?, ?, ?)",
                        (auction_id, account, kind, str(amount))
                    )

            for row in payout_rows:
                conn.execute(
                    f"INSERT OR REPLACE INTO payouts ({PAYOUT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    row
                )

    def close(self):
        """Close the connection owned by the calling thread."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn
