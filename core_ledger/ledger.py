"""
Ledger Log Module

Append-only, ordered history of accepted transactions. Records are immutable
once appended and carry a sequence id that is unique across the whole log.
History is queried per account, most recent first.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterator, List, Optional
from enum import Enum
import itertools
import threading

from .exceptions import LedgerInvariantError


class TransactionKind(Enum):
    """Kinds of ledger transactions, valued by their wire tag"""
    CREDIT = "c"  # Increases the balance
    DEBIT = "d"   # Decreases the balance


@dataclass(frozen=True)
class TransactionRecord:
    """
    Accepted transaction

    ``amount`` is always a positive magnitude; ``kind`` gives the direction.
    ``sequence_id`` is None until the record is appended to a LedgerLog.
    """
    account_id: int
    amount: int
    kind: TransactionKind
    description: str
    created_at: datetime
    sequence_id: Optional[int] = None

    @property
    def signed_amount(self) -> int:
        return self.amount if self.kind == TransactionKind.CREDIT else -self.amount


class RecentTransactions:
    """
    Lazy most-recent-first view over one account's history

    Each iteration re-reads the log, so it reflects every append that
    happened before iteration started.
    """

    def __init__(self, log: 'LedgerLog', account_id: int, limit: int):
        self._log = log
        self._account_id = account_id
        self._limit = limit

    def __iter__(self) -> Iterator[TransactionRecord]:
        history, end = self._log._history_bounds(self._account_id)
        stop = max(end - self._limit, 0)
        for index in range(end - 1, stop - 1, -1):
            yield history[index]

    def __repr__(self) -> str:
        return f"RecentTransactions(account_id={self._account_id}, limit={self._limit})"


class LedgerLog:
    """
    Thread-safe append-only transaction log
    """

    def __init__(self):
        self._by_account: Dict[int, List[TransactionRecord]] = {}
        self._sequence = itertools.count(1)
        self._size = 0
        self._lock = threading.Lock()

    def append(self, record: TransactionRecord) -> TransactionRecord:
        """
        Assign the next sequence id and store the record

        Returns:
            The stored record, carrying its sequence id

        Raises:
            LedgerInvariantError: If the record was already appended
        """
        if record.sequence_id is not None:
            raise LedgerInvariantError(
                f"Transaction {record.sequence_id} is already in the log"
            )

        with self._lock:
            stored = replace(record, sequence_id=next(self._sequence))
            self._by_account.setdefault(record.account_id, []).append(stored)
            self._size += 1
        return stored

    def recent(self, account_id: int, limit: int) -> RecentTransactions:
        """
        Get up to ``limit`` records for an account, most recent first

        An account without transactions yields an empty sequence.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValueError("limit must be a non-negative integer")
        return RecentTransactions(self, account_id, limit)

    def count(self, account_id: Optional[int] = None) -> int:
        """Count records, for one account or for the whole log"""
        with self._lock:
            if account_id is None:
                return self._size
            return len(self._by_account.get(account_id, ()))

    def __len__(self) -> int:
        return self.count()

    def _history_bounds(self, account_id: int):
        # Lists only grow, so indices below the captured length stay valid
        with self._lock:
            history = self._by_account.get(account_id, [])
            return history, len(history)
