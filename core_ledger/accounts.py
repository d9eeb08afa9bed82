"""
Account Store Module

Holds the authoritative balance and overdraft limit of every provisioned
account. Each account has its own re-entrant lock: reads and mutations on
one account never interleave, while different accounts proceed in parallel.

Accounts are created once from a fixed provisioning list and are never
deleted, so the account table itself is never resized after construction.
"""

from dataclasses import dataclass, replace
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Tuple
import threading

from .exceptions import (
    AccountNotFoundError, InvalidTransactionError,
    LimitExceededError, LedgerInvariantError
)


# (account id, overdraft limit) provisioned at process start
PROVISIONED_ACCOUNTS: Tuple[Tuple[int, int], ...] = (
    (1, 100000),
    (2, 80000),
    (3, 1000000),
    (4, 10000000),
    (5, 500000),
)


def validate_amount(amount) -> int:
    """Return ``amount`` if it is a positive integer, else raise"""
    # bool is an int subclass but never a valid amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidTransactionError("Amount must be an integer", field="amount")
    if amount <= 0:
        raise InvalidTransactionError("Amount must be positive", field="amount")
    return amount


@dataclass(frozen=True)
class Account:
    """
    Snapshot of an account

    ``balance`` may go negative, but never below ``-limit``.
    """
    id: int
    limit: int
    balance: int = 0

    def __post_init__(self):
        if self.limit < 0:
            raise ValueError("Overdraft limit cannot be negative")
        if self.balance < -self.limit:
            raise ValueError("Balance cannot be below the overdraft limit")

    @property
    def available(self) -> int:
        """Amount that can still be debited"""
        return self.balance + self.limit


class AccountStore:
    """
    Thread-safe table of accounts with atomic credit/debit operations
    """

    def __init__(self, accounts: Iterable[Account]):
        self._accounts: Dict[int, Account] = {}
        self._locks: Dict[int, threading.RLock] = {}

        for account in accounts:
            if account.id in self._accounts:
                raise ValueError(f"Account {account.id} provisioned twice")
            self._accounts[account.id] = account
            self._locks[account.id] = threading.RLock()

    @classmethod
    def from_provisioning(
        cls, entries: Iterable[Tuple[int, int]] = PROVISIONED_ACCOUNTS
    ) -> 'AccountStore':
        """Build a store from ``(account_id, limit)`` pairs, balances at zero"""
        return cls(Account(id=account_id, limit=limit) for account_id, limit in entries)

    def __contains__(self, account_id: int) -> bool:
        return account_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def account_ids(self) -> List[int]:
        return sorted(self._accounts)

    def _lock_for(self, account_id: int) -> threading.RLock:
        try:
            return self._locks[account_id]
        except KeyError:
            raise AccountNotFoundError(account_id) from None

    @contextmanager
    def locked(self, account_id: int) -> Iterator[None]:
        """
        Hold the account's lock for a block of operations

        Raises:
            AccountNotFoundError: If the account is not provisioned
        """
        with self._lock_for(account_id):
            yield

    def get(self, account_id: int) -> Account:
        """
        Get a consistent snapshot of an account

        Raises:
            AccountNotFoundError: If the account is not provisioned
        """
        with self._lock_for(account_id):
            return self._accounts[account_id]

    def apply_credit(self, account_id: int, amount: int) -> int:
        """
        Add ``amount`` to the account balance. Credits never fail on limit.

        Returns:
            The new balance
        """
        validate_amount(amount)
        with self._lock_for(account_id):
            account = self._accounts[account_id]
            return self._commit(account, account.balance + amount)

    def apply_debit(self, account_id: int, amount: int) -> int:
        """
        Subtract ``amount`` from the account balance if the overdraft limit allows it

        Returns:
            The new balance

        Raises:
            AccountNotFoundError: If the account is not provisioned
            LimitExceededError: If the debit would leave ``balance < -limit``;
                the balance is left untouched
        """
        validate_amount(amount)
        with self._lock_for(account_id):
            account = self._accounts[account_id]
            candidate = account.balance - amount
            if candidate < -account.limit:
                raise LimitExceededError(
                    account_id, account.balance, amount, account.limit
                )
            return self._commit(account, candidate)

    def _commit(self, account: Account, balance: int) -> int:
        """Store a new balance; caller must hold the account lock"""
        if balance < -account.limit:
            raise LedgerInvariantError(
                f"Refusing to commit balance {balance} below limit "
                f"{account.limit} on account {account.id}"
            )
        # Account.__post_init__ re-checks the invariant on the new snapshot
        self._accounts[account.id] = replace(account, balance=balance)
        return balance
