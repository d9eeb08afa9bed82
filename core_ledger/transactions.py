"""
Transaction Processing Module

Orchestrates credits and debits against the account store and the ledger
log. The balance mutation and the matching log append run under the
account's lock, so a statement read on the same account sees either both
or neither. Every request ends in a tagged result; caller errors never
escape as exceptions.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union
from enum import Enum

from .accounts import AccountStore, validate_amount
from .clock import Clock, SystemClock
from .exceptions import (
    AccountNotFoundError, InvalidTransactionError, LimitExceededError, LedgerError
)
from .ledger import LedgerLog, TransactionKind, TransactionRecord
from .logging_config import get_logger, log_action


DEFAULT_HISTORY_SIZE = 10
DEFAULT_DESCRIPTION_MAX_LENGTH = 10


class TransactionStatus(Enum):
    """Terminal states of a transaction request"""
    ACCEPTED = "accepted"
    LIMIT_EXCEEDED = "limit_exceeded"
    ACCOUNT_NOT_FOUND = "account_not_found"
    INVALID_INPUT = "invalid_input"


class StatementStatus(Enum):
    """Terminal states of a statement request"""
    FOUND = "found"
    ACCOUNT_NOT_FOUND = "account_not_found"


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of a transaction request"""
    status: TransactionStatus
    limit: Optional[int] = None
    balance: Optional[int] = None
    record: Optional[TransactionRecord] = None
    error: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == TransactionStatus.ACCEPTED


@dataclass(frozen=True)
class Statement:
    """Balance snapshot plus the most recent transactions, newest first"""
    account_id: int
    total: int
    limit: int
    taken_at: datetime
    transactions: Tuple[TransactionRecord, ...]


@dataclass(frozen=True)
class StatementResult:
    """Outcome of a statement request"""
    status: StatementStatus
    statement: Optional[Statement] = None

    @property
    def found(self) -> bool:
        return self.status == StatementStatus.FOUND


class TransactionService:
    """
    Applies validated transactions and produces account statements
    """

    def __init__(
        self,
        accounts: AccountStore,
        log: LedgerLog,
        clock: Optional[Clock] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        description_max_length: int = DEFAULT_DESCRIPTION_MAX_LENGTH
    ):
        self.accounts = accounts
        self.log = log
        self.clock = clock or SystemClock()
        self.history_size = history_size
        self.description_max_length = description_max_length
        self.logger = get_logger("core_ledger.transactions")

    def process_transaction(
        self,
        account_id: int,
        amount: int,
        kind: Union[TransactionKind, str],
        description: str
    ) -> TransactionResult:
        """
        Validate and apply a credit or debit

        Args:
            account_id: Target account
            amount: Positive integer amount
            kind: TransactionKind or its wire tag ("c" / "d")
            description: Free text, 1 to ``description_max_length`` characters

        Returns:
            TransactionResult; on acceptance it carries the post-transaction
            limit and balance and the appended record
        """
        try:
            kind = self._validate(amount, kind, description)
        except InvalidTransactionError as e:
            return self._reject(TransactionStatus.INVALID_INPUT, account_id, e)

        try:
            with self.accounts.locked(account_id):
                if kind == TransactionKind.CREDIT:
                    balance = self.accounts.apply_credit(account_id, amount)
                else:
                    balance = self.accounts.apply_debit(account_id, amount)

                limit = self.accounts.get(account_id).limit
                record = self.log.append(TransactionRecord(
                    account_id=account_id,
                    amount=amount,
                    kind=kind,
                    description=description,
                    created_at=self.clock.now()
                ))
        except AccountNotFoundError as e:
            return self._reject(TransactionStatus.ACCOUNT_NOT_FOUND, account_id, e)
        except LimitExceededError as e:
            return self._reject(TransactionStatus.LIMIT_EXCEEDED, account_id, e)

        log_action(
            self.logger, "info", f"Transaction accepted: {kind.name.lower()}",
            action="process_transaction", resource=f"account:{account_id}",
            extra={
                "sequence_id": record.sequence_id,
                "kind": kind.value,
                "amount": amount,
                "balance": balance,
                "limit": limit
            }
        )

        return TransactionResult(
            status=TransactionStatus.ACCEPTED,
            limit=limit,
            balance=balance,
            record=record
        )

    def statement(self, account_id: int) -> StatementResult:
        """
        Get the current balance and the most recent transactions of an account

        Balance and history are read under the account lock, so they always
        belong to the same point in the account's history.
        """
        try:
            with self.accounts.locked(account_id):
                account = self.accounts.get(account_id)
                transactions = tuple(self.log.recent(account_id, self.history_size))
        except AccountNotFoundError:
            return StatementResult(status=StatementStatus.ACCOUNT_NOT_FOUND)

        return StatementResult(
            status=StatementStatus.FOUND,
            statement=Statement(
                account_id=account_id,
                total=account.balance,
                limit=account.limit,
                taken_at=self.clock.now(),
                transactions=transactions
            )
        )

    def _validate(self, amount, kind, description) -> TransactionKind:
        validate_amount(amount)

        if not isinstance(kind, TransactionKind):
            try:
                kind = TransactionKind(kind)
            except ValueError:
                raise InvalidTransactionError(
                    f"Unknown transaction kind: {kind!r}", field="kind"
                ) from None

        if not isinstance(description, str):
            raise InvalidTransactionError("Description must be a string", field="description")
        if not 1 <= len(description) <= self.description_max_length:
            raise InvalidTransactionError(
                f"Description must have 1 to {self.description_max_length} characters",
                field="description"
            )

        return kind

    def _reject(self, status: TransactionStatus, account_id: int,
                error: LedgerError) -> TransactionResult:
        log_action(
            self.logger, "warning", f"Transaction rejected: {error.message}",
            action="process_transaction", resource=f"account:{account_id}",
            extra={"status": status.value, "code": error.code}
        )
        return TransactionResult(status=status, error=error.message)
