"""
Ledger Exceptions

Typed errors raised by the account store and the ledger log. Caller errors
carry a machine-readable ``code``; ``LedgerInvariantError`` marks an internal
inconsistency and is never turned into a caller-facing result.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors"""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccountNotFoundError(LedgerError):
    """Raised when an account id is not provisioned"""

    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class InvalidTransactionError(LedgerError, ValueError):
    """Raised when a transaction request is malformed"""

    code = "INVALID_INPUT"

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class LimitExceededError(LedgerError):
    """Raised when a debit would push the balance below ``-limit``"""

    code = "LIMIT_EXCEEDED"

    def __init__(self, account_id: int, balance: int, amount: int, limit: int):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        self.limit = limit
        super().__init__(
            f"Debit of {amount} on account {account_id} exceeds limit "
            f"(balance={balance}, limit={limit})"
        )


class LedgerInvariantError(LedgerError, RuntimeError):
    """Raised on internal inconsistency; indicates a programming error"""

    code = "INVARIANT_VIOLATION"
