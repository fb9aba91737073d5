"""Mini README: Bookkeeping core of Ledgerdesk.

This package holds the ledger records, the payment method catalogue and the
``LedgerStore`` that registers users, records deposits, settles them and
keeps the message feed. The web interface receives a store instance; nothing
here depends on HTTP.
"""

from .errors import (
    AuthenticationError,
    DuplicateEmailError,
    LedgerError,
    LedgerValidationError,
    NotFoundError,
    StateConflictError,
)
from .models import (
    BalanceReconciliation,
    DepositResult,
    Message,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from .payment_methods import DEFAULT_CATALOGUE, PaymentMethod, PaymentMethodCatalogue
from .store import LedgerStore

__all__ = [
    "AuthenticationError",
    "BalanceReconciliation",
    "DEFAULT_CATALOGUE",
    "DepositResult",
    "DuplicateEmailError",
    "LedgerError",
    "LedgerStore",
    "LedgerValidationError",
    "Message",
    "NotFoundError",
    "PaymentMethod",
    "PaymentMethodCatalogue",
    "StateConflictError",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "User",
]
