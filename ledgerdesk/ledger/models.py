"""Mini README: Records held by the ledger store.

Structure:
    * TransactionType / TransactionStatus - enums for transaction fields.
    * User, Transaction, Message - mutable dataclasses owned by the store.
    * DepositResult - what a depositor needs to settle a new deposit.
    * BalanceReconciliation - stored balance versus transaction history.

Monetary values are ``Decimal`` throughout; ``as_dict`` helpers convert them
to floats only at the JSON boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional


class TransactionType(str, Enum):
    """Kinds of ledger movement; only deposits exist today."""

    DEPOSIT = "deposit"


class TransactionStatus(str, Enum):
    """Settlement state of a transaction."""

    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


def format_amount(amount: Decimal) -> str:
    """Render an amount without exponent or trailing zeros (``50``, ``12.5``)."""

    return format(amount.normalize(), "f")


@dataclass(slots=True)
class User:
    """Registered account and its running balance."""

    id: int
    email: str
    username: str
    password_hash: str
    balance: Decimal
    is_active: bool
    verified_email: bool
    created_at: datetime
    opening_balance: Decimal = Decimal("0")

    def summary(self) -> Dict[str, object]:
        """Public view of the account, never including the password hash."""

        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "balance": float(self.balance),
            "isActive": self.is_active,
            "verified_email": self.verified_email,
        }


@dataclass(slots=True)
class Transaction:
    """A deposit request and its settlement status."""

    id: int
    user_id: int
    type: TransactionType
    method: str
    amount: Decimal
    status: TransactionStatus
    tx_id: str
    created_at: datetime
    credited: bool = False

    def as_dict(self) -> Dict[str, object]:
        """Export the transaction with JSON serialisable values."""

        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type.value,
            "method": self.method,
            "amount": float(self.amount),
            "status": self.status.value,
            "tx_id": self.tx_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(slots=True, frozen=True)
class Message:
    """A post in the public feed."""

    id: int
    user_id: int
    message: str
    created_at: datetime


@dataclass(slots=True, frozen=True)
class DepositResult:
    """Outcome of a deposit request returned to the depositor."""

    transaction: Transaction
    address: Optional[str]

    @property
    def message(self) -> str:
        """Settlement instructions, or a review notice for addressless methods."""

        amount = format_amount(self.transaction.amount)
        if self.address:
            return (
                f"Send ${amount} to this address: {self.address}\n"
                f"TX ID: {self.transaction.tx_id}"
            )
        return f"Deposit of ${amount} via {self.transaction.method} is being reviewed."

    def as_dict(self) -> Dict[str, object]:
        """Response body; address and reference only for addressed methods."""

        payload: Dict[str, object] = {"message": self.message}
        if self.address:
            payload["address"] = self.address
            payload["txId"] = self.transaction.tx_id
        return payload


@dataclass(slots=True, frozen=True)
class BalanceReconciliation:
    """Comparison of a stored balance with the balance implied by history."""

    user_id: int
    stored_balance: Decimal
    opening_balance: Decimal
    credited_total: Decimal

    @property
    def expected_balance(self) -> Decimal:
        """Opening balance plus every credited deposit."""

        return self.opening_balance + self.credited_total

    @property
    def discrepancy(self) -> Decimal:
        """Stored minus expected; zero when the books agree."""

        return self.stored_balance - self.expected_balance

    @property
    def balanced(self) -> bool:
        """Whether the stored balance matches the history."""

        return self.discrepancy == 0

    def as_dict(self) -> Dict[str, object]:
        """Export the reconciliation with camelCase keys for the API."""

        return {
            "userId": self.user_id,
            "storedBalance": float(self.stored_balance),
            "openingBalance": float(self.opening_balance),
            "creditedTotal": float(self.credited_total),
            "expectedBalance": float(self.expected_balance),
            "discrepancy": float(self.discrepancy),
            "balanced": self.balanced,
        }
