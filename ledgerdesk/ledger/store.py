"""Mini README: In-memory ledger store for users, deposits and messages.

Structure:
    * LedgerStore - owns every record and the operations that mutate them.

Bookkeeping rules enforced here:
    * new deposits start ``pending`` and wait for an approve/decline event;
    * a deposit's amount is added to the owner's balance exactly once, at
      the moment its status becomes ``successful``;
    * ``successful`` is terminal, so credited money is never withdrawn by a
      later status change.

Every mutating operation runs under a single re-entrant lock, making each
register/deposit/approve/freeze call atomic when the web server handles
requests on several threads. Password hashing happens outside the lock.
Records handed to callers are copies.
"""

from __future__ import annotations

import itertools
import math
import secrets
import threading
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional, Tuple

from ..configuration import LedgerdeskSettings, get_settings
from ..logging_utils import get_logger
from ..security import PasswordHasher, Session, SessionRegistry
from ..security.sessions import utc_now
from .errors import (
    AuthenticationError,
    DuplicateEmailError,
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
from .payment_methods import DEFAULT_CATALOGUE, PaymentMethodCatalogue

LOGGER = get_logger(__name__)

TX_REFERENCE_LENGTH = 20
MISSING_FIELDS = "All fields required"


def _normalise_email(email: str) -> str:
    """Canonical form used as the uniqueness key for emails."""

    return email.strip().lower()


def _require_text(*values: object) -> None:
    """Reject missing or whitespace-only text fields with one shared message."""

    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise LedgerValidationError(MISSING_FIELDS)


def _parse_amount(amount: object) -> Decimal:
    """Coerce a client supplied amount, rejecting anything not strictly positive."""

    if isinstance(amount, bool) or amount is None:
        raise LedgerValidationError("Invalid data")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise LedgerValidationError("Invalid data")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as error:
        raise LedgerValidationError("Invalid data") from error
    if not value.is_finite() or value <= 0:
        raise LedgerValidationError("Invalid data")
    return value


class LedgerStore:
    """Memory-resident ledger with atomic mutating operations."""

    def __init__(
        self,
        settings: Optional[LedgerdeskSettings] = None,
        *,
        catalogue: PaymentMethodCatalogue = DEFAULT_CATALOGUE,
        hasher: Optional[PasswordHasher] = None,
        sessions: Optional[SessionRegistry] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalogue = catalogue
        self._clock = clock
        self._hasher = hasher or PasswordHasher(cost=self.settings.scrypt_cost)
        if sessions is None:
            sessions = SessionRegistry(
                ttl=timedelta(minutes=self.settings.session_ttl_minutes), clock=clock
            )
        self._sessions = sessions
        self._lock = threading.RLock()
        # Verified against on unknown-email logins so both failures cost one scrypt run.
        self._decoy_hash = self._hasher.hash(secrets.token_hex(16))

        self._users: Dict[int, User] = {}
        self._users_by_email: Dict[str, int] = {}
        self._transactions: Dict[int, Transaction] = {}
        self._transactions_by_reference: Dict[str, int] = {}
        self._messages: List[Message] = []

        self._user_ids = itertools.count(1)
        self._transaction_ids = itertools.count(1)
        self._message_ids = itertools.count(1)

        if self.settings.seed_admin:
            self._seed_admin()
        LOGGER.debug("Ledger store initialised with %s users", len(self._users))

    def _seed_admin(self) -> None:
        """Create the administrator account if its email is not taken yet."""

        settings = self.settings
        if _normalise_email(settings.admin_email) in self._users_by_email:
            return
        password = settings.admin_password
        if not password:
            password = secrets.token_urlsafe(32)
            LOGGER.warning(
                "No administrator password configured; %s cannot log in.",
                settings.admin_email,
            )
        admin = self._insert_user(
            settings.admin_email, settings.admin_username, self._hasher.hash(password),
            balance=settings.admin_opening_balance,
        )
        admin.is_active = True
        admin.verified_email = True
        LOGGER.info("Seeded administrator account %s", admin.id)

    def _insert_user(
        self, email: str, username: str, password_hash: str, balance: Decimal = Decimal("0")
    ) -> User:
        """Store a new account record; callers hold the lock."""

        key = _normalise_email(email)
        user = User(
            id=next(self._user_ids),
            email=key,
            username=username.strip(),
            password_hash=password_hash,
            balance=balance,
            is_active=False,
            verified_email=False,
            created_at=self._clock(),
            opening_balance=balance,
        )
        self._users[user.id] = user
        self._users_by_email[key] = user.id
        return user

    def _user(self, user_id: int) -> User:
        """Look up a live record, raising ``NotFoundError`` when absent."""

        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _transaction(self, tx_id: str) -> Transaction:
        """Look up a transaction by its external reference."""

        identifier = self._transactions_by_reference.get(tx_id)
        if identifier is None:
            raise NotFoundError("Transaction not found")
        return self._transactions[identifier]

    def _next_reference(self) -> str:
        """Draw a random 20 character hex reference not used before."""

        while True:
            reference = secrets.token_hex(TX_REFERENCE_LENGTH // 2)
            if reference not in self._transactions_by_reference:
                return reference

    # Accounts -----------------------------------------------------------

    def register(self, email: str, username: str, password: str) -> User:
        """Create an inactive, unverified account with a zero balance."""

        _require_text(email, username, password)
        password_hash = self._hasher.hash(password)
        with self._lock:
            if _normalise_email(email) in self._users_by_email:
                raise DuplicateEmailError()
            user = self._insert_user(email, username, password_hash)
            LOGGER.info("Registered user %s", user.id)
            return replace(user)

    def authenticate(self, email: str, password: str) -> Tuple[Session, User]:
        """Check credentials and open a server-side session.

        Unknown emails and wrong passwords raise the same error so callers
        cannot probe which accounts exist.
        """

        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationError()
        with self._lock:
            user_id = self._users_by_email.get(_normalise_email(email))
            user = replace(self._users[user_id]) if user_id is not None else None
        stored_hash = user.password_hash if user is not None else self._decoy_hash
        if not self._hasher.verify(password, stored_hash) or user is None:
            LOGGER.warning("Rejected login attempt")
            raise AuthenticationError()
        session = self._sessions.issue(user.id)
        LOGGER.info("User %s logged in", user.id)
        return session, user

    def resolve_session(self, token: str) -> User:
        """Return the user owning ``token`` or raise if it is unknown or expired."""

        session = self._sessions.resolve(token) if token else None
        if session is None:
            raise AuthenticationError("Invalid or expired session")
        with self._lock:
            return replace(self._user(session.user_id))

    def logout(self, token: str) -> None:
        """Revoke ``token``; unknown or expired tokens are an authentication error."""

        if not token or not self._sessions.revoke(token):
            raise AuthenticationError("Invalid or expired session")

    def get_user(self, user_id: int) -> User:
        """Return a copy of the account or raise ``NotFoundError``."""

        with self._lock:
            return replace(self._user(user_id))

    def freeze(self, user_id: int) -> User:
        """Mark the account inactive."""

        return self._set_active(user_id, False)

    def unfreeze(self, user_id: int) -> User:
        """Mark the account active again."""

        return self._set_active(user_id, True)

    def _set_active(self, user_id: int, active: bool) -> User:
        """Flip the activity flag atomically and return the updated copy."""

        with self._lock:
            user = self._user(user_id)
            user.is_active = active
            LOGGER.info("User %s %s", user_id, "unfrozen" if active else "frozen")
            return replace(user)

    # Deposits -----------------------------------------------------------

    def deposit(self, user_id: int, method: str, amount: object) -> DepositResult:
        """Record a pending deposit and tell the depositor how to settle it.

        Input is validated before anything is stored; the balance is not
        touched until the deposit is approved.
        """

        value = _parse_amount(amount)
        payment_method = self.catalogue.get(method)
        if payment_method is None:
            accepted = ", ".join(self.catalogue.codes())
            raise LedgerValidationError(f"Unsupported payment method. Accepted: {accepted}")
        with self._lock:
            self._user(user_id)
            transaction = Transaction(
                id=next(self._transaction_ids),
                user_id=user_id,
                type=TransactionType.DEPOSIT,
                method=payment_method.code,
                amount=value,
                status=TransactionStatus.PENDING,
                tx_id=self._next_reference(),
                created_at=self._clock(),
            )
            self._transactions[transaction.id] = transaction
            self._transactions_by_reference[transaction.tx_id] = transaction.id
            LOGGER.info(
                "Deposit %s of %s via %s recorded for user %s",
                transaction.tx_id, value, payment_method.code, user_id,
            )
            return DepositResult(transaction=replace(transaction), address=payment_method.address)

    def approve_deposit(self, tx_id: str) -> Transaction:
        """Mark a deposit successful, crediting its owner exactly once."""

        with self._lock:
            transaction = self._transaction(tx_id)
            if transaction.status is TransactionStatus.SUCCESSFUL:
                LOGGER.info("Deposit %s already approved", tx_id)
                return replace(transaction)
            transaction.status = TransactionStatus.SUCCESSFUL
            self._credit(transaction)
            return replace(transaction)

    def decline_deposit(self, tx_id: str) -> Transaction:
        """Mark a pending deposit failed; approved deposits cannot be declined."""

        with self._lock:
            transaction = self._transaction(tx_id)
            if transaction.status is TransactionStatus.SUCCESSFUL:
                raise StateConflictError("Deposit already approved")
            if transaction.status is TransactionStatus.PENDING:
                transaction.status = TransactionStatus.FAILED
                LOGGER.info("Deposit %s declined", tx_id)
            return replace(transaction)

    def _credit(self, transaction: Transaction) -> None:
        """Add the amount to the owner's balance unless already credited."""

        if transaction.credited:
            return
        user = self._user(transaction.user_id)
        user.balance += transaction.amount
        transaction.credited = True
        LOGGER.info(
            "Credited %s to user %s for deposit %s",
            transaction.amount, user.id, transaction.tx_id,
        )

    def list_transactions(self, user_id: int) -> List[Transaction]:
        """Return the user's transactions, newest first."""

        with self._lock:
            owned = [replace(t) for t in self._transactions.values() if t.user_id == user_id]
        return sorted(owned, key=lambda t: (t.created_at, t.id), reverse=True)

    def reconcile(self, user_id: int) -> BalanceReconciliation:
        """Compare a stored balance with its opening balance plus credited deposits."""

        with self._lock:
            user = self._user(user_id)
            credited = sum(
                (t.amount for t in self._transactions.values()
                 if t.user_id == user_id and t.credited),
                Decimal("0"),
            )
            reconciliation = BalanceReconciliation(
                user_id=user_id,
                stored_balance=user.balance,
                opening_balance=user.opening_balance,
                credited_total=credited,
            )
        if not reconciliation.balanced:
            LOGGER.error(
                "Balance mismatch for user %s: discrepancy %s",
                user_id, reconciliation.discrepancy,
            )
        return reconciliation

    # Messages -----------------------------------------------------------

    def post_message(self, user_id: int, text: str) -> Message:
        """Append a non-blank message from an existing user to the feed."""

        _require_text(text)
        with self._lock:
            self._user(user_id)
            message = Message(
                id=next(self._message_ids),
                user_id=user_id,
                message=text,
                created_at=self._clock(),
            )
            self._messages.append(message)
            LOGGER.debug("User %s posted message %s", user_id, message.id)
            return message

    def list_messages(self) -> List[Tuple[Message, str]]:
        """Return the feed newest first, each message paired with its author's name."""

        with self._lock:
            feed = [(m, self._users[m.user_id].username) for m in self._messages]
        return sorted(feed, key=lambda entry: (entry[0].created_at, entry[0].id), reverse=True)
