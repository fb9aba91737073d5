"""Mini README: Exceptions raised by the ledger store.

Each error carries the HTTP status the interface layer should answer with,
so routes can translate failures without a lookup table of their own.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for expected ledger failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        """Keep the human readable message for the JSON error body."""

        super().__init__(message)
        self.message = message


class LedgerValidationError(LedgerError):
    """Missing or malformed input."""

    status_code = 400


class AuthenticationError(LedgerError):
    """Credentials or session token were not accepted."""

    status_code = 401

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class NotFoundError(LedgerError):
    """The referenced user or transaction does not exist."""

    status_code = 404


class DuplicateEmailError(LedgerError):
    """An account with this email is already registered."""

    status_code = 409

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


class StateConflictError(LedgerError):
    """A transaction cannot move to the requested status."""

    status_code = 409
