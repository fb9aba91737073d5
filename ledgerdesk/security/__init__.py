"""Mini README: Credential and session helpers for Ledgerdesk.

The ledger store relies on these to keep password hashes salted and slow to
brute force, and to make login tokens verifiable on later requests.
"""

from .passwords import PasswordHasher
from .sessions import Session, SessionRegistry

__all__ = ["PasswordHasher", "Session", "SessionRegistry"]
