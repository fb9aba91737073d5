"""Mini README: Salted password hashing for stored user credentials.

Structure:
    * PasswordHasher - derives and verifies scrypt hashes.

Hashes are stored as ``scrypt$<n>$<salt-hex>$<digest-hex>`` so the cost
parameter travels with the credential and can be raised later without
invalidating existing accounts.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

_SCHEME = "scrypt"
_BLOCK_SIZE = 8
_PARALLELISM = 1
_SALT_BYTES = 16
_KEY_LENGTH = 64


class PasswordHasher:
    """Hash and verify passwords with a per-credential random salt."""

    def __init__(self, cost: int = 2**14) -> None:
        """``cost`` is the scrypt n parameter applied to new hashes."""

        self.cost = cost

    def _derive(self, password: str, salt: bytes, cost: int) -> bytes:
        """Run scrypt with the fixed block size and parallelism."""

        return hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=cost,
            r=_BLOCK_SIZE,
            p=_PARALLELISM,
            maxmem=256 * _BLOCK_SIZE * (cost + _PARALLELISM + 2),
            dklen=_KEY_LENGTH,
        )

    def hash(self, password: str) -> str:
        """Return an encoded hash for ``password`` using a fresh salt."""

        salt = secrets.token_bytes(_SALT_BYTES)
        digest = self._derive(password, salt, self.cost)
        return f"{_SCHEME}${self.cost}${salt.hex()}${digest.hex()}"

    def verify(self, password: str, encoded: str) -> bool:
        """Check ``password`` against an encoded hash in constant time."""

        try:
            scheme, cost, salt_hex, digest_hex = encoded.split("$")
            if scheme != _SCHEME:
                return False
            expected = bytes.fromhex(digest_hex)
            candidate = self._derive(password, bytes.fromhex(salt_hex), int(cost))
        except ValueError:
            return False
        return hmac.compare_digest(candidate, expected)
