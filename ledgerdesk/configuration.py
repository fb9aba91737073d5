"""Mini README: Centralised configuration for the Ledgerdesk service.

Structure:
    * LedgerdeskSettings - Pydantic settings model read from the environment.
    * get_settings - cached accessor so validation runs once per process.

Usage:
    Every field can be overridden with a ``LEDGERDESK_`` prefixed environment
    variable or a ``.env`` file, e.g. ``LEDGERDESK_ADMIN_PASSWORD=...``.
    Tests build their own ``LedgerdeskSettings`` instances and pass them to
    the store and the application factory instead of patching the cache.
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerdeskSettings(BaseSettings):
    """Runtime configuration for the ledger service."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGERDESK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface the HTTP API binds to.",
    )
    interface_port: int = Field(
        8000,
        description="Port the HTTP API listens on.",
        ge=1,
        le=65535,
    )
    log_level: str = Field("INFO", description="Root logging level name.")
    session_ttl_minutes: int = Field(
        60 * 24,
        description="Lifetime of login session tokens before they must be reissued.",
        ge=1,
    )
    seed_admin: bool = Field(
        True,
        description="Create the administrator account when the store starts.",
    )
    admin_email: str = Field("admin@platform.com")
    admin_username: str = Field("Admin")
    admin_password: Optional[str] = Field(
        None,
        description=(
            "Password for the seeded administrator. Leave unset to seed the"
            " account with an unusable random password."
        ),
    )
    admin_opening_balance: Decimal = Field(Decimal("1000000"), ge=0)
    scrypt_cost: int = Field(
        2**14,
        description="scrypt CPU/memory cost parameter (n). Must be a power of two.",
        ge=2,
    )

    @field_validator("scrypt_cost")
    @classmethod
    def _power_of_two(cls, value: int) -> int:
        """scrypt rejects cost parameters that are not powers of two."""

        if value & (value - 1):
            raise ValueError("scrypt_cost must be a power of two")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        """Normalise level names so ``debug`` and ``DEBUG`` both work."""

        return value.strip().upper()


@lru_cache()
def get_settings() -> LedgerdeskSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return LedgerdeskSettings()
