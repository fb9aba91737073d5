"""Mini README: Catalogue of deposit channels accepted by the ledger.

Structure:
    * PaymentMethod - channel identifier with an optional settlement address.
    * PaymentMethodCatalogue - case-insensitive lookup of recognised methods.
    * DEFAULT_CATALOGUE - crypto wallets plus manually reviewed channels.

Crypto methods return a wallet address the depositor sends funds to; the
remaining methods have no address and are settled by an operator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


@dataclass(slots=True, frozen=True)
class PaymentMethod:
    """Deposit channel; methods without an address are settled by an operator."""

    code: str
    address: Optional[str] = None


class PaymentMethodCatalogue:
    """Resolve method identifiers supplied by clients."""

    def __init__(self, methods: Iterable[PaymentMethod]) -> None:
        """Index methods by upper-cased code, rejecting duplicates."""

        self._methods: Dict[str, PaymentMethod] = {}
        for method in methods:
            key = method.code.upper()
            if key in self._methods:
                raise ValueError(f"Payment method {method.code} registered twice.")
            self._methods[key] = method

    def get(self, code: str) -> Optional[PaymentMethod]:
        """Match ``code`` ignoring case and surrounding whitespace."""

        if not isinstance(code, str):
            return None
        return self._methods.get(code.strip().upper())

    def codes(self) -> List[str]:
        """Accepted method identifiers, used when rejecting unknown ones."""

        return sorted(self._methods)


DEFAULT_CATALOGUE = PaymentMethodCatalogue(
    [
        PaymentMethod("BTC", "35DrUNecGXnuhQvizUTxYD42WN9PqcHUHz"),
        PaymentMethod("ETH", "0x86a2fda85b8978cd747c28ba7f5bdb5e855c7db0"),
        PaymentMethod("USDT", "TZ3jxLmbSEDKHLcEgw5uwM9kqUiSHj9njD"),
        PaymentMethod("BANK_TRANSFER"),
        PaymentMethod("CARD"),
    ]
)
