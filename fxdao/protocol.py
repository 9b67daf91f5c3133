"""
FxDAO Vaults Protocol - Layer 0 (Fixed)

Constants the vaults contract computes with. The client must use the exact
same values: the contract recomputes every index and every splice, and a
one-unit divergence is enough to get a transaction rejected.

Designed for: fxdao vaults client
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final


class Denomination(Enum):
    USD = "USD"
    EUR = "EUR"


class UpdateVaultOperationType(Enum):
    """Mutations that move an existing vault inside the sorted list."""
    INCREASE_COLLATERAL = "increase_collateral"
    INCREASE_DEBT = "increase_debt"
    PAY_DEBT = "pay_debt"


class VaultsMethod(Enum):
    """Contract entry points the client knows how to call."""
    SET_CURRENCY_RATE = "set_currency_rate"
    GET_VAULT = "get_vault"
    GET_VAULTS = "get_vaults"
    GET_VAULTS_INFO = "get_vaults_info"
    CALCULATE_DEPOSIT_RATIO = "calculate_deposit_ratio"
    NEW_VAULT = "new_vault"
    INCREASE_COLLATERAL = "increase_collateral"
    INCREASE_DEBT = "increase_debt"
    PAY_DEBT = "pay_debt"
    REDEEM = "redeem"
    LIQUIDATE = "liquidate"


# ============================================================
# PROTOCOL CONSTANTS - mirror the contract, never tune locally
# ============================================================

@dataclass(frozen=True)
class VaultsProtocol:
    """Frozen dataclass = immutable at runtime."""

    # --- INDEX ---
    INDEX_SCALE: Final[int] = 1_000_000_000            # Fixed-point scale of the risk index (1e9)

    # --- LIST TRAVERSAL ---
    PAGE_SIZE: Final[int] = 15                          # Vaults per get_vaults page
    MAX_PAGE_SIZE: Final[int] = 100                     # Contract refuses bigger pages

    # --- RPC ---
    RPC_TIMEOUT_SECONDS: Final[int] = 30
    RPC_RETRIES: Final[int] = 2                         # Extra attempts after the first failure
    RPC_RETRY_BACKOFF_SECONDS: Final[float] = 0.5       # Doubles on every retry


PROTOCOL = VaultsProtocol()


def parse_denomination(value) -> Denomination:
    """Accept a Denomination or its symbol ("usd" and "USD" both work)."""
    if isinstance(value, Denomination):
        return value
    try:
        return Denomination(str(value).upper())
    except ValueError:
        known = ", ".join(d.value for d in Denomination)
        raise ValueError(f"Unknown denomination '{value}' (expected one of: {known})") from None
