"""
Vaults error taxonomy and the contract's error catalogue.

Local failures (zero debt, bad config) and remote failures (unreachable RPC,
reverted simulation) all derive from VaultsError so callers can catch one type.
Remote reverts carry a numeric code; parse_error() turns revert text back into
the matching exception.
"""

import re
from typing import Optional

VAULTS_ERRORS: dict[int, str] = {
    500: "There was an unexpected error, please contact support (Code: Vaults-500)",
    10000: "Core state has already been set (Code: Vaults-10000)",
    20000: "Vaults info has not started (Code: Vaults-20000)",
    20001: "There are no vaults (Code: Vaults-20001)",
    30000: "Invalid min debt amount (Code: Vaults-30000)",
    40000: "Opening collateral ratio is invalid (Code: Vaults-40000)",
    50000: "Vault doesn't exist (Code: Vaults-50000)",
    50001: "User already has a vault with this denomination (Code: Vaults-50001)",
    50002: "User vault index is invalid (Code: Vaults-50002)",
    50003: "User vault can't be liquidated (Code: Vaults-50003)",
    50004: "Invalid prev vault index (Code: Vaults-50004)",
    50005: "Prev vault cant be none (Code: Vaults-50005)",
    50006: "Prev vault doesn't exist (Code: Vaults-50006)",
    50007: "The next index of the prev vault is lower than the new vault index (Code: Vaults-50007)",
    50008: "The next index of the prev vault is invalid (Code: Vaults-50008)",
    50009: "Index provided is not the one saved (Code: Vaults-50009)",
    50010: "Next prev vault should be none (Code: Vaults-50010)",
    50011: "Not enough vaults to liquidate (Code: Vaults-50011)",
    60000: "Deposit amount is more than the total debt (Code: Vaults-60000)",
    70000: "Collateral rate is under the minimum allowed (Code: Vaults-70000)",
    80000: "Not enough funds to redeem (Code: Vaults-80000)",
    90000: "Currency is already created (Code: Vaults-90000)",
    90001: "Currency doesnt exist (Code: Vaults-90001)",
    90002: "Currency is inactive (Code: Vaults-90002)",
}

UNEXPECTED_ERROR_CODE = 500
VAULT_NOT_FOUND_CODE = 50000
INSUFFICIENT_DEBT_CODE = 60000

# Rejections caused by a prev key that no longer matches the live list.
STALE_KEY_CODES = frozenset(range(50004, 50011))

_CODE_PATTERNS = (
    re.compile(r"Vaults-(\d+)"),
    re.compile(r"Error\(Contract,\s*#(\d+)\)"),
    re.compile(r"\bcode[:=\s]+(\d{3,5})\b", re.IGNORECASE),
)


class VaultsError(Exception):
    """Base for every failure raised by the vaults client."""

    def __init__(self, message: str = "", code: Optional[int] = None):
        if not message and code is not None:
            message = VAULTS_ERRORS.get(code, VAULTS_ERRORS[UNEXPECTED_ERROR_CODE])
        super().__init__(message)
        self.code = code
        self.message = message


class DivisionByZero(VaultsError, ZeroDivisionError):
    """Risk index requested for a vault with zero debt."""


class RemoteUnavailable(VaultsError):
    """The RPC node could not be reached (after retries)."""


TransportError = RemoteUnavailable


class SimulationError(VaultsError):
    """The contract call reverted during simulation."""


class NotFound(SimulationError):
    """The requested vault does not exist."""


class StaleKeyRejected(SimulationError):
    """The contract rejected a prev key; re-locate against fresh state and retry."""


class ConfigError(VaultsError):
    """Missing or malformed client configuration."""


def extract_error_code(text: str) -> Optional[int]:
    """Find a catalogued contract error code inside revert text."""
    for pattern in _CODE_PATTERNS:
        for match in pattern.finditer(text):
            code = int(match.group(1))
            if code in VAULTS_ERRORS:
                return code
    return None


def parse_error(error) -> VaultsError:
    """
    Map a revert (exception or raw text) to the matching VaultsError subclass.

    Unknown reverts become a SimulationError carrying the original text, so
    nothing from the node is lost.
    """
    if isinstance(error, VaultsError):
        return error

    text = str(error) if error is not None else ""
    code = extract_error_code(text)

    if code is None:
        return SimulationError(text or VAULTS_ERRORS[UNEXPECTED_ERROR_CODE], code=UNEXPECTED_ERROR_CODE)
    if code == VAULT_NOT_FOUND_CODE:
        return NotFound(code=code)
    if code in STALE_KEY_CODES:
        return StaleKeyRejected(code=code)
    return SimulationError(code=code)
