"""
Vault list data model.

Transient, possibly stale copies of what the vaults contract stores. The
contract owns the list; nothing here is ever written back.
"""

from dataclasses import dataclass, asdict
from typing import Optional

from .protocol import Denomination, parse_denomination


def same_account(a: str, b: str) -> bool:
    """EVM addresses are case-insensitive (checksum vs lower-case hex)."""
    return a.lower() == b.lower()


@dataclass(frozen=True)
class VaultKey:
    """Identifies one node. account + denomination is the real key; index is a cached sort key."""
    account: str
    denomination: Denomination
    index: int

    def belongs_to(self, account: str) -> bool:
        return same_account(self.account, account)

    def to_abi(self) -> tuple:
        return (self.account, self.denomination.value, self.index)

    def to_dict(self) -> dict:
        return {"account": self.account, "denomination": self.denomination.value, "index": str(self.index)}


@dataclass
class Vault:
    account: str
    denomination: Denomination
    index: int
    next_key: Optional[VaultKey]
    total_collateral: int
    total_debt: int

    @property
    def key(self) -> VaultKey:
        return VaultKey(account=self.account, denomination=self.denomination, index=self.index)

    def belongs_to(self, account: str) -> bool:
        return same_account(self.account, account)

    def to_dict(self) -> dict:
        return {
            "account": self.account,
            "denomination": self.denomination.value,
            "index": str(self.index),
            "next_key": optional_key_to_dict(self.next_key),
            "total_collateral": str(self.total_collateral),
            "total_debt": str(self.total_debt),
        }


@dataclass
class ListHead:
    """Per-currency metadata (the contract's VaultsInfo). lowest_key is None iff the list is empty."""
    denomination: Denomination
    lowest_key: Optional[VaultKey]
    total_vaults: int = 0
    total_collateral: int = 0
    total_debt: int = 0
    min_collateral_rate: int = 0
    min_debt_creation: int = 0
    opening_collateral_rate: int = 0

    @property
    def is_empty(self) -> bool:
        return self.lowest_key is None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["denomination"] = self.denomination.value
        data["lowest_key"] = optional_key_to_dict(self.lowest_key)
        # u128 values overflow JSON numbers in most consumers
        for name in ("total_collateral", "total_debt", "min_collateral_rate",
                     "min_debt_creation", "opening_collateral_rate"):
            data[name] = str(data[name])
        return data


# ============================================================
# ABI DECODING - raw tuples returned by web3 contract calls
# ============================================================

def optional_key_to_dict(key: Optional[VaultKey]) -> Optional[dict]:
    return key.to_dict() if key is not None else None


def optional_key_to_abi(key: Optional[VaultKey]) -> tuple:
    """OptionalVaultKey is encoded as (bool some, VaultKey key); None sends a zeroed key."""
    if key is None:
        return (False, ("0x" + "0" * 40, "", 0))
    return (True, key.to_abi())


def key_from_abi(raw) -> VaultKey:
    account, denomination, index = raw
    return VaultKey(account=account, denomination=parse_denomination(denomination), index=int(index))


def optional_key_from_abi(raw) -> Optional[VaultKey]:
    some, key = raw
    if not some:
        return None
    return key_from_abi(key)


def vault_from_abi(raw) -> Vault:
    account, denomination, index, next_key, total_collateral, total_debt = raw
    return Vault(
        account=account,
        denomination=parse_denomination(denomination),
        index=int(index),
        next_key=optional_key_from_abi(next_key),
        total_collateral=int(total_collateral),
        total_debt=int(total_debt),
    )


def list_head_from_abi(raw) -> ListHead:
    (
        denomination, lowest_key, min_col_rate, min_debt_creation,
        opening_col_rate, total_col, total_debt, total_vaults,
    ) = raw
    return ListHead(
        denomination=parse_denomination(denomination),
        lowest_key=optional_key_from_abi(lowest_key),
        total_vaults=int(total_vaults),
        total_collateral=int(total_col),
        total_debt=int(total_debt),
        min_collateral_rate=int(min_col_rate),
        min_debt_creation=int(min_debt_creation),
        opening_collateral_rate=int(opening_col_rate),
    )
