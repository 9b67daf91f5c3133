"""
Reusable builders for vault lists in unit / property tests.

* Accounts are deterministic hex addresses derived from a short name.
* `build_chain` links vaults in the order given; callers keep it sorted.
* `InMemoryListReader` serves the same contract the chain reader does:
  pages strictly after a key, in list order, short page at the end. It
  counts calls so tests can check the locator never over-reads.

Example
-------
>>> reader = InMemoryListReader(build_chain([(100, "A"), (200, "B")]))
"""

from __future__ import annotations

from typing import Optional

from fxdao.errors import NotFound
from fxdao.locator import ListReader
from fxdao.models import ListHead, Vault, VaultKey
from fxdao.protocol import Denomination

USD = Denomination.USD


def account(name: str) -> str:
    """Deterministic 20-byte hex address per name ("A" -> 0x4141...)."""
    return "0x" + (name.encode().hex() * 40)[:40]


def key_of(name: str, index: int, denomination: Denomination = USD) -> VaultKey:
    return VaultKey(account=account(name), denomination=denomination, index=index)


def build_chain(entries: list[tuple[int, str]], denomination: Denomination = USD) -> list[Vault]:
    """[(index, name), ...] in list order -> linked Vaults."""
    vaults = [
        Vault(
            account=account(name),
            denomination=denomination,
            index=index,
            next_key=None,
            total_collateral=index,
            total_debt=1_000_000_000,
        )
        for index, name in entries
    ]
    for current, following in zip(vaults, vaults[1:]):
        current.next_key = following.key
    return vaults


class InMemoryListReader(ListReader):
    def __init__(self, vaults: list[Vault], denomination: Denomination = USD):
        self.vaults = vaults
        self.denomination = denomination
        self.head_calls = 0
        self.node_calls = 0
        self.page_calls: list[Optional[VaultKey]] = []

    async def get_head(self, denomination: Denomination) -> ListHead:
        self.head_calls += 1
        lowest = self.vaults[0].key if self.vaults and denomination is self.denomination else None
        return ListHead(
            denomination=denomination,
            lowest_key=lowest,
            total_vaults=len(self.vaults) if lowest else 0,
        )

    async def get_node(self, account: str, denomination: Denomination) -> Vault:
        self.node_calls += 1
        for vault in self.vaults:
            if vault.belongs_to(account):
                return vault
        raise NotFound(code=50000)

    async def get_page(self, after_key, denomination, page_size):
        self.page_calls.append(after_key)
        if after_key is None:
            start = 0
        else:
            start = next(i for i, v in enumerate(self.vaults) if v.belongs_to(after_key.account)) + 1
        return self.vaults[start:start + page_size]
