"""
Predecessor Locator - where does a vault sit in the remote sorted list?

The vaults contract keeps one ascending singly-linked list per denomination,
ordered by risk index. Every mutation that moves a vault (open, grow, shrink,
close) must hand the contract the key of the node right before the affected
position, so the contract can splice in O(1). This module finds that key.

Design:
- The list is never downloaded in full: it is walked forward in pages of
  PAGE_SIZE through a ListReader, keeping only the running answer and the
  page anchor (last node seen) between fetches.
- Ties (equal index) are resolved by the order the contract physically keeps;
  a target equal to an existing cluster lands after the whole cluster.
- The vault being moved still occupies its old slot during the search, so its
  own node is never chosen as its own predecessor.
- Stateless: every call re-reads fresh state. No retries and no cache here;
  reader failures propagate and abort the call.
- The answer is a hint. The contract re-validates it and rejects stale keys.

Designed for: fxdao vaults client
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .models import ListHead, Vault, VaultKey
from .protocol import PROTOCOL, Denomination

logger = logging.getLogger("fxdao.locator")


class ListReader(ABC):
    """
    Read-only window over the remote sorted list.

    Implementations own transport, retries and timeouts. The locator only
    ever awaits these three calls, strictly one at a time.
    """

    @abstractmethod
    async def get_head(self, denomination: Denomination) -> ListHead:
        """Aggregate metadata for one denomination, including the lowest key."""

    @abstractmethod
    async def get_node(self, account: str, denomination: Denomination) -> Vault:
        """One vault by owner. Raises NotFound if it does not exist."""

    @abstractmethod
    async def get_page(
        self,
        after_key: Optional[VaultKey],
        denomination: Denomination,
        page_size: int,
    ) -> Sequence[Vault]:
        """
        Up to page_size vaults strictly after after_key (from the head when
        None), in list order. A short page means the list is exhausted.
        """


async def locate(
    target: int,
    account: str,
    denomination: Denomination,
    exclude_self: bool,
    reader: ListReader,
    page_size: int = PROTOCOL.PAGE_SIZE,
) -> Optional[VaultKey]:
    """
    Find the key that must precede a vault with index `target`.

    Args:
        target: Index being placed (new index) or looked up (current index)
        account: Owner of the vault being inserted/updated/removed ("self")
        denomination: Which list to search
        exclude_self: False when locating self's *current* predecessor (a
            node whose next is self ends the search); True when locating where
            self will land after a change
        reader: Source of list state
        page_size: Nodes requested per page

    Returns:
        The predecessor's key, or None when the vault is (or becomes) the head.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1 (got {page_size})")

    head = await reader.get_head(denomination)
    lowest = head.lowest_key

    # Empty list, or target sorts before the current head
    if lowest is None or lowest.index > target:
        logger.debug(f"locate({denomination.value}, {target}): new head")
        return None

    if lowest.belongs_to(account):
        # Self already is the head at this index and stays there
        if lowest.index == target:
            logger.debug(f"locate({denomination.value}, {target}): {account[:10]}... stays head")
            return None
    else:
        lowest_vault = await reader.get_node(lowest.account, denomination)
        if _ends_search(lowest_vault, target, account, exclude_self):
            logger.debug(f"locate({denomination.value}, {target}): prev is head")
            return lowest

    answer: Optional[VaultKey] = None if lowest.belongs_to(account) else lowest
    anchor: VaultKey = lowest
    pages = 0

    while True:
        page = await reader.get_page(anchor, denomination, page_size)
        pages += 1
        found = False
        advanced = False

        for vault in page:
            # Some nodes echo the anchor back; it was already considered
            if vault.belongs_to(anchor.account):
                continue
            anchor = vault.key
            advanced = True

            # A vault can never be its own predecessor
            if vault.belongs_to(account):
                continue

            if vault.index <= target:
                answer = vault.key

            if _ends_search(vault, target, account, exclude_self):
                found = True
                break

        # A page with no new node cannot move the anchor forward
        if found or not advanced or len(page) < page_size:
            break

    logger.debug(
        f"locate({denomination.value}, {target}): "
        f"prev={answer.account[:10] + '...' if answer else None} after {pages} page(s)"
    )
    return answer


def _ends_search(vault: Vault, target: int, account: str, exclude_self: bool) -> bool:
    """True when nothing after `vault` can still sort at or before `target`."""
    next_key = vault.next_key
    if next_key is None or next_key.index > target:
        return True
    return not exclude_self and next_key.belongs_to(account)


async def find_prev_vault_key(
    reader: ListReader,
    account: str,
    denomination: Denomination,
    target_index: int,
    exclude_self: bool = True,
    page_size: int = PROTOCOL.PAGE_SIZE,
) -> Optional[VaultKey]:
    """Keyword-friendly wrapper used by the contract client."""
    return await locate(
        target=target_index,
        account=account,
        denomination=denomination,
        exclude_self=exclude_self,
        reader=reader,
        page_size=page_size,
    )
