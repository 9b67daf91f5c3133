"""
Update planning for existing vaults.

Given the vault as currently stored and a requested mutation, compute the
totals and index the vault will have afterwards. Pure: no I/O, so the
contract client can locate both splice points from one consistent plan.
"""

from dataclasses import dataclass

from .errors import INSUFFICIENT_DEBT_CODE, VaultsError
from .models import Vault
from .protocol import UpdateVaultOperationType
from .vault_index import compute_index


@dataclass(frozen=True)
class UpdatePlan:
    operation: UpdateVaultOperationType
    amount: int
    current: Vault
    new_collateral: int
    new_debt: int
    new_index: int
    removes_vault: bool = False    # Debt fully repaid: the node leaves the list


def plan_update(vault: Vault, operation, amount: int) -> UpdatePlan:
    """
    Apply `operation` with `amount` to a copy of `vault`'s totals.

    Paying the whole debt removes the vault from the list: its new index is
    0 and no landing position exists. Paying more than the debt is rejected
    here with the same code the contract would use.
    """
    operation = UpdateVaultOperationType(operation)
    if amount <= 0:
        raise ValueError(f"amount must be positive (got {amount})")

    collateral = vault.total_collateral
    debt = vault.total_debt

    if operation is UpdateVaultOperationType.INCREASE_COLLATERAL:
        collateral += amount
    elif operation is UpdateVaultOperationType.INCREASE_DEBT:
        debt += amount
    else:
        if amount > debt:
            raise VaultsError(code=INSUFFICIENT_DEBT_CODE)
        debt -= amount

    if debt == 0:
        return UpdatePlan(
            operation=operation,
            amount=amount,
            current=vault,
            new_collateral=collateral,
            new_debt=0,
            new_index=0,
            removes_vault=True,
        )

    return UpdatePlan(
        operation=operation,
        amount=amount,
        current=vault,
        new_collateral=collateral,
        new_debt=debt,
        new_index=compute_index(collateral, debt),
    )
