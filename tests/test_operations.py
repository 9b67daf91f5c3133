import pytest

from fxdao.errors import VaultsError
from fxdao.models import Vault
from fxdao.operations import plan_update
from fxdao.protocol import UpdateVaultOperationType
from tests.helpers.factories import USD, account


def make_vault(collateral=30_000_000_000, debt=10_000_000_000) -> Vault:
    return Vault(
        account=account("V"),
        denomination=USD,
        index=collateral * 1_000_000_000 // debt,
        next_key=None,
        total_collateral=collateral,
        total_debt=debt,
    )


def test_increase_collateral_raises_index():
    plan = plan_update(make_vault(), "increase_collateral", 10_000_000_000)
    assert plan.operation is UpdateVaultOperationType.INCREASE_COLLATERAL
    assert plan.new_collateral == 40_000_000_000
    assert plan.new_debt == 10_000_000_000
    assert plan.new_index == 4_000_000_000
    assert not plan.removes_vault


def test_increase_debt_lowers_index():
    plan = plan_update(make_vault(), UpdateVaultOperationType.INCREASE_DEBT, 5_000_000_000)
    assert plan.new_debt == 15_000_000_000
    assert plan.new_index == 2_000_000_000


def test_partial_repayment():
    plan = plan_update(make_vault(), "pay_debt", 4_000_000_000)
    assert plan.new_debt == 6_000_000_000
    assert plan.new_index == 30_000_000_000 * 1_000_000_000 // 6_000_000_000


def test_full_repayment_removes_vault():
    vault = make_vault()
    plan = plan_update(vault, "pay_debt", vault.total_debt)
    assert plan.removes_vault
    assert plan.new_debt == 0
    assert plan.new_index == 0
    assert plan.current is vault


def test_overpaying_rejected_with_contract_code():
    with pytest.raises(VaultsError) as exc:
        plan_update(make_vault(), "pay_debt", 10_000_000_001)
    assert exc.value.code == 60000


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_amount_rejected(amount):
    with pytest.raises(ValueError):
        plan_update(make_vault(), "increase_debt", amount)


def test_unknown_operation_rejected():
    with pytest.raises(ValueError):
        plan_update(make_vault(), "withdraw_collateral", 1)


def test_plan_leaves_vault_untouched():
    vault = make_vault()
    plan_update(vault, "increase_debt", 1)
    assert vault.total_debt == 10_000_000_000
