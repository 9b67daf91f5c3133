import pytest

from fxdao.models import (
    key_from_abi,
    list_head_from_abi,
    optional_key_from_abi,
    optional_key_to_abi,
    vault_from_abi,
)
from fxdao.protocol import Denomination
from tests.helpers.factories import account, key_of

NULL_KEY = ("0x" + "0" * 40, "", 0)


def test_vault_key_round_trip_through_abi_tuple():
    key = key_of("A", 1_250_000_000)
    assert key_from_abi(key.to_abi()) == key
    assert optional_key_from_abi(optional_key_to_abi(key)) == key


def test_none_key_encoded_as_flagged_zero_key():
    assert optional_key_to_abi(None) == (False, NULL_KEY)
    assert optional_key_from_abi((False, NULL_KEY)) is None


def test_vault_from_abi():
    raw = (
        account("A"), "USD", 1_500_000_000,
        (True, (account("B"), "USD", 2_000_000_000)),
        15_000_000_000, 10_000_000_000,
    )
    vault = vault_from_abi(raw)
    assert vault.key == key_of("A", 1_500_000_000)
    assert vault.next_key == key_of("B", 2_000_000_000)
    assert vault.total_debt == 10_000_000_000


def test_tail_vault_has_no_next():
    raw = (account("A"), "usd", 1, (False, NULL_KEY), 1, 1_000_000_000)
    vault = vault_from_abi(raw)
    assert vault.next_key is None
    assert vault.denomination is Denomination.USD


def test_list_head_from_abi():
    raw = ("EUR", (True, (account("A"), "EUR", 7)), 11000000, 1000000000, 11500000, 50, 40, 3)
    head = list_head_from_abi(raw)
    assert head.denomination is Denomination.EUR
    assert head.lowest_key.index == 7
    assert head.total_vaults == 3
    assert head.min_collateral_rate == 11000000
    assert head.opening_collateral_rate == 11500000
    assert not head.is_empty


def test_empty_list_head():
    raw = ("USD", (False, NULL_KEY), 0, 0, 0, 0, 0, 0)
    assert list_head_from_abi(raw).is_empty


def test_unknown_denomination_rejected():
    with pytest.raises(ValueError):
        key_from_abi((account("A"), "GBP", 1))


def test_to_dict_keeps_big_numbers_as_strings():
    head = list_head_from_abi(("USD", (True, (account("A"), "USD", 2**100)), 1, 2, 3, 2**120, 5, 1))
    data = head.to_dict()
    assert data["lowest_key"]["index"] == str(2**100)
    assert data["total_collateral"] == str(2**120)
    assert data["total_vaults"] == 1
