import json
import logging

import pytest

import main
from fxdao.chain import VaultsContract
from tests.helpers.factories import account, build_chain
from tests.helpers.fake_contract import FakeVaultsContract


@pytest.fixture
def fake_chain(monkeypatch, sample_chain):
    fake = FakeVaultsContract(sample_chain)
    monkeypatch.setattr(main, "VaultsContract", lambda settings: VaultsContract(settings, contract=fake))
    return fake


def test_index_command(capsys):
    assert main.main(["index", "--collateral", "1500000000", "--debt", "1000000000"]) == 0
    assert capsys.readouterr().out.strip() == "1500000000"


def test_index_zero_debt_fails_cleanly(capsys):
    assert main.main(["index", "--collateral", "1", "--debt", "0"]) == 1


def test_prev_key_command(fake_chain, capsys):
    code = main.main(["prev-key", "--account", account("Z"), "--denomination", "usd", "--index", "300"])
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["account"] == account("D")
    assert out["index"] == "300"


def test_prev_key_from_collateral_and_debt(fake_chain, capsys):
    code = main.main([
        "prev-key", "--account", account("Z"), "--collateral", "50", "--debt", "1000000000",
    ])
    assert code == 0
    assert json.loads(capsys.readouterr().out) is None


def test_prev_key_needs_a_target(fake_chain):
    assert main.main(["prev-key", "--account", account("Z")]) == 2


def test_info_command(fake_chain, capsys):
    assert main.main(["info"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["lowest_key"]["account"] == account("A")
    assert out["total_vaults"] == 5


def test_vaults_command(monkeypatch, capsys):
    fake = FakeVaultsContract(build_chain([(100, "A"), (200, "B"), (300, "C")]))
    monkeypatch.setattr(main, "VaultsContract", lambda settings: VaultsContract(settings, contract=fake))
    assert main.main(["vaults", "--limit", "2"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert [v["account"] for v in out] == [account("A"), account("B")]


def test_secret_masking_filter():
    record = logging.LogRecord("fxdao", logging.INFO, __file__, 1, "key=%s", ("ab" * 32,), None)
    main._SecretMaskingFilter().filter(record)
    assert record.getMessage() == "key=[REDACTED]"


@pytest.mark.parametrize("url, shown", [
    ("https://eth-sepolia.g.alchemy.com/v2/abcDEF123", "https://eth-sepolia.g.alchemy.com/[REDACTED]"),
    ("https://user:pw@rpc.example.org", "https://rpc.example.org/[REDACTED]"),
    ("https://mainnet.base.org?apikey=xyz", "https://mainnet.base.org/[REDACTED]"),
    ("http://127.0.0.1:8545", "http://127.0.0.1:8545"),
])
def test_rpc_url_credentials_are_masked(url, shown):
    record = logging.LogRecord("fxdao.chain", logging.INFO, __file__, 1, f"contract bound | rpc={url}", None, None)
    main._SecretMaskingFilter().filter(record)
    assert record.getMessage() == f"contract bound | rpc={shown}"
