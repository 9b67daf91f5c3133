"""
Vaults Contract - On-Chain Read & Transaction Preparation Layer

Bridges the predecessor locator (pure Python) and the vaults contract.
Reads list state for the locator, and prepares the mutating calls with the
prev keys the locator found.

Design:
- Sync Web3 calls wrapped in asyncio.run_in_executor()
- Embedded minimal ABI — only the functions we call, no compiled JSON needed
- Every mutation is simulated (eth_call from the caller) before it is built;
  a revert is parsed into a VaultsError and nothing is returned
- Transactions are returned unsigned: no private key ever reaches this module
- Transport errors retried with backoff here; contract reverts never retried

Designed for: fxdao vaults client
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from web3 import Web3
from web3.exceptions import ContractLogicError

from .config import Settings
from .errors import DivisionByZero, RemoteUnavailable, parse_error
from .locator import ListReader, find_prev_vault_key
from .models import (
    ListHead,
    Vault,
    VaultKey,
    list_head_from_abi,
    optional_key_to_abi,
    vault_from_abi,
)
from .operations import UpdatePlan, plan_update
from .protocol import PROTOCOL, Denomination, UpdateVaultOperationType, VaultsMethod, parse_denomination
from .vault_index import compute_index

logger = logging.getLogger("fxdao.chain")


# ============================================================
# MINIMAL ABI — only functions we call
# ============================================================

_VAULT_KEY = [
    {"name": "account", "type": "address"},
    {"name": "denomination", "type": "string"},
    {"name": "index", "type": "uint256"},
]

# OptionalVaultKey: (some=false, zeroed key) is None
_OPTIONAL_VAULT_KEY = [
    {"name": "some", "type": "bool"},
    {"name": "key", "type": "tuple", "components": _VAULT_KEY},
]

_VAULT = [
    {"name": "account", "type": "address"},
    {"name": "denomination", "type": "string"},
    {"name": "index", "type": "uint256"},
    {"name": "next_key", "type": "tuple", "components": _OPTIONAL_VAULT_KEY},
    {"name": "total_collateral", "type": "uint256"},
    {"name": "total_debt", "type": "uint256"},
]

_VAULTS_INFO = [
    {"name": "denomination", "type": "string"},
    {"name": "lowest_key", "type": "tuple", "components": _OPTIONAL_VAULT_KEY},
    {"name": "min_col_rate", "type": "uint256"},
    {"name": "min_debt_creation", "type": "uint256"},
    {"name": "opening_col_rate", "type": "uint256"},
    {"name": "total_col", "type": "uint256"},
    {"name": "total_debt", "type": "uint256"},
    {"name": "total_vaults", "type": "uint64"},
]

_UPDATE_VAULT_INPUTS = [
    {"name": "prev_key", "type": "tuple", "components": _OPTIONAL_VAULT_KEY},
    {"name": "vault_key", "type": "tuple", "components": _VAULT_KEY},
    {"name": "new_prev_key", "type": "tuple", "components": _OPTIONAL_VAULT_KEY},
    {"name": "amount", "type": "uint256"},
]

VAULTS_ABI = [
    # get_vaults_info(denomination) → VaultsInfo
    {
        "inputs": [{"name": "denomination", "type": "string"}],
        "name": "get_vaults_info",
        "outputs": [{"name": "", "type": "tuple", "components": _VAULTS_INFO}],
        "stateMutability": "view",
        "type": "function",
    },
    # get_vault(user, denomination) → Vault — reverts 50000 if missing
    {
        "inputs": [
            {"name": "user", "type": "address"},
            {"name": "denomination", "type": "string"},
        ],
        "name": "get_vault",
        "outputs": [{"name": "", "type": "tuple", "components": _VAULT}],
        "stateMutability": "view",
        "type": "function",
    },
    # get_vaults(prev_key, denomination, total, only_to_liquidate) → Vault[]
    {
        "inputs": [
            {"name": "prev_key", "type": "tuple", "components": _OPTIONAL_VAULT_KEY},
            {"name": "denomination", "type": "string"},
            {"name": "total", "type": "uint32"},
            {"name": "only_to_liquidate", "type": "bool"},
        ],
        "name": "get_vaults",
        "outputs": [{"name": "", "type": "tuple[]", "components": _VAULT}],
        "stateMutability": "view",
        "type": "function",
    },
    # calculate_deposit_ratio(currency_rate, collateral, debt) → uint256
    {
        "inputs": [
            {"name": "currency_rate", "type": "uint256"},
            {"name": "collateral", "type": "uint256"},
            {"name": "debt", "type": "uint256"},
        ],
        "name": "calculate_deposit_ratio",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    # set_currency_rate(denomination, rate) — oracle admin only
    {
        "inputs": [
            {"name": "denomination", "type": "string"},
            {"name": "rate", "type": "uint256"},
        ],
        "name": "set_currency_rate",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    # new_vault(prev_key, caller, initial_debt, collateral_amount, denomination)
    {
        "inputs": [
            {"name": "prev_key", "type": "tuple", "components": _OPTIONAL_VAULT_KEY},
            {"name": "caller", "type": "address"},
            {"name": "initial_debt", "type": "uint256"},
            {"name": "collateral_amount", "type": "uint256"},
            {"name": "denomination", "type": "string"},
        ],
        "name": "new_vault",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    # increase_collateral / increase_debt / pay_debt(prev_key, vault_key, new_prev_key, amount)
    {
        "inputs": _UPDATE_VAULT_INPUTS,
        "name": "increase_collateral",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": _UPDATE_VAULT_INPUTS,
        "name": "increase_debt",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": _UPDATE_VAULT_INPUTS,
        "name": "pay_debt",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    # redeem(caller, denomination)
    {
        "inputs": [
            {"name": "caller", "type": "address"},
            {"name": "denomination", "type": "string"},
        ],
        "name": "redeem",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    # liquidate(liquidator, denomination, total_vaults_to_liquidate)
    {
        "inputs": [
            {"name": "liquidator", "type": "address"},
            {"name": "denomination", "type": "string"},
            {"name": "total_vaults_to_liquidate", "type": "uint32"},
        ],
        "name": "liquidate",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


# ============================================================
# RESULT TYPE
# ============================================================

@dataclass
class PreparedTransaction:
    """A simulated, unsigned contract call ready for an external signer."""
    method: str
    caller: str
    args: tuple = ()
    transaction: dict = field(default_factory=dict)   # web3 build_transaction() output
    prev_key: Optional[VaultKey] = None               # splice-out point (updates) or landing point (new_vault)
    new_prev_key: Optional[VaultKey] = None           # landing point after an update
    plan: Optional[UpdatePlan] = None


# ============================================================
# VAULTS CONTRACT
# ============================================================

class VaultsContract:
    """
    Client for the vaults contract.

    Usage:
        contract = VaultsContract(Settings.from_env())
        head = await contract.get_vaults_info("USD")
        prepared = await contract.update_vault("increase_debt", caller, 10**9, "USD")
        # hand prepared.transaction to your signer
    """

    def __init__(self, settings: Settings, contract=None):
        self._settings = settings
        # Injected contract objects skip the RPC connection entirely
        self._contract = contract
        self._reader: Optional["ChainListReader"] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def contract(self):
        """web3 contract bound to FXDAO_VAULTS_CONTRACT (connected lazily)."""
        if self._contract is None:
            address = self._settings.require_contract()
            w3 = Web3(Web3.HTTPProvider(
                self._settings.rpc_url,
                request_kwargs={"timeout": self._settings.rpc_timeout},
            ))
            self._contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=VAULTS_ABI)
            logger.info(
                f"Vaults contract bound: {self._settings.chain} | "
                f"contract={address[:10]}... | rpc={self._settings.rpc_url}"
            )
        return self._contract

    @property
    def reader(self) -> "ChainListReader":
        if self._reader is None:
            self._reader = ChainListReader(self)
        return self._reader

    # ============================================================
    # RPC PLUMBING
    # ============================================================

    async def _call(self, label: str, fn: Callable[[], Any]) -> Any:
        """
        Run a blocking web3 call in the default executor.

        Transport failures (requests' errors are OSErrors) are retried with
        exponential backoff and end in RemoteUnavailable. Contract reverts
        are parsed into VaultsError subclasses immediately.
        """
        attempts = self._settings.rpc_retries + 1
        delay = PROTOCOL.RPC_RETRY_BACKOFF_SECONDS

        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.get_running_loop().run_in_executor(None, fn)
            except ContractLogicError as e:
                raise parse_error(e) from e
            except OSError as e:
                if attempt == attempts:
                    raise RemoteUnavailable(
                        f"RPC {label} failed after {attempts} attempt(s): {type(e).__name__}: {e}"
                    ) from e
                logger.warning(f"RPC {label} failed (attempt {attempt}/{attempts}), retrying in {delay:.1f}s: {e}")
                await asyncio.sleep(delay)
                delay *= 2

    async def _view(self, method: VaultsMethod, *args) -> Any:
        fn = getattr(self.contract.functions, method.value)(*args)
        sender = Web3.to_checksum_address(self._settings.simulation_account)
        return await self._call(method.value, lambda: fn.call({"from": sender}))

    async def _prepare(self, method: VaultsMethod, caller: str, *args, **extra) -> PreparedTransaction:
        """Simulate `method` from `caller`, then build the unsigned transaction."""
        caller_cs = Web3.to_checksum_address(caller)
        fn = getattr(self.contract.functions, method.value)(*args)

        await self._call(f"simulate {method.value}", lambda: fn.call({"from": caller_cs}))
        tx = await self._call(
            f"build {method.value}",
            lambda: fn.build_transaction({"from": caller_cs, "chainId": self._settings.chain_id}),
        )

        logger.info(f"Prepared {method.value} for {caller_cs[:10]}... on {self._settings.chain}")
        return PreparedTransaction(method=method.value, caller=caller_cs, args=args, transaction=tx, **extra)

    # ============================================================
    # VIEWS
    # ============================================================

    async def get_vaults_info(self, denomination) -> ListHead:
        denom = parse_denomination(denomination)
        raw = await self._view(VaultsMethod.GET_VAULTS_INFO, denom.value)
        return list_head_from_abi(raw)

    async def get_vault(self, account: str, denomination) -> Vault:
        denom = parse_denomination(denomination)
        raw = await self._view(VaultsMethod.GET_VAULT, Web3.to_checksum_address(account), denom.value)
        return vault_from_abi(raw)

    async def get_vaults(
        self,
        prev_key: Optional[VaultKey],
        denomination,
        total: int = PROTOCOL.PAGE_SIZE,
        only_to_liquidate: bool = False,
    ) -> list[Vault]:
        denom = parse_denomination(denomination)
        raw = await self._view(
            VaultsMethod.GET_VAULTS, optional_key_to_abi(prev_key), denom.value, total, only_to_liquidate,
        )
        return [vault_from_abi(item) for item in raw]

    async def calculate_deposit_ratio(self, currency_rate: int, collateral: int, debt: int) -> int:
        if debt == 0:
            raise DivisionByZero("Cannot calculate a deposit ratio with zero debt")
        return int(await self._view(VaultsMethod.CALCULATE_DEPOSIT_RATIO, currency_rate, collateral, debt))

    # ============================================================
    # TRANSACTION PREPARATION
    # ============================================================

    async def new_vault(
        self,
        caller: str,
        initial_debt: int,
        collateral_amount: int,
        denomination,
    ) -> PreparedTransaction:
        """Open a vault: locate where its index lands, then prepare new_vault."""
        denom = parse_denomination(denomination)
        index = compute_index(collateral_amount, initial_debt)

        prev_key = await find_prev_vault_key(
            self.reader, caller, denom, index,
            exclude_self=True, page_size=self._settings.page_size,
        )
        return await self._prepare(
            VaultsMethod.NEW_VAULT,
            caller,
            optional_key_to_abi(prev_key),
            Web3.to_checksum_address(caller),
            initial_debt,
            collateral_amount,
            denom.value,
            prev_key=prev_key,
        )

    async def update_vault(
        self,
        operation,
        caller: str,
        amount: int,
        denomination,
    ) -> PreparedTransaction:
        """
        Grow or shrink an existing vault.

        Two splice points are needed: the current predecessor (to unlink the
        node at its stored index) and the predecessor at the new index (to
        relink it). A full repayment removes the vault, so the second is None.
        """
        denom = parse_denomination(denomination)
        operation = UpdateVaultOperationType(operation)

        current = await self.get_vault(caller, denom)
        prev_key = await find_prev_vault_key(
            self.reader, caller, denom, current.index,
            exclude_self=False, page_size=self._settings.page_size,
        )

        plan = plan_update(current, operation, amount)
        new_prev_key: Optional[VaultKey] = None
        if not plan.removes_vault:
            new_prev_key = await find_prev_vault_key(
                self.reader, caller, denom, plan.new_index,
                exclude_self=True, page_size=self._settings.page_size,
            )

        return await self._prepare(
            VaultsMethod(operation.value),
            caller,
            optional_key_to_abi(prev_key),
            current.key.to_abi(),
            optional_key_to_abi(new_prev_key),
            amount,
            prev_key=prev_key,
            new_prev_key=new_prev_key,
            plan=plan,
        )

    async def redeem(self, caller: str, denomination) -> PreparedTransaction:
        denom = parse_denomination(denomination)
        return await self._prepare(VaultsMethod.REDEEM, caller, Web3.to_checksum_address(caller), denom.value)

    async def liquidate(self, caller: str, denomination, total_vaults: int) -> PreparedTransaction:
        if total_vaults < 1:
            raise ValueError(f"total_vaults must be >= 1 (got {total_vaults})")
        denom = parse_denomination(denomination)
        return await self._prepare(
            VaultsMethod.LIQUIDATE, caller, Web3.to_checksum_address(caller), denom.value, total_vaults,
        )

    async def set_currency_rate(self, caller: str, denomination, rate: int) -> PreparedTransaction:
        denom = parse_denomination(denomination)
        return await self._prepare(VaultsMethod.SET_CURRENCY_RATE, caller, denom.value, rate)


# ============================================================
# LIST READER — the locator's view of the contract
# ============================================================

class ChainListReader(ListReader):
    """ListReader over a VaultsContract. Every call hits the node; nothing is cached."""

    def __init__(self, contract: VaultsContract):
        self._contract = contract

    async def get_head(self, denomination: Denomination) -> ListHead:
        return await self._contract.get_vaults_info(denomination)

    async def get_node(self, account: str, denomination: Denomination) -> Vault:
        return await self._contract.get_vault(account, denomination)

    async def get_page(
        self,
        after_key: Optional[VaultKey],
        denomination: Denomination,
        page_size: int,
    ) -> Sequence[Vault]:
        return await self._contract.get_vaults(after_key, denomination, page_size, only_to_liquidate=False)
