"""
Client configuration from environment variables (and .env via python-dotenv).

    FXDAO_CHAIN                 key into CHAIN_DEFAULTS (default: local)
    FXDAO_RPC_URL               overrides the chain's default RPC
    FXDAO_VAULTS_CONTRACT       vaults contract address (required for chain access)
    FXDAO_SIMULATION_ACCOUNT    "from" address for read-only calls
    FXDAO_PAGE_SIZE             vaults per get_vaults page (default: 15)
    FXDAO_RPC_TIMEOUT           seconds per RPC request (default: 30)
    FXDAO_RPC_RETRIES           extra attempts on transport errors (default: 2)
    LOG_LEVEL                   logging level for the CLI (default: INFO)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .protocol import PROTOCOL

NULL_ADDRESS = "0x" + "0" * 40


# ============================================================
# CHAIN DEFAULTS
# ============================================================

CHAIN_DEFAULTS = {
    "local": {
        "rpc": "http://127.0.0.1:8545",
        "chain_id": 31337,
        "explorer": "",
    },
    "sepolia": {
        "rpc": "https://rpc.sepolia.org",
        "chain_id": 11155111,
        "explorer": "https://sepolia.etherscan.io",
    },
    "base": {
        "rpc": "https://mainnet.base.org",
        "chain_id": 8453,
        "explorer": "https://basescan.org",
    },
}


@dataclass(frozen=True)
class Settings:
    chain: str
    rpc_url: str
    chain_id: int
    vaults_contract: str = ""
    simulation_account: str = NULL_ADDRESS
    page_size: int = PROTOCOL.PAGE_SIZE
    rpc_timeout: int = PROTOCOL.RPC_TIMEOUT_SECONDS
    rpc_retries: int = PROTOCOL.RPC_RETRIES
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, environ: Optional[dict] = None) -> "Settings":
        """
        Build settings from the process environment.

        A .env file is loaded first (without overriding variables already set).
        Pass `environ` to read from a plain dict instead (tests).
        """
        if environ is None:
            load_dotenv(env_file)
            environ = dict(os.environ)

        chain = environ.get("FXDAO_CHAIN", "local").lower()
        chain_cfg = CHAIN_DEFAULTS.get(chain)
        if chain_cfg is None:
            raise ConfigError(f"Unknown chain '{chain}'. Options: {list(CHAIN_DEFAULTS.keys())}")

        page_size = _int_env(environ, "FXDAO_PAGE_SIZE", PROTOCOL.PAGE_SIZE)
        if not 1 <= page_size <= PROTOCOL.MAX_PAGE_SIZE:
            raise ConfigError(f"FXDAO_PAGE_SIZE must be between 1 and {PROTOCOL.MAX_PAGE_SIZE} (got {page_size})")

        retries = _int_env(environ, "FXDAO_RPC_RETRIES", PROTOCOL.RPC_RETRIES)
        if retries < 0:
            raise ConfigError(f"FXDAO_RPC_RETRIES must be >= 0 (got {retries})")

        return cls(
            chain=chain,
            rpc_url=environ.get("FXDAO_RPC_URL") or chain_cfg["rpc"],
            chain_id=chain_cfg["chain_id"],
            vaults_contract=environ.get("FXDAO_VAULTS_CONTRACT", ""),
            simulation_account=environ.get("FXDAO_SIMULATION_ACCOUNT") or NULL_ADDRESS,
            page_size=page_size,
            rpc_timeout=_int_env(environ, "FXDAO_RPC_TIMEOUT", PROTOCOL.RPC_TIMEOUT_SECONDS),
            rpc_retries=retries,
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def require_contract(self) -> str:
        if not self.vaults_contract:
            raise ConfigError("FXDAO_VAULTS_CONTRACT not set — chain access disabled")
        return self.vaults_contract


def _int_env(environ: dict, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got '{raw}')") from None
