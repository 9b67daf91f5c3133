"""
fxdao vaults - command line entry point

Read the vault list and compute splice keys from a shell.

Usage:
    python main.py index --collateral 1500000000 --debt 1000000000
    python main.py info --denomination USD
    python main.py vaults --denomination USD --limit 5
    python main.py prev-key --account 0x... --denomination USD --collateral 15 --debt 10
"""

import argparse
import asyncio
import json
import logging
import os
import re
import sys
from typing import Optional

from dotenv import load_dotenv

from fxdao.chain import VaultsContract
from fxdao.config import Settings
from fxdao.errors import VaultsError
from fxdao.locator import find_prev_vault_key
from fxdao.models import optional_key_to_dict
from fxdao.protocol import PROTOCOL, parse_denomination
from fxdao.vault_index import compute_index

logger = logging.getLogger("fxdao.main")


# ============================================================
# BOOTSTRAP
# ============================================================

class _SecretMaskingFilter(logging.Filter):
    """Redact RPC URL credentials (API keys in path, query or userinfo) and 64-char hex keys."""
    _URL = re.compile(r'(https?://)([^/\s@]+@)?([^/\s?|,]+)([/?][^\s|,]*)?')
    _HEX_KEY = re.compile(r'(?<![0-9a-fA-F])([0-9a-fA-F]{64})(?![0-9a-fA-F])')

    @staticmethod
    def _redact_url(match: re.Match) -> str:
        scheme, userinfo, host, rest = match.groups()
        if not userinfo and not rest:
            return match.group(0)
        return f"{scheme}{host}/[REDACTED]"

    def _mask(self, text: str) -> str:
        text = self._URL.sub(self._redact_url, text)
        return self._HEX_KEY.sub('[REDACTED]', text)

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)
        if record.args:
            formatted = record.getMessage()
            masked = self._mask(formatted)
            if masked != formatted:
                record.msg = masked
                record.args = None
        return True


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    mask_filter = _SecretMaskingFilter()
    for handler in logging.root.handlers:
        handler.addFilter(mask_filter)


# ============================================================
# COMMANDS
# ============================================================

def cmd_index(args, settings: Settings) -> int:
    print(compute_index(args.collateral, args.debt))
    return 0


async def cmd_info(args, settings: Settings) -> int:
    head = await VaultsContract(settings).get_vaults_info(args.denomination)
    print(json.dumps(head.to_dict(), indent=2))
    return 0


async def cmd_vaults(args, settings: Settings) -> int:
    contract = VaultsContract(settings)
    vaults = await contract.get_vaults(None, args.denomination, args.limit, args.only_to_liquidate)
    print(json.dumps([v.to_dict() for v in vaults], indent=2))
    return 0


async def cmd_prev_key(args, settings: Settings) -> int:
    if args.index is not None:
        target = args.index
    elif args.collateral is not None and args.debt is not None:
        target = compute_index(args.collateral, args.debt)
    else:
        logger.error("prev-key needs --index or both --collateral and --debt")
        return 2

    contract = VaultsContract(settings)
    prev_key = await find_prev_vault_key(
        contract.reader,
        args.account,
        parse_denomination(args.denomination),
        target,
        exclude_self=args.exclude_self,
        page_size=settings.page_size,
    )
    print(json.dumps(optional_key_to_dict(prev_key), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="fxdao vaults client")
    parser.add_argument("--env-file", default=None, help="Path to a .env file (default: ./.env)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("index", help="Compute the risk index of a collateral/debt pair")
    p.add_argument("--collateral", type=int, required=True)
    p.add_argument("--debt", type=int, required=True)

    p = sub.add_parser("info", help="Show list metadata (lowest key, totals, rates)")
    p.add_argument("--denomination", default="USD")

    p = sub.add_parser("vaults", help="Show the first vaults of the list")
    p.add_argument("--denomination", default="USD")
    p.add_argument("--limit", type=int, default=PROTOCOL.PAGE_SIZE)
    p.add_argument("--only-to-liquidate", action="store_true",
                   help="Only vaults below the minimum collateral rate")

    p = sub.add_parser("prev-key", help="Find the key that must precede a vault at an index")
    p.add_argument("--account", required=True, help="Owner of the vault being placed")
    p.add_argument("--denomination", default="USD")
    p.add_argument("--index", type=int, default=None, help="Target index (or give --collateral/--debt)")
    p.add_argument("--collateral", type=int, default=None)
    p.add_argument("--debt", type=int, default=None)
    p.add_argument("--exclude-self", action="store_true",
                   help="Locate the landing position after a change (default: current position)")

    return parser


COMMANDS = {
    "info": cmd_info,
    "vaults": cmd_vaults,
    "prev-key": cmd_prev_key,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv(args.env_file)
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        settings = Settings.from_env(args.env_file)
        if args.command == "index":
            return cmd_index(args, settings)
        return asyncio.run(COMMANDS[args.command](args, settings))
    except (VaultsError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
