"""Command line interface.

    bridgeflow quote 0.5
    bridgeflow balances 0xYourAddress
    bridgeflow bridge 0.5 [--recipient 0x...] [--yes]

`bridge` signs with BRIDGE_PRIVATE_KEY and asks for confirmation before the
transaction is signed unless --yes is given.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from bridgeflow.bridge.models import BridgeRequest
from bridgeflow.chains import get_chain
from bridgeflow.config import get_settings
from bridgeflow.errors import BridgeError
from bridgeflow.main import configure_logging
from bridgeflow.services.balances import BalanceInspector
from bridgeflow.services.bridge_service import BridgeService
from bridgeflow.signing.factory import create_local_signer
from bridgeflow.units import format_units

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bridgeflow", description="Bridge native ETH in one atomic batch")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Quote a bridge without sending anything")
    quote.add_argument("amount", help="Native amount, e.g. 0.5")

    balances = sub.add_parser("balances", help="Show balances on every supported chain")
    balances.add_argument("address")

    bridge = sub.add_parser("bridge", help="Compose, simulate and send a bridge batch")
    bridge.add_argument("amount", help="Native amount, e.g. 0.5")
    bridge.add_argument("--recipient", help="Destination address (defaults to the signer)")
    bridge.add_argument("--destination", help="Destination chain key (defaults to settings)")
    bridge.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    return parser


def _print(data: dict) -> None:
    print(json.dumps(data, indent=2))


def _prompt(tx: dict) -> bool:
    chain = get_chain(get_settings().source_chain)
    value = format_units(int(tx.get("value", 0)), chain.native_decimals)
    answer = input(f"Send {value} {chain.native_symbol} to {tx.get('to')} (gas {tx.get('gas')})? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


async def run_quote(amount: str) -> int:
    service = BridgeService.from_settings()
    preview = await service.preview_quote(amount)
    _print(preview.to_dict())
    return 0


async def run_balances(address: str) -> int:
    balances = await BalanceInspector().dashboard(address)
    _print({"address": address, "balances": balances})
    return 0


async def run_bridge(amount: str, recipient: Optional[str], destination: Optional[str], yes: bool) -> int:
    settings = get_settings()
    signer = create_local_signer(settings, confirm=None if yes else _prompt)
    source = get_chain(settings.source_chain)

    request = BridgeRequest(
        source_asset=source.native_symbol,
        source_chain=source.key,
        destination_chain=destination or settings.destination_chain,
        amount=amount,
        requester=signer.address,
        recipient=recipient,
    )

    service = BridgeService.from_settings(settings)
    result = await service.bridge(request, signer)
    _print(result.to_dict())
    if result.warning is not None:
        logger.warning(result.warning.message)
    return 0 if result.success else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug or get_settings().debug)

    try:
        if args.command == "quote":
            return asyncio.run(run_quote(args.amount))
        if args.command == "balances":
            return asyncio.run(run_balances(args.address))
        return asyncio.run(run_bridge(args.amount, args.recipient, args.destination, args.yes))
    except BridgeError as e:
        _print(e.to_dict())
        return 1
    except RuntimeError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
