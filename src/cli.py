"""Command-line interface for the lending client."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .errors import LendingError, Rejected, Unconfirmed
from .logging_setup import configure_logging
from .models import Balances, OperationResult
from .protocols.lending.instructions import TOKEN_OPERATIONS
from .services import LendingClient

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNKNOWN = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lending-client",
        description="Client for the Solana collateralized lending program",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("balances", help="Show SOL and token balances")
    sub.add_parser("addresses", help="Show derived program addresses")

    bank_parser = sub.add_parser("init-bank", help="Create the bank for an asset (admin)")
    bank_parser.add_argument("asset", help="Asset symbol, e.g. USDC")
    bank_parser.add_argument(
        "--liquidation-threshold",
        type=int,
        default=None,
        help="Liquidation threshold percent (default: from config)",
    )
    bank_parser.add_argument(
        "--max-ltv",
        type=int,
        default=None,
        help="Maximum loan-to-value percent (default: from config)",
    )

    sub.add_parser("init-user", help="Create the user account for this wallet")

    for name in TOKEN_OPERATIONS:
        op_parser = sub.add_parser(name, help=f"{name.capitalize()} an asset")
        op_parser.add_argument("asset", help="Asset symbol, e.g. USDC")
        op_parser.add_argument("amount", help="Amount in human units, e.g. 100.5")

    return parser


def _format_balances(balances: Balances) -> str:
    lines = [f"SOL: {balances.sol:.4f}"]
    for symbol, token in balances.tokens.items():
        amount = f"{token.ui_amount:.4f}" if token is not None else "0.0000 (no account)"
        lines.append(f"{symbol}: {amount}")
    return "\n".join(lines)


def _print_result(result: OperationResult) -> None:
    print(f"{result.operation} succeeded: {result.signature}")
    if result.balances is not None:
        print(_format_balances(result.balances))


async def _run_operation(client: LendingClient, args: argparse.Namespace) -> OperationResult:
    if args.command == "init-bank":
        return await client.init_bank(args.asset, args.liquidation_threshold, args.max_ltv)
    if args.command == "init-user":
        return await client.init_user()
    handler = getattr(client, args.command)
    return await handler(args.asset, args.amount)


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command; returns the process exit code."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    client = LendingClient.from_config(config)

    if args.command == "balances":
        try:
            balances = await client.refresh_balances()
        except LendingError as e:
            print(str(e), file=sys.stderr)
            return EXIT_FAILED
        print(_format_balances(balances))
        return EXIT_OK

    if args.command == "addresses":
        print(f"Wallet: {client.wallet}")
        print(f"User account: {client.user_account()}")
        for asset in client.assets:
            bank = client.bank_addresses(asset.symbol)
            print(f"{asset.symbol} bank: {bank.bank}")
            print(f"{asset.symbol} treasury: {bank.treasury}")
        return EXIT_OK

    try:
        result = await _run_operation(client, args)
    except Rejected as e:
        if e.already_exists and args.command in ("init-bank", "init-user"):
            print(f"{e.operation}: already initialized")
            return EXIT_OK
        print(f"{e.operation} rejected: {e.reason}", file=sys.stderr)
        return EXIT_FAILED
    except Unconfirmed as e:
        print(
            f"{e.operation}: {e.signature} not confirmed yet; check it before retrying",
            file=sys.stderr,
        )
        return EXIT_UNKNOWN
    except LendingError as e:
        print(str(e), file=sys.stderr)
        return EXIT_FAILED

    _print_result(result)
    return EXIT_OK


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
