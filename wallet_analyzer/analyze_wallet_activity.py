#!/usr/bin/env python3
"""
Inspect blockchain wallet activity through the wallet analysis backend.

This script runs one of the analysis workflows (wallet overview, transaction
decode, token approval risk, DEX swap history, gas insight) against the
backend and prints a text report or CSV of the results.
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from wallet_analyzer.lib.api_client import AnalysisAPIClient, RequestError
from wallet_analyzer.lib.chains import DEFAULT_CHAIN, SUPPORTED_CHAINS
from wallet_analyzer.lib.config import Settings, load_settings
from wallet_analyzer.lib.controllers import (
    FAILURE,
    IDLE,
    BaseAnalysisController,
    create_controller,
)
from wallet_analyzer.lib.models import (
    DEFAULT_LOOKBACK_DAYS,
    ApprovalQuery,
    SwapQuery,
    TransactionQuery,
    WalletQuery,
)
from wallet_analyzer.lib.reports import (
    APPROVAL_CSV_COLUMNS,
    SWAP_CSV_COLUMNS,
    TOKEN_CSV_COLUMNS,
    approval_rows,
    render_approval_report,
    render_gas_report,
    render_swap_report,
    render_transaction_report,
    render_wallet_report,
    swap_rows,
    token_rows,
    write_csv,
)


def log(view: str, message: str) -> None:
    """Log a message with view prefix."""
    print(f"[{view}] {message}", file=sys.stderr)


def parse_params(pairs: List[str]) -> Dict[str, str]:
    """
    Parse key=value pairs into a query parameter dict.

    Raises:
        ValueError: If a pair has no "=" or an empty key
    """
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid parameter: {pair}. Expected key=value")
        params[key.strip()] = value
    return params


def report_failure(controller: BaseAnalysisController) -> int:
    """Print a failure state and return the exit code for it."""
    state = controller.state
    log(controller.view_name, f"ERROR: {state.error}")
    print(f"Error: {state.error}", file=sys.stderr)
    return 1


def emit_csv(view: str, columns: List[str], rows: List, output: Optional[str]) -> None:
    filename = write_csv(columns, rows, output)
    if filename:
        print(f"\nResults written to: {filename}", file=sys.stderr)
    else:
        log(view, f"Wrote {len(rows)} rows")


def run_wallet(client: AnalysisAPIClient, args: argparse.Namespace) -> int:
    controller = create_controller(client, "wallet")
    log(controller.view_name, f"Analyzing wallet on {args.chain}...")

    state = controller.submit(WalletQuery(args.address, args.chain, args.lookback_days))
    if state.status == FAILURE:
        return report_failure(controller)

    overview, summary = state.payload, state.summary
    log(
        controller.view_name,
        f"Found {summary.token_count} tokens and {summary.transaction_count} transactions",
    )
    if args.csv or args.output:
        emit_csv(controller.view_name, TOKEN_CSV_COLUMNS, token_rows(overview), args.output)
    else:
        print(render_wallet_report(overview, summary, args.chain))
    return 0


def run_transaction(client: AnalysisAPIClient, args: argparse.Namespace) -> int:
    controller = create_controller(
        client, "transaction", initial_hash=args.hash, chain=args.chain
    )
    log(controller.view_name, f"Decoding transaction on {args.chain}...")

    state = controller.mount()
    if state.status == IDLE:
        # A blank --hash is not auto-decoded; submit it so validation reports it
        state = controller.submit(TransactionQuery(args.hash, args.chain))
    if state.status == FAILURE:
        return report_failure(controller)

    print(render_transaction_report(state.payload, state.summary, args.chain))
    return 0


def run_approvals(client: AnalysisAPIClient, args: argparse.Namespace) -> int:
    controller = create_controller(client, "approvals")
    log(controller.view_name, f"Checking token approvals on {args.chain}...")

    state = controller.submit(ApprovalQuery(args.address, args.chain))
    if state.status == FAILURE:
        return report_failure(controller)

    summary = state.summary
    if state.is_empty:
        log(controller.view_name, "No active approvals")
    else:
        log(controller.view_name, f"Found {summary.total} approvals")
    if summary.high > 0:
        log(controller.view_name, f"{summary.high} approvals are unlimited (high risk)")

    if args.csv or args.output:
        rows = approval_rows(controller.approvals, args.chain)
        emit_csv(controller.view_name, APPROVAL_CSV_COLUMNS, rows, args.output)
    else:
        print(render_approval_report(controller.approvals, summary, args.chain))
    return 0


def run_swaps(client: AnalysisAPIClient, args: argparse.Namespace) -> int:
    controller = create_controller(client, "swaps")
    log(controller.view_name, f"Searching swaps on {args.chain}...")

    state = controller.submit(SwapQuery(args.address, args.chain, args.min_usd, args.since))
    if state.status == FAILURE:
        return report_failure(controller)

    if state.is_empty:
        log(controller.view_name, "No swaps matched the filters")
    else:
        log(controller.view_name, f"Found {controller.summary.swap_count} swaps")
    if args.csv or args.output:
        rows = swap_rows(controller.swaps, args.chain)
        emit_csv(controller.view_name, SWAP_CSV_COLUMNS, rows, args.output)
    else:
        print(render_swap_report(controller.swaps, controller.summary, args.chain))
    return 0


def run_gas(client: AnalysisAPIClient, args: argparse.Namespace) -> int:
    try:
        params = parse_params(args.param)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log("gas", "Fetching gas insight...")
    try:
        gas = client.get_gas_insight(params)
    except RequestError as e:
        log("gas", f"ERROR: {e.message}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(render_gas_report(gas))
    return 0


def _add_chain_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--chain",
        default=DEFAULT_CHAIN,
        help=f"Chain to query (default: {DEFAULT_CHAIN}). Known: {', '.join(SUPPORTED_CHAINS)}",
    )


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--csv", action="store_true", help="Write CSV to stdout")
    parser.add_argument(
        "--output",
        help="CSV output file path (timestamp auto-appended)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect wallet holdings, transactions, approvals and swaps.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Wallet overview on Polygon over the last 90 days
  %(prog)s wallet --address 0x... --chain polygon --lookback-days 90

  # Token approvals with risk tiers, saved as CSV
  %(prog)s approvals --address 0x... --output approvals.csv

  # Swaps above $100 since January
  %(prog)s swaps --address 0x... --min-usd 100 --since 2025-01-01
        """,
    )
    parser.add_argument(
        "--api-url",
        help="Backend base URL (default: WALLET_ANALYZER_API_URL or http://localhost:3000/)",
    )
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    wallet = subparsers.add_parser("wallet", help="Wallet holdings and recent transactions")
    wallet.add_argument("--address", required=True, help="Wallet address to analyze")
    _add_chain_argument(wallet)
    wallet.add_argument(
        "--lookback-days",
        type=int,
        default=DEFAULT_LOOKBACK_DAYS,
        help=f"Activity window in days (default: {DEFAULT_LOOKBACK_DAYS})",
    )
    _add_output_arguments(wallet)
    wallet.set_defaults(handler=run_wallet)

    tx = subparsers.add_parser("tx", help="Decode a transaction")
    tx.add_argument("--hash", required=True, help="Transaction hash")
    _add_chain_argument(tx)
    tx.set_defaults(handler=run_transaction)

    approvals = subparsers.add_parser("approvals", help="Token approvals and their risk")
    approvals.add_argument("--address", required=True, help="Wallet address to check")
    _add_chain_argument(approvals)
    _add_output_arguments(approvals)
    approvals.set_defaults(handler=run_approvals)

    swaps = subparsers.add_parser("swaps", help="DEX swap history")
    swaps.add_argument("--address", required=True, help="Wallet address to search")
    _add_chain_argument(swaps)
    swaps.add_argument("--min-usd", type=float, help="Only swaps above this USD value")
    swaps.add_argument("--since", help="Only swaps after this date (YYYY-MM-DD)")
    _add_output_arguments(swaps)
    swaps.set_defaults(handler=run_swaps)

    gas = subparsers.add_parser("gas", help="Gas spend insight")
    gas.add_argument(
        "--param",
        action="append",
        default=[],
        help="Query parameter as key=value (repeatable)",
    )
    gas.set_defaults(handler=run_gas)

    return parser


def create_client(settings: Settings, args: argparse.Namespace) -> AnalysisAPIClient:
    """Build the API client, letting command line flags override settings."""
    return AnalysisAPIClient(
        base_url=args.api_url or settings.api_url,
        timeout=args.timeout if args.timeout is not None else settings.request_timeout,
    )


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, including empty results; 1 for any failure)
    """
    parsed_args = build_parser().parse_args(args)
    settings = load_settings()

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    client = create_client(settings, parsed_args)
    return parsed_args.handler(client, parsed_args)


if __name__ == "__main__":
    sys.exit(main())
