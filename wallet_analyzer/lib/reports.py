"""
Report output for wallet analysis results.

This module turns controller results into display rows, plain-text reports
and CSV files with timestamp-based filenames.
"""

import csv
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from .chains import resolve_explorer_url
from .controllers import RenderedParameter, SwapSummary, WalletSummary
from .formatters import (
    format_allowance,
    format_currency_usd,
    format_native_value,
    format_parameter_value,
    format_token_amount,
    format_unix_seconds,
    truncate_address,
)
from .models import DecodedTransaction, GasInsight, Swap, TokenApproval, WalletOverview
from .risk import RiskSummary, classify_allowance


# The wallet view lists only the most recent transactions
RECENT_TRANSACTION_LIMIT = 10

NO_APPROVALS_MESSAGE = "No Active Approvals\nThis wallet has no active token approvals."
NO_SWAPS_MESSAGE = (
    "No Swaps Found\n"
    "No swap transactions found for the specified criteria. Try adjusting your filters."
)

# CSV column order for each exportable view
TOKEN_CSV_COLUMNS = ["symbol", "name", "token_address", "balance", "value_usd"]
APPROVAL_CSV_COLUMNS = [
    "symbol",
    "name",
    "token_address",
    "spender",
    "allowance",
    "allowance_display",
    "risk",
    "spender_url",
]
SWAP_CSV_COLUMNS = [
    "date",
    "token_in",
    "token_out",
    "amount_in",
    "amount_out",
    "value_usd",
    "dex",
    "tx_hash",
    "explorer_url",
]


@dataclass
class TokenRow:
    symbol: str
    name: str
    token_address: str
    balance: str  # Formatted
    value_usd: str  # Formatted, "-" when unknown

    def to_csv_row(self) -> List[str]:
        return [self.symbol, self.name, self.token_address, self.balance, self.value_usd]


@dataclass
class ApprovalRow:
    symbol: str
    name: str
    token_address: str
    spender: str
    allowance: str  # Raw decimal string
    allowance_display: str
    risk: str
    spender_url: str

    def to_csv_row(self) -> List[str]:
        return [
            self.symbol,
            self.name,
            self.token_address,
            self.spender,
            self.allowance,
            self.allowance_display,
            self.risk,
            self.spender_url,
        ]


@dataclass
class SwapRow:
    date: str
    token_in: str
    token_out: str
    amount_in: str
    amount_out: str
    value_usd: str
    dex: str
    tx_hash: str
    explorer_url: str

    def to_csv_row(self) -> List[str]:
        return [
            self.date,
            self.token_in,
            self.token_out,
            self.amount_in,
            self.amount_out,
            self.value_usd,
            self.dex,
            self.tx_hash,
            self.explorer_url,
        ]


def token_rows(overview: WalletOverview) -> List[TokenRow]:
    return [
        TokenRow(
            symbol=token.symbol,
            name=token.name,
            token_address=token.address,
            balance=format_token_amount(token.balance),
            value_usd=format_currency_usd(token.value_usd) if token.value_usd else "-",
        )
        for token in overview.tokens
    ]


def approval_rows(approvals: Sequence[TokenApproval], chain: str) -> List[ApprovalRow]:
    return [
        ApprovalRow(
            symbol=approval.symbol,
            name=approval.name,
            token_address=approval.token,
            spender=approval.spender,
            allowance=approval.allowance,
            allowance_display=format_allowance(approval.allowance),
            risk=classify_allowance(approval.allowance),
            spender_url=resolve_explorer_url("address", approval.spender, chain),
        )
        for approval in approvals
    ]


def swap_rows(swaps: Sequence[Swap], chain: str) -> List[SwapRow]:
    return [
        SwapRow(
            date=format_unix_seconds(swap.timestamp),
            token_in=swap.token_in,
            token_out=swap.token_out,
            amount_in=format_token_amount(swap.amount_in),
            amount_out=format_token_amount(swap.amount_out),
            value_usd=format_currency_usd(swap.value_usd),
            dex=swap.dex,
            tx_hash=swap.tx_hash,
            explorer_url=resolve_explorer_url("tx", swap.tx_hash, chain),
        )
        for swap in swaps
    ]


def _table(headers: List[str], rows: List[List[str]]) -> List[str]:
    """Lay out rows as left-aligned, space-separated columns."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(cells: List[str]) -> str:
        return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

    return [line(headers), line(["-" * w for w in widths])] + [line(row) for row in rows]


def render_wallet_report(overview: WalletOverview, summary: WalletSummary, chain: str) -> str:
    """Render the wallet overview: headline stats, holdings and recent transactions."""
    chain = overview.chain or chain
    lines = [
        f"Wallet: {truncate_address(overview.address)} ({chain})",
        f"Total Value: {format_currency_usd(summary.total_value)}",
        f"Tokens: {summary.token_count}",
        f"Transactions: {summary.transaction_count}",
    ]

    if overview.tokens:
        lines += ["", "Token Holdings"]
        lines += _table(
            ["Token", "Name", "Balance", "Value"],
            [[r.symbol, r.name, r.balance, r.value_usd] for r in token_rows(overview)],
        )

    if overview.transactions:
        lines += ["", "Recent Transactions"]
        lines += _table(
            ["Hash", "From", "To", "Value", "Gas Used", "Status"],
            [
                [
                    truncate_address(tx.hash),
                    truncate_address(tx.from_address),
                    truncate_address(tx.to_address),
                    format_native_value(tx.value, chain),
                    format_token_amount(tx.gas_used),
                    tx.status,
                ]
                for tx in overview.transactions[:RECENT_TRANSACTION_LIMIT]
            ],
        )

    return "\n".join(lines)


def render_transaction_report(
    tx: DecodedTransaction,
    parameters: Sequence[RenderedParameter],
    chain: str,
) -> str:
    """Render a decoded transaction: overview, description, parameters and raw data."""
    lines = [
        f"Transaction: {tx.hash}",
        f"Explorer: {resolve_explorer_url('tx', tx.hash, tx.chain or chain)}",
        f"Chain: {tx.chain or chain}",
        f"Method: {tx.method}",
    ]

    if tx.human_readable:
        lines += ["", "What This Transaction Does", tx.human_readable]

    if parameters:
        lines += ["", "Method Parameters"]
        for param in parameters:
            label = f"{param.label} ({param.type})" if param.type else param.label
            lines.append(f"{label}: {param.value}")

    if tx.decoded_data:
        lines += ["", "Raw Decoded Data", format_parameter_value(tx.decoded_data)]

    return "\n".join(lines)


def render_approval_report(
    approvals: Sequence[TokenApproval],
    summary: RiskSummary,
    chain: str,
) -> str:
    """Render token approvals with risk counts, or the empty-state message."""
    if not approvals:
        return NO_APPROVALS_MESSAGE

    lines = [
        f"Total Approvals: {summary.total}",
        f"High Risk: {summary.high}",
        f"Medium Risk: {summary.medium}",
        "",
        "Active Token Approvals",
    ]
    lines += _table(
        ["Token", "Name", "Spender", "Allowance", "Risk"],
        [
            [
                r.symbol,
                r.name,
                truncate_address(r.spender),
                r.allowance_display,
                r.risk.capitalize(),
            ]
            for r in approval_rows(approvals, chain)
        ],
    )
    return "\n".join(lines)


def render_swap_report(swaps: Sequence[Swap], summary: SwapSummary, chain: str) -> str:
    """Render swap history with volume statistics, or the empty-state message."""
    if not swaps:
        return NO_SWAPS_MESSAGE

    lines = [
        f"Total Swaps: {summary.swap_count}",
        f"Total Volume: {format_currency_usd(summary.total_volume)}",
        f"Avg. Swap Size: {format_currency_usd(summary.average_swap_size)}",
        "",
        "Swap Transactions",
    ]
    lines += _table(
        ["Date", "Trade", "Amounts", "Value", "DEX", "TX"],
        [
            [
                r.date,
                f"{r.token_in} -> {r.token_out}",
                f"{r.amount_in} -> {r.amount_out}",
                r.value_usd,
                r.dex,
                truncate_address(r.tx_hash),
            ]
            for r in swap_rows(swaps, chain)
        ],
    )
    return "\n".join(lines)


def render_gas_report(gas: GasInsight) -> str:
    return "\n".join(
        [
            f"Period: {gas.period}",
            f"Transactions: {gas.transactions}",
            f"Average Gas Price: {format_token_amount(gas.average_gas_price)}",
            f"Total Gas Used: {format_token_amount(gas.total_gas_used)}",
            f"Total Gas Cost: {format_currency_usd(gas.total_gas_cost_usd)}",
        ]
    )


def generate_timestamp() -> str:
    """
    Generate a timestamp string for filenames.

    Returns:
        Timestamp in YYYYMMDD_HHMMSS format
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def generate_filename(base_path: str, timestamp: Optional[str] = None) -> str:
    """
    Generate a timestamped filename for a CSV export.

    Examples:
        generate_filename("swaps.csv", "20241214_153022") -> "swaps_20241214_153022.csv"
    """
    if timestamp is None:
        timestamp = generate_timestamp()

    path = Path(base_path)
    suffix = path.suffix or ".csv"
    return str(path.parent / f"{path.stem}_{timestamp}{suffix}")


def write_csv_to_stream(columns: List[str], rows: Sequence, stream: TextIO) -> None:
    """
    Write rows to a CSV stream.

    Args:
        columns: Header row
        rows: Row objects with a to_csv_row() method
        stream: File-like object to write to
    """
    writer = csv.writer(stream)
    writer.writerow(columns)

    for row in rows:
        writer.writerow(row.to_csv_row())


def write_csv(columns: List[str], rows: Sequence, output_path: Optional[str] = None) -> Optional[str]:
    """
    Write rows to a timestamped CSV file, or to stdout when no path is given.

    Returns:
        The file path written, or None for stdout
    """
    if output_path is None:
        write_csv_to_stream(columns, rows, sys.stdout)
        return None

    filename = generate_filename(output_path)
    with open(filename, "w", newline="", encoding="utf-8") as f:
        write_csv_to_stream(columns, rows, f)
    return filename
