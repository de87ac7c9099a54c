"""
Data models for wallet activity analysis.

This module defines the records returned by the analysis backend and the
query inputs accepted by the analysis controllers. On-chain amounts are kept
as decimal strings; they are only parsed when formatted or classified.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from .chains import DEFAULT_CHAIN


DEFAULT_LOOKBACK_DAYS = 30


def _amount(value: Any, default: str = "0") -> str:
    """Normalize an amount field to a decimal string."""
    if value is None:
        return default
    return str(value)


def _text(value: Any) -> str:
    """Normalize a text field; JSON null becomes an empty string."""
    if value is None:
        return ""
    return str(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def parse_decimal(raw: Any) -> Optional[Decimal]:
    """
    Parse a decimal amount string, returning None when it is not a finite number.

    Args:
        raw: Decimal string such as "1000000000000000000" or "12.5"

    Returns:
        Decimal value, or None for empty, malformed, NaN or infinite input
    """
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


@dataclass(frozen=True)
class Token:
    """A token balance held by a wallet."""

    address: str
    symbol: str
    name: str
    balance: str  # Decimal string
    decimals: int
    price: Optional[float] = None
    value_usd: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        return cls(
            address=_text(data.get("address")),
            symbol=_text(data.get("symbol")),
            name=_text(data.get("name")),
            balance=_amount(data.get("balance")),
            decimals=int(data.get("decimals") or 0),
            price=_optional_float(data.get("price")),
            value_usd=_optional_float(data.get("valueUsd")),
        )


@dataclass(frozen=True)
class Transaction:
    """A transaction from a wallet's recent activity."""

    hash: str
    block_number: int
    timestamp: int  # Unix seconds
    from_address: str
    to_address: str
    value: str
    gas_used: str
    gas_price: str
    status: str  # "success", "failed", ...

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            hash=_text(data.get("hash")),
            block_number=int(data.get("blockNumber") or 0),
            timestamp=int(data.get("timestamp") or 0),
            from_address=_text(data.get("from")),
            to_address=_text(data.get("to")),
            value=_amount(data.get("value")),
            gas_used=_amount(data.get("gasUsed")),
            gas_price=_amount(data.get("gasPrice")),
            status=_text(data.get("status")),
        )


@dataclass(frozen=True)
class WalletOverview:
    """Holdings and recent activity for a single wallet on one chain."""

    address: str
    chain: str
    balance: str
    balance_usd: float
    tokens: Tuple[Token, ...]
    transactions: Tuple[Transaction, ...]
    total_value: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WalletOverview":
        return cls(
            address=_text(data.get("address")),
            chain=_text(data.get("chain")),
            balance=_amount(data.get("balance")),
            balance_usd=float(data.get("balanceUsd") or 0),
            tokens=tuple(Token.from_dict(t) for t in data.get("tokens") or []),
            transactions=tuple(
                Transaction.from_dict(tx) for tx in data.get("transactions") or []
            ),
            total_value=float(data.get("totalValue") or 0),
        )


@dataclass(frozen=True)
class TxParameter:
    """A decoded method parameter. Name and type are not always known."""

    value: Any
    name: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "TxParameter":
        if isinstance(raw, dict):
            return cls(value=raw.get("value"), name=raw.get("name"), type=raw.get("type"))
        return cls(value=raw)


@dataclass(frozen=True)
class DecodedTransaction:
    """A transaction decoded into its method call and a readable description."""

    hash: str
    chain: str
    method: str
    parameters: Tuple[TxParameter, ...]
    decoded_data: Any
    human_readable: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecodedTransaction":
        return cls(
            hash=_text(data.get("hash")),
            chain=_text(data.get("chain")),
            method=_text(data.get("method")),
            parameters=tuple(TxParameter.from_raw(p) for p in data.get("parameters") or []),
            decoded_data=data.get("decodedData"),
            human_readable=data.get("humanReadable") or "",
        )


@dataclass(frozen=True)
class TokenApproval:
    """
    A token spend approval granted by the wallet.

    An allowance of 10^18 or more is treated as unlimited.
    """

    token: str
    spender: str
    amount: str
    allowance: str
    symbol: str
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenApproval":
        return cls(
            token=_text(data.get("token")),
            spender=_text(data.get("spender")),
            amount=_amount(data.get("amount")),
            allowance=_amount(data.get("allowance")),
            symbol=_text(data.get("symbol")),
            name=_text(data.get("name")),
        )


@dataclass(frozen=True)
class Swap:
    """A DEX swap made by the wallet."""

    tx_hash: str
    timestamp: int
    token_in: str
    token_out: str
    amount_in: str
    amount_out: str
    value_usd: float
    dex: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Swap":
        return cls(
            tx_hash=_text(data.get("txHash")),
            timestamp=int(data.get("timestamp") or 0),
            token_in=_text(data.get("tokenIn")),
            token_out=_text(data.get("tokenOut")),
            amount_in=_amount(data.get("amountIn")),
            amount_out=_amount(data.get("amountOut")),
            value_usd=float(data.get("valueUsd") or 0),
            dex=_text(data.get("dex")),
        )


@dataclass(frozen=True)
class GasInsight:
    """Gas spend statistics over a period."""

    average_gas_price: str
    total_gas_used: str
    total_gas_cost_usd: float
    transactions: int
    period: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GasInsight":
        return cls(
            average_gas_price=_amount(data.get("averageGasPrice")),
            total_gas_used=_amount(data.get("totalGasUsed")),
            total_gas_cost_usd=float(data.get("totalGasCostUsd") or 0),
            transactions=int(data.get("transactions") or 0),
            period=_text(data.get("period")),
        )


# Controller inputs. Each is remembered as the last submission for retry.


@dataclass(frozen=True)
class WalletQuery:
    address: str
    chain: str = DEFAULT_CHAIN
    lookback_days: Optional[int] = DEFAULT_LOOKBACK_DAYS


@dataclass(frozen=True)
class TransactionQuery:
    tx_hash: str
    chain: str = DEFAULT_CHAIN


@dataclass(frozen=True)
class ApprovalQuery:
    address: str
    chain: str = DEFAULT_CHAIN


@dataclass(frozen=True)
class SwapQuery:
    address: str
    chain: str = DEFAULT_CHAIN
    min_usd: Optional[float] = None
    since: Optional[str] = None  # ISO date, e.g. "2024-01-31"


def parse_list(payload: Any, record_type: Any) -> List[Any]:
    """
    Convert a JSON list payload to records. A null body is an empty list.

    Args:
        payload: Decoded JSON body
        record_type: Model class with a from_dict classmethod

    Returns:
        List of records
    """
    if not payload:
        return []
    if not isinstance(payload, list):
        raise TypeError(f"Expected a list payload, got {type(payload).__name__}")
    return [record_type.from_dict(item) for item in payload]
