"""
Display formatters for wallet analysis reports.

Pure functions that turn raw backend values (addresses, decimal-string
amounts, USD figures, unix timestamps) into display strings. Amounts are
parsed with Decimal at this boundary only; the records keep the raw strings.
"""

import json
from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from .chains import native_symbol
from .models import parse_decimal
from .risk import UNLIMITED_ALLOWANCE


UNLIMITED_LABEL = "∞ (Unlimited)"

# Token amounts are grouped and rounded to at most this many fraction digits
MAX_AMOUNT_FRACTION_DIGITS = 3
NATIVE_VALUE_FRACTION_DIGITS = 4

_CURRENCY_FRACTION_DIGITS = 2


def _quantize(value: Decimal, places: int) -> Decimal:
    """Round half-up to `places` fraction digits without hitting context precision."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def truncate_address(addr: str) -> str:
    """
    Shorten an address or hash to its first 6 and last 4 characters.

    Args:
        addr: Address or transaction hash

    Returns:
        Shortened string, or the input unchanged if it has fewer than 10 characters

    Examples:
        truncate_address("0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045") -> "0xd8dA...6045"
    """
    if len(addr) < 10:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def format_currency_usd(amount: float) -> str:
    """
    Format a USD amount with grouping and two fraction digits.

    Examples:
        format_currency_usd(1234.5) -> "$1,234.50"
        format_currency_usd(-3) -> "-$3.00"
    """
    value = Decimal(str(amount))
    if not value.is_finite():
        return f"${amount}"
    value = _quantize(value, _CURRENCY_FRACTION_DIGITS)
    if value == 0:
        # -0.001 rounds to -0.00
        value = abs(value)
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"


def format_unix_seconds(ts: int, tz: tzinfo = timezone.utc) -> str:
    """
    Format a unix timestamp (seconds) as an en-US date and time.

    Args:
        ts: Unix timestamp in seconds
        tz: Timezone to render in (UTC by default)

    Returns:
        Date string such as "Jan 5, 2025, 03:04 PM", or the input as a string
        when it is outside the supported date range
    """
    try:
        dt = datetime.fromtimestamp(ts, tz=tz)
    except (ValueError, OverflowError, OSError):
        return str(ts)
    return f"{dt:%b} {dt.day}, {dt.year}, {dt:%I:%M %p}"


def _group(value: Decimal, places: int) -> str:
    """Group thousands and round to at most `places` fraction digits."""
    rounded = _quantize(value, places)
    if rounded == 0:
        return "0"

    formatted = format(rounded, ",f")
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    return formatted


def format_token_amount(raw: str) -> str:
    """
    Format a decimal-string amount for display.

    Unparseable input is returned unchanged.

    Examples:
        format_token_amount("1234567.891234") -> "1,234,567.891"
        format_token_amount("1500") -> "1,500"
    """
    value = parse_decimal(raw)
    if value is None:
        return str(raw)
    return _group(value, MAX_AMOUNT_FRACTION_DIGITS)


def format_allowance(raw: str) -> str:
    """
    Format an approval allowance.

    Returns:
        "0" for zero, "∞ (Unlimited)" for 10^18 or more, otherwise the
        grouped amount. Unparseable input is returned unchanged.
    """
    value = parse_decimal(raw)
    if value is None:
        return str(raw)
    if value == 0:
        return "0"
    if value >= UNLIMITED_ALLOWANCE:
        return UNLIMITED_LABEL
    return _group(value, MAX_AMOUNT_FRACTION_DIGITS)


def format_native_value(raw: str, chain: str) -> str:
    """
    Format a native transaction value with four fraction digits and the chain symbol.

    Examples:
        format_native_value("1.5", "polygon") -> "1.5000 MATIC"
    """
    symbol = native_symbol(chain)
    value = parse_decimal(raw)
    if value is None:
        return f"{raw} {symbol}"
    rounded = _quantize(value, NATIVE_VALUE_FRACTION_DIGITS)
    return f"{rounded:f} {symbol}"


def format_parameter_value(value: Any) -> str:
    """Render a decoded parameter value. Lists and dicts become indented JSON."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
