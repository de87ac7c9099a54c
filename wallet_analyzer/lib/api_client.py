"""
Client for the wallet analysis backend API.

This module provides a single client for all backend interactions: wallet
overview, transaction decoding, token approvals, DEX swaps and gas insight.
Each call validates its required argument locally, then issues exactly one
GET request. There are no retries and no caching.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote

import requests

from .config import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT
from .models import (
    DecodedTransaction,
    GasInsight,
    Swap,
    TokenApproval,
    WalletOverview,
    parse_list,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Messages for blank required inputs
WALLET_ADDRESS_REQUIRED = "Please enter a wallet address"
TX_HASH_REQUIRED = "Please enter a transaction hash"

# Default failure messages when the backend does not supply one
WALLET_FETCH_FAILED = "Failed to fetch wallet data"
TX_DECODE_FAILED = "Failed to decode transaction"
APPROVALS_FETCH_FAILED = "Failed to fetch token approvals"
SWAPS_FETCH_FAILED = "Failed to fetch swaps"
GAS_FETCH_FAILED = "Failed to fetch gas insight"


class AnalysisError(Exception):
    """Base exception for analysis client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AnalysisError, ValueError):
    """Raised when a required input is blank. No request is made."""

    pass


class RequestError(AnalysisError):
    """Exception raised for network failures and backend error responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def require(value: Optional[str], message: str) -> str:
    """
    Return the trimmed value, or raise ValidationError if it is blank.

    Args:
        value: User-supplied address or hash
        message: Message for the ValidationError

    Returns:
        The value with surrounding whitespace removed
    """
    trimmed = (value or "").strip()
    if not trimmed:
        raise ValidationError(message)
    return trimmed


class AnalysisAPIClient:
    """
    Client for the wallet analysis backend.

    All backend interactions go through this class, which handles:
    - Base URL joining and path escaping
    - Dropping unset optional query parameters
    - Mapping failures to RequestError with the server's message when present
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Backend base URL, e.g. "http://localhost:3000/"
            timeout: Request timeout in seconds
            session: Optional requests session to reuse
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str, *segments: str) -> str:
        """Build an endpoint URL, escaping each dynamic path segment."""
        escaped = "".join(f"/{quote(segment, safe='')}" for segment in segments)
        return f"{self.base_url}{path}{escaped}"

    @staticmethod
    def _error_message(response: requests.Response, default: str) -> str:
        """Prefer the backend's `message` field, falling back to the default."""
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict):
            message = body.get("message")
            if isinstance(message, str) and message.strip():
                return message
        return default

    def _get(
        self,
        url: str,
        params: Dict[str, Any],
        default_error: str,
        parse: Callable[[Any], T],
    ) -> T:
        """
        Issue a single GET request and parse the JSON body.

        Args:
            url: Endpoint URL
            params: Query parameters; None values are omitted
            default_error: Message used when the backend does not provide one
            parse: Converts the decoded JSON body to the result type

        Returns:
            The parsed payload

        Raises:
            RequestError: For network failures, non-2xx responses and unreadable bodies
        """
        query = {key: value for key, value in params.items() if value is not None}
        logger.debug("GET %s params=%s", url, query)

        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug("Request to %s failed: %s", url, e)
            raise RequestError(default_error) from e

        if not response.ok:
            logger.debug("Request to %s returned %s", url, response.status_code)
            raise RequestError(
                self._error_message(response, default_error),
                status_code=response.status_code,
            )

        try:
            return parse(response.json())
        except (ValueError, TypeError, AttributeError) as e:
            raise RequestError(default_error, status_code=response.status_code) from e

    def get_wallet_overview(
        self,
        address: str,
        chain: str,
        lookback_days: Optional[int] = None,
    ) -> WalletOverview:
        """
        Get holdings and recent activity for a wallet.

        Args:
            address: Wallet address
            chain: Chain identifier (ethereum, polygon, bsc, arbitrum)
            lookback_days: Activity window in days

        Returns:
            WalletOverview

        Raises:
            ValidationError: If the address is blank
            RequestError: If the request fails
        """
        address = require(address, WALLET_ADDRESS_REQUIRED)
        return self._get(
            self._url("/api/wallet", address),
            {"chain": chain, "lookbackDays": lookback_days},
            WALLET_FETCH_FAILED,
            WalletOverview.from_dict,
        )

    def decode_transaction(self, tx_hash: str, chain: str) -> DecodedTransaction:
        """
        Decode a transaction into its method call and a readable description.

        Args:
            tx_hash: Transaction hash
            chain: Chain identifier

        Returns:
            DecodedTransaction
        """
        tx_hash = require(tx_hash, TX_HASH_REQUIRED)
        return self._get(
            self._url("/api/tx", tx_hash),
            {"chain": chain},
            TX_DECODE_FAILED,
            DecodedTransaction.from_dict,
        )

    def list_token_approvals(self, address: str, chain: str) -> List[TokenApproval]:
        """
        List the token approvals a wallet has granted.

        Args:
            address: Wallet address
            chain: Chain identifier

        Returns:
            List of TokenApproval objects (empty if none)
        """
        address = require(address, WALLET_ADDRESS_REQUIRED)
        return self._get(
            self._url("/api/approvals", address),
            {"chain": chain},
            APPROVALS_FETCH_FAILED,
            lambda body: parse_list(body, TokenApproval),
        )

    def find_swaps(
        self,
        address: str,
        chain: str,
        min_usd: Optional[float] = None,
        since: Optional[str] = None,
    ) -> List[Swap]:
        """
        Find DEX swaps made by a wallet.

        Args:
            address: Wallet address
            chain: Chain identifier
            min_usd: Only swaps worth at least this many USD
            since: Only swaps after this date (ISO format)

        Returns:
            List of Swap objects (empty if none)
        """
        address = require(address, WALLET_ADDRESS_REQUIRED)
        return self._get(
            self._url("/api/swaps", address),
            {"chain": chain, "minUsd": min_usd, "since": since or None},
            SWAPS_FETCH_FAILED,
            lambda body: parse_list(body, Swap),
        )

    def get_gas_insight(self, params: Optional[Dict[str, Any]] = None) -> GasInsight:
        """
        Get gas spend statistics.

        Args:
            params: Query parameters passed through to the backend unchanged

        Returns:
            GasInsight
        """
        return self._get(
            self._url("/api/gas"),
            dict(params or {}),
            GAS_FETCH_FAILED,
            GasInsight.from_dict,
        )
