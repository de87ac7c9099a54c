"""
Chain registry for block explorer links and native token labels.

Unknown chains fall back to the Ethereum entries rather than raising, so a
chain value passed straight through to the backend still renders links.
"""

from typing import Dict


DEFAULT_CHAIN = "ethereum"

SUPPORTED_CHAINS = ["ethereum", "polygon", "bsc", "arbitrum"]

# Explorer host for each supported chain
EXPLORER_HOSTS = {
    "ethereum": "etherscan.io",
    "polygon": "polygonscan.com",
    "bsc": "bscscan.com",
    "arbitrum": "arbiscan.io",
}

NATIVE_SYMBOLS = {
    "ethereum": "ETH",
    "polygon": "MATIC",
    "bsc": "BNB",
    "arbitrum": "ETH",
}

EXPLORER_KINDS = ("tx", "address")


def _lookup(table: Dict[str, str], chain: str) -> str:
    return table.get(chain, table[DEFAULT_CHAIN])


def resolve_explorer_url(kind: str, value: str, chain: str) -> str:
    """
    Build a block explorer URL for a transaction hash or an address.

    Args:
        kind: "tx" or "address"
        value: Transaction hash or account address
        chain: Chain identifier (unknown chains use the Ethereum explorer)

    Returns:
        Explorer URL

    Raises:
        ValueError: If kind is not a supported link kind

    Examples:
        resolve_explorer_url("tx", "0xabc", "polygon")
        -> "https://polygonscan.com/tx/0xabc"
    """
    if kind not in EXPLORER_KINDS:
        raise ValueError(f"Unsupported explorer link kind: {kind}")
    return f"https://{_lookup(EXPLORER_HOSTS, chain)}/{kind}/{value}"


def native_symbol(chain: str) -> str:
    """Return the native token symbol for a chain."""
    return _lookup(NATIVE_SYMBOLS, chain)
