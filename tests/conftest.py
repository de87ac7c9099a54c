"""
Pytest configuration and shared fixtures for wallet-activity-analyzer tests.
"""

import pytest

from wallet_analyzer.lib.api_client import AnalysisAPIClient


@pytest.fixture
def sample_wallet_address():
    """Sample Ethereum wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth


@pytest.fixture
def sample_tx_hash():
    """Sample transaction hash for testing."""
    return "0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204ef84bfed1be16dfba1b22060"


@pytest.fixture
def api_base_url():
    """Base URL for the mocked analysis backend."""
    return "http://api.test"


@pytest.fixture
def client(api_base_url):
    """AnalysisAPIClient pointed at the mocked backend."""
    return AnalysisAPIClient(api_base_url, timeout=5)
