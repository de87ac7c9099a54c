"""
Unit tests for the analysis controllers.

Tests follow the Given/When/Then pattern for clarity.
"""

from unittest.mock import Mock

import pytest
import responses

from wallet_analyzer.lib.api_client import (
    AnalysisAPIClient,
    RequestError,
    ValidationError,
)
from wallet_analyzer.lib.controllers import (
    FAILURE,
    IDLE,
    LOADING,
    REQUEST,
    SUCCESS,
    VALIDATION,
    ApprovalCheckController,
    RenderedParameter,
    SwapSearchController,
    SwapSummary,
    TransactionDecodeController,
    ViewState,
    WalletAnalysisController,
    WalletSummary,
    create_controller,
    render_parameters,
    summarize_swaps,
)
from wallet_analyzer.lib.models import (
    ApprovalQuery,
    DecodedTransaction,
    Swap,
    SwapQuery,
    TokenApproval,
    TransactionQuery,
    TxParameter,
    WalletOverview,
    WalletQuery,
)
from wallet_analyzer.lib.risk import RiskSummary


def make_swap(value_usd: float, tx_hash: str = "0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204") -> Swap:
    return Swap(
        tx_hash=tx_hash,
        timestamp=1736089440,
        token_in="WETH",
        token_out="USDC",
        amount_in="1",
        amount_out="3300",
        value_usd=value_usd,
        dex="Uniswap V3",
    )


def make_approval(allowance: str) -> TokenApproval:
    return TokenApproval(
        token="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        spender="0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
        amount=allowance,
        allowance=allowance,
        symbol="USDC",
        name="USD Coin",
    )


@pytest.fixture
def mock_client():
    """Mock AnalysisAPIClient for controller tests."""
    return Mock(spec=AnalysisAPIClient)


class TestViewState:
    """Tests for the ViewState record."""

    def test_controllers_start_idle(self, mock_client):
        """
        Given a new controller
        When inspecting its state
        Then it should be idle with no payload or error
        """
        # When
        controller = WalletAnalysisController(mock_client)

        # Then
        assert controller.state == ViewState.idle()
        assert controller.state.status == IDLE
        assert controller.state.payload is None
        assert controller.state.error is None

    def test_empty_success_is_not_a_failure(self):
        """
        Given a success state with an empty list
        When checking is_empty
        Then it should be empty and still a success
        """
        # When
        state = ViewState.success([], SwapSummary())

        # Then
        assert state.is_empty
        assert state.status == SUCCESS
        assert state.error is None

    def test_non_list_payload_is_never_empty(self):
        """
        Given a success state with a record payload
        When checking is_empty
        Then it should not be empty
        """
        # When / Then
        assert not ViewState.success(WalletOverview.from_dict({})).is_empty
        assert not ViewState.failure("boom").is_empty


class TestSubmitValidation:
    """Tests for blank input handling."""

    @pytest.mark.parametrize(
        "controller_cls, params, message",
        [
            (WalletAnalysisController, WalletQuery("   "), "Please enter a wallet address"),
            (TransactionDecodeController, TransactionQuery(""), "Please enter a transaction hash"),
            (ApprovalCheckController, ApprovalQuery("\t"), "Please enter a wallet address"),
            (SwapSearchController, SwapQuery(" \n "), "Please enter a wallet address"),
        ],
    )
    def test_blank_input_fails_without_querying(self, mock_client, controller_cls, params, message):
        """
        Given a blank required field
        When submitting
        Then the controller fails with the field message and makes no query
        """
        # Given
        controller = controller_cls(mock_client)

        # When
        state = controller.submit(params)

        # Then
        assert state.status == FAILURE
        assert state.error == message
        assert state.error_kind == VALIDATION
        assert mock_client.method_calls == []

    def test_client_validation_error_becomes_validation_failure(self, mock_client):
        """
        Given a client that rejects the input locally
        When submitting
        Then the failure should be a validation failure
        """
        # Given
        mock_client.list_token_approvals.side_effect = ValidationError("Please enter a wallet address")
        controller = ApprovalCheckController(mock_client)

        # When
        state = controller.submit(ApprovalQuery("0xabc"))

        # Then
        assert state.status == FAILURE
        assert state.error_kind == VALIDATION


class TestWalletAnalysisController:
    """Tests for the wallet workflow."""

    def test_success_derives_counts(self, mock_client, sample_wallet_address):
        """
        Given a backend overview with two tokens and one transaction
        When analyzing the wallet
        Then the summary should hold the counts and total value
        """
        # Given
        overview = WalletOverview.from_dict(
            {
                "address": sample_wallet_address,
                "tokens": [{"symbol": "USDC"}, {"symbol": "DAI"}],
                "transactions": [{"hash": "0xabc"}],
                "totalValue": 1500.25,
            }
        )
        mock_client.get_wallet_overview.return_value = overview
        controller = WalletAnalysisController(mock_client)

        # When
        state = controller.submit(WalletQuery(sample_wallet_address, "polygon", 7))

        # Then
        mock_client.get_wallet_overview.assert_called_once_with(sample_wallet_address, "polygon", 7)
        assert state.status == SUCCESS
        assert state.payload is overview
        assert state.summary == WalletSummary(token_count=2, transaction_count=1, total_value=1500.25)

    def test_failure_discards_previous_payload(self, mock_client, sample_wallet_address):
        """
        Given a controller showing a previous overview
        When the next query fails
        Then the failure replaces the overview
        """
        # Given
        mock_client.get_wallet_overview.return_value = WalletOverview.from_dict({})
        controller = WalletAnalysisController(mock_client)
        controller.submit(WalletQuery(sample_wallet_address))
        mock_client.get_wallet_overview.side_effect = RequestError("Failed to fetch wallet data", 500)

        # When
        state = controller.submit(WalletQuery(sample_wallet_address))

        # Then
        assert state == ViewState.failure("Failed to fetch wallet data", REQUEST)
        assert state.payload is None
        assert controller.summary is None


class TestSwapSearchController:
    """Tests for the swap workflow."""

    def test_total_volume_and_average(self, mock_client, sample_wallet_address):
        """
        Given swaps worth $100 and $300
        When searching swaps
        Then total volume is 400 and the average is 200
        """
        # Given
        mock_client.find_swaps.return_value = [make_swap(100), make_swap(300)]
        controller = SwapSearchController(mock_client)

        # When
        controller.submit(SwapQuery(sample_wallet_address, "ethereum", 50.0, "2025-01-01"))

        # Then
        mock_client.find_swaps.assert_called_once_with(
            sample_wallet_address, "ethereum", 50.0, "2025-01-01"
        )
        assert controller.summary == SwapSummary(swap_count=2, total_volume=400, average_swap_size=200)

    def test_empty_result_is_success_with_zero_average(self, mock_client, sample_wallet_address):
        """
        Given a backend returning no swaps
        When searching swaps
        Then the state is an empty success with zero statistics
        """
        # Given
        mock_client.find_swaps.return_value = []
        controller = SwapSearchController(mock_client)

        # When
        state = controller.submit(SwapQuery(sample_wallet_address))

        # Then
        assert state.status == SUCCESS
        assert state.is_empty
        assert controller.summary == SwapSummary(0, 0.0, 0.0)

    def test_failure_resets_swaps(self, mock_client, sample_wallet_address):
        """
        Given a controller holding swaps from a previous search
        When the next search fails
        Then the swap list and statistics are reset
        """
        # Given
        mock_client.find_swaps.return_value = [make_swap(100)]
        controller = SwapSearchController(mock_client)
        controller.submit(SwapQuery(sample_wallet_address))
        mock_client.find_swaps.side_effect = RequestError("Failed to fetch swaps")

        # When
        state = controller.submit(SwapQuery(sample_wallet_address))

        # Then
        assert state.status == FAILURE
        assert state.error == "Failed to fetch swaps"
        assert controller.swaps == []
        assert controller.summary == SwapSummary()

    def test_summary_recomputed_on_each_success(self, mock_client, sample_wallet_address):
        """
        Given two consecutive successful searches
        When the second returns different swaps
        Then statistics reflect only the latest result
        """
        # Given
        mock_client.find_swaps.side_effect = [[make_swap(100), make_swap(300)], [make_swap(50)]]
        controller = SwapSearchController(mock_client)
        controller.submit(SwapQuery(sample_wallet_address))

        # When
        controller.submit(SwapQuery(sample_wallet_address))

        # Then
        assert controller.summary == SwapSummary(1, 50, 50)


class TestSummarizeSwaps:
    """Tests for summarize_swaps function."""

    def test_empty_list_does_not_divide_by_zero(self):
        """
        Given no swaps
        When summarizing
        Then the average should be 0
        """
        # When / Then
        assert summarize_swaps([]).average_swap_size == 0


class TestApprovalCheckController:
    """Tests for the approval workflow."""

    def test_counts_risk_tiers(self, mock_client, sample_wallet_address):
        """
        Given one 2000 allowance and one 10^21 allowance
        When checking approvals
        Then risk counts are low 0, medium 1, high 1
        """
        # Given
        mock_client.list_token_approvals.return_value = [
            make_approval("2000"),
            make_approval("1000000000000000000000"),
        ]
        controller = ApprovalCheckController(mock_client)

        # When
        state = controller.submit(ApprovalQuery(sample_wallet_address, "bsc"))

        # Then
        mock_client.list_token_approvals.assert_called_once_with(sample_wallet_address, "bsc")
        assert state.summary == RiskSummary(total=2, low=0, medium=1, high=1)
        assert len(controller.approvals) == 2

    def test_no_approvals_is_empty_success(self, mock_client, sample_wallet_address):
        """
        Given a wallet with no approvals
        When checking approvals
        Then the state is an empty success, not a failure
        """
        # Given
        mock_client.list_token_approvals.return_value = []
        controller = ApprovalCheckController(mock_client)

        # When
        state = controller.submit(ApprovalQuery(sample_wallet_address))

        # Then
        assert state.is_empty
        assert state.summary == RiskSummary()
        assert controller.approvals == []


class TestTransactionDecodeController:
    """Tests for the transaction decode workflow."""

    def _decoded(self, tx_hash: str) -> DecodedTransaction:
        return DecodedTransaction(
            hash=tx_hash,
            chain="ethereum",
            method="transfer",
            parameters=(TxParameter(value="0xdef", name="to", type="address"), TxParameter(value=[1, 2])),
            decoded_data=None,
            human_readable="Transfer",
        )

    def test_mount_decodes_initial_hash_once(self, mock_client, sample_tx_hash):
        """
        Given a controller created with a saved transaction hash
        When mounting it twice
        Then the hash is decoded exactly once
        """
        # Given
        mock_client.decode_transaction.return_value = self._decoded(sample_tx_hash)
        controller = TransactionDecodeController(mock_client, initial_hash=sample_tx_hash, chain="arbitrum")

        # When
        first = controller.mount()
        second = controller.mount()

        # Then
        mock_client.decode_transaction.assert_called_once_with(sample_tx_hash, "arbitrum")
        assert first.status == SUCCESS
        assert second is first

    def test_mount_without_hash_stays_idle(self, mock_client):
        """
        Given a controller without an initial hash
        When mounting it
        Then it stays idle and makes no query
        """
        # Given
        controller = TransactionDecodeController(mock_client)

        # When
        state = controller.mount()

        # Then
        assert state.status == IDLE
        mock_client.decode_transaction.assert_not_called()

    def test_success_renders_parameters(self, mock_client, sample_tx_hash):
        """
        Given a decoded transaction with named and unnamed parameters
        When decoding it
        Then the summary holds parameters labelled in order
        """
        # Given
        mock_client.decode_transaction.return_value = self._decoded(sample_tx_hash)
        controller = TransactionDecodeController(mock_client)

        # When
        state = controller.submit(TransactionQuery(sample_tx_hash))

        # Then
        assert state.summary == (
            RenderedParameter(label="to", type="address", value="0xdef"),
            RenderedParameter(label="Parameter 2", type=None, value="[\n  1,\n  2\n]"),
        )

    def test_render_parameters_for_no_parameters(self, sample_tx_hash):
        """
        Given a decoded transaction without parameters
        When rendering its parameters
        Then an empty tuple should be returned
        """
        # Given
        tx = DecodedTransaction(sample_tx_hash, "ethereum", "fallback", (), None, "")

        # When / Then
        assert render_parameters(tx) == ()


class TestRetry:
    """Tests for retrying the last submission."""

    def test_retry_reissues_identical_query(self, mock_client, sample_wallet_address):
        """
        Given a failed swap search
        When retrying
        Then the same query is issued again and can succeed
        """
        # Given
        query = SwapQuery(sample_wallet_address, "polygon", 25.0, "2024-06-01")
        mock_client.find_swaps.side_effect = [RequestError("Failed to fetch swaps"), [make_swap(10)]]
        controller = SwapSearchController(mock_client)
        controller.submit(query)

        # When
        state = controller.retry()

        # Then
        assert state.status == SUCCESS
        assert controller.last_params == query
        assert mock_client.find_swaps.call_count == 2
        first, second = mock_client.find_swaps.call_args_list
        assert first == second

    def test_retry_without_submission_raises(self, mock_client):
        """
        Given a controller that was never submitted
        When retrying
        Then a RuntimeError should be raised
        """
        # Given
        controller = ApprovalCheckController(mock_client)

        # When / Then
        with pytest.raises(RuntimeError, match="No previous approvals query"):
            controller.retry()


class TestStaleResponses:
    """Tests for discarding responses from superseded submissions."""

    def test_older_response_settling_last_is_discarded(self, mock_client):
        """
        Given a search that is still pending when a newer search completes
        When the older search settles afterwards
        Then the newer result is kept
        """
        # Given
        controller = SwapSearchController(mock_client)
        older, newer = [make_swap(1)], [make_swap(2), make_swap(3)]

        def find_swaps(address, chain, min_usd, since):
            if address == "0xolder":
                # The user resubmits before the first response arrives
                controller.submit(SwapQuery("0xnewer"))
                return older
            return newer

        mock_client.find_swaps.side_effect = find_swaps

        # When
        state = controller.submit(SwapQuery("0xolder"))

        # Then
        assert state.payload == newer
        assert controller.summary.swap_count == 2
        assert controller.last_params == SwapQuery("0xnewer")

    def test_blank_resubmission_supersedes_pending_query(self, mock_client):
        """
        Given a pending query
        When a blank submission is made before it settles
        Then the validation failure is kept
        """
        # Given
        controller = ApprovalCheckController(mock_client)

        def list_approvals(address, chain):
            controller.submit(ApprovalQuery(""))
            return [make_approval("1")]

        mock_client.list_token_approvals.side_effect = list_approvals

        # When
        state = controller.submit(ApprovalQuery("0xabc"))

        # Then
        assert state.status == FAILURE
        assert state.error_kind == VALIDATION

    def test_state_is_loading_while_query_runs(self, mock_client):
        """
        Given a query in progress
        When observing the controller during the call
        Then it should be loading with no error
        """
        # Given
        controller = WalletAnalysisController(mock_client)
        seen = []

        def get_wallet_overview(address, chain, lookback_days):
            seen.append(controller.state)
            return WalletOverview.from_dict({})

        mock_client.get_wallet_overview.side_effect = get_wallet_overview

        # When
        controller.submit(WalletQuery("0xabc"))

        # Then
        assert seen == [ViewState.loading()]
        assert seen[0].status == LOADING


class TestCreateController:
    """Tests for the create_controller factory."""

    def test_creates_controller_per_workflow(self, mock_client):
        """
        Given each workflow name
        When creating controllers
        Then the matching controller class is returned
        """
        # When / Then
        assert isinstance(create_controller(mock_client, "wallet"), WalletAnalysisController)
        assert isinstance(create_controller(mock_client, "transaction"), TransactionDecodeController)
        assert isinstance(create_controller(mock_client, "approvals"), ApprovalCheckController)
        assert isinstance(create_controller(mock_client, "swaps"), SwapSearchController)

    def test_raises_error_for_unknown_workflow(self, mock_client):
        """
        Given an unknown workflow
        When creating a controller
        Then a ValueError should be raised
        """
        # When / Then
        with pytest.raises(ValueError, match="Unsupported workflow: gas"):
            create_controller(mock_client, "gas")

    def test_transaction_controller_receives_initial_hash(self, mock_client, sample_tx_hash):
        """
        Given a saved transaction hash
        When creating the transaction controller and mounting it
        Then the hash is decoded on the requested chain
        """
        # Given
        mock_client.decode_transaction.return_value = DecodedTransaction.from_dict({"hash": sample_tx_hash})
        controller = create_controller(
            mock_client, "transaction", initial_hash=sample_tx_hash, chain="polygon"
        )

        # When
        state = controller.mount()

        # Then
        assert state.status == SUCCESS
        mock_client.decode_transaction.assert_called_once_with(sample_tx_hash, "polygon")


class TestControllerWithBackend:
    """End-to-end controller tests against a mocked backend."""

    @responses.activate
    def test_server_message_reaches_failure_state(self, client, api_base_url, sample_wallet_address):
        """
        Given a backend rejecting the request with a message
        When checking approvals
        Then the failure state shows the server message
        """
        # Given
        responses.add(
            responses.GET,
            f"{api_base_url}/api/approvals/{sample_wallet_address}",
            json={"message": "Rate limited, try again later"},
            status=429,
        )
        controller = ApprovalCheckController(client)

        # When
        state = controller.submit(ApprovalQuery(sample_wallet_address))

        # Then
        assert state == ViewState.failure("Rate limited, try again later", REQUEST)
        assert len(responses.calls) == 1
