"""
Analysis controllers for the wallet inspection workflows.

Each controller owns one view's state and drives it through the same state
machine: validate input, query the backend, then record either a success
(with aggregates derived from the result) or a failure. Four workflows are
provided: wallet overview, transaction decode, approval risk and swap search.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from .api_client import (
    TX_HASH_REQUIRED,
    WALLET_ADDRESS_REQUIRED,
    AnalysisAPIClient,
    RequestError,
    ValidationError,
)
from .chains import DEFAULT_CHAIN
from .formatters import format_parameter_value
from .models import (
    ApprovalQuery,
    DecodedTransaction,
    Swap,
    SwapQuery,
    TokenApproval,
    TransactionQuery,
    WalletOverview,
    WalletQuery,
)
from .risk import RiskSummary, summarize_risk


logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")

# View states
IDLE = "idle"
LOADING = "loading"
SUCCESS = "success"
FAILURE = "failure"

# Failure kinds
VALIDATION = "validation"  # Blank input, shown next to the field
REQUEST = "request"  # Backend or network failure, retryable

WORKFLOWS = ["wallet", "transaction", "approvals", "swaps"]


@dataclass(frozen=True)
class ViewState:
    """
    The single active state of a view.

    payload and summary are only set for success; error and error_kind
    only for failure.
    """

    status: str
    payload: Any = None
    summary: Any = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def idle(cls) -> "ViewState":
        return cls(IDLE)

    @classmethod
    def loading(cls) -> "ViewState":
        return cls(LOADING)

    @classmethod
    def success(cls, payload: Any, summary: Any = None) -> "ViewState":
        return cls(SUCCESS, payload=payload, summary=summary)

    @classmethod
    def failure(cls, message: str, kind: str = REQUEST) -> "ViewState":
        return cls(FAILURE, error=message, error_kind=kind)

    @property
    def is_empty(self) -> bool:
        """True for a successful query that returned no items."""
        return self.status == SUCCESS and isinstance(self.payload, (list, tuple)) and not self.payload


@dataclass(frozen=True)
class WalletSummary:
    token_count: int
    transaction_count: int
    total_value: float


@dataclass(frozen=True)
class SwapSummary:
    swap_count: int = 0
    total_volume: float = 0.0
    average_swap_size: float = 0.0


@dataclass(frozen=True)
class RenderedParameter:
    """A decoded parameter ready for display."""

    label: str
    type: Optional[str]
    value: str


def summarize_swaps(swaps: List[Swap]) -> SwapSummary:
    """
    Compute swap count, total USD volume and average swap size.

    The average is 0 for an empty list.
    """
    total_volume = sum(swap.value_usd for swap in swaps)
    average = total_volume / len(swaps) if swaps else 0.0
    return SwapSummary(
        swap_count=len(swaps),
        total_volume=total_volume,
        average_swap_size=average,
    )


def render_parameters(tx: DecodedTransaction) -> Tuple[RenderedParameter, ...]:
    """Label decoded parameters in order; unnamed ones become "Parameter N"."""
    return tuple(
        RenderedParameter(
            label=param.name or f"Parameter {index}",
            type=param.type,
            value=format_parameter_value(param.value),
        )
        for index, param in enumerate(tx.parameters, start=1)
    )


class BaseAnalysisController(ABC, Generic[P, R]):
    """
    Abstract base class for analysis controllers.

    Implements the shared idle -> loading -> success/failure state machine.
    Subclasses supply the required input field, the backend query and the
    aggregate derivation.

    Every submission takes a new generation number; a response that settles
    after a newer submission was made is discarded, so the latest request
    always owns the displayed state.
    """

    view_name = "analysis"
    blank_message = WALLET_ADDRESS_REQUIRED

    def __init__(self, client: AnalysisAPIClient):
        """
        Initialize the controller.

        Args:
            client: AnalysisAPIClient used for backend queries
        """
        self.client = client
        self.state = ViewState.idle()
        self.last_params: Optional[P] = None
        self._generation = 0

    @abstractmethod
    def _required_value(self, params: P) -> Optional[str]:
        """Return the input field that must not be blank."""
        pass

    @abstractmethod
    def _query(self, params: P) -> R:
        """Run the backend query for these inputs."""
        pass

    def _derive(self, payload: R) -> Any:
        """Derive view aggregates from a successful payload."""
        return None

    @property
    def summary(self) -> Any:
        return self.state.summary

    def submit(self, params: P) -> ViewState:
        """
        Validate inputs, run the query and record the outcome.

        Args:
            params: Query inputs for this workflow

        Returns:
            The controller state after the query settles
        """
        self.last_params = params
        self._generation += 1
        generation = self._generation

        if not (self._required_value(params) or "").strip():
            logger.debug("[%s] blank input, not querying", self.view_name)
            self.state = ViewState.failure(self.blank_message, VALIDATION)
            return self.state

        self.state = ViewState.loading()
        try:
            payload = self._query(params)
        except ValidationError as e:
            self._settle(generation, ViewState.failure(e.message, VALIDATION))
        except RequestError as e:
            self._settle(generation, ViewState.failure(e.message, REQUEST))
        else:
            self._settle(generation, ViewState.success(payload, self._derive(payload)))
        return self.state

    def retry(self) -> ViewState:
        """
        Re-run the last submission with the same inputs.

        Raises:
            RuntimeError: If nothing has been submitted yet
        """
        if self.last_params is None:
            raise RuntimeError(f"No previous {self.view_name} query to retry")
        return self.submit(self.last_params)

    def _settle(self, generation: int, state: ViewState) -> None:
        if generation != self._generation:
            logger.debug(
                "[%s] discarding stale response (generation %d, current %d)",
                self.view_name,
                generation,
                self._generation,
            )
            return
        logger.debug("[%s] %s", self.view_name, state.status)
        self.state = state


class WalletAnalysisController(BaseAnalysisController[WalletQuery, WalletOverview]):
    """Wallet holdings and recent activity."""

    view_name = "wallet"

    def _required_value(self, params: WalletQuery) -> Optional[str]:
        return params.address

    def _query(self, params: WalletQuery) -> WalletOverview:
        return self.client.get_wallet_overview(
            params.address, params.chain, params.lookback_days
        )

    def _derive(self, payload: WalletOverview) -> WalletSummary:
        return WalletSummary(
            token_count=len(payload.tokens),
            transaction_count=len(payload.transactions),
            total_value=payload.total_value,
        )


class TransactionDecodeController(
    BaseAnalysisController[TransactionQuery, DecodedTransaction]
):
    """
    Transaction decoding.

    When created with an initial hash (e.g. from a saved link), mount()
    decodes it once without waiting for a submission.
    """

    view_name = "transaction"
    blank_message = TX_HASH_REQUIRED

    def __init__(
        self,
        client: AnalysisAPIClient,
        initial_hash: Optional[str] = None,
        chain: str = DEFAULT_CHAIN,
    ):
        super().__init__(client)
        self.initial_hash = initial_hash
        self.chain = chain
        self._mounted = False

    def mount(self) -> ViewState:
        """Decode the initial hash, if any. Only the first call has an effect."""
        if self._mounted:
            return self.state
        self._mounted = True
        if self.initial_hash:
            return self.submit(TransactionQuery(self.initial_hash, self.chain))
        return self.state

    def _required_value(self, params: TransactionQuery) -> Optional[str]:
        return params.tx_hash

    def _query(self, params: TransactionQuery) -> DecodedTransaction:
        return self.client.decode_transaction(params.tx_hash, params.chain)

    def _derive(self, payload: DecodedTransaction) -> Tuple[RenderedParameter, ...]:
        return render_parameters(payload)


class ApprovalCheckController(BaseAnalysisController[ApprovalQuery, List[TokenApproval]]):
    """Token approvals with risk tier counts."""

    view_name = "approvals"

    def _required_value(self, params: ApprovalQuery) -> Optional[str]:
        return params.address

    def _query(self, params: ApprovalQuery) -> List[TokenApproval]:
        return self.client.list_token_approvals(params.address, params.chain)

    def _derive(self, payload: List[TokenApproval]) -> RiskSummary:
        return summarize_risk(payload)

    @property
    def approvals(self) -> List[TokenApproval]:
        return list(self.state.payload or []) if self.state.status == SUCCESS else []


class SwapSearchController(BaseAnalysisController[SwapQuery, List[Swap]]):
    """DEX swap history with volume statistics."""

    view_name = "swaps"

    def _required_value(self, params: SwapQuery) -> Optional[str]:
        return params.address

    def _query(self, params: SwapQuery) -> List[Swap]:
        return self.client.find_swaps(
            params.address, params.chain, params.min_usd, params.since
        )

    def _derive(self, payload: List[Swap]) -> SwapSummary:
        return summarize_swaps(payload)

    @property
    def swaps(self) -> List[Swap]:
        """Swaps from the last successful search; empty after any failure."""
        return list(self.state.payload or []) if self.state.status == SUCCESS else []

    @property
    def summary(self) -> SwapSummary:
        return self.state.summary or SwapSummary()


def create_controller(
    client: AnalysisAPIClient,
    workflow: str,
    initial_hash: Optional[str] = None,
    chain: str = DEFAULT_CHAIN,
) -> BaseAnalysisController:
    """
    Factory function to create the controller for a workflow.

    Args:
        client: AnalysisAPIClient instance
        workflow: One of "wallet", "transaction", "approvals", "swaps"
        initial_hash: Hash decoded on mount (transaction workflow only)
        chain: Chain for the initial hash (transaction workflow only)

    Returns:
        A controller in the idle state

    Raises:
        ValueError: If the workflow is not supported
    """
    if workflow == "wallet":
        return WalletAnalysisController(client)
    elif workflow == "transaction":
        return TransactionDecodeController(client, initial_hash=initial_hash, chain=chain)
    elif workflow == "approvals":
        return ApprovalCheckController(client)
    elif workflow == "swaps":
        return SwapSearchController(client)
    else:
        raise ValueError(
            f"Unsupported workflow: {workflow}. Supported: {', '.join(WORKFLOWS)}"
        )
