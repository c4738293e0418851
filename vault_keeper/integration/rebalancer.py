"""
Rebalancing orchestrator (imperative shell).

Two fixed two-step flows move value between idle reserve and the LP position:

    deposit:   IDLE -> SWAPPED -> DEPOSITED
        1. swap half of the deposit A->B
        2. re-fetch the pool, mint LP with (remainder, swap minimum out)

    withdraw:  IDLE -> BURNED -> SWAPPED
        1. burn LP for both sides, bounded below by the tolerance
        2. re-fetch the vault's side-B balance and the pool, swap it all B->A

Pool state is re-fetched before every step; no snapshot spans both. A failed
step aborts the flow with `RebalanceError`. Already-submitted transactions are
final; nothing is rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, TypeVar

from ..core.lp_math import LpAdjustment, deposit_adjustment, lp_amount_to_burn, withdraw_adjustment
from ..core.quote import Quote, SwapDirection, quote_pool
from ..errors import InsufficientReserveError, KeeperError, RebalanceError
from ..kernels.python.u64_math import require_u64
from ..state.balances import Amount, Asset
from .config import KeeperConfig, WithdrawPolicy
from .gateway import ChainGateway, TransactionId
from .journal import PhaseJournal


logger = logging.getLogger(__name__)

T = TypeVar("T")

FLOW_DEPOSIT = "deposit"
FLOW_WITHDRAW = "withdraw"


class RebalancePhase(Enum):
    IDLE = "IDLE"
    SWAPPED = "SWAPPED"
    DEPOSITED = "DEPOSITED"
    BURNED = "BURNED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class DepositReport:
    flow_id: str
    deposit_amount: Amount
    swap_quote: Quote
    swap_tx: TransactionId
    adjustment: LpAdjustment
    deposit_tx: TransactionId
    phase: RebalancePhase = RebalancePhase.DEPOSITED

    @property
    def remainder(self) -> Amount:
        return self.deposit_amount - self.swap_quote.amount_in


@dataclass(frozen=True)
class WithdrawReport:
    flow_id: str
    target_amount: Amount
    adjustment: LpAdjustment
    withdraw_tx: TransactionId
    swap_quote: Quote
    swap_tx: TransactionId
    phase: RebalancePhase = RebalancePhase.SWAPPED

    @property
    def minimum_raised(self) -> Amount:
        """Lower bound on base asset raised: the side-A burn floor plus the swap floor."""
        return self.adjustment.asset_a_bound + self.swap_quote.amount_out_minimum


class _Flow:
    """Tracks one flow's phase and submitted transactions for journaling and errors."""

    def __init__(self, journal: PhaseJournal, flow: str) -> None:
        self.journal = journal
        self.flow = flow
        self.flow_id = journal.new_flow_id(flow)
        self.phase = RebalancePhase.IDLE
        self.submitted: List[TransactionId] = []

    def start(self, **detail) -> None:
        self.journal.append(self.flow_id, self.flow, self.phase.value, **detail)
        logger.info("%s %s: %s %s", self.flow, self.flow_id, self.phase.value, detail)

    def advance(self, phase: RebalancePhase, tx_id: TransactionId, **detail) -> None:
        self.phase = phase
        self.submitted.append(tx_id)
        self.journal.append(self.flow_id, self.flow, phase.value, tx_id=tx_id, **detail)
        logger.info("%s %s: %s tx=%s %s", self.flow, self.flow_id, phase.value, tx_id, detail)

    def step(self, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except (KeeperError, ValueError) as exc:
            self.journal.append(
                self.flow_id,
                self.flow,
                RebalancePhase.FAILED.value,
                after=self.phase.value,
                error=f"{type(exc).__name__}: {exc}",
            )
            logger.error(
                "%s %s failed after %s (submitted=%s): %s",
                self.flow,
                self.flow_id,
                self.phase.value,
                self.submitted,
                exc,
            )
            raise RebalanceError(self.flow, self.phase.value, self.submitted, exc) from exc


class RebalancingOrchestrator:
    def __init__(
        self,
        gateway: ChainGateway,
        config: KeeperConfig,
        journal: Optional[PhaseJournal] = None,
    ) -> None:
        self._gateway = gateway
        self._cfg = config
        self._journal = journal if journal is not None else PhaseJournal(config.journal_path)

    @property
    def journal(self) -> PhaseJournal:
        return self._journal

    def _quote_swap(self, direction: SwapDirection, amount_in: Amount) -> Quote:
        pool = self._gateway.fetch_pool_reserves(self._cfg.pool_id)
        logger.debug("pool before %s swap: %r", direction.value, pool)
        return quote_pool(
            pool,
            amount_in,
            self._cfg.swap_tolerance_pct,
            direction,
            self._cfg.pricing_model,
        )

    def deposit(self, deposit_amount: Amount) -> DepositReport:
        """
        Move `deposit_amount` of idle base asset into the LP position.

        Raises:
            RebalanceError: If any step fails (including zero quotes or LP amounts)
        """
        require_u64("deposit_amount", deposit_amount)
        flow = _Flow(self._journal, FLOW_DEPOSIT)
        half = deposit_amount // 2
        remainder = deposit_amount - half
        flow.start(deposit_amount=deposit_amount, swap_amount=half, remainder=remainder)

        def _swap():
            q = self._quote_swap(SwapDirection.A_TO_B, half)
            tx = self._gateway.submit_swap(q.direction, q.amount_in, q.amount_out_minimum)
            return q, tx

        swap_quote, swap_tx = flow.step(_swap)
        flow.advance(
            RebalancePhase.SWAPPED,
            swap_tx,
            amount_in=swap_quote.amount_in,
            minimum_out=swap_quote.amount_out_minimum,
        )

        def _deposit():
            pool = self._gateway.fetch_pool_reserves(self._cfg.pool_id)
            logger.debug("pool before lp deposit: %r", pool)
            adj = deposit_adjustment(remainder, swap_quote.amount_out_minimum, pool)
            tx = self._gateway.submit_lp_deposit(adj.lp_amount, adj.asset_a_bound, adj.asset_b_bound)
            return adj, tx

        adjustment, deposit_tx = flow.step(_deposit)
        flow.advance(
            RebalancePhase.DEPOSITED,
            deposit_tx,
            lp_amount=adjustment.lp_amount,
            max_a=adjustment.asset_a_bound,
            max_b=adjustment.asset_b_bound,
        )

        return DepositReport(
            flow_id=flow.flow_id,
            deposit_amount=deposit_amount,
            swap_quote=swap_quote,
            swap_tx=swap_tx,
            adjustment=adjustment,
            deposit_tx=deposit_tx,
        )

    def _lp_to_burn(self, target_amount: Amount) -> LpAdjustment:
        pool = self._gateway.fetch_pool_reserves(self._cfg.pool_id)
        vault = self._gateway.fetch_vault_state()
        logger.debug("pool before lp withdraw: %r, vault lp balance %d", pool, vault.lp_balance)
        if not vault.has_lp_position:
            raise InsufficientReserveError(
                target_amount,
                vault.available_reserve,
                message="vault holds no LP position to withdraw",
            )

        if self._cfg.withdraw_policy is WithdrawPolicy.FULL:
            lp = vault.lp_balance
        else:
            lp = lp_amount_to_burn(target_amount, pool.lp_supply, pool.reserve_a)
            if lp > vault.lp_balance:
                logger.warning(
                    "LP burn of %d for target %d exceeds held balance %d; burning the held balance",
                    lp,
                    target_amount,
                    vault.lp_balance,
                )
                lp = vault.lp_balance
        return withdraw_adjustment(lp, pool, self._cfg.withdraw_tolerance_pct)

    def withdraw(self, target_amount: Amount) -> WithdrawReport:
        """
        Raise roughly `target_amount` of base asset from the LP position.

        The amount actually raised is not verified against the target; a
        shortfall is logged and left to the next settlement pass.

        Raises:
            RebalanceError: If any step fails
        """
        require_u64("target_amount", target_amount)
        flow = _Flow(self._journal, FLOW_WITHDRAW)
        flow.start(target_amount=target_amount, policy=self._cfg.withdraw_policy.value)

        def _burn():
            adj = self._lp_to_burn(target_amount)
            tx = self._gateway.submit_lp_withdraw(adj.lp_amount, adj.asset_a_bound, adj.asset_b_bound)
            return adj, tx

        adjustment, withdraw_tx = flow.step(_burn)
        flow.advance(
            RebalancePhase.BURNED,
            withdraw_tx,
            lp_amount=adjustment.lp_amount,
            min_a=adjustment.asset_a_bound,
            min_b=adjustment.asset_b_bound,
        )

        def _swap_back():
            balance_b = self._gateway.fetch_token_balance(Asset.B)
            q = self._quote_swap(SwapDirection.B_TO_A, balance_b)
            tx = self._gateway.submit_swap(q.direction, q.amount_in, q.amount_out_minimum)
            return q, tx

        swap_quote, swap_tx = flow.step(_swap_back)
        flow.advance(
            RebalancePhase.SWAPPED,
            swap_tx,
            amount_in=swap_quote.amount_in,
            minimum_out=swap_quote.amount_out_minimum,
        )

        report = WithdrawReport(
            flow_id=flow.flow_id,
            target_amount=target_amount,
            adjustment=adjustment,
            withdraw_tx=withdraw_tx,
            swap_quote=swap_quote,
            swap_tx=swap_tx,
        )
        if report.minimum_raised < target_amount:
            logger.info(
                "withdraw %s guarantees %d of target %d; the remainder depends on execution prices",
                flow.flow_id,
                report.minimum_raised,
                target_amount,
            )
        return report
