"""
Batch settlement loop (imperative shell).

Requests are processed strictly one at a time: each redemption decision reads
the vault's available reserve, which the previous settlement may have changed,
so the vault and claim supply are re-fetched for every request.

A failure on one request is captured in that request's result and never stops
the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core.redemption import DecisionKind, RedemptionDecision, evaluate_request
from ..errors import InsufficientReserveError, KeeperError, ZeroResultError
from ..state.requests import RedemptionRequest
from .config import KeeperConfig
from .gateway import ChainGateway, TransactionId
from .rebalancer import RebalancingOrchestrator, WithdrawReport


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestResult:
    request_id: str
    ok: bool
    decision: Optional[RedemptionDecision] = None
    settlement_tx: Optional[TransactionId] = None
    rebalance: Optional[WithdrawReport] = None
    error: Optional[Exception] = None

    @property
    def partial(self) -> bool:
        return self.ok and self.decision is not None and self.decision.kind is DecisionKind.PARTIAL_FILL


@dataclass(frozen=True)
class BatchSummary:
    total: int
    settled: int
    partial: int
    rebalancing: int
    failed: int

    @classmethod
    def from_results(cls, results: Sequence[RequestResult]) -> "BatchSummary":
        settled = sum(1 for r in results if r.ok and not r.partial)
        partial = sum(1 for r in results if r.partial)
        rebalancing = sum(
            1
            for r in results
            if not r.ok and r.decision is not None and r.decision.kind is DecisionKind.REBALANCE_REQUIRED
        )
        return cls(
            total=len(results),
            settled=settled,
            partial=partial,
            rebalancing=rebalancing,
            failed=len(results) - settled - partial - rebalancing,
        )


class SettlementLoop:
    def __init__(
        self,
        gateway: ChainGateway,
        orchestrator: RebalancingOrchestrator,
        config: KeeperConfig,
    ) -> None:
        self._gateway = gateway
        self._orchestrator = orchestrator
        self._cfg = config

    def settle_request(self, request: RedemptionRequest) -> RequestResult:
        """
        Settle one request from idle reserve, or start a rebalance.

        A rebalance never settles the request; it stays pending and is
        re-evaluated from scratch on the next pass.

        Raises:
            KeeperError: On arithmetic, transport or rebalancing failure
        """
        vault = self._gateway.fetch_vault_state()
        claim_supply = self._gateway.fetch_claim_total_supply()
        logger.debug("vault %r, claim supply %d", vault, claim_supply)
        decision = evaluate_request(request, vault, claim_supply)

        if decision.settles_now:
            if decision.required == 0:
                raise ZeroResultError(
                    f"request {request.request_id}: entitlement of {request.claim_amount} claim units rounds to zero"
                )
            if decision.amount == 0:
                raise InsufficientReserveError(decision.required, vault.available_reserve)
            if decision.kind is DecisionKind.PARTIAL_FILL:
                logger.warning(
                    "request %s: partial fill of %d out of %d (no LP position to draw on)",
                    request.request_id,
                    decision.amount,
                    decision.required,
                )
            tx = self._gateway.submit_settlement(request.request_id, decision.amount)
            logger.info("request %s: settled %d, tx=%s", request.request_id, decision.amount, tx)
            return RequestResult(request_id=request.request_id, ok=True, decision=decision, settlement_tx=tx)

        logger.info(
            "request %s: requires %d, available %d; withdrawing %d from LP",
            request.request_id,
            decision.required,
            vault.available_reserve,
            decision.deficit,
        )
        report = self._orchestrator.withdraw(decision.deficit)
        return RequestResult(
            request_id=request.request_id,
            ok=False,
            decision=decision,
            rebalance=report,
            error=InsufficientReserveError(decision.required, vault.available_reserve),
        )

    def settle_batch(self, requests: Sequence[RedemptionRequest]) -> List[RequestResult]:
        """Settle `requests` in order, one result per request."""
        results: List[RequestResult] = []
        for request in requests:
            logger.info("processing request %s", request.request_id)
            try:
                result = self.settle_request(request)
            except (KeeperError, ValueError) as exc:
                logger.warning("request %s failed: %s: %s", request.request_id, type(exc).__name__, exc)
                result = RequestResult(request_id=request.request_id, ok=False, error=exc)
            results.append(result)
        return results
