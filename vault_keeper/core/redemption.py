"""
Redemption calculator.

A claim is entitled to its proportional share of the vault's total reserve:
    required = floor(claim_amount * total_reserve / claim_total_supply)

Decision policy, evaluated fresh for every request on every pass:
1. required <= available_reserve  -> SETTLE for `required` (only idle funds move).
2. vault holds no LP position      -> PARTIAL_FILL for `available_reserve`.
3. otherwise                       -> REBALANCE_REQUIRED for the deficit; the
   request stays pending and is re-evaluated from step 1 on a later pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import DivisionByZeroError
from ..kernels.python.u64_math import mul_div_floor, require_u64
from ..state.balances import Amount
from ..state.requests import RedemptionRequest
from ..state.vault import Vault


class DecisionKind(Enum):
    SETTLE = "SETTLE"
    PARTIAL_FILL = "PARTIAL_FILL"
    REBALANCE_REQUIRED = "REBALANCE_REQUIRED"


@dataclass(frozen=True)
class RedemptionDecision:
    """
    Outcome of evaluating one request.

    Attributes:
        kind: What the caller should do
        required: Reserve the claim is entitled to
        amount: Amount to settle now (0 when a rebalance is required)
        deficit: Shortfall to raise by rebalancing (0 otherwise)
    """
    kind: DecisionKind
    required: Amount
    amount: Amount
    deficit: Amount = 0

    @property
    def settles_now(self) -> bool:
        return self.kind in (DecisionKind.SETTLE, DecisionKind.PARTIAL_FILL)


def required_reserve(claim_amount: Amount, vault: Vault, claim_total_supply: Amount) -> Amount:
    """
    Reserve owed to `claim_amount` claim units.

    Claim units are burned when a request is created, so `claim_amount` may
    exceed the remaining `claim_total_supply`.

    Raises:
        DivisionByZeroError: If claim_total_supply is zero
        NarrowingError: If the entitlement does not fit in u64
    """
    require_u64("claim_amount", claim_amount)
    require_u64("claim_total_supply", claim_total_supply)
    if claim_total_supply == 0:
        raise DivisionByZeroError("claim_total_supply must be positive")
    return mul_div_floor(claim_amount, vault.total_reserve, claim_total_supply, name="required_reserve")


def decide(required: Amount, vault: Vault) -> RedemptionDecision:
    require_u64("required", required)
    if required <= vault.available_reserve:
        return RedemptionDecision(kind=DecisionKind.SETTLE, required=required, amount=required)
    if not vault.has_lp_position:
        return RedemptionDecision(
            kind=DecisionKind.PARTIAL_FILL,
            required=required,
            amount=vault.available_reserve,
        )
    return RedemptionDecision(
        kind=DecisionKind.REBALANCE_REQUIRED,
        required=required,
        amount=0,
        deficit=required - vault.available_reserve,
    )


def evaluate_request(
    request: RedemptionRequest,
    vault: Vault,
    claim_total_supply: Amount,
) -> RedemptionDecision:
    """Compute the entitlement of a pending request and decide how to fill it."""
    if not request.is_pending:
        raise ValueError(f"Request {request.request_id} is not pending: {request.status.value}")
    required = required_reserve(request.claim_amount, vault, claim_total_supply)
    return decide(required, vault)
