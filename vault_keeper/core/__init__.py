"""
Core settlement and rebalancing arithmetic (pure, no I/O)
"""

from .quote import (
    DEFAULT_PRICING_MODEL,
    PricingModel,
    Quote,
    SwapDirection,
    estimate_amount_out,
    quote,
    quote_pool,
)
from .lp_math import (
    AdjustmentKind,
    LpAdjustment,
    deposit_adjustment,
    expected_withdrawal,
    lp_amount_to_burn,
    lp_amount_to_mint,
    withdraw_adjustment,
)
from .redemption import (
    DecisionKind,
    RedemptionDecision,
    decide,
    evaluate_request,
    required_reserve,
)

__all__ = [
    "DEFAULT_PRICING_MODEL",
    "PricingModel",
    "Quote",
    "SwapDirection",
    "estimate_amount_out",
    "quote",
    "quote_pool",
    "AdjustmentKind",
    "LpAdjustment",
    "deposit_adjustment",
    "expected_withdrawal",
    "lp_amount_to_burn",
    "lp_amount_to_mint",
    "withdraw_adjustment",
    "DecisionKind",
    "RedemptionDecision",
    "decide",
    "evaluate_request",
    "required_reserve",
]
