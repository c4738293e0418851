"""
Swap quote engine.

Two pricing models are supported, selectable per call:

- RATIO:
    amount_out = floor(amount_in * reserve_out / reserve_in)
  Prices at the current pool ratio and ignores the trade's own price impact.

- CONSTANT_PRODUCT (fee-free):
    amount_out = floor(amount_in * reserve_out / (reserve_in + amount_in))
  Accounts for the price impact of the trade itself.

Both accept `floor(amount_out * tolerance_pct / 100)` as the minimum output.
The two diverge materially for trades that are large relative to the reserves;
RATIO over-estimates and therefore sets a looser-than-achievable floor, which
the pool will reject once the trade's impact exceeds (100 - tolerance_pct)%.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import DivisionByZeroError, ZeroOutputError
from ..kernels.python.u64_math import (
    apply_tolerance,
    checked_add,
    mul_div_floor,
    require_tolerance,
    require_u64,
)
from ..state.balances import Amount, Asset
from ..state.pools import PoolReserves


class SwapDirection(Enum):
    """Swap direction relative to the pool's sides."""
    A_TO_B = "A_TO_B"  # base reserve asset -> paired token
    B_TO_A = "B_TO_A"  # paired token -> base reserve asset

    @property
    def asset_in(self) -> Asset:
        return Asset.A if self is SwapDirection.A_TO_B else Asset.B

    @property
    def asset_out(self) -> Asset:
        return Asset.B if self is SwapDirection.A_TO_B else Asset.A


class PricingModel(Enum):
    RATIO = "RATIO"
    CONSTANT_PRODUCT = "CONSTANT_PRODUCT"


DEFAULT_PRICING_MODEL = PricingModel.RATIO


@dataclass(frozen=True)
class Quote:
    amount_in: Amount
    amount_out_estimated: Amount
    amount_out_minimum: Amount
    direction: SwapDirection
    model: PricingModel = DEFAULT_PRICING_MODEL


def estimate_amount_out(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_in: Amount,
    model: PricingModel = DEFAULT_PRICING_MODEL,
) -> Amount:
    """
    Estimate swap output under `model`, without applying slippage.

    Raises:
        DivisionByZeroError: If either reserve is zero
        NarrowingError: If the estimate does not fit in u64
    """
    require_u64("reserve_in", reserve_in)
    require_u64("reserve_out", reserve_out)
    require_u64("amount_in", amount_in)
    if reserve_in == 0 or reserve_out == 0:
        raise DivisionByZeroError(f"Reserves must be positive: ({reserve_in}, {reserve_out})")

    if model is PricingModel.RATIO:
        denominator = reserve_in
    elif model is PricingModel.CONSTANT_PRODUCT:
        denominator = checked_add(reserve_in, amount_in)
    else:
        raise ValueError(f"unsupported pricing model: {model!r}")

    return mul_div_floor(amount_in, reserve_out, denominator, name="amount_out_estimated")


def quote(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_in: Amount,
    tolerance_pct: int,
    *,
    direction: SwapDirection = SwapDirection.A_TO_B,
    model: PricingModel = DEFAULT_PRICING_MODEL,
) -> Quote:
    """
    Quote a swap of `amount_in` against `(reserve_in, reserve_out)`.

    Args:
        reserve_in: Pool reserve of the input asset
        reserve_out: Pool reserve of the output asset
        amount_in: Exact input amount (must be positive)
        tolerance_pct: Accepted percentage of the estimate, in (0, 100]
        direction: Direction recorded on the quote
        model: Pricing model

    Returns:
        Quote with the estimate and the slippage-bounded minimum output

    Raises:
        ValueError: If amount_in is zero or tolerance_pct is out of range
        DivisionByZeroError: If a reserve is zero
        ZeroOutputError: If the minimum output rounds down to zero
    """
    require_u64("amount_in", amount_in)
    if amount_in == 0:
        raise ValueError("amount_in must be positive")
    require_tolerance(tolerance_pct)

    estimated = estimate_amount_out(reserve_in, reserve_out, amount_in, model)
    minimum = apply_tolerance(estimated, tolerance_pct)
    if minimum == 0:
        raise ZeroOutputError(
            f"Minimum output is zero for amount_in={amount_in} (estimate {estimated}, tolerance {tolerance_pct}%)"
        )

    return Quote(
        amount_in=amount_in,
        amount_out_estimated=estimated,
        amount_out_minimum=minimum,
        direction=direction,
        model=model,
    )


def quote_pool(
    pool: PoolReserves,
    amount_in: Amount,
    tolerance_pct: int,
    direction: SwapDirection,
    model: PricingModel = DEFAULT_PRICING_MODEL,
) -> Quote:
    """Quote against a pool snapshot, picking reserves by direction."""
    return quote(
        pool.get_reserve(direction.asset_in),
        pool.get_reserve(direction.asset_out),
        amount_in,
        tolerance_pct,
        direction=direction,
        model=model,
    )
