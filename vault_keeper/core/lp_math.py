"""
LP token mint/burn math.

Mint (deposit both sides into an existing pool):
    lp = min(floor(a * lp_supply / reserve_a), floor(b * lp_supply / reserve_b))
Taking the minimum never credits more LP than either side of the contribution
pays for.

Burn (withdraw a target amount of the base asset):
    lp = ceil(target_a * lp_supply / (2 * reserve_a))
Burning LP returns a proportional share of *both* reserves, so only half of
the target is attributed to side A; the other half arrives as side B and is
swapped back. Ceiling rounding keeps the burn from being under-sized.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..errors import DivisionByZeroError, ZeroResultError
from ..kernels.python.u64_math import (
    apply_tolerance,
    checked_mul,
    mul_div_ceil,
    mul_div_floor,
    require_u64,
)
from ..state.balances import Amount
from ..state.pools import PoolReserves


class AdjustmentKind(Enum):
    DEPOSIT = "DEPOSIT"  # bounds are maxima
    WITHDRAW = "WITHDRAW"  # bounds are minima


@dataclass(frozen=True)
class LpAdjustment:
    """LP amount to mint or burn, with the two-sided slippage bound."""
    lp_amount: Amount
    asset_a_bound: Amount
    asset_b_bound: Amount
    kind: AdjustmentKind


def lp_amount_to_mint(
    contribution_a: Amount,
    contribution_b: Amount,
    lp_supply: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
) -> Amount:
    """
    Compute LP tokens minted for contributing both sides.

    Raises:
        DivisionByZeroError: If either reserve is zero
        ZeroResultError: If either side's share rounds to zero
    """
    for name, v in (
        ("contribution_a", contribution_a),
        ("contribution_b", contribution_b),
        ("lp_supply", lp_supply),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
    ):
        require_u64(name, v)
    if reserve_a == 0 or reserve_b == 0:
        raise DivisionByZeroError(f"Cannot mint against an empty pool: ({reserve_a}, {reserve_b})")

    lp_a = mul_div_floor(contribution_a, lp_supply, reserve_a, name="lp_from_a")
    lp_b = mul_div_floor(contribution_b, lp_supply, reserve_b, name="lp_from_b")
    if lp_a == 0 or lp_b == 0:
        raise ZeroResultError(f"LP share rounds to zero: from_a={lp_a}, from_b={lp_b}")

    return min(lp_a, lp_b)


def lp_amount_to_burn(target_amount_a: Amount, lp_supply: Amount, reserve_a: Amount) -> Amount:
    """
    Compute LP tokens to burn so that the withdrawal plus swap-back of side B
    realizes `target_amount_a` of the base asset.

    Raises:
        DivisionByZeroError: If reserve_a is zero
        ZeroResultError: If the target or the supply is zero
    """
    require_u64("target_amount_a", target_amount_a)
    require_u64("lp_supply", lp_supply)
    require_u64("reserve_a", reserve_a)
    if reserve_a == 0:
        raise DivisionByZeroError("reserve_a must be positive")

    denominator = checked_mul(2, reserve_a)
    lp = mul_div_ceil(target_amount_a, lp_supply, denominator, name="lp_to_burn")
    if lp == 0:
        raise ZeroResultError(f"LP burn is zero for target {target_amount_a}")
    return lp


def expected_withdrawal(lp_amount: Amount, pool: PoolReserves) -> Tuple[Amount, Amount]:
    """
    Amounts returned for burning `lp_amount` against `pool`.

    Formula:
        amount_a = floor(lp_amount * reserve_a / lp_supply)
        amount_b = floor(lp_amount * reserve_b / lp_supply)
    """
    require_u64("lp_amount", lp_amount)
    if pool.lp_supply == 0:
        raise DivisionByZeroError("lp_supply must be positive")
    if lp_amount > pool.lp_supply:
        raise ValueError(f"Cannot burn more LP than supply: {lp_amount} > {pool.lp_supply}")
    amount_a = mul_div_floor(lp_amount, pool.reserve_a, pool.lp_supply, name="amount_a")
    amount_b = mul_div_floor(lp_amount, pool.reserve_b, pool.lp_supply, name="amount_b")
    return amount_a, amount_b


def deposit_adjustment(
    contribution_a: Amount,
    contribution_b: Amount,
    pool: PoolReserves,
) -> LpAdjustment:
    """LP deposit bounded on both sides by the contributions themselves."""
    lp = lp_amount_to_mint(contribution_a, contribution_b, pool.lp_supply, pool.reserve_a, pool.reserve_b)
    return LpAdjustment(
        lp_amount=lp,
        asset_a_bound=contribution_a,
        asset_b_bound=contribution_b,
        kind=AdjustmentKind.DEPOSIT,
    )


def withdraw_adjustment(lp_amount: Amount, pool: PoolReserves, tolerance_pct: int) -> LpAdjustment:
    """LP withdrawal bounded by `floor(expected_side * tolerance_pct / 100)` per side."""
    if lp_amount == 0:
        raise ZeroResultError("LP withdrawal amount is zero")
    amount_a, amount_b = expected_withdrawal(lp_amount, pool)
    return LpAdjustment(
        lp_amount=lp_amount,
        asset_a_bound=apply_tolerance(amount_a, tolerance_pct),
        asset_b_bound=apply_tolerance(amount_b, tolerance_pct),
        kind=AdjustmentKind.WITHDRAW,
    )
