# [TESTER] v1

from __future__ import annotations

import pytest

from vault_keeper.core.lp_math import (
    AdjustmentKind,
    deposit_adjustment,
    expected_withdrawal,
    lp_amount_to_burn,
    lp_amount_to_mint,
    withdraw_adjustment,
)
from vault_keeper.errors import DivisionByZeroError, ZeroResultError
from vault_keeper.kernels.python.u64_math import U64_MAX
from vault_keeper.state.pools import PoolReserves


def test_mint_takes_the_smaller_side() -> None:
    # a-side: 100 * 1000 / 1000 = 100; b-side: 150 * 1000 / 2000 = 75.
    assert lp_amount_to_mint(100, 150, 1000, 1000, 2000) == 75


def test_mint_is_symmetric_in_its_sides() -> None:
    assert lp_amount_to_mint(100, 150, 1000, 1000, 2000) == lp_amount_to_mint(150, 100, 1000, 2000, 1000)


def test_mint_rounding_to_zero_fails() -> None:
    with pytest.raises(ZeroResultError):
        lp_amount_to_mint(1, 1000, 10, 1000, 1000)


def test_mint_against_empty_pool_fails() -> None:
    with pytest.raises(DivisionByZeroError):
        lp_amount_to_mint(1, 1, 10, 0, 1000)


def test_mint_uses_widened_intermediates() -> None:
    # contribution * supply overflows u64 but the quotient does not.
    big = 1 << 40
    assert lp_amount_to_mint(big, big, big, big, big) == big
    assert lp_amount_to_mint(U64_MAX, U64_MAX, U64_MAX, U64_MAX, U64_MAX) == U64_MAX


def test_burn_scenario() -> None:
    # ceil(50 * 1000 / (2 * 100)) = 250
    assert lp_amount_to_burn(50, 1000, 100) == 250


def test_burn_rounds_up() -> None:
    # 155 * 1_000_000 / 2_000_000 = 77.5 -> 78
    assert lp_amount_to_burn(155, 1_000_000, 1_000_000) == 78


def test_burn_rejects_zero_target_and_zero_reserve() -> None:
    with pytest.raises(ZeroResultError):
        lp_amount_to_burn(0, 1000, 100)
    with pytest.raises(DivisionByZeroError):
        lp_amount_to_burn(50, 1000, 0)


def test_expected_withdrawal_floors_both_sides() -> None:
    pool = PoolReserves(reserve_a=1000, reserve_b=3001, lp_supply=300)
    assert expected_withdrawal(100, pool) == (333, 1000)
    with pytest.raises(ValueError, match="more LP than supply"):
        expected_withdrawal(301, pool)


def test_deposit_adjustment_bounds_are_the_contributions() -> None:
    pool = PoolReserves(reserve_a=1000, reserve_b=2000, lp_supply=1000)
    adj = deposit_adjustment(100, 150, pool)
    assert adj.kind is AdjustmentKind.DEPOSIT
    assert (adj.lp_amount, adj.asset_a_bound, adj.asset_b_bound) == (75, 100, 150)


def test_withdraw_adjustment_applies_tolerance_per_side() -> None:
    pool = PoolReserves(reserve_a=1_000_000, reserve_b=2_000_000, lp_supply=1_000_000)
    adj = withdraw_adjustment(5000, pool, 95)
    assert adj.kind is AdjustmentKind.WITHDRAW
    assert (adj.lp_amount, adj.asset_a_bound, adj.asset_b_bound) == (5000, 4750, 9500)
    with pytest.raises(ZeroResultError):
        withdraw_adjustment(0, pool, 95)
