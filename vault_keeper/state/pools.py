"""
Pool reserve snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..kernels.python.u64_math import require_u64
from .balances import Amount, Asset


@dataclass(frozen=True)
class PoolReserves:
    """
    Snapshot of an AMM pool's two reserves and outstanding LP supply.

    Snapshots go stale as soon as any transaction touches the pool; callers
    re-fetch one before every dependent step instead of reusing it.

    Attributes:
        reserve_a: Reserve of the base reserve asset (side A)
        reserve_b: Reserve of the paired token (side B)
        lp_supply: Total LP token supply
    """
    reserve_a: Amount
    reserve_b: Amount
    lp_supply: Amount

    def __post_init__(self) -> None:
        require_u64("reserve_a", self.reserve_a)
        require_u64("reserve_b", self.reserve_b)
        require_u64("lp_supply", self.lp_supply)

    def get_reserve(self, asset: Asset) -> Amount:
        if asset == Asset.A:
            return self.reserve_a
        if asset == Asset.B:
            return self.reserve_b
        raise ValueError(f"Asset {asset} is not a pool reserve")

    def is_quotable(self) -> bool:
        """True when every ratio computation against this snapshot is defined."""
        return self.reserve_a > 0 and self.reserve_b > 0 and self.lp_supply > 0

    def __repr__(self) -> str:
        return (
            f"PoolReserves(reserves=({self.reserve_a}, {self.reserve_b}), "
            f"lp_supply={self.lp_supply})"
        )
