"""
Vault state snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..kernels.python.u64_math import require_u64
from .balances import Amount


@dataclass(frozen=True)
class Vault:
    """
    Reserve backing all outstanding redemption claims.

    Attributes:
        total_reserve: Total base-asset value backing the claims
        available_reserve: Portion held idle (not deployed into the LP position)
        lp_balance: LP tokens currently held by the vault
    """

    total_reserve: Amount
    available_reserve: Amount
    lp_balance: Amount = 0

    def __post_init__(self) -> None:
        require_u64("total_reserve", self.total_reserve)
        require_u64("available_reserve", self.available_reserve)
        require_u64("lp_balance", self.lp_balance)
        if self.available_reserve > self.total_reserve:
            raise ValueError(
                f"available_reserve ({self.available_reserve}) must be <= total_reserve ({self.total_reserve})"
            )

    @property
    def has_lp_position(self) -> bool:
        return self.lp_balance > 0

    @property
    def deployed_reserve(self) -> Amount:
        return self.total_reserve - self.available_reserve
