"""
Per-holder token balances for the simulated chain.

Holders are opaque account ids ("vault", "pool", requester ids). Amounts are
credited and debited in whole units; a debit past zero raises instead of going
negative.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


Holder = str
Amount = int


class Asset(Enum):
    """The two pool sides and the pool's LP token."""
    A = "A"  # base reserve asset
    B = "B"  # paired token
    LP = "LP"


class BalanceTable:
    def __init__(self) -> None:
        self._held: Dict[Tuple[Holder, Asset], Amount] = {}

    def get(self, holder: Holder, asset: Asset) -> Amount:
        return self._held.get((holder, asset), 0)

    def set(self, holder: Holder, asset: Asset, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"{holder} {asset.value} balance cannot be negative: {amount}")
        if amount:
            self._held[(holder, asset)] = amount
        else:
            self._held.pop((holder, asset), None)

    def add(self, holder: Holder, asset: Asset, amount: Amount) -> None:
        """Credit `amount` to `holder`."""
        if amount < 0:
            raise ValueError(f"credit must be non-negative: {amount}")
        self.set(holder, asset, self.get(holder, asset) + amount)

    def subtract(self, holder: Holder, asset: Asset, amount: Amount) -> None:
        """
        Debit `amount` from `holder`.

        Raises:
            ValueError: If the amount is negative or exceeds the balance
        """
        if amount < 0:
            raise ValueError(f"debit must be non-negative: {amount}")
        held = self.get(holder, asset)
        if amount > held:
            raise ValueError(f"Insufficient {asset.value} balance for {holder}: holds {held}, debit {amount}")
        self.set(holder, asset, held - amount)

    def transfer(self, src: Holder, dst: Holder, asset: Asset, amount: Amount) -> None:
        self.subtract(src, asset, amount)
        self.add(dst, asset, amount)
