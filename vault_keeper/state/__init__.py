"""
State snapshots for the vault keeper
"""

from .balances import Asset, BalanceTable
from .pools import PoolReserves
from .requests import RedemptionRequest, RequestStatus
from .vault import Vault

__all__ = [
    "Asset",
    "BalanceTable",
    "PoolReserves",
    "RedemptionRequest",
    "RequestStatus",
    "Vault",
]
