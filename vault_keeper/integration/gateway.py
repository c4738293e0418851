"""
Chain gateway interface (imperative shell).

The keeper reaches the chain only through this interface. Implementations own
transport, key handling, account resolution and instruction encoding, and must
raise `TransportError` for any fetch or submission failure.

Submissions are fire-and-await-confirmation: a returned transaction id means
the action was applied atomically; an exception means it was not.
"""

from __future__ import annotations

from typing import List, Optional

from ..core.quote import SwapDirection
from ..state.balances import Amount, Asset
from ..state.pools import PoolReserves
from ..state.requests import RedemptionRequest, RequestStatus
from ..state.vault import Vault


TransactionId = str


class ChainGateway:
    """Interface for reading vault/pool state and submitting keeper actions."""

    def fetch_pool_reserves(self, pool_id: str) -> PoolReserves:
        raise NotImplementedError

    def fetch_vault_state(self) -> Vault:
        raise NotImplementedError

    def fetch_claim_total_supply(self) -> Amount:
        raise NotImplementedError

    def fetch_pending_requests(
        self,
        status_filter: Optional[RequestStatus] = RequestStatus.PENDING,
        requester_filter: Optional[str] = None,
    ) -> List[RedemptionRequest]:
        raise NotImplementedError

    def fetch_token_balance(self, asset: Asset) -> Amount:
        """The vault's own balance of `asset`."""
        raise NotImplementedError

    def submit_swap(self, direction: SwapDirection, amount_in: Amount, minimum_amount_out: Amount) -> TransactionId:
        raise NotImplementedError

    def submit_lp_deposit(self, lp_amount: Amount, max_a: Amount, max_b: Amount) -> TransactionId:
        raise NotImplementedError

    def submit_lp_withdraw(self, lp_amount: Amount, min_a: Amount, min_b: Amount) -> TransactionId:
        raise NotImplementedError

    def submit_settlement(self, request_id: str, amount: Amount) -> TransactionId:
        raise NotImplementedError
