"""
In-memory chain gateway.

Simulates the vault, its claim token and a single fee-free constant-product
pool so the keeper can run end to end without a network:
- swaps execute at `out = floor(in * reserve_out / (reserve_in + in))`,
- LP deposits charge `ceil(lp * reserve / lp_supply)` per side,
- LP withdrawals return `floor(lp * reserve / lp_supply)` per side,
- submitted bounds are enforced the way the pool program would, failing with a
  `TransportError` that carries a program error code.

Vault valuation: `available_reserve` is the vault's side-A balance and
`total_reserve` adds the LP position and any held side-B tokens, valued in
side A at the current pool ratio.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ..core.quote import SwapDirection
from ..errors import TransportError
from ..kernels.python.u64_math import U64_MAX, ceil_div, require_u64
from ..state.balances import Amount, Asset, BalanceTable
from ..state.canonical import canonical_json_bytes, sha256_hex
from ..state.pools import PoolReserves
from ..state.requests import RedemptionRequest, RequestStatus
from ..state.vault import Vault
from .gateway import ChainGateway, TransactionId


VAULT = "vault"
POOL = "pool"

# Program error codes surfaced through TransportError.error_code.
ERR_SLIPPAGE_EXCEEDED = 6001
ERR_INSUFFICIENT_BALANCE = 6002
ERR_REQUEST_NOT_PENDING = 6003
ERR_ZERO_AMOUNT = 6004


class SimulatedChain(ChainGateway):
    def __init__(
        self,
        *,
        pool_id: str = "sim-pool",
        reserve_a: Amount,
        reserve_b: Amount,
        lp_supply: Amount,
        vault_a: Amount = 0,
        vault_b: Amount = 0,
        vault_lp: Amount = 0,
        claim_total_supply: Amount = 0,
    ) -> None:
        for name, v in (
            ("reserve_a", reserve_a),
            ("reserve_b", reserve_b),
            ("lp_supply", lp_supply),
            ("vault_a", vault_a),
            ("vault_b", vault_b),
            ("vault_lp", vault_lp),
            ("claim_total_supply", claim_total_supply),
        ):
            require_u64(name, v)
        if vault_lp > lp_supply:
            raise ValueError("vault_lp must be <= lp_supply")

        self.pool_id = pool_id
        self.balances = BalanceTable()
        self.balances.set(POOL, Asset.A, reserve_a)
        self.balances.set(POOL, Asset.B, reserve_b)
        self.balances.set(VAULT, Asset.A, vault_a)
        self.balances.set(VAULT, Asset.B, vault_b)
        self.balances.set(VAULT, Asset.LP, vault_lp)
        self.lp_supply = lp_supply
        self.claim_total_supply = claim_total_supply
        self.requests: Dict[str, RedemptionRequest] = {}
        self.transactions: List[Dict[str, Any]] = []
        self._pending_failures: Dict[str, TransportError] = {}

    @classmethod
    def from_mapping(cls, seed: Mapping[str, Any]) -> "SimulatedChain":
        """Build a chain from the `simulation` config section."""
        raw = dict(seed)
        requests = raw.pop("requests", []) or []
        try:
            chain = cls(**{k: (v if k == "pool_id" else int(v)) for k, v in raw.items()})
        except TypeError as exc:
            raise ValueError(f"invalid simulation seed: {exc}") from exc
        for entry in requests:
            chain.add_request(
                RedemptionRequest(
                    request_id=str(entry["request_id"]),
                    requester=str(entry["requester"]),
                    claim_amount=int(entry["claim_amount"]),
                )
            )
        return chain

    # ---- test hooks ----

    def add_request(self, request: RedemptionRequest) -> None:
        if request.request_id in self.requests:
            raise ValueError(f"duplicate request_id: {request.request_id}")
        self.requests[request.request_id] = request

    def fail_next(self, method: str, error: TransportError) -> None:
        """Make the next call to `method` raise `error`."""
        self._pending_failures[method] = error

    def _maybe_fail(self, method: str) -> None:
        err = self._pending_failures.pop(method, None)
        if err is not None:
            raise err

    def _record(self, kind: str, **fields: Any) -> TransactionId:
        entry = {"kind": kind, "seq": len(self.transactions), **fields}
        tx_id = sha256_hex(canonical_json_bytes(entry))
        entry["tx_id"] = tx_id
        self.transactions.append(entry)
        return tx_id

    # ---- reads ----

    def _pool(self) -> PoolReserves:
        return PoolReserves(
            reserve_a=self.balances.get(POOL, Asset.A),
            reserve_b=self.balances.get(POOL, Asset.B),
            lp_supply=self.lp_supply,
        )

    def fetch_pool_reserves(self, pool_id: str) -> PoolReserves:
        self._maybe_fail("fetch_pool_reserves")
        if pool_id != self.pool_id:
            raise TransportError(f"unknown pool {pool_id!r}")
        return self._pool()

    def fetch_vault_state(self) -> Vault:
        self._maybe_fail("fetch_vault_state")
        available = self.balances.get(VAULT, Asset.A)
        lp = self.balances.get(VAULT, Asset.LP)
        held_b = self.balances.get(VAULT, Asset.B)
        pool = self._pool()

        deployed = 0
        if pool.lp_supply > 0 and lp > 0:
            share_a = lp * pool.reserve_a // pool.lp_supply
            share_b = lp * pool.reserve_b // pool.lp_supply
            held_b += share_b
            deployed += share_a
        if held_b > 0 and pool.reserve_b > 0:
            deployed += held_b * pool.reserve_a // pool.reserve_b

        total = min(available + deployed, U64_MAX)
        return Vault(total_reserve=total, available_reserve=available, lp_balance=lp)

    def fetch_claim_total_supply(self) -> Amount:
        self._maybe_fail("fetch_claim_total_supply")
        return self.claim_total_supply

    def fetch_pending_requests(
        self,
        status_filter: Optional[RequestStatus] = RequestStatus.PENDING,
        requester_filter: Optional[str] = None,
    ) -> List[RedemptionRequest]:
        self._maybe_fail("fetch_pending_requests")
        out = []
        for request in self.requests.values():
            if status_filter is not None and request.status != status_filter:
                continue
            if requester_filter is not None and request.requester != requester_filter:
                continue
            out.append(request)
        return out

    def fetch_token_balance(self, asset: Asset) -> Amount:
        self._maybe_fail("fetch_token_balance")
        return self.balances.get(VAULT, asset)

    # ---- submissions ----

    def _require_funds(self, asset: Asset, amount: Amount) -> None:
        held = self.balances.get(VAULT, asset)
        if held < amount:
            raise TransportError(
                f"vault holds {held} {asset.value}, needs {amount}", error_code=ERR_INSUFFICIENT_BALANCE
            )

    def submit_swap(self, direction: SwapDirection, amount_in: Amount, minimum_amount_out: Amount) -> TransactionId:
        self._maybe_fail("submit_swap")
        if amount_in <= 0:
            raise TransportError("swap amount_in is zero", error_code=ERR_ZERO_AMOUNT)
        asset_in, asset_out = direction.asset_in, direction.asset_out
        self._require_funds(asset_in, amount_in)

        reserve_in = self.balances.get(POOL, asset_in)
        reserve_out = self.balances.get(POOL, asset_out)
        amount_out = amount_in * reserve_out // (reserve_in + amount_in)
        if amount_out < minimum_amount_out:
            raise TransportError(
                f"swap output {amount_out} below minimum {minimum_amount_out}", error_code=ERR_SLIPPAGE_EXCEEDED
            )

        self.balances.transfer(VAULT, POOL, asset_in, amount_in)
        self.balances.transfer(POOL, VAULT, asset_out, amount_out)
        return self._record(
            "swap",
            direction=direction.value,
            amount_in=amount_in,
            amount_out=amount_out,
            minimum_amount_out=minimum_amount_out,
        )

    def submit_lp_deposit(self, lp_amount: Amount, max_a: Amount, max_b: Amount) -> TransactionId:
        self._maybe_fail("submit_lp_deposit")
        if lp_amount <= 0:
            raise TransportError("lp deposit amount is zero", error_code=ERR_ZERO_AMOUNT)
        pool = self._pool()
        need_a = ceil_div(lp_amount * pool.reserve_a, pool.lp_supply)
        need_b = ceil_div(lp_amount * pool.reserve_b, pool.lp_supply)
        if need_a > max_a or need_b > max_b:
            raise TransportError(
                f"deposit needs ({need_a}, {need_b}) above maxima ({max_a}, {max_b})",
                error_code=ERR_SLIPPAGE_EXCEEDED,
            )
        self._require_funds(Asset.A, need_a)
        self._require_funds(Asset.B, need_b)

        self.balances.transfer(VAULT, POOL, Asset.A, need_a)
        self.balances.transfer(VAULT, POOL, Asset.B, need_b)
        self.balances.add(VAULT, Asset.LP, lp_amount)
        self.lp_supply += lp_amount
        return self._record("lp_deposit", lp_amount=lp_amount, amount_a=need_a, amount_b=need_b)

    def submit_lp_withdraw(self, lp_amount: Amount, min_a: Amount, min_b: Amount) -> TransactionId:
        self._maybe_fail("submit_lp_withdraw")
        if lp_amount <= 0:
            raise TransportError("lp withdraw amount is zero", error_code=ERR_ZERO_AMOUNT)
        self._require_funds(Asset.LP, lp_amount)
        pool = self._pool()
        out_a = lp_amount * pool.reserve_a // pool.lp_supply
        out_b = lp_amount * pool.reserve_b // pool.lp_supply
        if out_a < min_a or out_b < min_b:
            raise TransportError(
                f"withdraw returns ({out_a}, {out_b}) below minima ({min_a}, {min_b})",
                error_code=ERR_SLIPPAGE_EXCEEDED,
            )

        self.balances.subtract(VAULT, Asset.LP, lp_amount)
        self.lp_supply -= lp_amount
        self.balances.transfer(POOL, VAULT, Asset.A, out_a)
        self.balances.transfer(POOL, VAULT, Asset.B, out_b)
        return self._record("lp_withdraw", lp_amount=lp_amount, amount_a=out_a, amount_b=out_b)

    def submit_settlement(self, request_id: str, amount: Amount) -> TransactionId:
        self._maybe_fail("submit_settlement")
        request = self.requests.get(request_id)
        if request is None or not request.is_pending:
            raise TransportError(f"request {request_id!r} is not pending", error_code=ERR_REQUEST_NOT_PENDING)
        if amount <= 0:
            raise TransportError("settlement amount is zero", error_code=ERR_ZERO_AMOUNT)
        self._require_funds(Asset.A, amount)

        self.balances.transfer(VAULT, request.requester, Asset.A, amount)
        self.claim_total_supply -= min(request.claim_amount, self.claim_total_supply)
        self.requests[request_id] = request.settled()
        return self._record("settlement", request_id=request_id, amount=amount)
