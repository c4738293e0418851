"""
Redemption requests.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from ..kernels.python.u64_math import require_u64
from .balances import Amount, Holder


class RequestStatus(Enum):
    """Request status enumeration."""
    PENDING = "PENDING"
    SETTLED = "SETTLED"


@dataclass(frozen=True)
class RedemptionRequest:
    """
    A holder's request to redeem claim units against the vault reserve.

    Requests are created externally when claim units are locked. The keeper
    only moves a request to SETTLED after a successful direct fill; anything
    else leaves it PENDING for a later cycle.

    Attributes:
        request_id: Request account identifier
        requester: Holder that locked the claim units
        claim_amount: Claim units being redeemed
        status: Current status
    """
    request_id: str
    requester: Holder
    claim_amount: Amount
    status: RequestStatus = RequestStatus.PENDING

    def __post_init__(self) -> None:
        if not isinstance(self.request_id, str) or not self.request_id:
            raise ValueError("request_id must be a non-empty string")
        if not isinstance(self.requester, str) or not self.requester:
            raise ValueError("requester must be a non-empty string")
        require_u64("claim_amount", self.claim_amount)
        if not isinstance(self.status, RequestStatus):
            raise TypeError("status must be a RequestStatus")

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def settled(self) -> "RedemptionRequest":
        return replace(self, status=RequestStatus.SETTLED)
