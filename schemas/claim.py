"""
Claim Pydantic schemas for request/response validation
"""

from pydantic import Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

from schemas.common import CamelModel, Page, enforce_amount
from schemas.policy import PolicyDetailResponse


class ClaimSubmitRequest(CamelModel):
    policy_id: Optional[int] = None
    onchain_policy_id: Optional[int] = Field(None, ge=0)
    onchain_claim_id: Optional[int] = Field(None, ge=0)
    claim_amount: Optional[Decimal] = None
    description: Optional[str] = None
    evidence_cid: Optional[str] = Field(None, max_length=255)

    @field_validator("claim_amount", mode="before")
    def _validate_claim_amount(cls, v):
        return enforce_amount(v)

    @model_validator(mode="after")
    def _require_policy_reference(self):
        if self.policy_id is None and self.onchain_policy_id is None:
            raise ValueError("policyId or onchainPolicyId is required")
        return self


class ClaimApproveRequest(CamelModel):
    payout_amount: Decimal

    @field_validator("payout_amount", mode="before")
    def _validate_payout(cls, v):
        return enforce_amount(v)


class ClaimRejectRequest(CamelModel):
    reason: str = Field(..., min_length=1)


class ClaimMarkPaidRequest(CamelModel):
    tx_hash: str = Field(..., min_length=1, max_length=66)


class ClaimStatusUpdateRequest(CamelModel):
    claim_id: int
    status: Literal["UNDER_REVIEW", "APPROVED", "REJECTED", "PAID"]
    payout_amount: Optional[Decimal] = None
    reason: Optional[str] = None
    tx_hash: Optional[str] = Field(None, max_length=66)

    @field_validator("payout_amount", mode="before")
    def _validate_optional_payout(cls, v):
        # allow None through
        if v is None:
            return v
        return enforce_amount(v)


class ClaimResponse(CamelModel):
    id: int
    policy_id: int
    onchain_claim_id: Optional[int] = None
    claim_amount: Optional[Decimal] = None
    description: Optional[str] = None
    evidence_cid: Optional[str] = None
    status: str
    payout_amount: Optional[Decimal] = None
    payout_tx_hash: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClaimDetailResponse(ClaimResponse):
    policy: PolicyDetailResponse


class ClaimEnvelope(CamelModel):
    success: bool = True
    claim: ClaimResponse


class ClaimListResponse(Page):
    success: bool = True
    claims: List[ClaimResponse]


class ClaimQueueResponse(CamelModel):
    success: bool = True
    claims: List[ClaimDetailResponse]
