"""
Policy Pydantic schemas for request/response validation
"""

from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from schemas.common import CamelModel, Page, enforce_amount
from schemas.provider import ProviderResponse, ADDRESS_PATTERN


class PolicyBase(CamelModel):
    beneficiary_address: str = Field(..., pattern=ADDRESS_PATTERN)
    beneficiary_did: Optional[str] = Field(None, max_length=255)
    coverage_amount: Decimal
    start_epoch: int = Field(..., ge=0)
    end_epoch: int = Field(..., ge=0)
    tier: Optional[str] = Field(None, max_length=50)
    onchain_policy_id: Optional[int] = Field(None, ge=0)

    # validators applied before pydantic parsing to ensure correct Decimal
    @field_validator("coverage_amount", mode="before")
    def _validate_coverage(cls, v):
        return enforce_amount(v)


class PolicyIssueRequest(PolicyBase):
    provider_id: int
    premium_paid: Optional[Decimal] = None
    kyc_doc_cid: Optional[str] = Field(None, max_length=255)

    @field_validator("premium_paid", mode="before")
    def _validate_premium(cls, v):
        return enforce_amount(v)


class PolicyRecordRequest(PolicyBase):
    """Fields observed from an on-chain premium payment"""

    provider_id: Optional[int] = None
    premium_amount: Optional[Decimal] = None
    kyc_cid: Optional[str] = Field(None, max_length=255)

    @field_validator("premium_amount", mode="before")
    def _validate_premium(cls, v):
        return enforce_amount(v)


class PolicyApproveRequest(CamelModel):
    insurer_address: str = Field(..., min_length=1, max_length=42)


class PolicyRejectRequest(CamelModel):
    reason: str = Field(..., min_length=1)
    insurer_address: str = Field(..., min_length=1, max_length=42)
    refund_tx_hash: Optional[str] = Field(None, max_length=66)


class PolicyResponse(CamelModel):
    id: int
    provider_id: int
    issuer_did: Optional[str] = None
    beneficiary_address: str
    beneficiary_did: Optional[str] = None
    coverage_amount: Decimal
    start_epoch: int
    end_epoch: int
    tier: Optional[str] = None
    premium_paid: Optional[Decimal] = None
    onchain_policy_id: Optional[int] = None
    kyc_doc_cid: Optional[str] = None
    status: str
    policy_vc_cid: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    refund_tx_hash: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PolicyDetailResponse(PolicyResponse):
    provider: ProviderResponse


class PolicyEnvelope(CamelModel):
    success: bool = True
    policy: PolicyResponse


class PolicyDetailEnvelope(CamelModel):
    success: bool = True
    policy: PolicyDetailResponse


class PolicyRecordResponse(CamelModel):
    ok: bool = True
    policy: PolicyResponse


class PolicyListResponse(Page):
    success: bool = True
    policies: List[PolicyResponse]


class PendingPoliciesResponse(CamelModel):
    success: bool = True
    policies: List[PolicyDetailResponse]
