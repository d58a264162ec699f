"""
Provider Pydantic schemas for request/response validation
"""

from pydantic import Field
from typing import Optional, List
from datetime import datetime

from schemas.common import CamelModel, Page

ADDRESS_PATTERN = "^0x[0-9a-fA-F]{40}$"


class ProviderApproveRequest(CamelModel):
    insurer_address: str = Field(..., min_length=1, max_length=42)


class ProviderRejectRequest(CamelModel):
    reason: str = Field(..., min_length=1)
    insurer_address: str = Field(..., min_length=1, max_length=42)


class ProviderResponse(CamelModel):
    id: int
    provider_did: str
    provider_address: str
    name: str
    issuer_did: Optional[str] = None
    issued_at: Optional[datetime] = None
    license_cid: Optional[str] = None
    vc_cid: Optional[str] = None
    status: str
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProviderEnvelope(CamelModel):
    success: bool = True
    provider: ProviderResponse


class ProviderOnboardResponse(ProviderEnvelope):
    license_url: Optional[str] = None
    vc_url: Optional[str] = None


class ProviderListResponse(Page):
    success: bool = True
    providers: List[ProviderResponse]


class PendingProvidersResponse(CamelModel):
    success: bool = True
    providers: List[ProviderResponse]
