"""
KYC document schemas
"""

from pydantic import Field
from typing import Optional, List
from datetime import datetime

from schemas.common import CamelModel


class KycVerifyRequest(CamelModel):
    verifier_address: str = Field(..., min_length=1, max_length=42)


class KycRejectRequest(CamelModel):
    reason: str = Field(..., min_length=1)
    verifier_address: str = Field(..., min_length=1, max_length=42)


class KycDocumentResponse(CamelModel):
    id: int
    user_address: str
    user_did: Optional[str] = None
    document_type: str
    document_cid: str
    status: str
    rejection_reason: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class KycUploadResponse(CamelModel):
    success: bool = True
    document_cid: str
    gateway_url: str
    kyc_document: KycDocumentResponse


class KycDocumentEnvelope(CamelModel):
    success: bool = True
    document: KycDocumentResponse


class KycDocumentListResponse(CamelModel):
    success: bool = True
    documents: List[KycDocumentResponse]
