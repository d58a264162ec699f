"""
KYC document controller
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_db
from schemas.kyc import (
    KycDocumentEnvelope,
    KycDocumentListResponse,
    KycDocumentResponse,
    KycRejectRequest,
    KycUploadResponse,
    KycVerifyRequest,
)
from services import kyc_service
from services.storage_service import PinataStorage, get_storage
from utils.errors import ValidationError

router = APIRouter()


@router.post("/upload", response_model=KycUploadResponse)
async def upload_kyc(
    file: Optional[UploadFile] = File(None),
    user_address: Optional[str] = Form(None, alias="userAddress"),
    document_type: Optional[str] = Form(None, alias="documentType"),
    user_did: Optional[str] = Form(None, alias="userDid"),
    db: AsyncSession = Depends(get_db),
    storage: PinataStorage = Depends(get_storage),
):
    """
    Pin a KYC document and record it for verification
    """
    if file is None:
        raise ValidationError("No file uploaded")
    if not user_address or not document_type:
        raise ValidationError("userAddress and documentType required")

    pin = await storage.pin_file(await file.read(), file.filename or document_type)
    document = await kyc_service.upload_kyc_document(
        db, user_address, document_type, pin.cid, user_did or None
    )

    return KycUploadResponse(
        document_cid=pin.cid,
        gateway_url=pin.gateway_url,
        kyc_document=KycDocumentResponse.model_validate(document),
    )


@router.get("/pending/list", response_model=KycDocumentListResponse)
async def pending_kyc(db: AsyncSession = Depends(get_db)):
    documents = await kyc_service.get_pending_kyc(db)
    return KycDocumentListResponse(
        documents=[KycDocumentResponse.model_validate(d) for d in documents]
    )


@router.get("/{user_address}", response_model=KycDocumentListResponse)
async def kyc_for_address(user_address: str, db: AsyncSession = Depends(get_db)):
    """
    All KYC documents uploaded by an address, newest first
    """
    documents = await kyc_service.get_kyc_by_address(db, user_address)
    return KycDocumentListResponse(
        documents=[KycDocumentResponse.model_validate(d) for d in documents]
    )


@router.post("/verify/{document_id}", response_model=KycDocumentEnvelope)
async def verify_kyc(
    document_id: int,
    request: KycVerifyRequest,
    db: AsyncSession = Depends(get_db),
):
    document = await kyc_service.verify_kyc(db, document_id, request.verifier_address)
    return KycDocumentEnvelope(document=KycDocumentResponse.model_validate(document))


@router.post("/reject/{document_id}", response_model=KycDocumentEnvelope)
async def reject_kyc(
    document_id: int,
    request: KycRejectRequest,
    db: AsyncSession = Depends(get_db),
):
    document = await kyc_service.reject_kyc(
        db, document_id, request.reason, request.verifier_address
    )
    return KycDocumentEnvelope(document=KycDocumentResponse.model_validate(document))
