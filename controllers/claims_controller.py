"""
Claims management controller
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_db
from models.statuses import ClaimStatus
from schemas.claim import (
    ClaimApproveRequest,
    ClaimDetailResponse,
    ClaimEnvelope,
    ClaimListResponse,
    ClaimMarkPaidRequest,
    ClaimQueueResponse,
    ClaimRejectRequest,
    ClaimResponse,
    ClaimStatusUpdateRequest,
    ClaimSubmitRequest,
)
from services import claim_service

router = APIRouter()


@router.post("/submit", response_model=ClaimEnvelope, status_code=201)
async def submit_claim(
    claim_data: ClaimSubmitRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a new claim against an active policy
    """
    claim = await claim_service.submit_claim(db, claim_data)
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))


@router.post("/update-status", response_model=ClaimEnvelope)
async def update_claim_status(
    request: ClaimStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Move a claim to the requested status
    """
    claim = await claim_service.update_status(
        db,
        request.claim_id,
        request.status,
        payout_amount=request.payout_amount,
        reason=request.reason,
        tx_hash=request.tx_hash,
    )
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))


@router.get("/list", response_model=ClaimListResponse)
async def list_claims(
    status: Optional[ClaimStatus] = Query(None, description="Filter by status"),
    policy_id: Optional[int] = Query(None, alias="policyId"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100, alias="perPage"),
    db: AsyncSession = Depends(get_db),
):
    """
    List claims with optional filters
    """
    claims, total = await claim_service.list_claims(
        db, status.value if status else None, policy_id, page, per_page
    )

    return ClaimListResponse(
        claims=[ClaimResponse.model_validate(c) for c in claims],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=(total + per_page - 1) // per_page,
    )


@router.get("/pending", response_model=ClaimQueueResponse)
async def pending_claims(db: AsyncSession = Depends(get_db)):
    claims = await claim_service.get_pending_claims(db)
    return ClaimQueueResponse(
        claims=[ClaimDetailResponse.model_validate(c) for c in claims]
    )


@router.get("/under-review", response_model=ClaimQueueResponse)
async def under_review_claims(db: AsyncSession = Depends(get_db)):
    claims = await claim_service.get_under_review_claims(db)
    return ClaimQueueResponse(
        claims=[ClaimDetailResponse.model_validate(c) for c in claims]
    )


@router.post("/under-review/{claim_id}", response_model=ClaimEnvelope)
async def set_claim_under_review(claim_id: int, db: AsyncSession = Depends(get_db)):
    claim = await claim_service.set_under_review(db, claim_id)
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))


@router.post("/approve/{claim_id}", response_model=ClaimEnvelope)
async def approve_claim(
    claim_id: int,
    request: ClaimApproveRequest,
    db: AsyncSession = Depends(get_db),
):
    claim = await claim_service.approve_claim(db, claim_id, request.payout_amount)
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))


@router.post("/reject/{claim_id}", response_model=ClaimEnvelope)
async def reject_claim(
    claim_id: int,
    request: ClaimRejectRequest,
    db: AsyncSession = Depends(get_db),
):
    claim = await claim_service.reject_claim(db, claim_id, request.reason)
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))


@router.post("/mark-paid/{claim_id}", response_model=ClaimEnvelope)
async def mark_claim_paid(
    claim_id: int,
    request: ClaimMarkPaidRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Record the on-chain payout transaction of an approved claim
    """
    claim = await claim_service.mark_paid(db, claim_id, request.tx_hash)
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))
