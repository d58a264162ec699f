"""
Policy issuance and approval controller
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_db
from models.statuses import PolicyStatus
from schemas.policy import (
    PendingPoliciesResponse,
    PolicyApproveRequest,
    PolicyDetailEnvelope,
    PolicyDetailResponse,
    PolicyEnvelope,
    PolicyIssueRequest,
    PolicyListResponse,
    PolicyRecordRequest,
    PolicyRecordResponse,
    PolicyRejectRequest,
    PolicyResponse,
)
from services import approval_service, policy_service
from services.identity_service import IdentityService, get_identity_service
from services.storage_service import PinataStorage, get_storage

router = APIRouter()


@router.post("/issue", response_model=PolicyEnvelope)
async def issue_policy(
    policy_data: PolicyIssueRequest,
    db: AsyncSession = Depends(get_db),
    storage: PinataStorage = Depends(get_storage),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Issue a policy administratively. It starts PENDING until an insurer approves it.
    """
    policy = await policy_service.issue_policy(db, storage, identity, policy_data)
    return PolicyEnvelope(policy=PolicyResponse.model_validate(policy))


@router.post("/record", response_model=PolicyRecordResponse)
async def record_policy(
    policy_data: PolicyRecordRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Record a policy bought on-chain. Premium is already paid, so it is ACTIVE.
    """
    policy = await policy_service.record_policy_from_chain(db, identity, policy_data)
    return PolicyRecordResponse(policy=PolicyResponse.model_validate(policy))


@router.get("/list", response_model=PolicyListResponse)
async def list_policies(
    status: Optional[PolicyStatus] = Query(None, description="Filter by status"),
    beneficiary_address: Optional[str] = Query(None, alias="beneficiaryAddress"),
    provider_id: Optional[int] = Query(None, alias="providerId"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100, alias="perPage"),
    db: AsyncSession = Depends(get_db),
):
    """
    List policies with optional filters
    """
    policies, total = await policy_service.list_policies(
        db,
        status=status.value if status else None,
        beneficiary_address=beneficiary_address,
        provider_id=provider_id,
        page=page,
        per_page=per_page,
    )

    return PolicyListResponse(
        policies=[PolicyResponse.model_validate(p) for p in policies],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=(total + per_page - 1) // per_page,
    )


@router.get("/pending", response_model=PendingPoliciesResponse)
async def pending_policies(db: AsyncSession = Depends(get_db)):
    policies = await approval_service.get_pending_policies(db)
    return PendingPoliciesResponse(
        policies=[PolicyDetailResponse.model_validate(p) for p in policies]
    )


@router.get("/{policy_id}", response_model=PolicyDetailEnvelope)
async def get_policy(policy_id: int, db: AsyncSession = Depends(get_db)):
    """
    Get policy details by ID, including its provider
    """
    policy = await policy_service.get_policy_detail(db, policy_id)
    return PolicyDetailEnvelope(policy=PolicyDetailResponse.model_validate(policy))


@router.post("/approve/{policy_id}", response_model=PolicyEnvelope)
async def approve_policy(
    policy_id: int,
    request: PolicyApproveRequest,
    db: AsyncSession = Depends(get_db),
):
    policy = await approval_service.approve_policy(db, policy_id, request.insurer_address)
    return PolicyEnvelope(policy=PolicyResponse.model_validate(policy))


@router.post("/reject/{policy_id}", response_model=PolicyEnvelope)
async def reject_policy(
    policy_id: int,
    request: PolicyRejectRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Reject a policy. The premium refund is executed by the caller beforehand;
    only its transaction hash is stored.
    """
    policy = await approval_service.reject_policy(
        db,
        policy_id,
        request.reason,
        request.insurer_address,
        request.refund_tx_hash,
    )
    return PolicyEnvelope(policy=PolicyResponse.model_validate(policy))
