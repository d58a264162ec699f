"""
Claim submission and lifecycle
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.connection import persisting
from models.claim import Claim
from models.policy import Policy
from models.statuses import ClaimStatus, PolicyStatus
from schemas.claim import ClaimSubmitRequest
from services.transitions import CLAIM_WORKFLOW
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_WITH_POLICY = selectinload(Claim.policy).selectinload(Policy.provider)


async def get_claim(db: AsyncSession, claim_id: int) -> Claim:
    result = await db.execute(select(Claim).where(Claim.id == claim_id))
    claim = result.scalar_one_or_none()

    if not claim:
        raise NotFoundError("Claim", claim_id)

    return claim


async def submit_claim(db: AsyncSession, claim_data: ClaimSubmitRequest) -> Claim:
    """Create a PENDING claim against an active policy"""
    async with persisting(db, "submitting claim"):
        if claim_data.policy_id is not None:
            query = select(Policy).where(Policy.id == claim_data.policy_id)
            reference = claim_data.policy_id
        else:
            query = select(Policy).where(
                Policy.onchain_policy_id == claim_data.onchain_policy_id
            )
            reference = f"#{claim_data.onchain_policy_id}"
        policy = (await db.execute(query)).scalar_one_or_none()

        if not policy:
            raise NotFoundError("Policy", reference)
        if policy.status != PolicyStatus.ACTIVE.value:
            raise ValidationError(
                f"Policy {policy.id} is {policy.status}; claims require an ACTIVE policy"
            )

        if claim_data.onchain_claim_id is not None:
            existing = await db.execute(
                select(Claim.id).where(
                    Claim.onchain_claim_id == claim_data.onchain_claim_id
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ValidationError(
                    f"Claim #{claim_data.onchain_claim_id} already recorded"
                )

        claim = Claim(
            policy_id=policy.id,
            onchain_claim_id=claim_data.onchain_claim_id,
            claim_amount=claim_data.claim_amount,
            description=claim_data.description,
            evidence_cid=claim_data.evidence_cid,
            status=ClaimStatus.PENDING.value,
        )
        db.add(claim)
        await db.commit()
        await db.refresh(claim)

    logger.info("📝 Claim %s submitted against policy %s", claim.id, policy.id)
    return claim


async def list_claims(
    db: AsyncSession,
    status: Optional[str] = None,
    policy_id: Optional[int] = None,
    page: int = 1,
    per_page: int = 10,
) -> Tuple[List[Claim], int]:
    query = select(Claim)
    count_query = select(func.count(Claim.id))

    # Apply filters
    if status:
        query = query.where(Claim.status == status)
        count_query = count_query.where(Claim.status == status)
    if policy_id:
        query = query.where(Claim.policy_id == policy_id)
        count_query = count_query.where(Claim.policy_id == policy_id)

    async with persisting(db, "listing claims"):
        total = (await db.execute(count_query)).scalar()

        offset = (page - 1) * per_page
        query = (
            query.order_by(Claim.created_at.desc(), Claim.id.desc())
            .offset(offset)
            .limit(per_page)
        )
        claims = (await db.execute(query)).scalars().all()

    return list(claims), total


# ==================== CLAIM LIFECYCLE ====================


async def set_under_review(db: AsyncSession, claim_id: int) -> Claim:
    async with persisting(db, "setting claim under review"):
        claim = await get_claim(db, claim_id)
        claim.status = CLAIM_WORKFLOW.next_status(claim.status, "review")
        claim.reviewed_at = datetime.now(timezone.utc)

        await db.commit()
        await db.refresh(claim)

    logger.info("🔍 Claim #%s set to under review", claim.onchain_claim_id)
    return claim


async def approve_claim(db: AsyncSession, claim_id: int, payout_amount: Decimal) -> Claim:
    async with persisting(db, "approving claim"):
        claim = await get_claim(db, claim_id)
        claim.status = CLAIM_WORKFLOW.next_status(claim.status, "approve")
        claim.payout_amount = payout_amount
        claim.reviewed_at = datetime.now(timezone.utc)
        claim.rejection_reason = None

        await db.commit()
        await db.refresh(claim)

    logger.info(
        "✅ Claim #%s approved for payout: %s", claim.onchain_claim_id, payout_amount
    )
    return claim


async def reject_claim(db: AsyncSession, claim_id: int, reason: str) -> Claim:
    async with persisting(db, "rejecting claim"):
        claim = await get_claim(db, claim_id)
        claim.status = CLAIM_WORKFLOW.next_status(claim.status, "reject")
        claim.rejection_reason = reason
        claim.reviewed_at = datetime.now(timezone.utc)

        await db.commit()
        await db.refresh(claim)

    logger.info("❌ Claim #%s rejected: %s", claim.onchain_claim_id, reason)
    return claim


async def mark_paid(db: AsyncSession, claim_id: int, tx_hash: str) -> Claim:
    """Record a payout that was already executed on-chain"""
    async with persisting(db, "marking claim as paid"):
        claim = await get_claim(db, claim_id)
        claim.status = CLAIM_WORKFLOW.next_status(claim.status, "pay")
        claim.payout_tx_hash = tx_hash
        claim.paid_at = datetime.now(timezone.utc)

        await db.commit()
        await db.refresh(claim)

    logger.info("💰 Claim #%s payment confirmed: %s", claim.onchain_claim_id, tx_hash)
    return claim


async def update_status(
    db: AsyncSession,
    claim_id: int,
    status: str,
    payout_amount: Optional[Decimal] = None,
    reason: Optional[str] = None,
    tx_hash: Optional[str] = None,
) -> Claim:
    """Route a requested target status to the matching lifecycle operation"""
    if status == ClaimStatus.UNDER_REVIEW.value:
        return await set_under_review(db, claim_id)
    if status == ClaimStatus.APPROVED.value:
        if payout_amount is None:
            raise ValidationError("payoutAmount is required to approve a claim")
        return await approve_claim(db, claim_id, payout_amount)
    if status == ClaimStatus.REJECTED.value:
        if not reason:
            raise ValidationError("reason is required to reject a claim")
        return await reject_claim(db, claim_id, reason)
    if status == ClaimStatus.PAID.value:
        if not tx_hash:
            raise ValidationError("txHash is required to mark a claim paid")
        return await mark_paid(db, claim_id, tx_hash)
    raise ValidationError(f"Unsupported claim status: {status}")


async def get_pending_claims(db: AsyncSession) -> List[Claim]:
    async with persisting(db, "fetching pending claims"):
        result = await db.execute(
            select(Claim)
            .options(_WITH_POLICY)
            .where(Claim.status == ClaimStatus.PENDING.value)
            .order_by(Claim.created_at.desc(), Claim.id.desc())
        )
        return list(result.scalars().all())


async def get_under_review_claims(db: AsyncSession) -> List[Claim]:
    async with persisting(db, "fetching under review claims"):
        result = await db.execute(
            select(Claim)
            .options(_WITH_POLICY)
            .where(Claim.status == ClaimStatus.UNDER_REVIEW.value)
            .order_by(Claim.reviewed_at.desc(), Claim.id.desc())
        )
        return list(result.scalars().all())
