"""
KYC document records
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import persisting
from models.kyc_document import KycDocument
from models.statuses import KycStatus
from services.transitions import KYC_WORKFLOW
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)


async def get_kyc_document(db: AsyncSession, document_id: int) -> KycDocument:
    result = await db.execute(select(KycDocument).where(KycDocument.id == document_id))
    document = result.scalar_one_or_none()

    if not document:
        raise NotFoundError("KYC document", document_id)

    return document


async def upload_kyc_document(
    db: AsyncSession,
    user_address: str,
    document_type: str,
    document_cid: str,
    user_did: Optional[str] = None,
) -> KycDocument:
    async with persisting(db, "storing KYC document"):
        document = KycDocument(
            user_address=user_address,
            user_did=user_did,
            document_type=document_type,
            document_cid=document_cid,
            status=KycStatus.PENDING.value,
        )
        db.add(document)
        await db.commit()
        await db.refresh(document)

    logger.info("🪪 KYC %s uploaded for %s: %s", document_type, user_address, document_cid)
    return document


async def get_kyc_by_address(db: AsyncSession, user_address: str) -> List[KycDocument]:
    async with persisting(db, "fetching KYC documents"):
        result = await db.execute(
            select(KycDocument)
            .where(func.lower(KycDocument.user_address) == user_address.lower())
            .order_by(KycDocument.created_at.desc(), KycDocument.id.desc())
        )
        return list(result.scalars().all())


async def get_pending_kyc(db: AsyncSession) -> List[KycDocument]:
    async with persisting(db, "fetching pending KYC documents"):
        result = await db.execute(
            select(KycDocument)
            .where(KycDocument.status == KycStatus.PENDING.value)
            .order_by(KycDocument.created_at.desc(), KycDocument.id.desc())
        )
        return list(result.scalars().all())


async def verify_kyc(db: AsyncSession, document_id: int, verifier_address: str) -> KycDocument:
    async with persisting(db, "verifying KYC document"):
        document = await get_kyc_document(db, document_id)
        document.status = KYC_WORKFLOW.next_status(document.status, "verify")
        document.verified_by = verifier_address
        document.verified_at = datetime.now(timezone.utc)
        document.rejection_reason = None

        await db.commit()
        await db.refresh(document)

    logger.info("✅ KYC document %s verified by %s", document.id, verifier_address)
    return document


async def reject_kyc(
    db: AsyncSession, document_id: int, reason: str, verifier_address: str
) -> KycDocument:
    async with persisting(db, "rejecting KYC document"):
        document = await get_kyc_document(db, document_id)
        document.status = KYC_WORKFLOW.next_status(document.status, "reject")
        document.rejection_reason = reason
        document.verified_by = verifier_address
        document.verified_at = datetime.now(timezone.utc)

        await db.commit()
        await db.refresh(document)

    logger.info("❌ KYC document %s rejected: %s", document.id, reason)
    return document
