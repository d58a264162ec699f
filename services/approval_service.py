"""
Approval workflows for providers and policies
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.connection import persisting, sessions_like
from models.policy import Policy
from models.provider import Provider
from models.statuses import PolicyStatus, ProviderStatus
from services import chain_sync_service
from services.chain_service import ChainGateway
from services.transitions import POLICY_WORKFLOW, PROVIDER_WORKFLOW
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)


# ==================== PROVIDER APPROVALS ====================


async def get_provider(db: AsyncSession, provider_id: int) -> Provider:
    result = await db.execute(select(Provider).where(Provider.id == provider_id))
    provider = result.scalar_one_or_none()

    if not provider:
        raise NotFoundError("Provider", provider_id)

    return provider


async def approve_provider(
    db: AsyncSession,
    provider_id: int,
    insurer_address: str,
    chain: ChainGateway,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Provider:
    """
    Approve a provider, then mirror the approval on-chain.

    The database commit is authoritative: the on-chain mirror is best effort
    and its failure is logged to the chain sync log, never raised. With
    background_tasks the mirror runs after the response is sent.
    """
    async with persisting(db, "approving provider"):
        provider = await get_provider(db, provider_id)
        provider.status = PROVIDER_WORKFLOW.next_status(provider.status, "approve")
        provider.approved_at = datetime.now(timezone.utc)
        provider.approved_by = insurer_address
        provider.rejection_reason = None

        await db.commit()
        await db.refresh(provider)

    logger.info(
        "✅ Provider %s approved in database by %s",
        provider.provider_did,
        insurer_address,
    )

    mirror_args = (sessions_like(db), provider.id, provider.provider_address, chain)
    if background_tasks is not None:
        background_tasks.add_task(chain_sync_service.mirror_provider_approval, *mirror_args)
    else:
        await chain_sync_service.mirror_provider_approval(*mirror_args)
    return provider


async def reject_provider(
    db: AsyncSession, provider_id: int, reason: str, insurer_address: str
) -> Provider:
    async with persisting(db, "rejecting provider"):
        provider = await get_provider(db, provider_id)
        provider.status = PROVIDER_WORKFLOW.next_status(provider.status, "reject")
        provider.rejection_reason = reason
        provider.approved_by = insurer_address

        await db.commit()
        await db.refresh(provider)

    logger.info("❌ Provider %s rejected: %s", provider.provider_did, reason)
    return provider


async def get_pending_providers(db: AsyncSession) -> List[Provider]:
    async with persisting(db, "fetching pending providers"):
        result = await db.execute(
            select(Provider)
            .where(Provider.status == ProviderStatus.PENDING.value)
            .order_by(Provider.created_at.desc(), Provider.id.desc())
        )
        return list(result.scalars().all())


# ==================== POLICY APPROVALS ====================


async def get_policy(db: AsyncSession, policy_id: int, with_provider: bool = False) -> Policy:
    query = select(Policy).where(Policy.id == policy_id)
    if with_provider:
        query = query.options(selectinload(Policy.provider))
    result = await db.execute(query)
    policy = result.scalar_one_or_none()

    if not policy:
        raise NotFoundError("Policy", policy_id)

    return policy


async def approve_policy(
    db: AsyncSession, policy_id: int, insurer_address: str
) -> Policy:
    async with persisting(db, "approving policy"):
        policy = await get_policy(db, policy_id)
        policy.status = POLICY_WORKFLOW.next_status(policy.status, "approve")
        policy.approved_at = datetime.now(timezone.utc)
        policy.approved_by = insurer_address
        policy.rejection_reason = None

        await db.commit()
        await db.refresh(policy)

    logger.info("✅ Policy #%s approved and activated", policy.onchain_policy_id)
    return policy


async def reject_policy(
    db: AsyncSession,
    policy_id: int,
    reason: str,
    insurer_address: str,
    refund_tx_hash: Optional[str] = None,
) -> Policy:
    async with persisting(db, "rejecting policy"):
        policy = await get_policy(db, policy_id)
        policy.status = POLICY_WORKFLOW.next_status(policy.status, "reject")
        policy.rejection_reason = reason
        policy.approved_by = insurer_address
        policy.refund_tx_hash = refund_tx_hash

        await db.commit()
        await db.refresh(policy)

    logger.info("❌ Policy #%s rejected: %s", policy.onchain_policy_id, reason)
    if refund_tx_hash:
        logger.info("💰 Refund transaction: %s", refund_tx_hash)
    return policy


async def get_pending_policies(db: AsyncSession) -> List[Policy]:
    async with persisting(db, "fetching pending policies"):
        result = await db.execute(
            select(Policy)
            .options(selectinload(Policy.provider))
            .where(Policy.status == PolicyStatus.PENDING.value)
            .order_by(Policy.created_at.desc(), Policy.id.desc())
        )
        return list(result.scalars().all())
