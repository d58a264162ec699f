"""
Policy issuance, chain recording and reads
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import persisting
from models.policy import Policy
from models.provider import Provider
from models.statuses import PolicyStatus, ProviderStatus
from schemas.policy import PolicyIssueRequest, PolicyRecordRequest
from services.approval_service import get_policy, get_provider
from services.identity_service import IdentityService
from services.provider_service import get_provider_by_address
from services.storage_service import PinataStorage
from utils import settings
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIER = "Standard"


async def _ensure_onchain_id_free(db: AsyncSession, onchain_policy_id: Optional[int]):
    if onchain_policy_id is None:
        return
    existing = await db.execute(
        select(Policy.id).where(Policy.onchain_policy_id == onchain_policy_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise ValidationError(f"Policy #{onchain_policy_id} already recorded")


def _check_epochs(start_epoch: int, end_epoch: int):
    if end_epoch <= start_epoch:
        raise ValidationError("endEpoch must be after startEpoch")


async def issue_policy(
    db: AsyncSession,
    storage: PinataStorage,
    identity: IdentityService,
    policy_data: PolicyIssueRequest,
) -> Policy:
    """Administrative issuance: the policy waits for insurer approval"""
    _check_epochs(policy_data.start_epoch, policy_data.end_epoch)

    async with persisting(db, "checking policy provider"):
        provider = await get_provider(db, policy_data.provider_id)
        if provider.status != ProviderStatus.APPROVED.value:
            raise ValidationError(
                f"Provider {provider.id} is {provider.status}; only APPROVED providers can issue policies"
            )
        await _ensure_onchain_id_free(db, policy_data.onchain_policy_id)

    beneficiary_did = policy_data.beneficiary_did or identity.did_for_address(
        policy_data.beneficiary_address
    )
    issuer = await identity.get_or_create_issuer(db)
    credential = identity.issue_credential(
        issuer,
        beneficiary_did,
        "InsurancePolicyCredential",
        {
            "providerDid": provider.provider_did,
            "coverageAmount": str(policy_data.coverage_amount),
            "startEpoch": policy_data.start_epoch,
            "endEpoch": policy_data.end_epoch,
            "tier": policy_data.tier or DEFAULT_TIER,
        },
    )
    vc_pin = await storage.pin_json(
        credential, f"policy-vc-{policy_data.beneficiary_address}"
    )

    async with persisting(db, "issuing policy"):
        policy = Policy(
            provider_id=provider.id,
            issuer_did=issuer.did,
            beneficiary_address=policy_data.beneficiary_address,
            beneficiary_did=beneficiary_did,
            coverage_amount=policy_data.coverage_amount,
            start_epoch=policy_data.start_epoch,
            end_epoch=policy_data.end_epoch,
            tier=policy_data.tier or DEFAULT_TIER,
            premium_paid=policy_data.premium_paid or Decimal("0"),
            onchain_policy_id=policy_data.onchain_policy_id,
            kyc_doc_cid=policy_data.kyc_doc_cid or "",
            status=PolicyStatus.PENDING.value,
            policy_vc_cid=vc_pin.cid,
        )
        db.add(policy)
        await db.commit()
        await db.refresh(policy)

    logger.info("📋 Policy %s issued for %s, awaiting approval", policy.id, beneficiary_did)
    return policy


async def _resolve_recording_provider(
    db: AsyncSession, provider_id: Optional[int]
) -> Provider:
    if provider_id is not None:
        return await get_provider(db, provider_id)

    provider = await get_provider_by_address(db, settings.DEFAULT_PROVIDER_ADDRESS)
    if not provider:
        raise NotFoundError("Provider", "default (run the startup seed)")
    return provider


async def record_policy_from_chain(
    db: AsyncSession, identity: IdentityService, policy_data: PolicyRecordRequest
) -> Policy:
    """
    Store a policy whose premium was already paid on-chain. It is created
    ACTIVE and approved, bypassing the administrative approval workflow.
    """
    logger.info("📋 Recording policy request from blockchain...")
    _check_epochs(policy_data.start_epoch, policy_data.end_epoch)

    async with persisting(db, "recording policy"):
        provider = await _resolve_recording_provider(db, policy_data.provider_id)
        await _ensure_onchain_id_free(db, policy_data.onchain_policy_id)

        issuer = await identity.get_or_create_issuer(db)
        policy = Policy(
            provider_id=provider.id,
            issuer_did=issuer.did,
            beneficiary_address=policy_data.beneficiary_address,
            beneficiary_did=policy_data.beneficiary_did
            or identity.did_for_address(policy_data.beneficiary_address),
            coverage_amount=policy_data.coverage_amount,
            start_epoch=policy_data.start_epoch,
            end_epoch=policy_data.end_epoch,
            tier=policy_data.tier or DEFAULT_TIER,
            premium_paid=policy_data.premium_amount or Decimal("0"),
            onchain_policy_id=policy_data.onchain_policy_id,
            kyc_doc_cid=policy_data.kyc_cid or "",
            status=PolicyStatus.ACTIVE.value,
            policy_vc_cid="",
            approved_at=datetime.now(timezone.utc),
        )
        db.add(policy)
        await db.commit()
        await db.refresh(policy)

    logger.info("✅ Policy recorded in database: ID %s", policy.id)
    return policy


async def list_policies(
    db: AsyncSession,
    status: Optional[str] = None,
    beneficiary_address: Optional[str] = None,
    provider_id: Optional[int] = None,
    page: int = 1,
    per_page: int = 10,
) -> Tuple[List[Policy], int]:
    query = select(Policy)
    count_query = select(func.count(Policy.id))

    # Apply filters
    if status:
        query = query.where(Policy.status == status)
        count_query = count_query.where(Policy.status == status)
    if beneficiary_address:
        address_filter = func.lower(Policy.beneficiary_address) == beneficiary_address.lower()
        query = query.where(address_filter)
        count_query = count_query.where(address_filter)
    if provider_id:
        query = query.where(Policy.provider_id == provider_id)
        count_query = count_query.where(Policy.provider_id == provider_id)

    async with persisting(db, "listing policies"):
        total = (await db.execute(count_query)).scalar()

        offset = (page - 1) * per_page
        query = (
            query.order_by(Policy.created_at.desc(), Policy.id.desc())
            .offset(offset)
            .limit(per_page)
        )
        policies = (await db.execute(query)).scalars().all()

    return list(policies), total


async def get_policy_detail(db: AsyncSession, policy_id: int) -> Policy:
    async with persisting(db, "loading policy"):
        return await get_policy(db, policy_id, with_provider=True)
