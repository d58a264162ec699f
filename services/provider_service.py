"""
Provider onboarding, listing and bootstrap seed
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import persisting
from models.provider import Provider
from models.statuses import ProviderStatus
from services.identity_service import IdentityService
from services.storage_service import PinataStorage, PinResult
from utils import settings
from utils.errors import ValidationError

logger = logging.getLogger(__name__)


async def get_provider_by_address(
    db: AsyncSession, provider_address: str
) -> Optional[Provider]:
    result = await db.execute(
        select(Provider).where(
            func.lower(Provider.provider_address) == provider_address.lower()
        )
    )
    return result.scalar_one_or_none()


async def onboard_provider(
    db: AsyncSession,
    storage: PinataStorage,
    identity: IdentityService,
    name: str,
    provider_address: str,
    license_file: bytes,
    license_filename: str,
    provider_did: Optional[str] = None,
) -> Tuple[Provider, PinResult, PinResult]:
    """
    Pin the license, issue a provider credential and store a PENDING provider.
    Returns the provider and the license and credential pins.
    """
    async with persisting(db, "checking provider address"):
        if await get_provider_by_address(db, provider_address):
            raise ValidationError(f"Provider {provider_address} already onboarded")

    provider_did = provider_did or identity.did_for_address(provider_address)
    license_pin = await storage.pin_file(license_file, license_filename)

    issuer = await identity.get_or_create_issuer(db)
    credential = identity.issue_credential(
        issuer,
        provider_did,
        "HealthcareProviderCredential",
        {
            "name": name,
            "providerAddress": provider_address,
            "licenseCid": license_pin.cid,
        },
    )
    vc_pin = await storage.pin_json(credential, f"provider-vc-{provider_address}")

    async with persisting(db, "onboarding provider"):
        provider = Provider(
            provider_did=provider_did,
            provider_address=provider_address,
            name=name,
            issuer_did=issuer.did,
            issued_at=datetime.now(timezone.utc),
            license_cid=license_pin.cid,
            vc_cid=vc_pin.cid,
            status=ProviderStatus.PENDING.value,
        )
        db.add(provider)
        await db.commit()
        await db.refresh(provider)

    logger.info("🏥 Provider %s onboarded (%s), awaiting approval", name, provider_did)
    return provider, license_pin, vc_pin


async def list_providers(
    db: AsyncSession,
    status: Optional[str] = None,
    page: int = 1,
    per_page: int = 10,
) -> Tuple[List[Provider], int]:
    query = select(Provider)
    count_query = select(func.count(Provider.id))

    if status:
        query = query.where(Provider.status == status)
        count_query = count_query.where(Provider.status == status)

    async with persisting(db, "listing providers"):
        total = (await db.execute(count_query)).scalar()

        offset = (page - 1) * per_page
        query = (
            query.order_by(Provider.created_at.desc(), Provider.id.desc())
            .offset(offset)
            .limit(per_page)
        )
        providers = (await db.execute(query)).scalars().all()

    return list(providers), total


async def seed_default_provider(
    db: AsyncSession, identity: IdentityService
) -> Provider:
    """
    Ensure the placeholder provider used by chain-recorded policies exists.
    Safe to run on every startup.
    """
    async with persisting(db, "seeding default provider"):
        provider = await get_provider_by_address(db, settings.DEFAULT_PROVIDER_ADDRESS)
        if provider:
            return provider

    issuer = await identity.get_or_create_issuer(db)

    async with persisting(db, "seeding default provider"):
        provider = Provider(
            provider_did=identity.did_for_address(settings.DEFAULT_PROVIDER_ADDRESS),
            provider_address=settings.DEFAULT_PROVIDER_ADDRESS,
            name=settings.DEFAULT_PROVIDER_NAME,
            issuer_did=issuer.did,
            issued_at=datetime.now(timezone.utc),
            license_cid="",
            vc_cid="",
            status=ProviderStatus.APPROVED.value,
            approved_at=datetime.now(timezone.utc),
        )
        db.add(provider)
        await db.commit()
        await db.refresh(provider)

    logger.info("🌱 Seeded default provider (id %s)", provider.id)
    return provider
