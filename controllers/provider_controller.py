"""
Provider onboarding and approval controller
"""

import re
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_db
from models.statuses import ProviderStatus
from schemas.provider import (
    PendingProvidersResponse,
    ProviderApproveRequest,
    ProviderEnvelope,
    ProviderListResponse,
    ProviderOnboardResponse,
    ProviderRejectRequest,
    ProviderResponse,
    ADDRESS_PATTERN,
)
from services import approval_service, provider_service
from services.chain_service import ChainGateway, get_chain_gateway
from services.identity_service import IdentityService, get_identity_service
from services.storage_service import PinataStorage, get_storage
from utils.errors import ValidationError

router = APIRouter()


@router.post("/onboard", response_model=ProviderOnboardResponse)
async def onboard_provider(
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    provider_address: Optional[str] = Form(None, alias="providerAddress"),
    provider_did: Optional[str] = Form(None, alias="providerDid"),
    db: AsyncSession = Depends(get_db),
    storage: PinataStorage = Depends(get_storage),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Onboard a provider: pin the license file and issue a provider credential
    """
    if file is None:
        raise ValidationError("No license file uploaded")
    if not name or not provider_address:
        raise ValidationError("name and providerAddress required")
    if not re.match(ADDRESS_PATTERN, provider_address):
        raise ValidationError("providerAddress must be a 0x-prefixed 20 byte address")

    content = await file.read()
    provider, license_pin, vc_pin = await provider_service.onboard_provider(
        db,
        storage,
        identity,
        name=name.strip(),
        provider_address=provider_address,
        license_file=content,
        license_filename=file.filename or "license",
        provider_did=provider_did or None,
    )

    return ProviderOnboardResponse(
        provider=ProviderResponse.model_validate(provider),
        license_url=license_pin.gateway_url,
        vc_url=vc_pin.gateway_url,
    )


@router.get("/list", response_model=ProviderListResponse)
async def list_providers(
    status: Optional[ProviderStatus] = Query(None, description="Filter by status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100, alias="perPage"),
    db: AsyncSession = Depends(get_db),
):
    """
    List providers, newest first
    """
    providers, total = await provider_service.list_providers(
        db, status.value if status else None, page, per_page
    )

    return ProviderListResponse(
        providers=[ProviderResponse.model_validate(p) for p in providers],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=(total + per_page - 1) // per_page,
    )


@router.get("/pending", response_model=PendingProvidersResponse)
async def pending_providers(db: AsyncSession = Depends(get_db)):
    providers = await approval_service.get_pending_providers(db)
    return PendingProvidersResponse(
        providers=[ProviderResponse.model_validate(p) for p in providers]
    )


@router.post("/approve/{provider_id}", response_model=ProviderEnvelope)
async def approve_provider(
    provider_id: int,
    request: ProviderApproveRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    chain: ChainGateway = Depends(get_chain_gateway),
):
    """
    Approve a provider. The on-chain mirror runs after the response is sent.
    """
    provider = await approval_service.approve_provider(
        db, provider_id, request.insurer_address, chain, background_tasks
    )
    return ProviderEnvelope(provider=ProviderResponse.model_validate(provider))


@router.post("/reject/{provider_id}", response_model=ProviderEnvelope)
async def reject_provider(
    provider_id: int,
    request: ProviderRejectRequest,
    db: AsyncSession = Depends(get_db),
):
    provider = await approval_service.reject_provider(
        db, provider_id, request.reason, request.insurer_address
    )
    return ProviderEnvelope(provider=ProviderResponse.model_validate(provider))
