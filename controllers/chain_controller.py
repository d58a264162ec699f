"""
Chain mirror log and reconciliation controller
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_db
from models.statuses import SyncStatus
from schemas.identity import ChainSyncListResponse, ChainSyncResponse
from services import chain_sync_service
from services.chain_service import ChainGateway, get_chain_gateway

router = APIRouter()


@router.get("/sync-log", response_model=ChainSyncListResponse)
async def sync_log(
    status: Optional[SyncStatus] = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_db),
):
    records = await chain_sync_service.list_sync_records(
        db, status.value if status else None
    )
    return ChainSyncListResponse(
        records=[ChainSyncResponse.model_validate(r) for r in records]
    )


@router.post("/reconcile", response_model=ChainSyncListResponse)
async def reconcile(
    db: AsyncSession = Depends(get_db),
    chain: ChainGateway = Depends(get_chain_gateway),
):
    """
    Retry every on-chain mirror that has not been confirmed
    """
    records = await chain_sync_service.reconcile(db, chain)
    return ChainSyncListResponse(
        records=[ChainSyncResponse.model_validate(r) for r in records]
    )
