"""
Decentralized identifier controller
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_db
from schemas.identity import DidCreateRequest, DidCreateResponse
from services.identity_service import IdentityService, get_identity_service

router = APIRouter()


@router.post("/create", response_model=DidCreateResponse)
async def create_did(
    request: DidCreateRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Create a did:ethr identifier. A blank alias is ignored.
    """
    identifier = await identity.create_did(db, request.alias)
    return DidCreateResponse(did=identifier.did, alias=identifier.alias)
