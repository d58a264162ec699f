"""
Raw table dumps for local development. Only mounted when ENVIRONMENT=development.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.connection import get_db, persisting
from models.claim import Claim
from models.policy import Policy
from models.provider import Provider

router = APIRouter()


@router.get("/providers")
async def debug_providers(db: AsyncSession = Depends(get_db)):
    async with persisting(db, "dumping providers"):
        providers = (await db.execute(select(Provider))).scalars().all()

    return {
        "success": True,
        "providers": [p.to_dict() for p in providers],
        "count": len(providers),
    }


@router.get("/policies")
async def debug_policies(db: AsyncSession = Depends(get_db)):
    async with persisting(db, "dumping policies"):
        policies = (await db.execute(select(Policy))).scalars().all()

    return {
        "success": True,
        "policies": [p.to_dict() for p in policies],
        "count": len(policies),
        "mapping": [
            {"onchainPolicyId": p.onchain_policy_id, "providerId": p.provider_id}
            for p in policies
        ],
    }


@router.get("/claims")
async def debug_claims(db: AsyncSession = Depends(get_db)):
    async with persisting(db, "dumping claims"):
        result = await db.execute(select(Claim).options(selectinload(Claim.policy)))
        claims = result.scalars().all()

    return {
        "success": True,
        "claims": [
            {
                **c.to_dict(),
                "policy": {
                    "onchainPolicyId": c.policy.onchain_policy_id,
                    "providerId": c.policy.provider_id,
                },
            }
            for c in claims
        ],
        "count": len(claims),
    }
