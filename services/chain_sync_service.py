"""
Best-effort on-chain mirroring of local approvals

The database row is the source of truth. Mirrors run after the local commit,
inline or as a response background task. They are retried with exponential
backoff and every outcome is written to the chain sync log, so lagging or
failed mirrors can be reconciled later.
Mirror failures never propagate to the caller.
"""

import asyncio
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import persisting
from models.chain_sync import ChainSyncRecord
from models.statuses import SyncStatus
from services.chain_service import ChainGateway
from utils import settings
from utils.errors import ChainError, StorageError

logger = logging.getLogger(__name__)

APPROVE_PROVIDER = "approveProvider"

RETRYABLE_STATUSES = (
    SyncStatus.PENDING.value,
    SyncStatus.FAILED.value,
    SyncStatus.SKIPPED.value,
)


async def _dispatch(chain: ChainGateway, record: ChainSyncRecord) -> str:
    if record.action == APPROVE_PROVIDER:
        return await chain.approve_provider(record.target)
    raise ChainError(f"Unknown chain action: {record.action}")


async def _wait_before_retry(attempt: int, retry_delay: float) -> None:
    wait_time = retry_delay * (2**attempt)
    logger.debug("Waiting %.2fs before chain retry", wait_time)
    await asyncio.sleep(wait_time)


async def _attempt(
    db: AsyncSession,
    record: ChainSyncRecord,
    chain: ChainGateway,
    max_attempts: Optional[int] = None,
    retry_delay: Optional[float] = None,
) -> ChainSyncRecord:
    if max_attempts is None:
        max_attempts = settings.CHAIN_SYNC_MAX_ATTEMPTS
    if retry_delay is None:
        retry_delay = settings.CHAIN_SYNC_RETRY_DELAY

    for attempt in range(max_attempts):
        record.attempts += 1
        try:
            tx_hash = await _dispatch(chain, record)
        except ChainError as e:
            record.last_error = e.message
            logger.warning(
                "⚠️  %s(%s) attempt %d/%d failed: %s",
                record.action,
                record.target,
                attempt + 1,
                max_attempts,
                e.message,
            )
            if attempt + 1 < max_attempts:
                await _wait_before_retry(attempt, retry_delay)
            continue

        record.status = SyncStatus.CONFIRMED.value
        record.tx_hash = tx_hash
        record.last_error = None
        logger.info("✅ %s(%s) confirmed on-chain: %s", record.action, record.target, tx_hash)
        break
    else:
        record.status = SyncStatus.FAILED.value
        logger.error(
            "❌ %s(%s) not mirrored after %d attempts (database unaffected)",
            record.action,
            record.target,
            max_attempts,
        )

    async with persisting(db, "updating chain sync log"):
        await db.commit()
        await db.refresh(record)
    return record


async def mirror_provider_approval(
    sessions: async_sessionmaker,
    provider_id: int,
    provider_address: str,
    chain: ChainGateway,
) -> Optional[ChainSyncRecord]:
    """
    Mirror a committed provider approval on-chain. The sync log is written on
    a session of its own, so a log failure cannot touch the caller's session.
    Returns the sync log row, or None when the log itself could not be written.
    """
    record = ChainSyncRecord(
        entity_type="provider",
        entity_id=provider_id,
        action=APPROVE_PROVIDER,
        target=provider_address,
        status=SyncStatus.PENDING.value,
        attempts=0,
    )
    if not chain.enabled:
        record.status = SyncStatus.SKIPPED.value
        record.last_error = "Chain signer not configured"

    async with sessions() as db:
        try:
            async with persisting(db, "writing chain sync log"):
                db.add(record)
                await db.commit()
                await db.refresh(record)

            if record.status == SyncStatus.SKIPPED.value:
                logger.info("⏭️  Skipping on-chain approval of %s", provider_address)
                return record

            logger.info("⛓️  Approving provider %s on-chain...", provider_address)
            return await _attempt(db, record, chain)
        except StorageError as e:
            logger.error(
                "⚠️  Could not record chain mirror for provider %s: %s", provider_id, e
            )
            return None


async def list_sync_records(
    db: AsyncSession, status: Optional[str] = None
) -> List[ChainSyncRecord]:
    async with persisting(db, "listing chain sync log"):
        query = select(ChainSyncRecord)
        if status:
            query = query.where(ChainSyncRecord.status == status)
        result = await db.execute(
            query.order_by(ChainSyncRecord.created_at.desc(), ChainSyncRecord.id.desc())
        )
        return list(result.scalars().all())


async def reconcile(db: AsyncSession, chain: ChainGateway) -> List[ChainSyncRecord]:
    """Re-attempt every mirror that is not confirmed yet"""
    if not chain.enabled:
        logger.warning("⚠️  Reconcile requested but no chain signer is configured")
        return []

    async with persisting(db, "loading unconfirmed chain mirrors"):
        result = await db.execute(
            select(ChainSyncRecord)
            .where(ChainSyncRecord.status.in_(RETRYABLE_STATUSES))
            .order_by(ChainSyncRecord.id)
        )
        records = list(result.scalars().all())

    logger.info("🔁 Reconciling %d chain mirror(s)", len(records))
    return [await _attempt(db, record, chain) for record in records]
