"""
Chain mirror log and reconciliation tests
"""

from sqlalchemy import select

from conftest import FakeChain, TX_HASH
from models.chain_sync import ChainSyncRecord
from services import approval_service, chain_sync_service

INSURER = "0x" + "1" * 40


async def test_reconcile_retries_failed_mirror(db, make_provider):
    provider = await make_provider()
    await approval_service.approve_provider(db, provider.id, INSURER, FakeChain(failures=10))

    healthy = FakeChain()
    records = await chain_sync_service.reconcile(db, healthy)

    assert len(records) == 1
    assert records[0].status == "CONFIRMED"
    assert records[0].tx_hash == TX_HASH
    assert healthy.calls == [provider.provider_address]


async def test_reconcile_picks_up_skipped_mirrors(db, make_provider):
    provider = await make_provider()
    await approval_service.approve_provider(db, provider.id, INSURER, FakeChain(enabled=False))

    records = await chain_sync_service.reconcile(db, FakeChain())

    assert [r.status for r in records] == ["CONFIRMED"]


async def test_reconcile_leaves_confirmed_mirrors_alone(db, chain, make_provider):
    provider = await make_provider()
    await approval_service.approve_provider(db, provider.id, INSURER, chain)

    again = FakeChain()
    records = await chain_sync_service.reconcile(db, again)

    assert records == []
    assert again.calls == []


async def test_reconcile_without_signer_does_nothing(db, make_provider):
    provider = await make_provider()
    await approval_service.approve_provider(db, provider.id, INSURER, FakeChain(failures=10))

    assert await chain_sync_service.reconcile(db, FakeChain(enabled=False)) == []
    record = (await db.execute(select(ChainSyncRecord))).scalar_one()
    assert record.status == "FAILED"


async def test_list_sync_records_by_status(db, make_provider):
    ok = await make_provider()
    broken = await make_provider()
    await approval_service.approve_provider(db, ok.id, INSURER, FakeChain())
    await approval_service.approve_provider(db, broken.id, INSURER, FakeChain(failures=10))

    failed = await chain_sync_service.list_sync_records(db, "FAILED")

    assert [r.entity_id for r in failed] == [broken.id]
    assert len(await chain_sync_service.list_sync_records(db)) == 2
