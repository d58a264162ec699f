"""
Shared fixtures: in-memory database, fake gateways and record factories
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from decimal import Decimal
from typing import List, Optional

from cryptography.fernet import Fernet
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from database.connection import Base, get_db
from models import provider, policy, claim, kyc_document, identifier, chain_sync  # noqa: F401
from models.claim import Claim
from models.policy import Policy
from models.provider import Provider
from models.statuses import ClaimStatus, PolicyStatus, ProviderStatus
from services.chain_service import get_chain_gateway
from services.identity_service import IdentityService, get_identity_service
from services.storage_service import PinResult, get_storage
from utils import settings
from utils.errors import ChainError

TX_HASH = "0x" + "ab" * 32


class FakeChain:
    """Stands in for ChainGateway; fails the first `failures` calls"""

    def __init__(self, enabled: bool = True, failures: int = 0):
        self.enabled = enabled
        self.failures = failures
        self.calls: List[str] = []

    async def approve_provider(self, provider_address: str) -> str:
        self.calls.append(provider_address)
        if self.failures:
            self.failures -= 1
            raise ChainError("execution reverted: rpc unavailable")
        return TX_HASH


class FakeStorage:
    def __init__(self):
        self.files = []
        self.documents = []

    def gateway_url(self, cid: str) -> str:
        return f"https://gateway.test/ipfs/{cid}"

    async def pin_file(self, content: bytes, filename: str) -> PinResult:
        self.files.append((filename, content))
        cid = f"bafyfile{len(self.files)}"
        return PinResult(cid=cid, gateway_url=self.gateway_url(cid))

    async def pin_json(self, document: dict, name: str) -> PinResult:
        self.documents.append((name, document))
        cid = f"bafyjson{len(self.documents)}"
        return PinResult(cid=cid, gateway_url=self.gateway_url(cid))


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_TRANSITIONS", True)
    monkeypatch.setattr(settings, "CHAIN_SYNC_MAX_ATTEMPTS", 3)
    monkeypatch.setattr(settings, "CHAIN_SYNC_RETRY_DELAY", 0)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def identity():
    return IdentityService(Fernet.generate_key(), network="localhost", issuer_alias="issuer")


@pytest.fixture
def make_provider(db):
    counter = {"n": 0}

    async def _make(
        status: str = ProviderStatus.PENDING.value,
        address: Optional[str] = None,
        name: str = "City Clinic",
    ) -> Provider:
        counter["n"] += 1
        address = address or "0x" + f"{counter['n'] + 100:040x}"
        record = Provider(
            provider_did=f"did:ethr:localhost:{address}",
            provider_address=address,
            name=name,
            license_cid="bafylicense",
            vc_cid="bafyvc",
            status=status,
        )
        db.add(record)
        await db.commit()
        await db.refresh(record)
        return record

    return _make


@pytest.fixture
def make_policy(db, make_provider):
    counter = {"n": 0}

    async def _make(
        status: str = PolicyStatus.ACTIVE.value,
        provider: Optional[Provider] = None,
        onchain_policy_id: Optional[int] = None,
    ) -> Policy:
        counter["n"] += 1
        provider = provider or await make_provider(status=ProviderStatus.APPROVED.value)
        record = Policy(
            provider_id=provider.id,
            beneficiary_address="0x" + "b" * 40,
            beneficiary_did="did:ethr:localhost:0x" + "b" * 40,
            coverage_amount=Decimal("10000"),
            start_epoch=1_700_000_000,
            end_epoch=1_731_536_000,
            tier="Standard",
            premium_paid=Decimal("0.05"),
            onchain_policy_id=onchain_policy_id if onchain_policy_id is not None else counter["n"],
            status=status,
        )
        db.add(record)
        await db.commit()
        await db.refresh(record)
        return record

    return _make


@pytest.fixture
def make_claim(db, make_policy):
    counter = {"n": 0}

    async def _make(
        status: str = ClaimStatus.PENDING.value, policy: Optional[Policy] = None
    ) -> Claim:
        counter["n"] += 1
        policy = policy or await make_policy()
        record = Claim(
            policy_id=policy.id,
            onchain_claim_id=counter["n"],
            claim_amount=Decimal("750"),
            description="Outpatient visit",
            status=status,
        )
        db.add(record)
        await db.commit()
        await db.refresh(record)
        return record

    return _make


@pytest.fixture
def app_factory(session_factory, chain, storage, identity):
    """Builds the app for the current settings, wired to the test doubles"""
    from main import create_app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    def _make():
        app = create_app()
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_chain_gateway] = lambda: chain
        app.dependency_overrides[get_storage] = lambda: storage
        app.dependency_overrides[get_identity_service] = lambda: identity
        return app

    return _make


@pytest_asyncio.fixture
async def client(app_factory):
    async with AsyncClient(transport=ASGITransport(app=app_factory()), base_url="http://test") as ac:
        yield ac
