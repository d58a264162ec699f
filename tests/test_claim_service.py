"""
Claim submission and lifecycle tests
"""

from decimal import Decimal

import pytest

from schemas.claim import ClaimSubmitRequest
from services import claim_service
from utils import settings
from utils.errors import InvalidTransitionError, NotFoundError, ValidationError


class TestClaimLifecycle:

    async def test_end_to_end_payout(self, db, make_claim):
        claim = await make_claim()
        assert claim.status == "PENDING"

        claim = await claim_service.set_under_review(db, claim.id)
        assert claim.status == "UNDER_REVIEW"
        assert claim.reviewed_at is not None

        claim = await claim_service.approve_claim(db, claim.id, Decimal("500"))
        assert claim.status == "APPROVED"
        assert claim.payout_amount == Decimal("500")
        assert str(claim.payout_amount) == "500"

        claim = await claim_service.mark_paid(db, claim.id, "0xabc")
        assert claim.status == "PAID"
        assert claim.payout_tx_hash == "0xabc"
        assert claim.paid_at is not None

    async def test_rejection_after_review(self, db, make_claim):
        claim = await make_claim(status="UNDER_REVIEW")

        claim = await claim_service.reject_claim(db, claim.id, "Service not covered")

        assert claim.status == "REJECTED"
        assert claim.rejection_reason == "Service not covered"
        assert claim.reviewed_at is not None

    async def test_payout_keeps_full_precision(self, db, make_claim):
        claim = await make_claim(status="UNDER_REVIEW")
        amount = Decimal("1234567890.123456789012345678")

        await claim_service.approve_claim(db, claim.id, amount)
        await db.refresh(claim)

        assert claim.payout_amount == amount

    async def test_mark_paid_from_pending_refused_when_strict(self, db, make_claim):
        claim = await make_claim()

        with pytest.raises(InvalidTransitionError):
            await claim_service.mark_paid(db, claim.id, "0xabc")

        await db.refresh(claim)
        assert claim.status == "PENDING"
        assert claim.payout_tx_hash is None

    async def test_mark_paid_from_pending_allowed_when_lenient(
        self, db, make_claim, monkeypatch
    ):
        monkeypatch.setattr(settings, "STRICT_TRANSITIONS", False)
        claim = await make_claim()

        claim = await claim_service.mark_paid(db, claim.id, "0xabc")

        assert claim.status == "PAID"
        assert claim.paid_at is not None

    @pytest.mark.parametrize(
        "operation, args",
        [
            (claim_service.set_under_review, ()),
            (claim_service.approve_claim, (Decimal("1"),)),
            (claim_service.reject_claim, ("no",)),
            (claim_service.mark_paid, ("0x1",)),
        ],
    )
    async def test_unknown_claim(self, db, operation, args):
        with pytest.raises(NotFoundError):
            await operation(db, 404, *args)


class TestUpdateStatus:

    async def test_dispatches_to_review(self, db, make_claim):
        claim = await make_claim()

        updated = await claim_service.update_status(db, claim.id, "UNDER_REVIEW")

        assert updated.status == "UNDER_REVIEW"

    async def test_approval_requires_payout(self, db, make_claim):
        claim = await make_claim(status="UNDER_REVIEW")

        with pytest.raises(ValidationError):
            await claim_service.update_status(db, claim.id, "APPROVED")

    async def test_paid_requires_tx_hash(self, db, make_claim):
        claim = await make_claim(status="APPROVED")

        with pytest.raises(ValidationError):
            await claim_service.update_status(db, claim.id, "PAID")

        updated = await claim_service.update_status(db, claim.id, "PAID", tx_hash="0xfeed")
        assert updated.payout_tx_hash == "0xfeed"


class TestSubmitClaim:

    async def test_submit_against_active_policy(self, db, make_policy):
        policy = await make_policy()

        claim = await claim_service.submit_claim(
            db,
            ClaimSubmitRequest(
                policy_id=policy.id,
                onchain_claim_id=11,
                claim_amount="750.25",
                description="ER visit",
            ),
        )

        assert claim.status == "PENDING"
        assert claim.policy_id == policy.id
        assert claim.claim_amount == Decimal("750.25")

    async def test_submit_by_onchain_policy_id(self, db, make_policy):
        policy = await make_policy(onchain_policy_id=77)

        claim = await claim_service.submit_claim(
            db, ClaimSubmitRequest(onchain_policy_id=77)
        )

        assert claim.policy_id == policy.id

    async def test_unknown_policy(self, db):
        with pytest.raises(NotFoundError):
            await claim_service.submit_claim(db, ClaimSubmitRequest(policy_id=9))

    async def test_pending_policy_cannot_be_claimed(self, db, make_policy):
        policy = await make_policy(status="PENDING")

        with pytest.raises(ValidationError):
            await claim_service.submit_claim(db, ClaimSubmitRequest(policy_id=policy.id))

    async def test_duplicate_onchain_claim_id(self, db, make_policy):
        policy = await make_policy()
        request = ClaimSubmitRequest(policy_id=policy.id, onchain_claim_id=5)
        await claim_service.submit_claim(db, request)

        with pytest.raises(ValidationError):
            await claim_service.submit_claim(db, request)


class TestClaimQueues:

    async def test_pending_queue(self, make_claim, make_policy, session_factory):
        policy = await make_policy()
        first = await make_claim(policy=policy)
        await make_claim(status="UNDER_REVIEW", policy=policy)
        second = await make_claim(policy=policy)

        async with session_factory() as fresh:
            pending = await claim_service.get_pending_claims(fresh)

        assert [c.id for c in pending] == [second.id, first.id]
        assert all(c.status == "PENDING" for c in pending)
        assert pending[0].policy.provider is not None

    async def test_under_review_ordered_by_review_time(
        self, db, make_claim, make_policy, session_factory
    ):
        policy = await make_policy()
        a = await make_claim(policy=policy)
        b = await make_claim(policy=policy)
        await make_claim(policy=policy)

        await claim_service.set_under_review(db, b.id)
        await claim_service.set_under_review(db, a.id)

        async with session_factory() as fresh:
            queue = await claim_service.get_under_review_claims(fresh)

        assert [c.id for c in queue] == [a.id, b.id]

    async def test_list_claims_filters_and_paginates(self, db, make_claim, make_policy):
        policy = await make_policy()
        for _ in range(3):
            await make_claim(policy=policy)
        await make_claim(status="PAID", policy=policy)

        claims, total = await claim_service.list_claims(db, status="PENDING", per_page=2)

        assert total == 3
        assert len(claims) == 2
