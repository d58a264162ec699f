"""
Status transition table tests
"""

import pytest

from models.statuses import ClaimStatus, KycStatus, PolicyStatus, ProviderStatus
from services.transitions import (
    CLAIM_WORKFLOW,
    KYC_WORKFLOW,
    POLICY_WORKFLOW,
    PROVIDER_WORKFLOW,
)
from utils import settings
from utils.errors import InvalidTransitionError


class TestProviderWorkflow:
    def test_pending_provider_can_be_approved(self):
        assert PROVIDER_WORKFLOW.next_status("PENDING", "approve") == "APPROVED"

    def test_pending_provider_can_be_rejected(self):
        assert PROVIDER_WORKFLOW.next_status("PENDING", "reject") == "REJECTED"

    @pytest.mark.parametrize("current", ["APPROVED", "REJECTED"])
    def test_decided_provider_cannot_be_decided_again(self, current):
        with pytest.raises(InvalidTransitionError) as exc_info:
            PROVIDER_WORKFLOW.next_status(current, "approve")
        assert exc_info.value.status_code == 409
        assert current in exc_info.value.message


class TestPolicyWorkflow:
    def test_approval_activates_policy(self):
        assert POLICY_WORKFLOW.next_status("PENDING", "approve") == PolicyStatus.ACTIVE.value

    def test_active_policy_cannot_be_rejected(self):
        with pytest.raises(InvalidTransitionError):
            POLICY_WORKFLOW.next_status("ACTIVE", "reject")


class TestClaimWorkflow:
    def test_happy_path(self):
        status = ClaimStatus.PENDING.value
        for action, expected in [
            ("review", "UNDER_REVIEW"),
            ("approve", "APPROVED"),
            ("pay", "PAID"),
        ]:
            status = CLAIM_WORKFLOW.next_status(status, action)
            assert status == expected

    def test_rejection_is_terminal(self):
        for action in CLAIM_WORKFLOW.actions:
            assert not CLAIM_WORKFLOW.allowed("REJECTED", action)

    def test_paid_is_terminal(self):
        for action in CLAIM_WORKFLOW.actions:
            assert not CLAIM_WORKFLOW.allowed("PAID", action)

    def test_cannot_pay_pending_claim_when_strict(self):
        with pytest.raises(InvalidTransitionError):
            CLAIM_WORKFLOW.next_status("PENDING", "pay", strict=True)

    def test_lenient_mode_overwrites(self):
        assert CLAIM_WORKFLOW.next_status("PENDING", "pay", strict=False) == "PAID"
        assert CLAIM_WORKFLOW.next_status("PAID", "review", strict=False) == "UNDER_REVIEW"

    def test_strictness_defaults_to_setting(self, monkeypatch):
        monkeypatch.setattr(settings, "STRICT_TRANSITIONS", False)
        assert CLAIM_WORKFLOW.next_status("PENDING", "approve") == "APPROVED"

        monkeypatch.setattr(settings, "STRICT_TRANSITIONS", True)
        with pytest.raises(InvalidTransitionError):
            CLAIM_WORKFLOW.next_status("PENDING", "approve")

    def test_unknown_action(self):
        with pytest.raises(KeyError):
            CLAIM_WORKFLOW.next_status("PENDING", "escalate")


class TestKycWorkflow:
    def test_verify_and_reject_from_pending(self):
        assert KYC_WORKFLOW.next_status(KycStatus.PENDING.value, "verify") == "VERIFIED"
        assert KYC_WORKFLOW.next_status(KycStatus.PENDING.value, "reject") == "REJECTED"

    def test_verified_document_cannot_be_rejected(self):
        with pytest.raises(InvalidTransitionError):
            KYC_WORKFLOW.next_status("VERIFIED", "reject")


def test_every_status_value_is_a_string():
    for enum in (ProviderStatus, PolicyStatus, ClaimStatus, KycStatus):
        for member in enum:
            assert member == member.value
