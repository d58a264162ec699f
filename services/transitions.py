"""
Status transition tables for the approval and claim workflows

Each workflow maps an action to the status it produces and lists the statuses
the action is legal from. In strict mode an action from any other status is
refused; in lenient mode the target status is written regardless, which is how
the admin dashboard historically behaved.
"""

from typing import Dict, FrozenSet, Optional

from models.statuses import ClaimStatus, KycStatus, PolicyStatus, ProviderStatus
from utils import settings
from utils.errors import InvalidTransitionError


class Workflow:
    def __init__(self, entity: str, table: Dict[str, tuple]):
        # action -> (allowed source statuses, target status)
        self.entity = entity
        self._table = {
            action: (frozenset(s.value for s in sources), target.value)
            for action, (sources, target) in table.items()
        }

    @property
    def actions(self) -> FrozenSet[str]:
        return frozenset(self._table)

    def target(self, action: str) -> str:
        return self._table[action][1]

    def allowed(self, current: str, action: str) -> bool:
        return current in self._table[action][0]

    def next_status(
        self, current: str, action: str, strict: Optional[bool] = None
    ) -> str:
        """
        Resolve the status produced by `action` from `current`.

        Raises InvalidTransitionError when strict and the action is not
        legal from `current`.
        """
        if action not in self._table:
            raise KeyError(f"Unknown {self.entity} action: {action}")
        if strict is None:
            strict = settings.STRICT_TRANSITIONS
        if strict and not self.allowed(current, action):
            raise InvalidTransitionError(self.entity, current, action)
        return self.target(action)


PROVIDER_WORKFLOW = Workflow(
    "provider",
    {
        "approve": ([ProviderStatus.PENDING], ProviderStatus.APPROVED),
        "reject": ([ProviderStatus.PENDING], ProviderStatus.REJECTED),
    },
)

POLICY_WORKFLOW = Workflow(
    "policy",
    {
        "approve": ([PolicyStatus.PENDING], PolicyStatus.ACTIVE),
        "reject": ([PolicyStatus.PENDING], PolicyStatus.REJECTED),
    },
)

CLAIM_WORKFLOW = Workflow(
    "claim",
    {
        "review": ([ClaimStatus.PENDING], ClaimStatus.UNDER_REVIEW),
        "approve": ([ClaimStatus.UNDER_REVIEW], ClaimStatus.APPROVED),
        "reject": ([ClaimStatus.UNDER_REVIEW], ClaimStatus.REJECTED),
        "pay": ([ClaimStatus.APPROVED], ClaimStatus.PAID),
    },
)

KYC_WORKFLOW = Workflow(
    "KYC document",
    {
        "verify": ([KycStatus.PENDING], KycStatus.VERIFIED),
        "reject": ([KycStatus.PENDING], KycStatus.REJECTED),
    },
)
