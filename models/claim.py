"""
Claim data model
"""

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from database.connection import Base
from database.types import Amount
from models.statuses import ClaimStatus


class Claim(Base):
    __tablename__ = "claims"

    id = Column(Integer, primary_key=True, autoincrement=True)
    policy_id = Column(Integer, ForeignKey("policies.id"), nullable=False)
    onchain_claim_id = Column(BigInteger, unique=True)
    claim_amount = Column(Amount)
    description = Column(Text)
    evidence_cid = Column(String(255))
    status = Column(
        String(20), default=ClaimStatus.PENDING.value, nullable=False
    )  # PENDING, UNDER_REVIEW, APPROVED, REJECTED, PAID
    payout_amount = Column(Amount)
    payout_tx_hash = Column(String(66))
    reviewed_at = Column(DateTime(timezone=True))
    paid_at = Column(DateTime(timezone=True))
    rejection_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationship
    policy = relationship("Policy", back_populates="claims")

    def to_dict(self):
        return {
            "id": self.id,
            "policyId": self.policy_id,
            "onchainClaimId": self.onchain_claim_id,
            "status": self.status,
            "payoutAmount": (
                str(self.payout_amount) if self.payout_amount is not None else None
            ),
            "payoutTxHash": self.payout_tx_hash,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "paidAt": self.paid_at.isoformat() if self.paid_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
