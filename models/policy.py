"""
Policy data model
"""

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from database.connection import Base
from database.types import Amount
from models.statuses import PolicyStatus


class Policy(Base):
    __tablename__ = "policies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)
    issuer_did = Column(String(255))
    beneficiary_address = Column(String(42), nullable=False, index=True)
    beneficiary_did = Column(String(255))
    coverage_amount = Column(Amount, nullable=False)
    start_epoch = Column(BigInteger, nullable=False)  # block time, seconds
    end_epoch = Column(BigInteger, nullable=False)
    tier = Column(String(50), default="Standard")
    premium_paid = Column(Amount, default=0)
    onchain_policy_id = Column(BigInteger, unique=True)
    kyc_doc_cid = Column(String(255), default="")
    status = Column(String(20), default=PolicyStatus.PENDING.value, nullable=False)
    policy_vc_cid = Column(String(255), default="")
    approved_at = Column(DateTime(timezone=True))
    approved_by = Column(String(42))
    rejection_reason = Column(Text)
    refund_tx_hash = Column(String(66))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    provider = relationship("Provider", back_populates="policies")
    claims = relationship("Claim", back_populates="policy")

    def to_dict(self):
        return {
            "id": self.id,
            "onchainPolicyId": self.onchain_policy_id,
            "beneficiaryAddress": self.beneficiary_address,
            "coverageAmount": (
                str(self.coverage_amount) if self.coverage_amount is not None else None
            ),
            "providerId": self.provider_id,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
