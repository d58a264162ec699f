"""
Provider data model
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from database.connection import Base
from models.statuses import ProviderStatus


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_did = Column(String(255), nullable=False)
    provider_address = Column(String(42), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    issuer_did = Column(String(255))
    issued_at = Column(DateTime(timezone=True))
    license_cid = Column(String(255), default="")  # IPFS CID of the license file
    vc_cid = Column(String(255), default="")  # IPFS CID of the provider credential
    status = Column(String(20), default=ProviderStatus.PENDING.value, nullable=False)
    approved_at = Column(DateTime(timezone=True))
    approved_by = Column(String(42))  # insurer address
    rejection_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    policies = relationship("Policy", back_populates="provider")

    def to_dict(self):
        return {
            "id": self.id,
            "providerDid": self.provider_did,
            "providerAddress": self.provider_address,
            "name": self.name,
            "vcCid": self.vc_cid,
            "licenseCid": self.license_cid,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
