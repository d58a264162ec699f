"""
KYC document data model
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from database.connection import Base
from models.statuses import KycStatus


class KycDocument(Base):
    __tablename__ = "kyc_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_address = Column(String(42), nullable=False, index=True)
    user_did = Column(String(255))
    document_type = Column(String(50), nullable=False)  # passport, national_id, ...
    document_cid = Column(String(255), nullable=False)
    status = Column(String(20), default=KycStatus.PENDING.value, nullable=False)
    rejection_reason = Column(Text)
    verified_by = Column(String(42))
    verified_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
