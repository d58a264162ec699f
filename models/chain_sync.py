"""
Chain sync log: one row per on-chain mirror of a local state change
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from database.connection import Base
from models.statuses import SyncStatus


class ChainSyncRecord(Base):
    __tablename__ = "chain_sync_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(50), nullable=False)  # provider
    entity_id = Column(Integer, nullable=False, index=True)
    action = Column(String(50), nullable=False)  # approveProvider
    target = Column(String(42), nullable=False)  # address passed to the contract
    status = Column(String(20), default=SyncStatus.PENDING.value, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    tx_hash = Column(String(66))
    last_error = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
