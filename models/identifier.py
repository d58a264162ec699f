"""
Managed decentralized identifier (local key store)
"""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from database.connection import Base


class ManagedIdentifier(Base):
    __tablename__ = "managed_identifiers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    did = Column(String(255), unique=True, nullable=False)
    alias = Column(String(100), unique=True)
    provider = Column(String(100), nullable=False)  # e.g. did:ethr:localhost
    address = Column(String(42), nullable=False)
    encrypted_key = Column(Text, nullable=False)  # Fernet token of the secp256k1 key
    created_at = Column(DateTime(timezone=True), server_default=func.now())
