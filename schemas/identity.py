"""
DID, file and chain sync schemas
"""

from pydantic import Field
from typing import Optional, List
from datetime import datetime

from schemas.common import CamelModel


class DidCreateRequest(CamelModel):
    alias: Optional[str] = Field(None, max_length=100)


class DidCreateResponse(CamelModel):
    success: bool = True
    did: str
    alias: Optional[str] = None


class FileUploadResponse(CamelModel):
    success: bool = True
    file_cid: str
    gateway_url: str
    filename: str


class ChainSyncResponse(CamelModel):
    id: int
    entity_type: str
    entity_id: int
    action: str
    target: str
    status: str
    attempts: int
    tx_hash: Optional[str] = None
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChainSyncListResponse(CamelModel):
    success: bool = True
    records: List[ChainSyncResponse]
