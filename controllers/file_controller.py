"""
Generic file pinning controller
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from schemas.identity import FileUploadResponse
from services.storage_service import PinataStorage, get_storage
from utils.errors import ValidationError

router = APIRouter()


@router.post("/upload", response_model=FileUploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    storage: PinataStorage = Depends(get_storage),
):
    """
    Pin an arbitrary file to IPFS
    """
    if file is None:
        raise ValidationError("No file uploaded")

    filename = file.filename or "upload"
    pin = await storage.pin_file(await file.read(), filename)

    return FileUploadResponse(
        file_cid=pin.cid, gateway_url=pin.gateway_url, filename=filename
    )
