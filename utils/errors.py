"""
Service-layer error taxonomy

Every error carries the HTTP status the API layer answers with. Services raise
these unmodified and the exception handler in main.py shapes the response.
"""

from typing import Optional


class ServiceError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationError(ServiceError):
    """Missing or malformed input"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, error=message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class NotFoundError(ServiceError):
    status_code = 404
    error = "Not found"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(ServiceError):
    """Requested status change is not legal from the record's current status"""

    status_code = 409
    error = "Invalid status transition"

    def __init__(self, entity: str, current: str, action: str):
        super().__init__(f"Cannot {action} {entity} in status {current}")
        self.entity = entity
        self.current = current
        self.action = action


class StorageError(ServiceError):
    error = "Storage error"


class ObjectStorageError(ServiceError):
    error = "Failed to upload file"


class ChainError(ServiceError):
    """On-chain call failed. Only ever raised to the chain sync service."""

    error = "Chain error"
