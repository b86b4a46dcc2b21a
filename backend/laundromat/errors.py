"""Error taxonomy shared by the service and router layers.

Services raise these directly (they are ``HTTPException`` subclasses), so
FastAPI renders them without per-route translation:

- ValidationError → 400, detail carries the offending field
- InvalidTarget   → 400, status target outside the allowed set
- NotFound        → 404
- Conflict        → 409, record state no longer matches the precondition
- StorageFailure  → 500, generic message; the cause is logged, never echoed
"""
from typing import Optional

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": message, "field": field},
        )
        self.field = field


class InvalidTarget(ValidationError):
    def __init__(self, target: str, allowed: list[str]):
        super().__init__(
            f"Invalid status '{target}'. Allowed: {', '.join(allowed)}",
            field="status",
        )


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class StorageFailure(HTTPException):
    def __init__(self, detail: str = "Storage failure"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
