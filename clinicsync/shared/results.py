"""Structured operation results returned by every public service operation"""

from typing import Any, Optional

from pydantic import BaseModel

from ..errors import ClinicSyncError, ErrorKind


class ActionResult(BaseModel):
    """Success/failure envelope; failures are data, not exceptions"""

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    count: Optional[int] = None
    data: Optional[dict[str, Any]] = None

    @classmethod
    def ok(cls, count: Optional[int] = None, **data) -> "ActionResult":
        return cls(success=True, count=count, data=data or None)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str, **data) -> "ActionResult":
        return cls(success=False, error=error, error_kind=kind, data=data or None)

    @classmethod
    def from_exception(cls, exc: ClinicSyncError, error: str) -> "ActionResult":
        """Failure carrying the exception's kind; the caller supplies a generic message"""
        data = {}
        status_code = getattr(exc, "status_code", None)
        if status_code is not None:
            data["upstream_status"] = status_code
        return cls.fail(exc.kind, error, **data)
