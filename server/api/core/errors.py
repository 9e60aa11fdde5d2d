"""
Error taxonomy shared by services and routes.

Every error is an HTTPException so services can raise it directly and FastAPI
maps it to a response. ``detail`` is what the caller sees; ``internal`` keeps
the upstream detail for the server log only.
"""
from typing import Optional
from fastapi import HTTPException


class StudyMateError(HTTPException):
    """Base class for errors surfaced to API callers."""
    status = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, internal: Optional[str] = None):
        super().__init__(status_code=self.status, detail=detail or self.default_detail)
        self.internal = internal

    def __str__(self) -> str:
        if self.internal:
            return f"{self.detail} ({self.internal})"
        return str(self.detail)


class Unauthorized(StudyMateError):
    status = 401
    default_detail = "Unauthorized"


class NotFound(StudyMateError):
    status = 404
    default_detail = "Document not found"


class BadRequest(StudyMateError):
    status = 400
    default_detail = "Invalid request"


class EmptyInput(BadRequest):
    default_detail = "Nothing to process"


class Misconfigured(StudyMateError):
    """A required setting or credential is missing."""
    status = 500
    default_detail = "Service is not configured"


class UpstreamFailure(StudyMateError):
    """Embedding or generation service failed or returned garbage."""
    status = 502
    default_detail = "Upstream service failed"


class ServiceUnavailable(UpstreamFailure):
    status = 503
    default_detail = "Upstream service unavailable"


class ServiceTimeout(UpstreamFailure):
    status = 504
    default_detail = "Upstream service timed out"
