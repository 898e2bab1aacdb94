"""Error envelope shared by the /robot-sim endpoints.

Every failure leaves the API as ``{"detail": {"error": {...}}}`` where the
inner object carries a dotted code, a message, the status and the kind of
resource the request addressed.
"""
from __future__ import annotations

from typing import Any, Dict, Literal, NoReturn, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from robot_engines.common.errors import RobotEnginesError

ResourceKind = Literal["joint", "obstacle", "animation", "playback"]

VALIDATION_FAILED = "robot_sim.validation_failed"


class ErrorDetail(BaseModel):
    code: str
    message: str
    http_status: int
    resource_kind: Optional[ResourceKind] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[ResourceKind] = None,
    details: Optional[Dict[str, Any]] = None,
) -> NoReturn:
    """Raise an HTTPException whose detail is the serialized envelope."""
    envelope = ErrorEnvelope(
        error=ErrorDetail(
            code=code,
            message=message,
            http_status=status_code,
            resource_kind=resource_kind,
            details=details or {},
        )
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def raise_engine_error(exc: RobotEnginesError, resource_kind: Optional[ResourceKind] = None) -> NoReturn:
    error_response(exc.code, exc.message, status_code=exc.http_status, resource_kind=resource_kind)


def validation_error(message: str, resource_kind: Optional[ResourceKind] = None) -> NoReturn:
    """Input the caller can fix, such as an animation that does not resolve."""
    error_response(VALIDATION_FAILED, message, status_code=422, resource_kind=resource_kind)
