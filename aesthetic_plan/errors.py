"""
Error taxonomy shared by the scoring and plan pipelines.

Every error carries an HTTP status and renders to the JSON body returned to
clients; stack traces are never included.
"""
from __future__ import annotations

from typing import Any, Optional


class AestheticPlanError(Exception):
    """Base exception for all service errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AestheticPlanError):
    """Bad request shape (caller's fault)."""

    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message=message, code="VALIDATION_ERROR", details=details)


class ConfigError(AestheticPlanError):
    """Missing credential or configuration (operator's fault)."""

    status_code = 500

    def __init__(self, message: str, setting: str = "unknown"):
        super().__init__(message=message, code="CONFIG_ERROR", details={"setting": setting})
        self.setting = setting


class UpstreamError(AestheticPlanError):
    """A downstream service answered with a non-success status or not at all."""

    def __init__(
        self,
        message: str,
        upstream: str,
        upstream_status: Optional[int] = None,
        body: Any = None,
    ):
        # Surface the downstream status when it is an error status; anything
        # else (transport failure, garbled payload) is a bad gateway.
        status = upstream_status if upstream_status is not None and upstream_status >= 400 else 502
        super().__init__(
            message=message,
            code="UPSTREAM_ERROR",
            details={"upstream": upstream, "status": upstream_status, "body": body},
            status_code=status,
        )
        self.upstream = upstream
        self.upstream_status = upstream_status


class PlanGenerationFailure(AestheticPlanError):
    """The model never produced a parseable plan, even after the strict retry."""

    status_code = 500

    def __init__(self, message: str, attempts: int):
        super().__init__(message=message, code="PLAN_GENERATION_FAILURE", details={"attempts": attempts})
        self.attempts = attempts


class UnexpectedError(AestheticPlanError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, code="UNEXPECTED_ERROR")
