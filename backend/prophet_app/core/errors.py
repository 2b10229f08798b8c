from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class AppError(Exception):
    code: str
    message: str
    status_code: int
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message

    def to_response(self, trace_id: str | None) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details or {},
                "trace_id": trace_id,
            }
        }


class ErrorCodes:
    INVALID_INPUT = "INVALID_INPUT"
    SERVICE_CODE_NOT_FOUND = "SERVICE_CODE_NOT_FOUND"
    SERVICE_CODE_BLOCKED = "SERVICE_CODE_BLOCKED"
    CONTRACT_ANALYSIS_NOT_INITIALIZED = "CONTRACT_ANALYSIS_NOT_INITIALIZED"


class InvalidInputError(AppError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code=ErrorCodes.INVALID_INPUT,
            message=message,
            status_code=422,
            details=details,
        )


class ServiceCodeNotFoundError(AppError):
    def __init__(self, code_id: str) -> None:
        super().__init__(
            code=ErrorCodes.SERVICE_CODE_NOT_FOUND,
            message=f"Service code {code_id!r} not found.",
            status_code=404,
            details={"code_id": code_id},
        )


class CodeBlockedError(AppError):
    """Raised when a locked service code's protected fields are edited."""

    def __init__(self, code_id: str, block_reason: str) -> None:
        super().__init__(
            code=ErrorCodes.SERVICE_CODE_BLOCKED,
            message=f"Service code {code_id!r} is blocked: {block_reason}",
            status_code=409,
            details={"code_id": code_id, "block_reason": block_reason},
        )

    @property
    def block_reason(self) -> str:
        return (self.details or {}).get("block_reason", "")


class AnalysisNotInitializedError(AppError):
    def __init__(self, facility_id: str) -> None:
        super().__init__(
            code=ErrorCodes.CONTRACT_ANALYSIS_NOT_INITIALIZED,
            message=f"Facility {facility_id!r} has no contract analysis.",
            status_code=409,
            details={"facility_id": facility_id},
        )
