"""Tagged operation results and the registry error taxonomy.

Every mutating registry operation returns an ``OperationResult`` carrying
either a success value or an ``ErrorCode``.  Failures are reported, never
raised; callers that prefer exceptions can ``unwrap()`` the result.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError


class ErrorCode(str, Enum):
    """Discrete failure kinds surfaced by the registries."""

    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    STATE_CORRUPTED = "state_corrupted"

    @property
    def status(self) -> int:
        """Numeric status code, HTTP-style (403, 404, 400, 500)."""
        return {
            ErrorCode.FORBIDDEN: 403,
            ErrorCode.NOT_FOUND: 404,
            ErrorCode.INVALID_ARGUMENT: 400,
            ErrorCode.STATE_CORRUPTED: 500,
        }[self]


class RegistryError(RuntimeError):
    """Raised by ``OperationResult.unwrap()`` on a failed result."""

    def __init__(self, code: ErrorCode, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"{code.value} ({code.status}): {detail}" if detail else code.value)


class OperationResult(BaseModel):
    """Outcome of a registry operation: a value or an error code.

    Examples
    --------
    >>> OperationResult.success(1).value
    1
    >>> OperationResult.failure(ErrorCode.FORBIDDEN).ok
    False
    """

    model_config = ConfigDict(frozen=True)

    value: Any = None
    error: ErrorCode | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = True) -> OperationResult:
        return cls(value=value)

    @classmethod
    def failure(cls, code: ErrorCode, detail: str = "") -> OperationResult:
        return cls(error=code, detail=detail)

    @classmethod
    def invalid_argument(cls, exc: ValidationError) -> OperationResult:
        """Failure for input that does not fit its record model."""
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        return cls.failure(ErrorCode.INVALID_ARGUMENT, f"invalid field(s): {', '.join(fields)}")

    def unwrap(self) -> Any:
        """Return the success value, or raise ``RegistryError``."""
        if self.error is not None:
            raise RegistryError(self.error, self.detail)
        return self.value
