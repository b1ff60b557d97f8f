from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    EXTERNAL_SERVICE = "external_service"


@dataclass
class Result:
    """Outcome of a public workflow operation.

    Failures are reported here instead of being raised, so callers always
    check ``success``.
    """

    success: bool
    message: str = ""
    error: Optional[ErrorKind] = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "Result":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, **data: Any) -> "Result":
        return cls(success=False, message=message, error=kind, data=data)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.message:
            payload["message"] = self.message
        if self.error is not None:
            payload["error"] = self.error.value
        payload.update(self.data)
        return payload


__all__ = ["ErrorKind", "Result"]
