from typing import Any, Dict, Optional

from pydantic import BaseModel

from paytrack.schemas.error_type import ErrorType


class OperationResult(BaseModel):
    '''
    Outcome of a user action that the dashboard turns into a notification.

    ok: the requested change was committed
    error_type: structured failure category, None when ok
    error_message: human readable failure text
    data: structured payload (updated entity, generated payments, ...)
    explanation: extra note for a committed action that had a degraded side effect
    '''
    ok: bool

    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None

    data: Optional[Dict[str, Any]] = None
    explanation: Optional[str] = None

    @classmethod
    def success(cls, data: Optional[Dict[str, Any]] = None, explanation: Optional[str] = None) -> "OperationResult":
        return cls(ok=True, data=data, explanation=explanation)

    @classmethod
    def failure(cls, error_type: ErrorType, error_message: str) -> "OperationResult":
        return cls(ok=False, error_type=error_type, error_message=error_message)

    def to_api(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "errorType": self.error_type.value if self.error_type else None,
            "errorMessage": self.error_message,
            "data": self.data,
            "explanation": self.explanation,
        }
